# =====================================================================
# MÓDULO DE ESQUEMAS DE PYDANTIC
# =====================================================================

"""
Módulo que contiene todos los esquemas de Pydantic de la API de la enfermería.
Cada esquema está separado en su propio archivo por entidad.
"""

# Importar esquemas por entidad
from .auth import LoginRequest, LoginResponse, SessionUser, ProfileUpdate
from .user import RoleOut, UserCreate, UserUpdate, UserBrief, UserOut
from .vital_sign import VitalSignCreate, VitalSignUpdate, VitalSignOut
from .patient import PatientCreate, PatientUpdate, PatientOut
from .statistics import GradeCount, DailyCount, RecentPatient, StatisticsSummary

__all__ = [
    "LoginRequest",
    "LoginResponse",
    "SessionUser",
    "ProfileUpdate",
    "RoleOut",
    "UserCreate",
    "UserUpdate",
    "UserBrief",
    "UserOut",
    "VitalSignCreate",
    "VitalSignUpdate",
    "VitalSignOut",
    "PatientCreate",
    "PatientUpdate",
    "PatientOut",
    "GradeCount",
    "DailyCount",
    "RecentPatient",
    "StatisticsSummary",
]
