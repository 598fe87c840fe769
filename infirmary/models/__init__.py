# =====================================================================
# MÓDULO DE MODELOS DE BASE DE DATOS
# =====================================================================

"""
Módulo que contiene todos los modelos de la base de datos de la enfermería.
Cada modelo está separado en su propio archivo por entidad.
"""

# Importar la clase base y valores de referencia
from .base import Base, ROLE_ADMIN, ROLE_NURSE, AREA_STUDENT

# Importar modelos por entidad
from .role import Role
from .user import User
from .patient import Patient
from .vital_sign import VitalSign

# Exportar todos los modelos para fácil importación
__all__ = [
    # Base y constantes
    "Base",
    "ROLE_ADMIN",
    "ROLE_NURSE",
    "AREA_STUDENT",

    # Modelos principales
    "Role",
    "User",
    "Patient",
    "VitalSign",
]
