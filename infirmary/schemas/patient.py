# =====================================================================
# ESQUEMAS DE PACIENTES
# =====================================================================

from __future__ import annotations

from typing import Optional, List
from datetime import datetime, date
from pydantic import BaseModel, ConfigDict, Field

from .user import UserBrief
from .vital_sign import VitalSignOut

# =========================================================
# ESQUEMAS DE PACIENTES
# =========================================================

class PatientCreate(BaseModel):
    """
    Esquema para la creación de un paciente.

    Attributes:
        nombre (str): Nombre
        apellido (str): Apellido
        fecha_nacimiento (date): Fecha de nacimiento
        genero (str): Género
        area (str): Área de afiliación ('estudiante', 'docente', ...)
        carrera (str): Carrera o dependencia
        semestre (Optional[str]): Semestre; obligatorio si area = 'estudiante'
        cedula (str): Cédula; se normaliza a sólo dígitos
        alergias (Optional[str]): Alergias conocidas
        medicamentos (Optional[str]): Medicación habitual
        contacto_emergencia (Optional[str]): Nombre del contacto de emergencia
        telefono_emergencia (Optional[str]): Teléfono del contacto de emergencia
    """
    nombre: str = Field(..., min_length=1)
    apellido: str = Field(..., min_length=1)
    fecha_nacimiento: date
    genero: str = Field(..., min_length=1)
    area: str = Field(..., min_length=1)
    carrera: str = Field(..., min_length=1)
    semestre: Optional[str] = None
    cedula: str = Field(..., min_length=1)
    alergias: Optional[str] = None
    medicamentos: Optional[str] = None
    contacto_emergencia: Optional[str] = None
    telefono_emergencia: Optional[str] = None


class PatientUpdate(BaseModel):
    """
    Esquema para la actualización parcial de un paciente.
    Los campos no enviados no se tocan; un null explícito en un campo
    opcional (alergias, medicamentos, ...) lo vacía.
    """
    nombre: Optional[str] = None
    apellido: Optional[str] = None
    fecha_nacimiento: Optional[date] = None
    genero: Optional[str] = None
    area: Optional[str] = None
    carrera: Optional[str] = None
    semestre: Optional[str] = None
    cedula: Optional[str] = None
    alergias: Optional[str] = None
    medicamentos: Optional[str] = None
    contacto_emergencia: Optional[str] = None
    telefono_emergencia: Optional[str] = None


class PatientOut(BaseModel):
    """
    Esquema de salida de un paciente con su creador y sus signos vitales
    (el listado sólo incluye el último registro).
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre: str
    apellido: str
    fecha_nacimiento: date
    genero: str
    area: str
    carrera: str
    semestre: Optional[str] = None
    cedula: str
    alergias: Optional[str] = None
    medicamentos: Optional[str] = None
    contacto_emergencia: Optional[str] = None
    telefono_emergencia: Optional[str] = None
    creado_por_user_id: Optional[int] = None
    creado_por: Optional[UserBrief] = None
    signos_vitales: List[VitalSignOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

