# =====================================================================
# ESQUEMAS DE USUARIOS Y ROLES
# =====================================================================

from __future__ import annotations

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

# =========================================================
# ESQUEMAS DE ROLES
# =========================================================

class RoleOut(BaseModel):
    """
    Esquema de salida de un rol.

    Attributes:
        id (int): Identificador del rol
        nombre (str): Nombre único del rol
        descripcion (Optional[str]): Descripción del rol
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre: str
    descripcion: Optional[str] = None


# =========================================================
# ESQUEMAS DE USUARIOS
# =========================================================

class UserCreate(BaseModel):
    """
    Esquema para la creación de un usuario por un administrador.

    Attributes:
        nombre (str): Nombre
        apellido (str): Apellido
        email (str): Correo único
        password (str): Contraseña en texto plano (se guarda con bcrypt)
        role_id (int): Rol asignado
        activo (bool): Estado inicial (default: True)
    """
    nombre: str = Field(..., min_length=1)
    apellido: str = Field(..., min_length=1)
    email: str
    password: str = Field(..., min_length=1)
    role_id: int
    activo: bool = True


class UserUpdate(BaseModel):
    """
    Actualización parcial de un usuario. Sólo se aplican los campos enviados.
    """
    nombre: Optional[str] = None
    apellido: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role_id: Optional[int] = None
    activo: Optional[bool] = None


class UserBrief(BaseModel):
    """Proyección reducida del usuario (p. ej. creador de un paciente)."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre: str
    apellido: str
    email: Optional[str] = None


class UserOut(BaseModel):
    """
    Esquema de salida de un usuario (nunca incluye el hash de contraseña).
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre: str
    apellido: str
    email: str
    role: Optional[RoleOut] = None
    activo: bool
    ultimavez: Optional[datetime] = None
    imagen_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
