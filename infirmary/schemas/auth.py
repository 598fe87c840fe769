# =====================================================================
# ESQUEMAS DE AUTENTICACIÓN Y PERFIL
# =====================================================================

from __future__ import annotations

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict

# =========================================================
# ESQUEMAS DE AUTENTICACIÓN
# =========================================================

class LoginRequest(BaseModel):
    """
    Esquema para la solicitud de inicio de sesión.

    Attributes:
        email (str): Correo del usuario
        password (str): Contraseña del usuario (en texto plano)
    """
    email: str
    password: str


class SessionUser(BaseModel):
    """
    Usuario devuelto junto al token. ``role`` es el nombre del rol.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre: str
    apellido: str
    email: str
    role: str
    role_id: int
    activo: bool
    ultimavez: Optional[datetime] = None
    imagen_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LoginResponse(BaseModel):
    """
    Esquema para la respuesta del login.

    Attributes:
        token (str): Token JWT de acceso (Bearer)
        user (SessionUser): Datos del usuario autenticado
    """
    token: str
    user: SessionUser


# =========================================================
# ESQUEMAS DE PERFIL
# =========================================================

class ProfileUpdate(BaseModel):
    """
    Actualización del propio perfil. Todos los campos son opcionales.

    - ``password`` exige ``currentPassword``.
    - ``imagen_url`` enviado como null o vacío elimina el avatar;
      si no se envía, se conserva.
    """
    nombre: Optional[str] = None
    apellido: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    currentPassword: Optional[str] = None
    imagen_url: Optional[str] = None
