# =====================================================================
# MODELO BASE PARA LA BASE DE DATOS
# =====================================================================

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase

# ---------- Clase Base para todos los modelos ----------
class Base(DeclarativeBase):
    """
    Clase base declarativa para todos los modelos de SQLAlchemy.
    Proporciona funcionalidad común a todas las entidades.
    """
    pass

# ---------- Valores de referencia ----------
# Nombres de rol normalizados (los nombres en BD se comparan sin mayúsculas)
ROLE_ADMIN = "administrador"
ROLE_NURSE = "enfermero"

# Área de afiliación que exige semestre
AREA_STUDENT = "estudiante"
