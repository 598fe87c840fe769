# =====================================================================
# MODELO DE ROLES
# =====================================================================

from __future__ import annotations

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, Text
from typing import Optional, List, TYPE_CHECKING

from .base import Base

if TYPE_CHECKING:
    from .user import User

class Role(Base):
    """
    Rol de personal. Datos de referencia creados en el seed
    ("Administrador", "Enfermero") y rara vez modificados.
    """
    __tablename__ = "role"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nombre: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    descripcion: Mapped[Optional[str]] = mapped_column(Text)

    users: Mapped[List["User"]] = relationship(back_populates="role")

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, nombre={self.nombre})>"
