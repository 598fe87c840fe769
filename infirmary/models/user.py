# =====================================================================
# MODELO DE USUARIOS
# =====================================================================

from __future__ import annotations

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, Text, Boolean, ForeignKey, DateTime, func
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from .base import Base

if TYPE_CHECKING:
    from .role import Role

class User(Base):
    """
    Modelo de Usuario (cuenta de personal de la enfermería).
    Cada usuario pertenece a un único rol.
    """
    __tablename__ = "user"

    # ---------- Identificación ----------
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nombre: Mapped[str] = mapped_column(Text, nullable=False)
    apellido: Mapped[str] = mapped_column(Text, nullable=False)

    # ---------- Datos de autenticación ----------
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    role_id: Mapped[int] = mapped_column(Integer, ForeignKey("role.id"), nullable=False)

    # ---------- Estado ----------
    activo: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    ultimavez: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    imagen_url: Mapped[Optional[str]] = mapped_column(Text)

    # ---------- Auditoría ----------
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    role: Mapped["Role"] = relationship(back_populates="users")

    def __repr__(self) -> str:
        """Representación en string del usuario."""
        return f"<User(id={self.id}, email={self.email})>"
