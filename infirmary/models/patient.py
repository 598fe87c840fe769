# =====================================================================
# MODELO DE PACIENTES
# =====================================================================

from __future__ import annotations

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, Text, ForeignKey, Date, DateTime, func
from datetime import datetime, date
from typing import Optional, List, TYPE_CHECKING

from .base import Base

if TYPE_CHECKING:
    from .user import User
    from .vital_sign import VitalSign

class Patient(Base):
    """
    Modelo de Paciente de la enfermería escolar.
    Puede ser estudiante (con semestre) o personal/otro (sin semestre).
    """
    __tablename__ = "patient"

    # ---------- Identificación ----------
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    cedula: Mapped[str] = mapped_column(Text, unique=True, nullable=False)

    # ---------- Datos personales ----------
    nombre: Mapped[str] = mapped_column(Text, nullable=False)
    apellido: Mapped[str] = mapped_column(Text, nullable=False)
    fecha_nacimiento: Mapped[date] = mapped_column(Date, nullable=False)
    genero: Mapped[str] = mapped_column(Text, nullable=False)

    # ---------- Afiliación ----------
    area: Mapped[str] = mapped_column(Text, nullable=False)
    carrera: Mapped[str] = mapped_column(Text, nullable=False)
    semestre: Mapped[Optional[str]] = mapped_column(Text)

    # ---------- Información clínica ----------
    alergias: Mapped[Optional[str]] = mapped_column(Text)
    medicamentos: Mapped[Optional[str]] = mapped_column(Text)
    contacto_emergencia: Mapped[Optional[str]] = mapped_column(Text)
    telefono_emergencia: Mapped[Optional[str]] = mapped_column(Text)

    # ---------- Auditoría ----------
    creado_por_user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("user.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    creado_por: Mapped[Optional["User"]] = relationship()
    signos_vitales: Mapped[List["VitalSign"]] = relationship(
        back_populates="patient",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="desc(VitalSign.timestamp)",
    )

    def __repr__(self) -> str:
        return f"<Patient(id={self.id}, cedula={self.cedula})>"
