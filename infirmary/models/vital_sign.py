# =====================================================================
# MODELO DE SIGNOS VITALES
# =====================================================================

from __future__ import annotations

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy import Integer, Float, Text, ForeignKey, DateTime, func
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from .base import Base

if TYPE_CHECKING:
    from .patient import Patient

class VitalSign(Base):
    """
    Toma de signos vitales de un paciente.
    Las lecturas del sensor llegan sin paciente ni presión arterial.
    """
    __tablename__ = "vital_sign"

    # ---------- Identificación ----------
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    patient_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("patient.id", ondelete="CASCADE"),
        index=True
    )

    # ---------- Valores ----------
    temperature: Mapped[float] = mapped_column(Float, nullable=False)          # °C
    oxygen_saturation: Mapped[Optional[float]] = mapped_column(Float)          # %
    heart_rate: Mapped[int] = mapped_column(Integer, nullable=False)           # bpm
    systolic_pressure: Mapped[Optional[int]] = mapped_column(Integer)          # mmHg
    diastolic_pressure: Mapped[Optional[int]] = mapped_column(Integer)         # mmHg
    notes: Mapped[Optional[str]] = mapped_column(Text)

    # ---------- Timestamps ----------
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    patient: Mapped[Optional["Patient"]] = relationship(back_populates="signos_vitales")

    def __repr__(self) -> str:
        return f"<VitalSign(id={self.id[:8]}..., patient_id={self.patient_id})>"
