# =====================================================================
# ESQUEMAS DE SIGNOS VITALES
# =====================================================================

from __future__ import annotations

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict

# =========================================================
# ESQUEMAS DE SIGNOS VITALES
# =========================================================

class VitalSignCreate(BaseModel):
    """
    Esquema para registrar una toma de signos vitales.

    Los campos obligatorios (temperature, heart_rate, systolic_pressure,
    diastolic_pressure) se declaran opcionales aquí: el validador de
    mediciones reporta todos los faltantes en un único error.

    Attributes:
        temperature (float): Temperatura en °C (30-45)
        oxygen_saturation (Optional[float]): Saturación de oxígeno en % (70-100)
        heart_rate (int): Ritmo cardiaco en bpm (40-200)
        systolic_pressure (int): Presión sistólica en mmHg (50-250)
        diastolic_pressure (int): Presión diastólica en mmHg (30-150)
        notes (Optional[str]): Observaciones
        timestamp (Optional[datetime]): Momento de la toma (default: ahora)
    """
    temperature: Optional[float] = None
    oxygen_saturation: Optional[float] = None
    heart_rate: Optional[int] = None
    systolic_pressure: Optional[int] = None
    diastolic_pressure: Optional[int] = None
    notes: Optional[str] = None
    timestamp: Optional[datetime] = None


class VitalSignUpdate(BaseModel):
    """
    Corrección parcial de una toma. Sólo se validan los campos enviados,
    pero la regla sistólica > diastólica se comprueba sobre el registro
    resultante.
    """
    temperature: Optional[float] = None
    oxygen_saturation: Optional[float] = None
    heart_rate: Optional[int] = None
    systolic_pressure: Optional[int] = None
    diastolic_pressure: Optional[int] = None
    notes: Optional[str] = None
    timestamp: Optional[datetime] = None


class VitalSignOut(BaseModel):
    """Esquema de salida de un signo vital."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: Optional[int] = None
    temperature: float
    oxygen_saturation: Optional[float] = None
    heart_rate: int
    systolic_pressure: Optional[int] = None
    diastolic_pressure: Optional[int] = None
    notes: Optional[str] = None
    timestamp: datetime
    created_at: Optional[datetime] = None
