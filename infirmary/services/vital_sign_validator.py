"""
Validación clínica de signos vitales antes de persistirlos.

Rangos fisiológicos (inclusivos) y coherencia sistólica > diastólica.
``reading`` es un mapeo donde la PRESENCIA de la clave indica que el campo
se envió; un valor None significa "vaciar el campo".
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, NamedTuple, Optional

from infirmary.exceptions import MissingFields, ValidationFailed


class VitalRange(NamedTuple):
    low: float
    high: float
    message: str


REQUIRED_FIELDS = ("temperature", "heart_rate", "systolic_pressure", "diastolic_pressure")

VITAL_SIGN_RANGES: Dict[str, VitalRange] = {
    "temperature": VitalRange(30, 45, "La temperatura debe estar entre 30°C y 45°C"),
    "heart_rate": VitalRange(40, 200, "El ritmo cardiaco debe estar entre 40 y 200 bpm"),
    "systolic_pressure": VitalRange(50, 250, "La presión sistólica debe estar entre 50 y 250 mmHg"),
    "diastolic_pressure": VitalRange(30, 150, "La presión diastólica debe estar entre 30 y 150 mmHg"),
    "oxygen_saturation": VitalRange(70, 100, "La saturación de oxígeno debe estar entre 70% y 100%"),
}

PRESSURE_MESSAGE = "La presión sistólica debe ser mayor que la diastólica"
MISSING_MESSAGE = "Temperatura, ritmo cardiaco y presión arterial son requeridos"


def _check_range(field: str, value: Any) -> None:
    rule = VITAL_SIGN_RANGES[field]
    if not rule.low <= value <= rule.high:
        raise ValidationFailed(field, rule.message)


def validate_vital_sign(
    reading: Mapping[str, Any],
    is_partial: bool = False,
    current: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Valida una toma completa o una corrección parcial.

    Args:
        reading: Campos enviados.
        is_partial: True para actualizaciones; sólo se validan los campos presentes.
        current: Valores actuales del registro (sólo en parciales), usados
            para comprobar sistólica > diastólica sobre el resultado.

    Returns:
        El registro resultante (``current`` con ``reading`` encima).

    Raises:
        MissingFields: Falta algún campo obligatorio (todos juntos).
        ValidationFailed: Un campo fuera de rango o presión incoherente.
    """
    if is_partial:
        missing = [f for f in REQUIRED_FIELDS if f in reading and reading[f] is None]
    else:
        missing = [f for f in REQUIRED_FIELDS if reading.get(f) is None]
    if missing:
        raise MissingFields(missing, MISSING_MESSAGE)

    for field in VITAL_SIGN_RANGES:
        if field in reading and reading[field] is not None:
            _check_range(field, reading[field])

    merged: Dict[str, Any] = dict(current or {})
    merged.update(reading)

    systolic = merged.get("systolic_pressure")
    diastolic = merged.get("diastolic_pressure")
    if systolic is not None and diastolic is not None and systolic <= diastolic:
        raise ValidationFailed("systolic_pressure", PRESSURE_MESSAGE)

    return merged


def validate_sensor_reading(
    heart_rate: Optional[float],
    oxygen_saturation: Optional[float],
    temperature: Optional[float],
) -> Dict[str, Any]:
    """Lecturas del sensor: sin presión arterial, sólo rangos."""
    reading = {
        "heart_rate": heart_rate,
        "oxygen_saturation": oxygen_saturation,
        "temperature": temperature,
    }
    missing = [field for field, value in reading.items() if value is None]
    if missing:
        raise MissingFields(missing, "Datos incompletos. Se requieren pulso, spo2 y temp.")

    for field, value in reading.items():
        _check_range(field, value)
    return reading
