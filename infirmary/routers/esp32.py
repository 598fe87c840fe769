# infirmary/routers/esp32.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError

from infirmary.deps import get_record_service
from infirmary.exceptions import ValidationFailed
from infirmary.services.record_service import RecordService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/esp32", tags=["esp32"])

def _parse_number(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    return float(value)

@router.get("/guardar-lectura", response_class=PlainTextResponse)
async def save_reading(
    pulso: Optional[str] = Query(None),
    spo2: Optional[str] = Query(None),
    temp: Optional[str] = Query(None),
    service: RecordService = Depends(get_record_service),
):
    """
    Lectura del sensor ESP32 (sin autenticación ni paciente asociado).
    El dispositivo sólo entiende texto plano, por eso los errores no van en JSON.
    """
    try:
        heart_rate = _parse_number(pulso)
        oxygen_saturation = _parse_number(spo2)
        temperature = _parse_number(temp)
    except ValueError:
        return PlainTextResponse("ERROR: pulso, spo2 y temp deben ser numéricos.", status_code=400)

    try:
        vital_sign = await service.ingest_sensor_reading(heart_rate, oxygen_saturation, temperature)
    except ValidationFailed as exc:
        logger.warning("Lectura del sensor rechazada", extra={"field": exc.field, "reason": exc.reason})
        return PlainTextResponse(f"ERROR: {exc.reason}", status_code=400)
    except SQLAlchemyError:
        logger.error("Error al insertar la lectura del sensor", exc_info=True)
        return PlainTextResponse("ERROR: Falló la inserción en la base de datos.", status_code=500)

    logger.info("Lectura del sensor guardada", extra={"vital_sign_id": vital_sign.id})
    return PlainTextResponse("DATOS DE SIGNOS VITALES GUARDADOS.")
