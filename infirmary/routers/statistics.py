# infirmary/routers/statistics.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from infirmary.deps import get_current_actor, get_record_service
from infirmary.schemas import StatisticsSummary
from infirmary.services.permission_service import Actor
from infirmary.services.record_service import RecordService

router = APIRouter(prefix="/statistics", tags=["statistics"])

@router.get("", response_model=StatisticsSummary)
async def get_statistics(
    actor: Optional[Actor] = Depends(get_current_actor),
    service: RecordService = Depends(get_record_service),
):
    """
    Resumen del panel: totales, pacientes por semestre, tomas por día
    (últimos 30 días), edad promedio y últimos pacientes registrados.
    """
    return await service.get_statistics(actor)
