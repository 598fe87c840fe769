# =====================================================================
# ENDPOINTS DE SIGNOS VITALES
# =====================================================================

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status

from infirmary.deps import get_current_actor, get_record_service
from infirmary.schemas import VitalSignCreate, VitalSignOut, VitalSignUpdate
from infirmary.services.permission_service import Actor
from infirmary.services.record_service import RecordService

router = APIRouter(prefix="/vital-signs", tags=["vital-signs"])

@router.get("/patient/{patient_id}", response_model=List[VitalSignOut])
async def list_vital_signs(
    patient_id: int,
    actor: Optional[Actor] = Depends(get_current_actor),
    service: RecordService = Depends(get_record_service),
):
    """Historial del paciente, del más reciente al más antiguo"""
    return await service.list_vital_signs(actor, patient_id)

@router.post("/patient/{patient_id}", response_model=VitalSignOut, status_code=status.HTTP_201_CREATED)
async def create_vital_sign(
    patient_id: int,
    data: VitalSignCreate,
    actor: Optional[Actor] = Depends(get_current_actor),
    service: RecordService = Depends(get_record_service),
):
    return await service.create_vital_sign(actor, patient_id, data)

@router.put("/{vital_sign_id}", response_model=VitalSignOut)
async def update_vital_sign(
    vital_sign_id: str,
    data: VitalSignUpdate,
    actor: Optional[Actor] = Depends(get_current_actor),
    service: RecordService = Depends(get_record_service),
):
    """Corrección parcial; la presión se revalida sobre el registro resultante"""
    return await service.update_vital_sign(actor, vital_sign_id, data)

@router.delete("/{vital_sign_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vital_sign(
    vital_sign_id: str,
    actor: Optional[Actor] = Depends(get_current_actor),
    service: RecordService = Depends(get_record_service),
):
    await service.delete_vital_sign(actor, vital_sign_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
