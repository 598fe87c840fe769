# =====================================================================
# ENDPOINTS DE PACIENTES
# =====================================================================

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from infirmary.deps import get_current_actor, get_record_service
from infirmary.schemas import PatientCreate, PatientOut, PatientUpdate
from infirmary.services.permission_service import Actor
from infirmary.services.record_service import RecordService

router = APIRouter(prefix="/patients", tags=["patients"])

@router.get("", response_model=List[PatientOut])
async def list_patients(
    search: Optional[str] = Query(None, description="Búsqueda por cédula, nombre o apellido"),
    area: Optional[str] = Query(None, description="Filtrar por área (estudiante, docente, ...)"),
    actor: Optional[Actor] = Depends(get_current_actor),
    service: RecordService = Depends(get_record_service),
):
    """Lista de pacientes; cada uno sólo trae su último signo vital"""
    return await service.list_patients(actor, search=search, area=area)

@router.get("/{patient_id}", response_model=PatientOut)
async def get_patient(
    patient_id: int,
    actor: Optional[Actor] = Depends(get_current_actor),
    service: RecordService = Depends(get_record_service),
):
    """Paciente con todo su historial de signos vitales"""
    return await service.get_patient(actor, patient_id)

@router.post("", response_model=PatientOut, status_code=status.HTTP_201_CREATED)
async def create_patient(
    data: PatientCreate,
    actor: Optional[Actor] = Depends(get_current_actor),
    service: RecordService = Depends(get_record_service),
):
    return await service.create_patient(actor, data)

@router.put("/{patient_id}", response_model=PatientOut)
async def update_patient(
    patient_id: int,
    data: PatientUpdate,
    actor: Optional[Actor] = Depends(get_current_actor),
    service: RecordService = Depends(get_record_service),
):
    return await service.update_patient(actor, patient_id, data)

@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_patient(
    patient_id: int,
    actor: Optional[Actor] = Depends(get_current_actor),
    service: RecordService = Depends(get_record_service),
):
    """Elimina el paciente y, en cascada, sus signos vitales"""
    await service.delete_patient(actor, patient_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
