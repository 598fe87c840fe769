# infirmary/routers/auth.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from infirmary.deps import get_current_actor, get_record_service
from infirmary.schemas import LoginRequest, LoginResponse, ProfileUpdate, SessionUser
from infirmary.services.permission_service import Actor
from infirmary.services.record_service import RecordService

router = APIRouter(prefix="/auth", tags=["auth"])

def session_user(user) -> SessionUser:
    """Usuario de sesión: igual que el modelo pero con el nombre del rol."""
    return SessionUser(
        id=user.id,
        nombre=user.nombre,
        apellido=user.apellido,
        email=user.email,
        role=user.role.nombre if user.role is not None else "",
        role_id=user.role_id,
        activo=user.activo,
        ultimavez=user.ultimavez,
        imagen_url=user.imagen_url,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )

@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    service: RecordService = Depends(get_record_service),
):
    result = await service.login(data.email, data.password)
    return LoginResponse(token=result["token"], user=session_user(result["user"]))

@router.get("/profile", response_model=SessionUser)
async def get_profile(
    actor: Optional[Actor] = Depends(get_current_actor),
    service: RecordService = Depends(get_record_service),
):
    return session_user(await service.get_profile(actor))

@router.put("/profile", response_model=SessionUser)
async def update_profile(
    data: ProfileUpdate,
    actor: Optional[Actor] = Depends(get_current_actor),
    service: RecordService = Depends(get_record_service),
):
    return session_user(await service.update_profile(actor, data))
