# =====================================================================
# ENDPOINTS DE USUARIOS - CRUD COMPLETO (solo administradores)
# =====================================================================

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status

from infirmary.deps import get_current_actor, get_record_service
from infirmary.schemas import RoleOut, UserCreate, UserOut, UserUpdate
from infirmary.services.permission_service import Actor
from infirmary.services.record_service import RecordService

router = APIRouter(prefix="/users", tags=["users"])

# =====================================================================
# ROLES
# =====================================================================

# Declarada antes de /{user_id} para que "roles" no se interprete como id
@router.get("/roles", response_model=List[RoleOut])
async def list_roles(
    actor: Optional[Actor] = Depends(get_current_actor),
    service: RecordService = Depends(get_record_service),
):
    """Catálogo de roles disponibles"""
    return await service.list_roles(actor)

# =====================================================================
# ENDPOINTS CRUD
# =====================================================================

@router.get("", response_model=List[UserOut])
async def list_users(
    actor: Optional[Actor] = Depends(get_current_actor),
    service: RecordService = Depends(get_record_service),
):
    """Lista de usuarios, los más recientes primero"""
    return await service.list_users(actor)

@router.get("/{user_id}", response_model=UserOut)
async def get_user(
    user_id: int,
    actor: Optional[Actor] = Depends(get_current_actor),
    service: RecordService = Depends(get_record_service),
):
    return await service.get_user(actor, user_id)

@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    actor: Optional[Actor] = Depends(get_current_actor),
    service: RecordService = Depends(get_record_service),
):
    """Crear un usuario con el rol indicado"""
    return await service.create_user(actor, data)

@router.put("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: int,
    data: UserUpdate,
    actor: Optional[Actor] = Depends(get_current_actor),
    service: RecordService = Depends(get_record_service),
):
    """
    Actualización parcial. Un administrador no puede editar a otro
    administrador ni asignar el rol de administrador.
    """
    return await service.update_user(actor, user_id, data)

@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    actor: Optional[Actor] = Depends(get_current_actor),
    service: RecordService = Depends(get_record_service),
):
    await service.delete_user(actor, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
