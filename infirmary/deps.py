from __future__ import annotations

from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from infirmary.db import get_session
from infirmary.exceptions import Unauthenticated
from infirmary.repositories.record_repository import RecordRepository
from infirmary.security import decode_token
from infirmary.services.permission_service import Actor
from infirmary.services.record_service import RecordService

bearer = HTTPBearer(auto_error=False)

async def get_current_actor(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> Optional[Actor]:
    """
    Actor de la petición a partir del Bearer token.

    Sin token devuelve None: la política de permisos decide (Unauthenticated).
    Un token inválido o expirado es siempre 401.
    """
    if not creds:
        return None
    try:
        payload = decode_token(creds.credentials)
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token expirado")
    except jwt.PyJWTError:
        raise Unauthenticated("Token inválido")

    if payload.get("typ") != "access":
        raise Unauthenticated("Token inválido")
    try:
        actor_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise Unauthenticated("Token inválido")

    return Actor(id=actor_id, role=payload.get("role", ""), email=payload.get("email"))

async def get_db(session: AsyncSession = Depends(get_session)) -> AsyncSession:
    yield session

async def get_record_service(db: AsyncSession = Depends(get_db)) -> RecordService:
    return RecordService(RecordRepository(db))
