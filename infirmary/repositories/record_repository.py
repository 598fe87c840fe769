"""
Repositorio de datos de la enfermería (roles, usuarios, pacientes y
signos vitales) sobre una sesión async de SQLAlchemy.

Cada operación de escritura hace commit propio: o se aplica completa o no
se aplica. Las violaciones de unicidad se traducen a ``Conflict(campo)`` y
los registros inexistentes a ``NotFound``.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value

from infirmary.exceptions import Conflict, Internal, NotFound, constraint_field
from infirmary.models import Role, User, Patient, VitalSign
from infirmary.security import new_uuid

logger = logging.getLogger(__name__)


class RecordRepository:
    """
    Capa de acceso a datos para todas las entidades clínicas.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            message = str(exc.orig) if exc.orig is not None else str(exc)
            if "unique" in message.lower() or "duplicate key" in message.lower():
                raise Conflict(constraint_field(message)) from exc
            logger.error("Error de integridad no esperado", extra={"detail": message})
            raise Internal("Error de integridad en la base de datos", detail=message) from exc

    # -------------------- roles --------------------

    async def list_roles(self) -> List[Role]:
        result = await self.session.execute(select(Role).order_by(Role.id.asc()))
        return list(result.scalars().all())

    async def get_role(self, role_id: int) -> Optional[Role]:
        return await self.session.get(Role, role_id)

    # -------------------- usuarios --------------------

    def _user_query(self):
        return (
            select(User)
            .options(selectinload(User.role))
            .execution_options(populate_existing=True)
        )

    async def list_users(self) -> List[User]:
        result = await self.session.execute(self._user_query().order_by(User.created_at.desc()))
        return list(result.scalars().all())

    async def get_user(self, user_id: int) -> Optional[User]:
        result = await self.session.execute(self._user_query().where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(self._user_query().where(User.email == email))
        return result.scalar_one_or_none()

    async def create_user(self, data: Dict[str, Any]) -> User:
        user = User(**data)
        self.session.add(user)
        await self._commit()
        logger.info("Usuario creado", extra={"user_id": user.id})
        return await self.get_user(user.id)

    async def update_user(self, user_id: int, changes: Dict[str, Any]) -> User:
        user = await self.session.get(User, user_id)
        if user is None:
            raise NotFound("Usuario no encontrado")
        for field, value in changes.items():
            setattr(user, field, value)
        await self._commit()
        return await self.get_user(user_id)

    async def delete_user(self, user_id: int) -> None:
        user = await self.session.get(User, user_id)
        if user is None:
            raise NotFound("Usuario no encontrado")
        await self.session.delete(user)
        await self._commit()

    async def touch_last_seen(self, user_id: int, when: datetime) -> None:
        await self.update_user(user_id, {"ultimavez": when})

    # -------------------- pacientes --------------------

    def _patient_query(self):
        return (
            select(Patient)
            .options(selectinload(Patient.creado_por), selectinload(Patient.signos_vitales))
            .execution_options(populate_existing=True)
        )

    async def list_patients(self, search: Optional[str] = None, area: Optional[str] = None) -> List[Patient]:
        """Pacientes más recientes primero, cada uno sólo con su última toma."""
        query = (
            select(Patient)
            .options(selectinload(Patient.creado_por))
            .execution_options(populate_existing=True)
        )
        if search:
            query = query.where(or_(
                Patient.cedula.contains(search),
                Patient.nombre.ilike(f"%{search}%"),
                Patient.apellido.ilike(f"%{search}%"),
            ))
        if area:
            query = query.where(Patient.area == area)
        result = await self.session.execute(query.order_by(Patient.created_at.desc()))
        patients = list(result.scalars().all())

        latest = await self._latest_vital_signs([p.id for p in patients])
        for patient in patients:
            # Colección cargada sin cambios pendientes
            reading = latest.get(patient.id)
            set_committed_value(patient, "signos_vitales", [reading] if reading is not None else [])
        return patients

    async def _latest_vital_signs(self, patient_ids: List[int]) -> Dict[int, VitalSign]:
        if not patient_ids:
            return {}
        result = await self.session.execute(
            select(VitalSign)
            .where(VitalSign.patient_id.in_(patient_ids))
            .distinct(VitalSign.patient_id)
            .order_by(VitalSign.patient_id, VitalSign.timestamp.desc())
        )
        return {v.patient_id: v for v in result.scalars().all()}

    async def get_patient(self, patient_id: int) -> Optional[Patient]:
        result = await self.session.execute(self._patient_query().where(Patient.id == patient_id))
        return result.scalar_one_or_none()

    async def create_patient(self, data: Dict[str, Any]) -> Patient:
        patient = Patient(**data)
        self.session.add(patient)
        await self._commit()
        logger.info("Paciente creado", extra={"patient_id": patient.id})
        return await self.get_patient(patient.id)

    async def update_patient(self, patient_id: int, changes: Dict[str, Any]) -> Patient:
        patient = await self.session.get(Patient, patient_id)
        if patient is None:
            raise NotFound("Paciente no encontrado")
        for field, value in changes.items():
            setattr(patient, field, value)
        await self._commit()
        return await self.get_patient(patient_id)

    async def delete_patient(self, patient_id: int) -> None:
        patient = await self.session.get(Patient, patient_id)
        if patient is None:
            raise NotFound("Paciente no encontrado")
        # Los signos vitales se eliminan por ON DELETE CASCADE
        await self.session.delete(patient)
        await self._commit()

    async def list_all_patients(self) -> List[Patient]:
        result = await self.session.execute(select(Patient))
        return list(result.scalars().all())

    # -------------------- signos vitales --------------------

    async def list_vital_signs(self, patient_id: int) -> List[VitalSign]:
        result = await self.session.execute(
            select(VitalSign)
            .where(VitalSign.patient_id == patient_id)
            .order_by(VitalSign.timestamp.desc())
        )
        return list(result.scalars().all())

    async def get_vital_sign(self, vital_sign_id: str) -> Optional[VitalSign]:
        result = await self.session.execute(
            select(VitalSign)
            .options(selectinload(VitalSign.patient))
            .where(VitalSign.id == vital_sign_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create_vital_sign(self, data: Dict[str, Any]) -> VitalSign:
        vital_sign = VitalSign(id=new_uuid(), **data)
        self.session.add(vital_sign)
        await self._commit()
        logger.info("Signo vital registrado", extra={"vital_sign_id": vital_sign.id, "patient_id": vital_sign.patient_id})
        return await self.get_vital_sign(vital_sign.id)

    async def update_vital_sign(self, vital_sign_id: str, changes: Dict[str, Any]) -> VitalSign:
        vital_sign = await self.session.get(VitalSign, vital_sign_id)
        if vital_sign is None:
            raise NotFound("Signo vital no encontrado")
        for field, value in changes.items():
            setattr(vital_sign, field, value)
        await self._commit()
        return await self.get_vital_sign(vital_sign_id)

    async def delete_vital_sign(self, vital_sign_id: str) -> None:
        vital_sign = await self.session.get(VitalSign, vital_sign_id)
        if vital_sign is None:
            raise NotFound("Signo vital no encontrado")
        await self.session.delete(vital_sign)
        await self._commit()

    async def list_all_vital_signs(self) -> List[VitalSign]:
        result = await self.session.execute(select(VitalSign))
        return list(result.scalars().all())
