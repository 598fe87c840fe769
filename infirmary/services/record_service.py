"""
Servicio de registros con control de acceso.

Cada operación sigue el mismo pipeline, sin reintentos:

    Autorizar -> Validar (si aplica) -> Persistir

Si una etapa falla se lanza el error correspondiente y no se escribe nada.
El repositorio recibido debe ofrecer las operaciones de
:class:`infirmary.repositories.record_repository.RecordRepository`.
"""
from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from zoneinfo import ZoneInfo

from infirmary.config import settings
from infirmary.exceptions import Conflict, Forbidden, NotFound, Unauthenticated, ValidationFailed
from infirmary.models.base import AREA_STUDENT
from infirmary.schemas import (
    PatientCreate, PatientUpdate, ProfileUpdate, StatisticsSummary,
    UserCreate, UserUpdate, VitalSignCreate, VitalSignUpdate,
)
from infirmary.security import create_access_token, hash_password, verify_password
from infirmary.services.permission_service import Action, Actor, authorize
from infirmary.services.statistics_service import aggregate
from infirmary.services.vital_sign_validator import validate_sensor_reading, validate_vital_sign

logger = logging.getLogger(__name__)

VITAL_SIGN_FIELDS = ("temperature", "oxygen_saturation", "heart_rate", "systolic_pressure", "diastolic_pressure")
REQUIRED_PATIENT_FIELDS = ("nombre", "apellido", "fecha_nacimiento", "genero", "area", "carrera", "cedula")


def default_clock() -> datetime:
    """Hora actual en la zona configurada para las estadísticas."""
    return datetime.now(ZoneInfo(settings.stats_timezone))


def normalize_cedula(value: str) -> str:
    """Deja sólo los dígitos de la cédula (V-12.345.678 -> 12345678)."""
    digits = re.sub(r"\D", "", value or "")
    if not digits:
        raise ValidationFailed("cedula", "La cédula debe contener al menos un dígito")
    return digits


def resolve_semestre(area: str, semestre: Optional[str]) -> Optional[str]:
    """El semestre es obligatorio para estudiantes y nulo para el resto."""
    if area != AREA_STUDENT:
        return None
    if semestre is None or not semestre.strip():
        raise ValidationFailed("semestre", "El semestre es requerido para estudiantes")
    return semestre.strip()


def is_vital_sign_id(value: str) -> bool:
    """Los signos vitales usan UUID; cualquier otro texto no puede existir."""
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def _role_name(user: Any) -> Optional[str]:
    role = getattr(user, "role", None)
    return role.nombre if role is not None else None


class RecordService:
    """Orquesta autorización, validación y persistencia de los registros clínicos."""

    def __init__(self, repository, clock: Optional[Callable[[], datetime]] = None):
        self.repository = repository
        self.clock = clock or default_clock

    # -------------------- helpers --------------------

    async def _get_patient_or_404(self, patient_id: int):
        patient = await self.repository.get_patient(patient_id)
        if patient is None:
            raise NotFound("Paciente no encontrado")
        return patient

    async def _get_vital_sign_or_404(self, vital_sign_id: str):
        if not is_vital_sign_id(vital_sign_id):
            raise NotFound("Signo vital no encontrado")
        vital_sign = await self.repository.get_vital_sign(vital_sign_id)
        if vital_sign is None:
            raise NotFound("Signo vital no encontrado")
        return vital_sign

    async def _get_user_or_404(self, user_id: int):
        user = await self.repository.get_user(user_id)
        if user is None:
            raise NotFound("Usuario no encontrado")
        return user

    async def _get_role_or_invalid(self, role_id: int):
        role = await self.repository.get_role(role_id)
        if role is None:
            raise ValidationFailed("role_id", "Rol no válido")
        return role

    # -------------------- autenticación y perfil --------------------

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """Devuelve ``{"token", "user"}`` si las credenciales son válidas."""
        user = await self.repository.get_user_by_email(email.strip())
        if user is None or not verify_password(password, user.password_hash):
            raise Unauthenticated("Credenciales inválidas")
        if not user.activo:
            raise Forbidden("Usuario inactivo")

        await self.repository.touch_last_seen(user.id, datetime.now(timezone.utc))
        user = await self._get_user_or_404(user.id)

        token = create_access_token(sub=str(user.id), role=_role_name(user) or "", email=user.email)
        logger.info("Inicio de sesión", extra={"user_id": user.id})
        return {"token": token, "user": user}

    async def get_profile(self, actor: Optional[Actor]):
        authorize(actor, Action.PROFILE_READ)
        return await self._get_user_or_404(actor.id)

    async def update_profile(self, actor: Optional[Actor], payload: ProfileUpdate):
        authorize(actor, Action.PROFILE_UPDATE)
        user = await self._get_user_or_404(actor.id)
        supplied = payload.model_dump(exclude_unset=True)
        changes: Dict[str, Any] = {}

        if supplied.get("password"):
            current_password = supplied.get("currentPassword")
            if not current_password:
                raise ValidationFailed("currentPassword", "La contraseña actual es requerida")
            if not verify_password(current_password, user.password_hash):
                raise ValidationFailed("currentPassword", "La contraseña actual es incorrecta")
            changes["password_hash"] = hash_password(supplied["password"])

        for field in ("nombre", "apellido"):
            if supplied.get(field):
                changes[field] = supplied[field]

        email = (supplied.get("email") or "").strip()
        if email and email != user.email:
            existing = await self.repository.get_user_by_email(email)
            if existing is not None and existing.id != user.id:
                raise Conflict("email", "Este correo electrónico ya está en uso")
            changes["email"] = email

        # Presente con null/vacío elimina el avatar; ausente lo conserva
        if "imagen_url" in supplied:
            changes["imagen_url"] = supplied["imagen_url"] or None

        if not changes:
            return user
        return await self.repository.update_user(user.id, changes)

    # -------------------- pacientes --------------------

    async def list_patients(self, actor: Optional[Actor], search: Optional[str] = None, area: Optional[str] = None):
        authorize(actor, Action.PATIENT_READ)
        return await self.repository.list_patients(search=search, area=area)

    async def get_patient(self, actor: Optional[Actor], patient_id: int):
        authorize(actor, Action.PATIENT_READ)
        return await self._get_patient_or_404(patient_id)

    async def create_patient(self, actor: Optional[Actor], payload: PatientCreate):
        authorize(actor, Action.PATIENT_CREATE)

        data = payload.model_dump()
        data["cedula"] = normalize_cedula(data["cedula"])
        data["semestre"] = resolve_semestre(data["area"], data.get("semestre"))
        data["creado_por_user_id"] = actor.id

        return await self.repository.create_patient(data)

    async def update_patient(self, actor: Optional[Actor], patient_id: int, payload: PatientUpdate):
        authorize(actor, Action.PATIENT_UPDATE)
        patient = await self._get_patient_or_404(patient_id)

        changes = payload.model_dump(exclude_unset=True)
        # Los campos obligatorios no se pueden vaciar: null o "" = sin cambio
        for field in REQUIRED_PATIENT_FIELDS:
            if field in changes and changes[field] in (None, ""):
                changes.pop(field)

        if "cedula" in changes:
            changes["cedula"] = normalize_cedula(changes["cedula"])

        if "area" in changes or "semestre" in changes:
            area = changes.get("area", patient.area)
            semestre = changes["semestre"] if "semestre" in changes else patient.semestre
            changes["semestre"] = resolve_semestre(area, semestre)

        if not changes:
            return patient

        updated = await self.repository.update_patient(patient_id, changes)
        logger.info("Paciente actualizado", extra={"patient_id": patient_id, "fields": sorted(changes)})
        return updated

    async def delete_patient(self, actor: Optional[Actor], patient_id: int) -> None:
        authorize(actor, Action.PATIENT_DELETE)
        await self.repository.delete_patient(patient_id)
        logger.info("Paciente eliminado", extra={"patient_id": patient_id, "actor_id": actor.id})

    # -------------------- signos vitales --------------------

    async def list_vital_signs(self, actor: Optional[Actor], patient_id: int):
        authorize(actor, Action.VITAL_SIGN_READ)
        await self._get_patient_or_404(patient_id)
        return await self.repository.list_vital_signs(patient_id)

    async def create_vital_sign(self, actor: Optional[Actor], patient_id: int, payload: VitalSignCreate):
        authorize(actor, Action.VITAL_SIGN_CREATE)

        reading = payload.model_dump(exclude_unset=True)
        validate_vital_sign(reading)
        await self._get_patient_or_404(patient_id)

        data = {
            "patient_id": patient_id,
            "temperature": float(reading["temperature"]),
            "oxygen_saturation": reading.get("oxygen_saturation"),
            "heart_rate": int(reading["heart_rate"]),
            "systolic_pressure": int(reading["systolic_pressure"]),
            "diastolic_pressure": int(reading["diastolic_pressure"]),
            "notes": reading.get("notes") or None,
            "timestamp": reading.get("timestamp") or self.clock(),
        }
        return await self.repository.create_vital_sign(data)

    async def update_vital_sign(self, actor: Optional[Actor], vital_sign_id: str, payload: VitalSignUpdate):
        authorize(actor, Action.VITAL_SIGN_UPDATE)
        vital_sign = await self._get_vital_sign_or_404(vital_sign_id)

        changes = payload.model_dump(exclude_unset=True)
        if changes.get("timestamp") is None:
            changes.pop("timestamp", None)

        current = {field: getattr(vital_sign, field) for field in VITAL_SIGN_FIELDS}
        validate_vital_sign(changes, is_partial=True, current=current)

        if "notes" in changes:
            changes["notes"] = changes["notes"] or None
        if not changes:
            return vital_sign

        updated = await self.repository.update_vital_sign(vital_sign_id, changes)
        logger.info("Signo vital corregido", extra={"vital_sign_id": vital_sign_id, "fields": sorted(changes)})
        return updated

    async def delete_vital_sign(self, actor: Optional[Actor], vital_sign_id: str) -> None:
        authorize(actor, Action.VITAL_SIGN_DELETE)
        if not is_vital_sign_id(vital_sign_id):
            raise NotFound("Signo vital no encontrado")
        await self.repository.delete_vital_sign(vital_sign_id)
        logger.info("Signo vital eliminado", extra={"vital_sign_id": vital_sign_id, "actor_id": actor.id})

    async def ingest_sensor_reading(
        self,
        heart_rate: Optional[float],
        oxygen_saturation: Optional[float],
        temperature: Optional[float],
    ):
        """Lectura del sensor: sin actor ni paciente, pero con rangos validados."""
        reading = validate_sensor_reading(heart_rate, oxygen_saturation, temperature)
        data = {
            "patient_id": None,
            "temperature": float(reading["temperature"]),
            "oxygen_saturation": float(reading["oxygen_saturation"]),
            "heart_rate": int(round(reading["heart_rate"])),
            "timestamp": self.clock(),
        }
        return await self.repository.create_vital_sign(data)

    # -------------------- usuarios y roles --------------------

    async def list_roles(self, actor: Optional[Actor]):
        authorize(actor, Action.ROLE_READ)
        return await self.repository.list_roles()

    async def list_users(self, actor: Optional[Actor]):
        authorize(actor, Action.USER_READ)
        return await self.repository.list_users()

    async def get_user(self, actor: Optional[Actor], user_id: int):
        authorize(actor, Action.USER_READ)
        return await self._get_user_or_404(user_id)

    async def create_user(self, actor: Optional[Actor], payload: UserCreate):
        authorize(actor, Action.USER_CREATE)
        await self._get_role_or_invalid(payload.role_id)

        data = payload.model_dump(exclude={"password"})
        data["email"] = data["email"].strip()
        data["password_hash"] = hash_password(payload.password)
        return await self.repository.create_user(data)

    async def update_user(self, actor: Optional[Actor], user_id: int, payload: UserUpdate):
        authorize(actor, Action.USER_UPDATE)
        target = await self._get_user_or_404(user_id)
        authorize(actor, Action.USER_UPDATE, target_role=_role_name(target), target_id=target.id)

        changes = {
            field: value
            for field, value in payload.model_dump(exclude_unset=True).items()
            if value is not None and value != ""
        }

        if "role_id" in changes:
            role = await self._get_role_or_invalid(changes["role_id"])
            authorize(actor, Action.USER_ASSIGN_ROLE, target_role=role.nombre, target_id=target.id)

        if "password" in changes:
            changes["password_hash"] = hash_password(changes.pop("password"))
        if "email" in changes:
            changes["email"] = changes["email"].strip() or target.email

        if not changes:
            return target

        updated = await self.repository.update_user(user_id, changes)
        logger.info("Usuario actualizado", extra={"user_id": user_id, "actor_id": actor.id})
        return updated

    async def delete_user(self, actor: Optional[Actor], user_id: int) -> None:
        authorize(actor, Action.USER_DELETE)
        target = await self._get_user_or_404(user_id)
        authorize(actor, Action.USER_DELETE, target_role=_role_name(target), target_id=target.id)

        await self.repository.delete_user(user_id)
        logger.info("Usuario eliminado", extra={"user_id": user_id, "actor_id": actor.id})

    # -------------------- estadísticas --------------------

    async def get_statistics(self, actor: Optional[Actor]) -> StatisticsSummary:
        authorize(actor, Action.STATISTICS_READ)
        patients: List[Any] = await self.repository.list_all_patients()
        vital_signs: List[Any] = await self.repository.list_all_vital_signs()
        users: List[Any] = await self.repository.list_users()
        return aggregate(patients, vital_signs, now=self.clock(), users=users)
