"""
Servicio centralizado de autorización basado en roles.

Una única tabla (acción -> roles permitidos) más las reglas de protección
entre administradores. Todas las funciones son puras: no leen la base de
datos ni el reloj y se pueden llamar concurrentemente.

Orden de evaluación:
    1. sin actor                      -> Unauthenticated
    2. rol fuera de la tabla          -> Forbidden("insufficient role")
    3. admin edita/borra a otro admin -> Forbidden("cannot modify peer administrator")
    4. admin asigna rol de admin      -> Forbidden("cannot grant administrator role")
    5. borrarse a sí mismo            -> Forbidden("cannot delete self")
    6. permitido
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional

from infirmary.exceptions import Forbidden, Unauthenticated
from infirmary.models.base import ROLE_ADMIN, ROLE_NURSE

logger = logging.getLogger(__name__)

REASON_UNAUTHENTICATED = "Unauthenticated"
REASON_INSUFFICIENT_ROLE = "insufficient role"
REASON_PEER_ADMIN = "cannot modify peer administrator"
REASON_GRANT_ADMIN = "cannot grant administrator role"
REASON_DELETE_SELF = "cannot delete self"


class Action(str, Enum):
    """Acciones que la API puede solicitar sobre los recursos."""

    PATIENT_READ = "patient:read"
    PATIENT_CREATE = "patient:create"
    PATIENT_UPDATE = "patient:update"
    PATIENT_DELETE = "patient:delete"

    VITAL_SIGN_READ = "vital_sign:read"
    VITAL_SIGN_CREATE = "vital_sign:create"
    VITAL_SIGN_UPDATE = "vital_sign:update"
    VITAL_SIGN_DELETE = "vital_sign:delete"

    USER_READ = "user:read"
    USER_CREATE = "user:create"
    USER_UPDATE = "user:update"
    USER_DELETE = "user:delete"
    USER_ASSIGN_ROLE = "user:assign_role"

    PROFILE_READ = "profile:read"
    PROFILE_UPDATE = "profile:update"
    ROLE_READ = "role:read"

    STATISTICS_READ = "statistics:read"


CLINICAL_STAFF: FrozenSet[str] = frozenset({ROLE_NURSE, ROLE_ADMIN})
ADMIN_ONLY: FrozenSet[str] = frozenset({ROLE_ADMIN})

# None = cualquier actor autenticado
ROLE_RULES: Dict[Action, Optional[FrozenSet[str]]] = {
    Action.PATIENT_READ: CLINICAL_STAFF,
    Action.PATIENT_CREATE: CLINICAL_STAFF,
    Action.PATIENT_UPDATE: CLINICAL_STAFF,
    Action.PATIENT_DELETE: CLINICAL_STAFF,

    Action.VITAL_SIGN_READ: CLINICAL_STAFF,
    Action.VITAL_SIGN_CREATE: CLINICAL_STAFF,
    Action.VITAL_SIGN_UPDATE: CLINICAL_STAFF,
    Action.VITAL_SIGN_DELETE: ADMIN_ONLY,

    Action.USER_READ: ADMIN_ONLY,
    Action.USER_CREATE: ADMIN_ONLY,
    Action.USER_UPDATE: ADMIN_ONLY,
    Action.USER_DELETE: ADMIN_ONLY,
    Action.USER_ASSIGN_ROLE: ADMIN_ONLY,

    Action.PROFILE_READ: None,
    Action.PROFILE_UPDATE: None,
    Action.ROLE_READ: None,

    Action.STATISTICS_READ: ADMIN_ONLY,
}

PEER_PROTECTED_ACTIONS = frozenset({Action.USER_UPDATE, Action.USER_DELETE})


@dataclass(frozen=True)
class Actor:
    """Identidad autenticada extraída del token (claims sub/email/role)."""

    id: int
    role: str
    email: Optional[str] = None

    @property
    def role_name(self) -> str:
        return normalize_role(self.role)


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(True)

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(False, reason)


def normalize_role(label: Optional[str]) -> str:
    """Los nombres de rol se comparan sin mayúsculas ni espacios extremos."""
    return (label or "").strip().lower()


def evaluate(
    actor_role: Optional[str],
    action: Action,
    target_role: Optional[str] = None,
    *,
    actor_id: Optional[int] = None,
    target_id: Optional[int] = None,
) -> Decision:
    """
    Decide si ``actor_role`` puede ejecutar ``action``.

    Args:
        actor_role: Rol del actor; None significa que no hay actor.
        action: Acción solicitada.
        target_role: Rol actual del usuario objetivo (USER_UPDATE/USER_DELETE)
            o rol que se quiere asignar (USER_ASSIGN_ROLE).
        actor_id: Id del actor, para la regla de auto-eliminación.
        target_id: Id del usuario objetivo.
    """
    if actor_role is None:
        return Decision.deny(REASON_UNAUTHENTICATED)

    role = normalize_role(actor_role)
    allowed_roles = ROLE_RULES[action]
    if allowed_roles is not None and role not in allowed_roles:
        return Decision.deny(REASON_INSUFFICIENT_ROLE)

    target = normalize_role(target_role)

    if role == ROLE_ADMIN and action in PEER_PROTECTED_ACTIONS and target == ROLE_ADMIN:
        return Decision.deny(REASON_PEER_ADMIN)

    if role == ROLE_ADMIN and action == Action.USER_ASSIGN_ROLE and target == ROLE_ADMIN:
        return Decision.deny(REASON_GRANT_ADMIN)

    if action == Action.USER_DELETE and actor_id is not None and actor_id == target_id:
        return Decision.deny(REASON_DELETE_SELF)

    return Decision.allow()


def authorize(
    actor: Optional[Actor],
    action: Action,
    target_role: Optional[str] = None,
    target_id: Optional[int] = None,
) -> None:
    """Igual que :func:`evaluate` pero lanza la excepción correspondiente."""
    decision = evaluate(
        actor.role if actor is not None else None,
        action,
        target_role,
        actor_id=actor.id if actor is not None else None,
        target_id=target_id,
    )
    if decision.allowed:
        return

    if decision.reason == REASON_UNAUTHENTICATED:
        raise Unauthenticated("Token de acceso requerido")

    logger.warning(
        "Acción denegada",
        extra={"action": action.value, "actor_id": actor.id, "reason": decision.reason},
    )
    raise Forbidden(decision.reason)


class PermissionService:
    """Consultas booleanas sobre la tabla de reglas para los routers"""

    @staticmethod
    def can(user_role: Optional[str], action: Action) -> bool:
        return evaluate(user_role, action).allowed

    @staticmethod
    def can_manage_patients(user_role: Optional[str]) -> bool:
        """Verificar si un rol puede crear/editar pacientes y signos vitales"""
        return PermissionService.can(user_role, Action.PATIENT_CREATE)

    @staticmethod
    def can_delete_vital_signs(user_role: Optional[str]) -> bool:
        return PermissionService.can(user_role, Action.VITAL_SIGN_DELETE)

    @staticmethod
    def can_manage_users(user_role: Optional[str], target_role: Optional[str] = None) -> bool:
        """Verificar si un rol puede gestionar usuarios según el rol objetivo"""
        return evaluate(user_role, Action.USER_UPDATE, target_role).allowed

    @staticmethod
    def can_view_statistics(user_role: Optional[str]) -> bool:
        return PermissionService.can(user_role, Action.STATISTICS_READ)
