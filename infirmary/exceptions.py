from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import IntegrityError, DBAPIError
import logging
import re
from typing import Any, Dict, List, Optional

from infirmary.config import settings

logger = logging.getLogger(__name__)


# =====================================================================
# ERRORES DE DOMINIO
# =====================================================================

class AppError(Exception):
    """
    Error base de la aplicación.

    Cada subclase fija el código HTTP y el ``type`` que verá el cliente.
    Los errores se lanzan antes de cualquier escritura y nunca se reintentan.
    """
    status_code: int = 500
    error_type: str = "internal_error"
    default_message: str = "Error interno del servidor"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def extra(self) -> Dict[str, Any]:
        return {}


class Unauthenticated(AppError):
    status_code = 401
    error_type = "unauthenticated"
    default_message = "No autenticado"


class Forbidden(AppError):
    """El actor está identificado pero la acción no está permitida."""
    status_code = 403
    error_type = "forbidden"
    default_message = "insufficient role"

    def __init__(self, reason: Optional[str] = None):
        super().__init__(reason)
        self.reason = self.message


class ValidationFailed(AppError):
    """El payload viola una regla de dominio. Lleva el campo y el motivo."""
    status_code = 400
    error_type = "validation_error"

    def __init__(self, field: str, reason: str):
        super().__init__(reason)
        self.field = field
        self.reason = reason

    def extra(self) -> Dict[str, Any]:
        return {"field": self.field}


class MissingFields(ValidationFailed):
    """Faltan uno o más campos obligatorios (se reportan todos juntos)."""

    def __init__(self, fields: List[str], reason: Optional[str] = None):
        self.fields = list(fields)
        super().__init__(
            ",".join(self.fields),
            reason or f"Campos requeridos faltantes: {', '.join(self.fields)}",
        )

    def extra(self) -> Dict[str, Any]:
        return {"field": self.field, "fields": self.fields}


class NotFound(AppError):
    status_code = 404
    error_type = "not_found"
    default_message = "Registro no encontrado"


class Conflict(AppError):
    """Violación de unicidad; ``field`` identifica la columna en conflicto."""
    status_code = 409
    error_type = "conflict"

    CONFLICT_MESSAGES = {
        "cedula": "Esta cédula ya está registrada en el sistema",
        "email": "Este correo electrónico ya está registrado",
        "nombre": "Ya existe un rol con ese nombre",
    }

    def __init__(self, field: Optional[str] = None, message: Optional[str] = None):
        self.field = field
        super().__init__(message or self.CONFLICT_MESSAGES.get(field or "", "El registro ya existe"))

    def extra(self) -> Dict[str, Any]:
        return {"field": self.field}


class Internal(AppError):
    """Fallo inesperado de persistencia; ``detail`` sólo se expone en desarrollo."""
    status_code = 500
    error_type = "internal_error"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.detail = detail

    def extra(self) -> Dict[str, Any]:
        return {"detail": self.detail} if self.detail else {}


def _error_body(message: str, error_type: str, **extra) -> Dict[str, Any]:
    body = {"error": True, "message": message, "type": error_type}
    body.update(extra)
    return body


def constraint_field(error_message: str) -> Optional[str]:
    """Extrae la columna de un mensaje de unique violation de Postgres."""
    match = re.search(r"key \((\w+)\)=", error_message, re.IGNORECASE)
    if match:
        return match.group(1)
    match = re.search(r'constraint "(\w+)"', error_message)
    if match:
        for field in ("cedula", "email", "nombre"):
            if field in match.group(1):
                return field
    return None


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{exc.error_type}: {exc.message}")
        else:
            logger.warning(f"{exc.error_type}: {exc.message}", extra={"path": request.url.path})

        message, extra = exc.message, exc.extra()
        if isinstance(exc, Internal) and not settings.is_development:
            message, extra = Internal.default_message, {}

        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(message, exc.error_type, **extra),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Solo loguear como ERROR si es un error del servidor (5xx)
        if exc.status_code >= 500:
            logger.error(f"HTTP Exception: {exc.status_code} - {exc.detail}")
        elif exc.status_code >= 400:
            logger.warning(f"HTTP Exception: {exc.status_code} - {exc.detail}")

        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.detail, "http_error"),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # Errores de validación son errores del cliente, no del servidor
        logger.warning(f"Validation Error: {exc.errors()}")
        return JSONResponse(
            status_code=422,
            content=_error_body(
                "Error de validación en los datos enviados",
                "validation_error",
                details=jsonable_errors(exc.errors()),
            ),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError):
        # El repositorio traduce los conflictos conocidos; esto cubre los que escapen
        error_message = str(exc.orig) if getattr(exc, "orig", None) is not None else str(exc)
        lowered = error_message.lower()

        if "unique constraint" in lowered or "duplicate key" in lowered:
            conflict = Conflict(constraint_field(error_message))
            logger.warning(f"Database Integrity Error: {error_message}")
            return JSONResponse(
                status_code=conflict.status_code,
                content=_error_body(conflict.message, conflict.error_type, **conflict.extra()),
            )

        if "foreign key constraint" in lowered:
            message = "No se puede eliminar/actualizar este registro porque está siendo referenciado por otros registros"
        elif "not-null constraint" in lowered:
            message = "Faltan campos obligatorios"
        else:
            message = "Error de integridad en la base de datos"

        logger.error(f"Database Integrity Error: {error_message}")
        return JSONResponse(
            status_code=400,
            content=_error_body(message, "integrity_error"),
        )

    @app.exception_handler(DBAPIError)
    async def db_exception_handler(request: Request, exc: DBAPIError):
        logger.error(f"Database Error: {str(exc)}")
        extra = {"detail": str(exc)} if settings.is_development else {}
        return JSONResponse(
            status_code=500,
            content=_error_body("Error en la base de datos", "database_error", **extra),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unexpected Error: {str(exc)}", exc_info=True)
        extra = {"detail": str(exc)} if settings.is_development else {}
        return JSONResponse(
            status_code=500,
            content=_error_body(Internal.default_message, "internal_error", **extra),
        )


def jsonable_errors(errors) -> list:
    """Los errores de pydantic pueden traer excepciones en ``ctx``; se pasan a texto."""
    cleaned = []
    for error in errors:
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        cleaned.append(error)
    return cleaned
