# infirmary/logging_config.py
"""
Logging estructurado (JSON) de la API de la enfermería.
Cada línea es un objeto JSON con timestamp, logger, nivel y ubicación,
más los campos enviados con ``extra={...}`` (ids de paciente, usuario, ...).
"""

import logging
import sys
from pythonjsonlogger.json import JsonFormatter

from infirmary.config import settings

SERVICE_NAME = "infirmary-api"


def setup_logging(level: str = None):
    """Configura el logger raíz con salida JSON a stdout"""

    log_handler = logging.StreamHandler(sys.stdout)

    formatter = JsonFormatter(
        fmt='%(asctime)s %(name)s %(levelname)s %(message)s %(pathname)s %(lineno)d',
        datefmt='%Y-%m-%dT%H:%M:%S',
        rename_fields={"asctime": "timestamp", "levelname": "level"},
        static_fields={"service": SERVICE_NAME, "environment": settings.environment},
    )
    log_handler.setFormatter(formatter)

    root = logging.getLogger()
    # Con uvicorn --reload el módulo se importa de nuevo: un solo handler JSON
    if not any(isinstance(h.formatter, JsonFormatter) for h in root.handlers):
        root.addHandler(log_handler)
    root.setLevel((level or settings.log_level).upper())

    # Reducir verbosidad de librerías externas
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return root


# Logger global
logger = setup_logging()
