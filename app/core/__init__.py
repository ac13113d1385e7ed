"""Core infrastructure shared by every feature slice.

Configuration, async database session, structured logging, request-id
middleware and RFC 7807 error handling.
"""

from app.core.config import Settings, get_settings
from app.core.database import Base, get_db
from app.core.exceptions import BadRequestError, DatabaseError, TradewayError
from app.core.logging import configure_logging, get_logger, request_id_ctx

__all__ = [
    "BadRequestError",
    "Base",
    "DatabaseError",
    "Settings",
    "TradewayError",
    "configure_logging",
    "get_db",
    "get_logger",
    "get_settings",
    "request_id_ctx",
]
