"""Observabilidade: logging estruturado, contexto de sessão e latência."""

from pyirma.observability.context import get_session_id, session_log_context
from pyirma.observability.logging import (
    configure_logging,
    get_logger,
    log_fallback,
    null_logger,
)
from pyirma.observability.timing import timed

__all__ = [
    "configure_logging",
    "get_logger",
    "get_session_id",
    "log_fallback",
    "null_logger",
    "session_log_context",
    "timed",
]
