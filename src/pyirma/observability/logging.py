"""Configuração de logging estruturado (JSON)."""

from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter

from pyirma.observability.context import get_session_id

_NULL_LOGGER_NAME = "pyirma.null"


class SessionIdFilter(logging.Filter):
    """Insere session_id e service no record de log.

    Importante: nunca adicionar tokens de sessão completos ou chaves nos logs.
    """

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self._service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        # Preserve session_id passed explicitly via `extra` when present.
        existing = getattr(record, "session_id", None)
        record.session_id = existing if existing else get_session_id()
        record.service = self._service_name
        return True


def configure_logging(level: str, service_name: str, log_format: str = "json") -> None:
    """Configura logging (JSON ou texto) com campos padrão do serviço."""

    formatter: logging.Formatter
    if log_format == "json":
        formatter = JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s %(session_id)s %(service)s",
            rename_fields={"levelname": "level", "name": "logger"},
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s [%(session_id)s] %(message)s"
        )

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(SessionIdFilter(service_name))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]


def get_logger(name: str) -> logging.Logger:
    """Retorna logger simples; o filtro injeta service/session_id."""

    return logging.getLogger(name)


def null_logger() -> logging.Logger:
    """Retorna logger que descarta tudo (padrão do SessionClient).

    Não propaga para o root: quem quiser logs injeta o próprio logger.
    """
    logger = logging.getLogger(_NULL_LOGGER_NAME)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger


def log_fallback(
    logger: logging.Logger,
    component: str,
    reason: str | None = None,
    elapsed_ms: float | None = None,
) -> None:
    """Log observável de fallback usado.

    Args:
        logger: Logger instance
        component: Nome do componente (ex: "status_events")
        reason: Razão do fallback (ex: "no_message", "subscription_error")
        elapsed_ms: Tempo decorrido em ms (quando aplicável)

    Exemplo:
        log_fallback(logger, "status_events", reason="subscription_error")
    """
    extra: dict[str, object] = {
        "fallback_used": True,
        "component": component,
    }
    if reason:
        extra["reason"] = reason
    if elapsed_ms is not None:
        extra["elapsed_ms"] = elapsed_ms

    logger.info(
        f"Fallback applied for {component}",
        extra=extra,
    )
