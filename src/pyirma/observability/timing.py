"""Latência por fase do ciclo de vida da sessão."""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Generator
from typing import Any

from pyirma.observability.logging import get_logger

_default_logger = get_logger(__name__)


@contextlib.contextmanager
def timed(
    phase: str, logger: logging.Logger | None = None
) -> Generator[dict[str, Any], None, None]:
    """Mede uma fase e loga `phase_latency` ao sair.

    O bloco recebe um dict de campos extras (ex.: o status observado) que
    entram no registro junto com a fase, o tempo e o desfecho:

        with timed("lifecycle.wait_connected", logger) as span:
            span["status"] = await watcher.wait_connected(pointer)

    Campos do registro:
        - phase: nome da fase medida
        - elapsed_ms: milissegundos decorridos
        - outcome: "ok" ou o nome da exceção que encerrou a fase
    """
    log = logger or _default_logger
    fields: dict[str, Any] = {}
    outcome = "ok"
    start = time.perf_counter()
    try:
        yield fields
    except BaseException as exc:
        outcome = type(exc).__name__
        raise
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        log.debug(
            "phase_latency",
            extra={
                **fields,
                "phase": phase,
                "elapsed_ms": round(elapsed_ms, 2),
                "outcome": outcome,
            },
        )
