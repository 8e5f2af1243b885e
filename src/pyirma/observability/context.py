"""Contexto de sessão para correlação de logs."""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from contextvars import ContextVar

_session_id: ContextVar[str] = ContextVar("session_id", default="")


def get_session_id() -> str:
    """Retorna o identificador da sessão corrente (ou vazio)."""

    return _session_id.get()


@contextlib.contextmanager
def session_log_context(session_id: str) -> Iterator[None]:
    """Associa os logs emitidos no bloco ao identificador da sessão.

    O valor é restaurado ao sair, então sessões concorrentes em tasks
    distintas não se misturam (cada task tem sua cópia do contexto).
    """
    token = _session_id.set(session_id)
    try:
        yield
    finally:
        _session_id.reset(token)
