"""Status canônicos de uma sessão IRMA.

Conforme a API de requestor do irma server:
- Toda sessão termina em exatamente 1 status terminal
- O status é observado (polling ou statusevents), nunca imposto pelo cliente
"""

from __future__ import annotations

from enum import StrEnum


class SessionStatus(StrEnum):
    """5 status de uma sessão no servidor."""

    INITIALIZED = "INITIALIZED"
    """Sessão criada, aguardando o app conectar (escanear o QR)."""

    CONNECTED = "CONNECTED"
    """App recuperou o pedido da sessão; aguardando a resposta."""

    CANCELLED = "CANCELLED"
    """Sessão abortada (explicitamente ou por erro)."""

    DONE = "DONE"
    """Sessão concluída com sucesso."""

    TIMEOUT = "TIMEOUT"
    """Sessão expirou antes de concluir."""


class SessionType(StrEnum):
    """Tipos de sessão (campo `irmaqr` do ponteiro)."""

    DISCLOSING = "disclosing"
    ISSUING = "issuing"
    SIGNING = "signing"


TERMINAL_STATUSES = frozenset({
    SessionStatus.CANCELLED,
    SessionStatus.DONE,
    SessionStatus.TIMEOUT,
})
"""Status sem transições posteriores."""

RETURNABLE_STATUSES = frozenset({
    SessionStatus.INITIALIZED,
    SessionStatus.CONNECTED,
    SessionStatus.DONE,
})
"""Status em que o controle pode voltar ao chamador (return point)."""

ABORT_STATUSES = frozenset({
    SessionStatus.CANCELLED,
    SessionStatus.TIMEOUT,
})
"""Status terminais de falha: disparam DELETE best-effort no ponteiro."""


def parse_status(value: object) -> SessionStatus | None:
    """Converte payload do servidor em SessionStatus.

    Aceita aspas JSON residuais e espaços. Retorna None se desconhecido.
    """
    if isinstance(value, SessionStatus):
        return value
    if not isinstance(value, str):
        return None
    cleaned = value.strip().strip('"')
    try:
        return SessionStatus(cleaned)
    except ValueError:
        return None
