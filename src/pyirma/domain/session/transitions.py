"""Tabela de transições do ciclo de vida visto pelo cliente.

CREATED → STARTED → {INITIALIZED, CONNECTED, DONE, CANCELLED, TIMEOUT}
- CREATED: opções validadas, nada enviado
- STARTED: POST /session respondeu com um ponteiro
- Estados terminais não aparecem como origem
- Validação pura: sem side effects
"""

from __future__ import annotations

from enum import StrEnum

from pyirma.domain.session.states import SessionStatus


class LifecycleStage(StrEnum):
    """Estágios do cliente: pré-rede mais os 5 status do servidor."""

    CREATED = "CREATED"
    STARTED = "STARTED"
    INITIALIZED = SessionStatus.INITIALIZED.value
    CONNECTED = SessionStatus.CONNECTED.value
    CANCELLED = SessionStatus.CANCELLED.value
    DONE = SessionStatus.DONE.value
    TIMEOUT = SessionStatus.TIMEOUT.value

    @classmethod
    def from_status(cls, status: SessionStatus) -> LifecycleStage:
        return cls(status.value)


_AFTER_START = frozenset({
    LifecycleStage.INITIALIZED,
    LifecycleStage.CONNECTED,
    LifecycleStage.DONE,
    LifecycleStage.CANCELLED,
    LifecycleStage.TIMEOUT,
})

TERMINAL_STAGES = frozenset({
    LifecycleStage.CANCELLED,
    LifecycleStage.DONE,
    LifecycleStage.TIMEOUT,
})

# Transições válidas (from → allowed_to)
VALID_TRANSITIONS: dict[LifecycleStage, frozenset[LifecycleStage]] = {
    LifecycleStage.CREATED: frozenset({LifecycleStage.STARTED}),
    LifecycleStage.STARTED: _AFTER_START,
    LifecycleStage.INITIALIZED: _AFTER_START - {LifecycleStage.INITIALIZED},
    LifecycleStage.CONNECTED: frozenset({
        LifecycleStage.DONE,
        LifecycleStage.CANCELLED,
        LifecycleStage.TIMEOUT,
    }),
    LifecycleStage.CANCELLED: frozenset(),
    LifecycleStage.DONE: frozenset(),
    LifecycleStage.TIMEOUT: frozenset(),
}


def validate_transition(
    current: LifecycleStage, target: LifecycleStage
) -> tuple[bool, str]:
    """Valida se uma transição é permitida.

    Retorna:
    - (True, ""): transição válida
    - (False, motivo): transição inválida

    Nunca lança exceção; apenas valida.
    """
    if current in TERMINAL_STAGES:
        return False, f"Terminal stage {current} has no transitions"
    if target not in VALID_TRANSITIONS[current]:
        return False, f"No transition from {current} to {target}"
    return True, ""
