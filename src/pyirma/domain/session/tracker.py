"""Rastreador de estágio da sessão com histórico e validação de transições."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pyirma.domain.session.transitions import (
    TERMINAL_STAGES,
    LifecycleStage,
    validate_transition,
)
from pyirma.observability.logging import get_logger

_default_logger = get_logger(__name__)


@dataclass
class StageTransition:
    """Representa uma transição observada."""

    from_stage: LifecycleStage
    to_stage: LifecycleStage
    trigger: str  # O que causou a transição (ex: "session_started", "status_watch")
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))


class SessionTracker:
    """Estágio corrente de uma sessão, do ponto de vista do cliente."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.current_stage = LifecycleStage.CREATED
        self.history: list[StageTransition] = []
        self._logger = logger or _default_logger

    @property
    def is_terminal(self) -> bool:
        return self.current_stage in TERMINAL_STAGES

    def can_transition_to(self, target: LifecycleStage) -> bool:
        valid, _ = validate_transition(self.current_stage, target)
        return valid

    def transition(self, target: LifecycleStage, trigger: str) -> bool:
        """Registra transição, se válida.

        Returns:
            True se registrada, False caso contrário (estágio inalterado)
        """
        valid, error = validate_transition(self.current_stage, target)
        if not valid:
            self._logger.warning(
                "invalid_stage_transition",
                extra={
                    "from": self.current_stage,
                    "to": target,
                    "trigger": trigger,
                    "error": error,
                },
            )
            return False

        trans = StageTransition(
            from_stage=self.current_stage,
            to_stage=target,
            trigger=trigger,
        )
        self.history.append(trans)
        self.current_stage = target

        self._logger.debug(
            "stage_transition",
            extra={"from": trans.from_stage, "to": trans.to_stage, "trigger": trigger},
        )
        return True

    def get_history(self) -> list[StageTransition]:
        """Retorna cópia do histórico."""
        return self.history.copy()

    def get_summary(self) -> dict[str, Any]:
        return {
            "current_stage": self.current_stage,
            "is_terminal": self.is_terminal,
            "transition_count": len(self.history),
        }
