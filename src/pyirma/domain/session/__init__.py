"""Sessão IRMA: status, ponteiro, opções e transições.

Exporta:
- SessionStatus / SessionType: valores do servidor
- SessionPointer / SessionPackage: resposta de criação de sessão
- SessionOptions / RequestAuth: configuração validada
- LifecycleStage / SessionTracker: estágios do cliente
"""

from pyirma.domain.session.options import (
    INTERACTIVE_METHODS,
    RequestAuth,
    RequestAuthMethod,
    ResultEndpoint,
    ResultParser,
    SessionMethod,
    SessionOptions,
    parse_auth_method,
    parse_method,
)
from pyirma.domain.session.pointer import SessionPackage, SessionPointer
from pyirma.domain.session.states import (
    ABORT_STATUSES,
    RETURNABLE_STATUSES,
    TERMINAL_STATUSES,
    SessionStatus,
    SessionType,
    parse_status,
)
from pyirma.domain.session.tracker import SessionTracker, StageTransition
from pyirma.domain.session.transitions import (
    TERMINAL_STAGES,
    LifecycleStage,
    validate_transition,
)

__all__ = [
    "ABORT_STATUSES",
    "INTERACTIVE_METHODS",
    "RETURNABLE_STATUSES",
    "TERMINAL_STAGES",
    "TERMINAL_STATUSES",
    "LifecycleStage",
    "RequestAuth",
    "RequestAuthMethod",
    "ResultEndpoint",
    "ResultParser",
    "SessionMethod",
    "SessionOptions",
    "SessionPackage",
    "SessionPointer",
    "SessionStatus",
    "SessionTracker",
    "SessionType",
    "StageTransition",
    "parse_auth_method",
    "parse_method",
    "parse_status",
    "validate_transition",
]
