"""Camada de aplicação: watcher, ciclo de vida, assinatura, resultado e fachada."""

from pyirma.application.client import SessionClient
from pyirma.application.lifecycle import Finished, Pending, PhaseResult, SessionLifecycle
from pyirma.application.result import ResultFetcher, build_result_url
from pyirma.application.signer import (
    detect_session_type,
    encode_session_request,
    sign_session_request,
)
from pyirma.application.watcher import StatusWatcher, should_fall_back_to_polling

__all__ = [
    "Finished",
    "Pending",
    "PhaseResult",
    "ResultFetcher",
    "SessionClient",
    "SessionLifecycle",
    "StatusWatcher",
    "build_result_url",
    "detect_session_type",
    "encode_session_request",
    "should_fall_back_to_polling",
    "sign_session_request",
]
