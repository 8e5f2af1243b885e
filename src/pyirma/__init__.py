"""pyirma: cliente de ciclo de vida de sessões IRMA.

Uso típico:
    from pyirma import SessionClient, SessionOptions

    async with SessionClient("https://irma.example.com") as client:
        status = await client.run(request, SessionOptions(method="headless"))
"""

from pyirma.adapters.renderers import ConsoleRenderer, NullRenderer, Renderer, detect_method
from pyirma.application.client import SessionClient
from pyirma.application.signer import sign_session_request
from pyirma.domain.errors import (
    InvalidOptions,
    NotASessionRequest,
    PyIrmaError,
    UnexpectedStatus,
    UnsupportedMethod,
)
from pyirma.domain.session import (
    RequestAuth,
    RequestAuthMethod,
    SessionMethod,
    SessionOptions,
    SessionPackage,
    SessionPointer,
    SessionStatus,
    SessionType,
)
from pyirma.infra.http import TransportError

__all__ = [
    "ConsoleRenderer",
    "InvalidOptions",
    "NotASessionRequest",
    "NullRenderer",
    "PyIrmaError",
    "Renderer",
    "RequestAuth",
    "RequestAuthMethod",
    "SessionClient",
    "SessionMethod",
    "SessionOptions",
    "SessionPackage",
    "SessionPointer",
    "SessionStatus",
    "SessionType",
    "TransportError",
    "UnexpectedStatus",
    "UnsupportedMethod",
    "detect_method",
    "sign_session_request",
]
