"""Opções de sessão e de autenticação do requestor.

Validação acontece uma vez, na construção, antes de qualquer chamada
de rede. Violações levantam InvalidOptions ou UnsupportedMethod.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pyirma.domain.errors import InvalidOptions, UnsupportedMethod
from pyirma.domain.session.states import RETURNABLE_STATUSES, SessionStatus, parse_status

ResultParser = Callable[[str], Any]
"""Hook que deserializa o corpo bruto de `/result`."""


class SessionMethod(StrEnum):
    """Canal de entrega do ponteiro ao usuário."""

    IMMEDIATE = "immediate"
    """Sem apresentação: o chamador já repassou o ponteiro."""

    INTERACTIVE = "interactive"
    """Renderer interativo fornecido pelo host (popup, janela)."""

    HEADLESS = "headless"
    """Saída em texto (terminal), sem interface gráfica."""

    CUSTOM_CANVAS = "custom-canvas"
    """Renderer customizado fornecido pelo host."""


# Nomes antigos ainda aceitos na entrada
_METHOD_ALIASES: dict[str, SessionMethod] = {
    "url": SessionMethod.IMMEDIATE,
    "console": SessionMethod.HEADLESS,
    "popup": SessionMethod.INTERACTIVE,
    "mobile": SessionMethod.INTERACTIVE,
    "canvas": SessionMethod.CUSTOM_CANVAS,
}

INTERACTIVE_METHODS = frozenset({SessionMethod.INTERACTIVE, SessionMethod.CUSTOM_CANVAS})
"""Métodos que exigem host capaz de renderizar."""


def parse_method(value: SessionMethod | str | None) -> SessionMethod:
    """Normaliza método (inclui aliases); desconhecido → UnsupportedMethod."""
    if value is None:
        return SessionMethod.HEADLESS
    if isinstance(value, SessionMethod):
        return value
    try:
        return SessionMethod(value)
    except ValueError:
        pass
    alias = _METHOD_ALIASES.get(value)
    if alias is None:
        raise UnsupportedMethod(value)
    return alias


class ResultEndpoint(StrEnum):
    """Segmento final da URL de resultado."""

    RESULT = "result"
    RESULT_JWT = "result-jwt"
    GETPROOF = "getproof"  # JWT legado, compatível com irma_api_server


class RequestAuthMethod(StrEnum):
    """Como o pedido de sessão é autenticado no servidor."""

    NONE = "none"
    TOKEN = "token"
    HMAC = "hmac"
    PUBLICKEY = "publickey"


def parse_auth_method(value: RequestAuthMethod | str | None) -> RequestAuthMethod:
    if value is None:
        return RequestAuthMethod.NONE
    try:
        return RequestAuthMethod(value)
    except ValueError as exc:
        raise UnsupportedMethod(value) from exc


@dataclass(frozen=True, slots=True)
class RequestAuth:
    """Credenciais do requestor para `POST /session`.

    key: token da API (token), segredo (hmac) ou chave privada PEM (publickey).
    name: claim `iss` do JWT (hmac/publickey).
    """

    method: RequestAuthMethod = RequestAuthMethod.NONE
    key: str | bytes | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", parse_auth_method(self.method))
        if self.method is not RequestAuthMethod.NONE and not self.key:
            raise InvalidOptions(f"Auth method {self.method} requires a key")


@dataclass(frozen=True, slots=True)
class SessionOptions:
    """Configuração de uma execução de handle_session."""

    method: SessionMethod | str | None = SessionMethod.HEADLESS
    return_status: SessionStatus | str = SessionStatus.DONE
    server: str = ""
    token: str | None = None
    result_as_token: bool = False
    legacy_result_token: bool = False
    language: str = "en"
    result_parser: ResultParser | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", parse_method(self.method))

        status = parse_status(self.return_status)
        if status is None or status not in RETURNABLE_STATUSES:
            raise InvalidOptions(
                f"return_status must be one of {sorted(RETURNABLE_STATUSES)}, "
                f"got {self.return_status!r}"
            )
        object.__setattr__(self, "return_status", status)

        server = (self.server or "").rstrip("/")
        object.__setattr__(self, "server", server)

        if (self.result_as_token or self.legacy_result_token) and not server:
            raise InvalidOptions("result_as_token requires server to be set")
        if server and status is not SessionStatus.DONE:
            raise InvalidOptions("server requires return_status to be DONE")

    @property
    def fetches_result(self) -> bool:
        return bool(self.server)

    @property
    def result_endpoint(self) -> ResultEndpoint:
        if self.legacy_result_token:
            return ResultEndpoint.GETPROOF
        if self.result_as_token:
            return ResultEndpoint.RESULT_JWT
        return ResultEndpoint.RESULT

    @property
    def requires_renderer(self) -> bool:
        return self.method in INTERACTIVE_METHODS
