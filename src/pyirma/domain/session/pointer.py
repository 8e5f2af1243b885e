"""Ponteiro de sessão e pacote retornado na criação da sessão.

O servidor cria o ponteiro; o cliente só deriva URLs dele por composição
de strings. A única alteração permitida é a normalização de URL feita
uma vez, no início da sessão.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import urljoin, urlsplit

from pydantic import BaseModel, ConfigDict, Field

from pyirma.domain.session.states import SessionType


def status_url(address: str) -> str:
    """`{u}/status`: leitura pontual do status."""
    return f"{address.rstrip('/')}/status"


def status_events_url(address: str) -> str:
    """`{u}/statusevents`: stream de server-sent events."""
    return f"{address.rstrip('/')}/statusevents"


class SessionPointer(BaseModel):
    """Conteúdo do QR: endereço de status (`u`) e tipo de sessão (`irmaqr`)."""

    model_config = ConfigDict(extra="allow", frozen=True)

    u: str = Field(..., min_length=1)
    irmaqr: SessionType

    @property
    def status_url(self) -> str:
        return status_url(self.u)

    @property
    def status_events_url(self) -> str:
        return status_events_url(self.u)

    @property
    def token_from_url(self) -> str:
        """Último segmento do caminho de `u` (token em servidores legados)."""
        return self.u.rstrip("/").split("/")[-1]

    def normalized(self, server_url: str | None = None) -> SessionPointer:
        """Retorna cópia com `u` absoluto e sem barra final.

        `u` relativo é resolvido contra server_url (quando informado).
        """
        address = self.u.strip()
        if server_url and not urlsplit(address).scheme:
            address = urljoin(f"{server_url.rstrip('/')}/", address.lstrip("/"))
        address = address.rstrip("/")
        if address == self.u:
            return self
        return self.model_copy(update={"u": address})

    def to_qr_payload(self) -> dict[str, Any]:
        """Dicionário que o app escaneia (inclui campos extras do servidor)."""
        return self.model_dump(mode="json")


class SessionPackage(BaseModel):
    """Resposta de `POST {server}/session`.

    Aceita o formato atual `{sessionPtr, token, frontendRequest}` e o formato
    mínimo em que a resposta é o próprio ponteiro (`{u, irmaqr, token?}`).
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    session_ptr: SessionPointer = Field(..., alias="sessionPtr")
    token: str | None = None
    frontend_request: dict[str, Any] | None = Field(default=None, alias="frontendRequest")

    @classmethod
    def from_response(cls, data: Mapping[str, Any]) -> SessionPackage:
        if "sessionPtr" in data:
            return cls.model_validate(dict(data))
        pointer = {key: value for key, value in data.items() if key != "token"}
        return cls(sessionPtr=SessionPointer.model_validate(pointer), token=data.get("token"))

    @classmethod
    def from_pointer(
        cls,
        pointer: SessionPointer | Mapping[str, Any],
        token: str | None = None,
    ) -> SessionPackage:
        if not isinstance(pointer, SessionPointer):
            pointer = SessionPointer.model_validate(dict(pointer))
        return cls(sessionPtr=pointer, token=token)

    @property
    def session_token(self) -> str:
        """Token da sessão para buscar o resultado."""
        return self.token or self.session_ptr.token_from_url

    def normalized(self, server_url: str | None = None) -> SessionPackage:
        pointer = self.session_ptr.normalized(server_url)
        if pointer is self.session_ptr:
            return self
        return self.model_copy(update={"session_ptr": pointer})
