"""Renderers: apresentação do ponteiro ao usuário.

O ciclo de vida só chama os hooks e não depende do que eles retornam.
Desenho de QR, popups e traduções ficam com o host; aqui há só os
renderers sem interface gráfica.
"""

from __future__ import annotations

import json
import sys
from typing import Protocol, TextIO, runtime_checkable

from pyirma.domain.errors import InvalidOptions
from pyirma.domain.session.options import SessionMethod
from pyirma.domain.session.pointer import SessionPointer
from pyirma.domain.session.states import SessionStatus, SessionType

# Mensagens do terminal; textos de UI traduzidos ficam com o host
_HEADLESS_PROMPTS: dict[SessionType, str] = {
    SessionType.DISCLOSING: "Scan the QR with your IRMA app to disclose attributes",
    SessionType.ISSUING: "Scan the QR with your IRMA app to receive attributes",
    SessionType.SIGNING: "Scan the QR with your IRMA app to sign the message",
}


@runtime_checkable
class Renderer(Protocol):
    """Contrato de apresentação usado pelo SessionLifecycle."""

    async def render(self, pointer: SessionPointer, language: str) -> None: ...

    async def connected(self) -> None: ...

    async def close(self, status: SessionStatus) -> None: ...


class NullRenderer:
    """Método immediate: o chamador já entregou o ponteiro."""

    async def render(self, pointer: SessionPointer, language: str) -> None:
        return None

    async def connected(self) -> None:
        return None

    async def close(self, status: SessionStatus) -> None:
        return None


class ConsoleRenderer:
    """Método headless: escreve o conteúdo do QR num stream de texto."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stdout

    def _write(self, line: str) -> None:
        self.stream.write(f"{line}\n")
        self.stream.flush()

    async def render(self, pointer: SessionPointer, language: str) -> None:
        self._write(_HEADLESS_PROMPTS[pointer.irmaqr])
        self._write(json.dumps(pointer.to_qr_payload(), separators=(",", ":")))

    async def connected(self) -> None:
        self._write("Please follow the instructions in your IRMA app")

    async def close(self, status: SessionStatus) -> None:
        self._write(f"Session finished: {status}")


def resolve_renderer(method: SessionMethod, custom: Renderer | None = None) -> Renderer:
    """Escolhe o renderer do método.

    Renderer do chamador tem precedência; métodos interativos exigem um.
    """
    if custom is not None:
        return custom
    if method is SessionMethod.IMMEDIATE:
        return NullRenderer()
    if method is SessionMethod.HEADLESS:
        return ConsoleRenderer()
    raise InvalidOptions(f"Method {method} requires a renderer supplied by the host")


def detect_method(has_display: bool) -> SessionMethod:
    """Sugere método a partir do ambiente, fora do núcleo."""
    return SessionMethod.INTERACTIVE if has_display else SessionMethod.HEADLESS
