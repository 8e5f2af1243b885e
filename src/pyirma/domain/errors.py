"""Taxonomia de erros do cliente de sessão.

TransportError vive em pyirma.infra.http (é erro de infraestrutura) e
herda de PyIrmaError, então `except PyIrmaError` cobre todos os casos.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pyirma.domain.session.states import SessionStatus


class PyIrmaError(Exception):
    """Base de todos os erros da biblioteca."""


class UnexpectedStatus(PyIrmaError):
    """A espera resolveu em um status diferente do esperado para a fase.

    Ex.: aguardando CONNECTED e o servidor reportou CANCELLED.
    """

    def __init__(self, status: SessionStatus, expected: tuple[SessionStatus, ...] = ()) -> None:
        super().__init__(str(status))
        self.status = status
        self.expected = expected


class InvalidOptions(PyIrmaError, ValueError):
    """Combinação de opções inválida; levantado antes de qualquer chamada de rede."""


class UnsupportedMethod(PyIrmaError, ValueError):
    """Método de entrega ou de autenticação não suportado."""

    def __init__(self, method: object) -> None:
        super().__init__(f"Method {method} is not supported")
        self.method = method


class NotASessionRequest(PyIrmaError, ValueError):
    """Não foi possível determinar o tipo de sessão do pedido."""
