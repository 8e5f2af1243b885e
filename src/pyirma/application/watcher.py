"""Observação de status da sessão: server-sent events com fallback para polling.

Fluxo de watch(address, last_known):
1. Se SSE habilitado, assina `{address}/statusevents`
2. Primeiro status distinto de last_known resolve; a assinatura é fechada
   em qualquer saída (sucesso, fallback ou erro)
3. Erro (ou silêncio além da janela) antes de qualquer mensagem → polling
4. Erro depois de pelo menos uma mensagem → falha terminal
5. Polling: GET `{address}/status` a cada intervalo até o status mudar;
   qualquer erro de transporte falha imediatamente
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any

from pyirma.config.settings import DEFAULT_POLL_INTERVAL_SECONDS, DEFAULT_SSE_TIMEOUT_SECONDS
from pyirma.domain.errors import UnexpectedStatus
from pyirma.domain.session.pointer import SessionPointer, status_events_url, status_url
from pyirma.domain.session.states import SessionStatus, parse_status
from pyirma.infra.http import HttpClient, TransportError
from pyirma.observability.logging import log_fallback, null_logger


def should_fall_back_to_polling(attempted_push: bool, messages_received: int) -> bool:
    """Decide se o watch cai para polling.

    Só há fallback quando o canal de push não existe (não tentado) ou nunca
    entregou mensagem. Canal que quebra no meio do stream não é fallback.
    """
    return not attempted_push or messages_received == 0


def status_from_payload(payload: Any) -> SessionStatus | None:
    """Extrai status de `"DONE"` ou de `{"status": "DONE", ...}`."""
    if isinstance(payload, dict):
        payload = payload.get("status")
    return parse_status(payload)


async def iter_event_data(lines: AsyncIterator[str]) -> AsyncIterator[str]:
    """Converte linhas de text/event-stream em payloads `data`.

    Evento é despachado na linha em branco; evento incompleto no fim do
    stream é descartado.
    """
    data: list[str] = []
    async for line in lines:
        if not line:
            if data:
                yield "\n".join(data)
                data = []
            continue
        if line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if name == "data":
            data.append(value[1:] if value.startswith(" ") else value)


@dataclass(slots=True)
class _PushSubscription:
    attempted: bool
    messages_received: int = 0


def _address_of(target: SessionPointer | str) -> str:
    if isinstance(target, SessionPointer):
        return target.u
    return target.rstrip("/")


class StatusWatcher:
    """Produz a próxima transição de status de uma sessão."""

    def __init__(
        self,
        http: HttpClient,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        sse_enabled: bool = True,
        sse_timeout: float = DEFAULT_SSE_TIMEOUT_SECONDS,
        logger: logging.Logger | None = None,
    ) -> None:
        self._http = http
        self._poll_interval = poll_interval
        self._sse_enabled = sse_enabled
        self._sse_timeout = sse_timeout
        self._logger = logger or null_logger()

    async def watch(
        self,
        target: SessionPointer | str,
        last_known: SessionStatus = SessionStatus.INITIALIZED,
    ) -> SessionStatus:
        """Aguarda o primeiro status diferente de last_known."""
        address = _address_of(target)
        subscription = _PushSubscription(attempted=self._sse_enabled)

        if subscription.attempted:
            try:
                status = await self._watch_events(address, last_known, subscription)
            except (TransportError, TimeoutError) as exc:
                if not should_fall_back_to_polling(True, subscription.messages_received):
                    self._logger.warning(
                        "status_events_failed",
                        extra={"messages_received": subscription.messages_received},
                    )
                    raise
                reason = "no_message" if isinstance(exc, TimeoutError) else "subscription_error"
                log_fallback(self._logger, "status_events", reason=reason)
            else:
                if status is not None:
                    return status
                if not should_fall_back_to_polling(True, subscription.messages_received):
                    raise TransportError("Stream de status encerrado antes de nova transição")
                log_fallback(self._logger, "status_events", reason="stream_closed")
        else:
            self._logger.debug("status_events_disabled")

        return await self._poll(address, last_known)

    async def _watch_events(
        self,
        address: str,
        last_known: SessionStatus,
        subscription: _PushSubscription,
    ) -> SessionStatus | None:
        """Lê statusevents; None se o stream acabar sem transição."""
        # A janela cobre também a espera pelos headers do stream
        async with asyncio.timeout(self._sse_timeout) as window:
            async with self._http.stream_lines(status_events_url(address)) as lines:
                async with aclosing(iter_event_data(lines)) as events:
                    async for data in events:
                        subscription.messages_received += 1
                        # A janela só decide o fallback; depois da 1ª mensagem não há prazo
                        window.reschedule(None)
                        status = status_from_payload(_maybe_json(data))
                        if status is None:
                            raise TransportError("Evento de status inválido", body=data)
                        self._logger.debug("status_event_received", extra={"status": status})
                        if status != last_known:
                            return status
        return None

    async def _poll(self, address: str, last_known: SessionStatus) -> SessionStatus:
        url = status_url(address)
        while True:
            payload = await self._http.get(url)
            status = status_from_payload(payload)
            if status is None:
                raise TransportError("Status inválido", body=str(payload))
            if status != last_known:
                self._logger.debug("status_polled", extra={"status": status})
                return status
            await asyncio.sleep(self._poll_interval)

    async def wait_status(
        self,
        target: SessionPointer | str,
        start: SessionStatus,
        accepted: Iterable[SessionStatus],
    ) -> SessionStatus:
        """Aguarda transição a partir de start; fora de accepted → UnexpectedStatus."""
        expected = tuple(accepted)
        status = await self.watch(target, start)
        if status not in expected:
            raise UnexpectedStatus(status, expected=expected)
        return status

    async def wait_connected(self, target: SessionPointer | str) -> SessionStatus:
        """Aguarda o app conectar.

        DONE também é aceito: o app pode conectar e concluir entre duas leituras.
        """
        return await self.wait_status(
            target,
            SessionStatus.INITIALIZED,
            (SessionStatus.CONNECTED, SessionStatus.DONE),
        )

    async def wait_done(self, target: SessionPointer | str) -> SessionStatus:
        """Aguarda a sessão concluir a partir de CONNECTED."""
        return await self.wait_status(target, SessionStatus.CONNECTED, (SessionStatus.DONE,))


def _maybe_json(data: str) -> Any:
    try:
        return json.loads(data)
    except json.JSONDecodeError:
        return data
