"""Fachada pública: iniciar, acompanhar e concluir sessões IRMA.

Estados por sessão: CREATED → STARTED → {INITIALIZED, CONNECTED, DONE,
CANCELLED, TIMEOUT}. Em CANCELLED/TIMEOUT a fachada dispara um DELETE
best-effort no ponteiro, com prazo curto (IRMA_ABORT_TIMEOUT_SECONDS), antes
de repassar o erro; falha ou estouro desse DELETE é ignorado para não
mascarar o erro original.

Uso típico:
    async with SessionClient("https://irma.example.com") as client:
        result = await client.run(request, SessionOptions(server=client.server_url))
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from pyirma.adapters.renderers import Renderer, resolve_renderer
from pyirma.application.lifecycle import SessionLifecycle
from pyirma.application.result import ResultFetcher
from pyirma.application.signer import encode_session_request
from pyirma.application.watcher import StatusWatcher
from pyirma.config.settings import Settings, get_settings
from pyirma.domain.errors import InvalidOptions, UnexpectedStatus
from pyirma.domain.session.options import (
    RequestAuth,
    ResultEndpoint,
    SessionOptions,
)
from pyirma.domain.session.pointer import SessionPackage, SessionPointer
from pyirma.domain.session.states import ABORT_STATUSES, SessionStatus
from pyirma.domain.session.tracker import SessionTracker
from pyirma.domain.session.transitions import LifecycleStage
from pyirma.infra.http import HttpClient, TransportError, create_http_client
from pyirma.observability.context import session_log_context
from pyirma.observability.logging import null_logger


class SessionClient:
    """Cliente de sessões de um servidor IRMA.

    Sessões distintas podem rodar em paralelo no mesmo cliente; nenhum
    estado mutável é compartilhado entre elas.
    """

    def __init__(
        self,
        server_url: str | None = None,
        *,
        http: HttpClient | None = None,
        settings: Settings | None = None,
        logger: logging.Logger | None = None,
        renderer: Renderer | None = None,
    ) -> None:
        """Inicializa o cliente.

        Args:
            server_url: Base URL do servidor (padrão: IRMA_SERVER_URL)
            http: Transporte HTTP (padrão: criado a partir de settings)
            settings: Configurações (padrão: get_settings())
            logger: Logger injetado; padrão descarta tudo
            renderer: Renderer do host para métodos interativos
        """
        self._settings = settings or get_settings()
        self._logger = logger or null_logger()
        self._owns_http = http is None
        self._http = http or create_http_client(self._settings, logger=self._logger)
        self._renderer = renderer
        self.server_url = (server_url or self._settings.irma_server_url or "").rstrip("/")
        self._watcher = StatusWatcher(
            self._http,
            poll_interval=self._settings.irma_poll_interval_seconds,
            sse_enabled=self._settings.irma_sse_enabled,
            sse_timeout=self._settings.irma_sse_timeout_seconds,
            logger=self._logger,
        )
        self._results = ResultFetcher(self._http, self._logger)

    async def close(self) -> None:
        """Fecha o transporte, se foi criado por este cliente."""
        if self._owns_http:
            await self._http.close()

    async def __aenter__(self) -> SessionClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    @property
    def watcher(self) -> StatusWatcher:
        return self._watcher

    def default_auth(self) -> RequestAuth:
        """Autenticação do requestor lida das settings."""
        return RequestAuth(
            method=self._settings.irma_auth_method,
            key=self._settings.irma_auth_key,
            name=self._settings.irma_requestor_name,
        )

    def _require_server(self) -> str:
        if not self.server_url:
            raise InvalidOptions("server_url (ou IRMA_SERVER_URL) é obrigatório")
        return self.server_url

    async def start_session(
        self,
        request: Mapping[str, Any] | str,
        auth: RequestAuth | None = None,
    ) -> SessionPackage:
        """Cria a sessão no servidor (`POST {server}/session`).

        Returns:
            SessionPackage com o ponteiro já normalizado

        Raises:
            UnsupportedMethod / NotASessionRequest / InvalidOptions: antes da rede
            TransportError: resposta não-2xx
        """
        server = self._require_server()
        body, headers = encode_session_request(request, auth or self.default_auth())
        response = await self._http.post(f"{server}/session", body, headers)
        if not isinstance(response, Mapping):
            raise TransportError("Resposta de criação de sessão inválida", body=str(response))

        package = SessionPackage.from_response(response).normalized(server)
        self._logger.info(
            "session_started",
            extra={"session_type": package.session_ptr.irmaqr},
        )
        return package

    async def wait_connected(self, target: SessionPointer | str) -> SessionStatus:
        """Aguarda o app conectar; CANCELLED/TIMEOUT → UnexpectedStatus."""
        return await self._watcher.wait_connected(target)

    async def wait_done(self, target: SessionPointer | str) -> SessionStatus:
        """Aguarda a sessão concluir a partir de CONNECTED."""
        return await self._watcher.wait_done(target)

    async def handle_session(
        self,
        session: SessionPackage | SessionPointer | Mapping[str, Any],
        options: SessionOptions | None = None,
        *,
        tracker: SessionTracker | None = None,
    ) -> Any:
        """Conduz uma sessão já criada até options.return_status.

        Returns:
            O status de retorno (ex.: "DONE") ou o resultado quando options.server

        Raises:
            UnexpectedStatus: sessão cancelada/expirada (DELETE já disparado)
            TransportError: falha de transporte
            InvalidOptions: método interativo sem renderer
        """
        options = options or SessionOptions()
        renderer = resolve_renderer(options.method, self._renderer)
        package = _as_package(session).normalized(self.server_url or None)

        lifecycle = SessionLifecycle(
            self._watcher,
            renderer,
            self._results,
            options,
            tracker=tracker,
            logger=self._logger,
        )
        with session_log_context(_log_id(package)):
            try:
                return await lifecycle.run(package)
            except UnexpectedStatus as exc:
                if exc.status in ABORT_STATUSES:
                    await self._delete_quietly(package.session_ptr)
                raise

    async def run(
        self,
        request: Mapping[str, Any] | str,
        options: SessionOptions | None = None,
        auth: RequestAuth | None = None,
    ) -> Any:
        """Cria a sessão e a conduz até o status de retorno."""
        options = options or SessionOptions()
        resolve_renderer(options.method, self._renderer)
        tracker = SessionTracker(self._logger)
        package = await self.start_session(request, auth)
        tracker.transition(LifecycleStage.STARTED, "session_created")
        return await self.handle_session(package, options, tracker=tracker)

    async def fetch_result(
        self,
        token: str,
        *,
        server: str | None = None,
        as_token: bool = False,
    ) -> Any:
        """Busca o resultado de uma sessão concluída (JSON ou JWT em texto)."""
        endpoint = ResultEndpoint.RESULT_JWT if as_token else ResultEndpoint.RESULT
        return await self._results.fetch(server or self._require_server(), token, endpoint)

    async def cancel_session(self, target: SessionPointer | str) -> None:
        """Aborta a sessão (`DELETE {u}`); erros de transporte propagam."""
        address = target.u if isinstance(target, SessionPointer) else target.rstrip("/")
        await self._http.delete(address)
        self._logger.info("session_cancel_requested")

    async def _delete_quietly(self, pointer: SessionPointer) -> None:
        try:
            async with asyncio.timeout(self._settings.irma_abort_timeout_seconds):
                await self._http.delete(pointer.u)
        except (TransportError, TimeoutError) as exc:
            self._logger.debug(
                "session_delete_ignored",
                extra={
                    "status_code": getattr(exc, "status_code", None),
                    "error_type": type(exc).__name__,
                },
            )


def _as_package(session: SessionPackage | SessionPointer | Mapping[str, Any]) -> SessionPackage:
    if isinstance(session, SessionPackage):
        return session
    if isinstance(session, SessionPointer):
        return SessionPackage.from_pointer(session)
    return SessionPackage.from_response(session)


def _log_id(package: SessionPackage) -> str:
    # Só um prefixo do token vai para os logs
    return package.session_ptr.token_from_url[:8]
