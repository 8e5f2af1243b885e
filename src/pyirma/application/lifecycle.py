"""Ciclo de vida de uma sessão em 3 fases encadeadas.

Fase 1 (pré-conexão): renderiza o ponteiro e aguarda o app conectar
Fase 2 (pós-conexão): transição de UI e aguarda a conclusão
Fase 3 (pós-conclusão): fecha a UI e busca o resultado (se houver server)

Cada fase recebe o resultado da anterior. Finished é terminal: as fases
seguintes o repassam sem fazer nada. Pending carrega o último status visto.
Falhas do watcher encerram o ciclo sem executar UI/resultado restantes.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pyirma.adapters.renderers import Renderer
from pyirma.application.result import ResultFetcher
from pyirma.application.watcher import StatusWatcher
from pyirma.domain.errors import UnexpectedStatus
from pyirma.domain.session.options import SessionOptions
from pyirma.domain.session.pointer import SessionPackage, SessionPointer
from pyirma.domain.session.states import SessionStatus
from pyirma.domain.session.tracker import SessionTracker
from pyirma.domain.session.transitions import LifecycleStage
from pyirma.infra.http import TransportError
from pyirma.observability.logging import null_logger
from pyirma.observability.timing import timed


@dataclass(frozen=True, slots=True)
class Pending:
    """Fase concluída; o ciclo continua a partir de status."""

    status: SessionStatus


@dataclass(frozen=True, slots=True)
class Finished:
    """Ciclo encerrado com value (status de retorno ou resultado)."""

    value: Any


PhaseResult = Pending | Finished


class SessionLifecycle:
    """Conduz uma sessão até o status de retorno configurado."""

    def __init__(
        self,
        watcher: StatusWatcher,
        renderer: Renderer,
        result_fetcher: ResultFetcher,
        options: SessionOptions,
        *,
        tracker: SessionTracker | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._watcher = watcher
        self._renderer = renderer
        self._result_fetcher = result_fetcher
        self._options = options
        self._logger = logger or null_logger()
        self.tracker = tracker or SessionTracker(self._logger)

    async def run(self, package: SessionPackage) -> Any:
        """Executa as 3 fases e retorna o valor final.

        Raises:
            UnexpectedStatus: Status inesperado (CANCELLED, TIMEOUT, ...)
            TransportError: Falha de transporte no watch ou no resultado
        """
        if self.tracker.current_stage is LifecycleStage.CREATED:
            self.tracker.transition(LifecycleStage.STARTED, "session_pointer_received")

        outcome: PhaseResult = Pending(SessionStatus.INITIALIZED)
        for phase in (self._pre_connect, self._post_connect, self._post_done):
            outcome = await phase(package, outcome)

        if not isinstance(outcome, Finished):
            # Fase 3 sempre finaliza; chegar aqui é erro de programação
            raise RuntimeError(f"Lifecycle ended without result: {outcome!r}")
        return outcome.value

    async def _pre_connect(self, package: SessionPackage, previous: PhaseResult) -> PhaseResult:
        if isinstance(previous, Finished):
            return previous

        pointer = package.session_ptr
        await self._renderer.render(pointer, self._options.language)
        self._record(SessionStatus.INITIALIZED, "session_rendered")

        if self._options.return_status is SessionStatus.INITIALIZED:
            return Finished(SessionStatus.INITIALIZED)

        with timed("lifecycle.wait_connected", self._logger) as span:
            status = await self._observe(self._watcher.wait_connected, pointer)
            span["status"] = status
        return Pending(status)

    async def _post_connect(self, package: SessionPackage, previous: PhaseResult) -> PhaseResult:
        if isinstance(previous, Finished):
            return previous

        status = previous.status
        self._record(status, "status_watch")
        await self._renderer.connected()

        if self._options.return_status is SessionStatus.CONNECTED:
            return Finished(status)

        if status is not SessionStatus.DONE:
            with timed("lifecycle.wait_done", self._logger) as span:
                status = await self._observe(self._watcher.wait_done, package.session_ptr)
                span["status"] = status
        return Pending(status)

    async def _post_done(self, package: SessionPackage, previous: PhaseResult) -> PhaseResult:
        if isinstance(previous, Finished):
            return previous

        self._record(previous.status, "status_watch")
        await self._renderer.close(previous.status)

        if not self._options.fetches_result:
            return Finished(previous.status)

        token = self._options.token or package.session_token
        with timed("lifecycle.fetch_result", self._logger) as span:
            span["result_endpoint"] = self._options.result_endpoint
            result = await self._result_fetcher.fetch(
                self._options.server,
                token,
                self._options.result_endpoint,
                self._options.result_parser,
            )
        return Finished(result)

    async def _observe(
        self,
        wait: Callable[[SessionPointer], Awaitable[SessionStatus]],
        pointer: SessionPointer,
    ) -> SessionStatus:
        """Aguarda o watcher; registra o status de falha antes de propagar."""
        try:
            return await wait(pointer)
        except UnexpectedStatus as exc:
            self._record(exc.status, "unexpected_status")
            self._logger.info("session_aborted", extra={"status": exc.status})
            raise
        except TransportError as exc:
            self._logger.warning(
                "session_status_unavailable",
                extra={"status_code": exc.status_code, "error": str(exc)},
            )
            raise

    def _record(self, status: SessionStatus, trigger: str) -> None:
        stage = LifecycleStage.from_status(status)
        if self.tracker.current_stage is not stage:
            self.tracker.transition(stage, trigger)
