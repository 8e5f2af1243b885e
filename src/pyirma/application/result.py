"""Busca do resultado de uma sessão concluída."""

from __future__ import annotations

import json
import logging
from typing import Any

from pyirma.domain.session.options import ResultEndpoint, ResultParser
from pyirma.infra.http import HttpClient, TransportError
from pyirma.observability.logging import null_logger


def build_result_url(server: str, token: str, endpoint: ResultEndpoint) -> str:
    """`{server}/session/{token}/{result|result-jwt|getproof}`."""
    return f"{server.rstrip('/')}/session/{token}/{endpoint.value}"


class ResultFetcher:
    """Recupera o resultado: JSON para `result`, texto opaco para JWTs."""

    def __init__(self, http: HttpClient, logger: logging.Logger | None = None) -> None:
        self._http = http
        self._logger = logger or null_logger()

    async def fetch(
        self,
        server: str,
        token: str,
        endpoint: ResultEndpoint = ResultEndpoint.RESULT,
        parser: ResultParser | None = None,
    ) -> Any:
        url = build_result_url(server, token, endpoint)
        raw = await self._http.get_text(url)
        self._logger.debug("session_result_fetched", extra={"endpoint": endpoint.value})

        if endpoint is not ResultEndpoint.RESULT:
            return raw
        if parser is not None:
            return parser(raw)
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise TransportError("Resultado JSON inválido", body=raw) from e
