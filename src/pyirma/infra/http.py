"""Cliente HTTP do servidor IRMA com timeout e logging.

Este módulo fornece o transporte usado por todas as chamadas ao servidor:
- Uma requisição lógica por chamada, sem retry (o polling de status é
  quem repete, não o transporte)
- Timeouts configuráveis
- Logging estruturado (sem tokens de sessão)
- Injeção de headers padrão
- Stream de linhas para server-sent events

Qualquer resposta fora de 2xx vira TransportError com status e corpo.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from pyirma.domain.errors import PyIrmaError
from pyirma.observability.logging import get_logger

if TYPE_CHECKING:
    from pyirma.config.settings import Settings

_default_logger: logging.Logger = get_logger(__name__)

# Regex pré-compilado para sanitização de URL (tokens de sessão no caminho)
_SESSION_TOKEN_PATTERN = re.compile(r"(/session/)[^/?#]+")


def _sanitize_url(url: str) -> str:
    """Remove tokens de sessão da URL para logging seguro."""
    if "/session/" in url:
        return _SESSION_TOKEN_PATTERN.sub(r"\1***", url)
    return url


@dataclass
class HttpClientConfig:
    """Configuração do cliente HTTP.

    Valores padrão são seguros e conservadores.
    """

    timeout_seconds: float = 30.0
    default_headers: dict[str, str] = field(default_factory=dict)
    verify_ssl: bool = True


class TransportError(PyIrmaError):
    """Resposta não-2xx (ou falha de conexão) do servidor IRMA."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        status_text: str | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text
        self.body = body


def _error_from_response(response: httpx.Response, body: str) -> TransportError:
    status_text = response.reason_phrase or ""
    return TransportError(
        f"HTTP {response.status_code} {status_text}".strip(),
        status_code=response.status_code,
        status_text=status_text,
        body=body,
    )


def _error_from_exception(exc: httpx.HTTPError) -> TransportError:
    if isinstance(exc, httpx.TimeoutException):
        return TransportError("Timeout")
    if isinstance(exc, httpx.ConnectError):
        return TransportError("Erro de conexão")
    return TransportError(f"Erro de transporte: {type(exc).__name__}")


def decode_body(response: httpx.Response) -> Any:
    """JSON quando o servidor declara JSON; texto caso contrário."""
    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise TransportError(
                "Response JSON inválido",
                status_code=response.status_code,
                body=response.text,
            ) from e
    return response.text


class HttpClient:
    """Cliente HTTP assíncrono do servidor IRMA.

    Uso típico:
        async with HttpClient(config) as client:
            pointer = await client.post(url, body, headers)
    """

    def __init__(
        self,
        config: HttpClientConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Inicializa cliente com configuração.

        Args:
            config: Configuração HTTP
            transport: Transporte httpx alternativo (ex.: MockTransport em testes)
            logger: Logger injetado (padrão: logger do módulo)
        """
        self._config = config or HttpClientConfig()
        self._transport = transport
        self._logger = logger or _default_logger
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Retorna cliente httpx (lazy loading)."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.timeout_seconds),
                headers=self._config.default_headers,
                verify=self._config.verify_ssl,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Fecha o cliente e libera recursos."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Executa uma requisição; não-2xx ou falha de rede → TransportError."""
        client = await self._get_client()
        safe_url = _sanitize_url(url)
        self._logger.debug("http_request", extra={"method": method, "url": safe_url})

        try:
            response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            self._logger.warning(
                "http_request_failed",
                extra={"method": method, "url": safe_url, "error_type": type(exc).__name__},
            )
            raise _error_from_exception(exc) from exc

        if not response.is_success:
            self._logger.warning(
                "http_request_rejected",
                extra={"method": method, "url": safe_url, "status_code": response.status_code},
            )
            raise _error_from_response(response, response.text)

        self._logger.debug(
            "http_request_succeeded",
            extra={"method": method, "url": safe_url, "status_code": response.status_code},
        )
        return response

    # Métodos de conveniência

    async def post(
        self,
        url: str,
        body: str | bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Executa POST com corpo já serializado; retorna JSON ou texto."""
        response = await self._request("POST", url, content=body, headers=dict(headers or {}))
        return decode_body(response)

    async def get(self, url: str, headers: Mapping[str, str] | None = None) -> Any:
        """Executa GET; retorna JSON ou texto."""
        response = await self._request("GET", url, headers=dict(headers or {}))
        return decode_body(response)

    async def get_text(self, url: str, headers: Mapping[str, str] | None = None) -> str:
        """Executa GET e retorna o corpo bruto (ex.: JWT, que é opaco)."""
        response = await self._request("GET", url, headers=dict(headers or {}))
        return response.text

    async def delete(self, url: str) -> None:
        """Executa DELETE; corpo da resposta é descartado."""
        await self._request("DELETE", url)

    @asynccontextmanager
    async def stream_lines(self, url: str) -> AsyncIterator[AsyncIterator[str]]:
        """Abre GET em streaming e entrega iterador de linhas.

        Sem timeout de leitura: a espera entre eventos é controlada por quem
        consome o stream. A conexão é fechada ao sair do bloco.
        """
        client = await self._get_client()
        safe_url = _sanitize_url(url)
        timeout = httpx.Timeout(self._config.timeout_seconds, read=None)
        headers = {"Accept": "text/event-stream"}
        self._logger.debug("http_stream_open", extra={"url": safe_url})

        try:
            async with client.stream("GET", url, headers=headers, timeout=timeout) as response:
                if not response.is_success:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    self._logger.warning(
                        "http_stream_rejected",
                        extra={"url": safe_url, "status_code": response.status_code},
                    )
                    raise _error_from_response(response, body)
                yield response.aiter_lines()
        except httpx.HTTPError as exc:
            self._logger.warning(
                "http_stream_failed",
                extra={"url": safe_url, "error_type": type(exc).__name__},
            )
            raise _error_from_exception(exc) from exc
        finally:
            self._logger.debug("http_stream_closed", extra={"url": safe_url})


def create_http_client(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    logger: logging.Logger | None = None,
) -> HttpClient:
    """Factory para criar cliente HTTP configurado.

    Args:
        settings: Configurações. Se None, usa get_settings()
        transport: Transporte httpx alternativo
        logger: Logger injetado

    Returns:
        HttpClient configurado conforme settings
    """
    if settings is None:
        from pyirma.config.settings import get_settings

        settings = get_settings()

    config = HttpClientConfig(
        timeout_seconds=float(settings.irma_request_timeout_seconds),
        default_headers={"User-Agent": settings.user_agent},
        verify_ssl=settings.irma_verify_ssl,
    )
    return HttpClient(config, transport=transport, logger=logger)
