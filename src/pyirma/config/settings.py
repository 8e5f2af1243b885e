"""Configurações da biblioteca via variáveis de ambiente.

Todas as configurações podem vir de env vars; nada sensível é hardcoded.
Os valores aqui são padrões para o SessionClient quando o chamador não
passa parâmetros explícitos.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

# -----------------------------------------------------------------------------
# Constantes de protocolo do servidor IRMA
# -----------------------------------------------------------------------------
DEFAULT_POLL_INTERVAL_SECONDS: float = 0.5
DEFAULT_SSE_TIMEOUT_SECONDS: float = 2.0
DEFAULT_ABORT_TIMEOUT_SECONDS: float = 2.0
DEFAULT_LANGUAGE: str = "en"

VALID_AUTH_METHODS = frozenset({"none", "token", "hmac", "publickey"})
VALID_LOG_FORMATS = frozenset({"json", "text"})


class Settings(BaseSettings):
    """Configurações lidas do ambiente."""

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
    )

    # Aplicação
    service_name: str = "pyirma"
    version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "json"  # json | text

    # Servidor IRMA
    irma_server_url: str | None = None  # Base URL do irma server (requestor API)
    irma_request_timeout_seconds: float = 30.0  # Timeout HTTP por requisição
    irma_verify_ssl: bool = True
    irma_abort_timeout_seconds: float = DEFAULT_ABORT_TIMEOUT_SECONDS  # Prazo do DELETE de abort

    # Acompanhamento de status
    irma_poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    irma_sse_enabled: bool = True  # Tenta /statusevents antes do polling
    irma_sse_timeout_seconds: float = DEFAULT_SSE_TIMEOUT_SECONDS  # Só decide o fallback

    # Sessão
    irma_language: str = DEFAULT_LANGUAGE

    # Autenticação do requestor
    irma_auth_method: str = "none"  # none | token | hmac | publickey
    irma_auth_key: str | None = None  # Token da API, segredo HMAC ou chave privada PEM
    irma_requestor_name: str | None = None  # Claim iss para hmac/publickey

    def validate_server_config(self) -> list[str]:
        """Valida URL do servidor e timeouts.

        Retorna lista de erros (vazia = OK).
        """
        errors: list[str] = []
        if self.irma_server_url and not self.irma_server_url.startswith(("http://", "https://")):
            errors.append("IRMA_SERVER_URL deve começar com http:// ou https://")
        if self.is_production and self.irma_server_url and self.irma_server_url.startswith(
            "http://"
        ):
            errors.append("IRMA_SERVER_URL deve usar https em production")
        if self.irma_request_timeout_seconds <= 0:
            errors.append("IRMA_REQUEST_TIMEOUT_SECONDS deve ser > 0")
        if self.irma_abort_timeout_seconds <= 0:
            errors.append("IRMA_ABORT_TIMEOUT_SECONDS deve ser > 0")
        return errors

    def validate_status_config(self) -> list[str]:
        """Valida intervalo de polling e janela de server-sent events."""
        errors: list[str] = []
        if self.irma_poll_interval_seconds < 0:
            errors.append("IRMA_POLL_INTERVAL_SECONDS deve ser >= 0")
        if self.irma_sse_timeout_seconds <= 0:
            errors.append("IRMA_SSE_TIMEOUT_SECONDS deve ser > 0")
        return errors

    def validate_auth_config(self) -> list[str]:
        """Valida método de autenticação do requestor.

        token/hmac/publickey exigem chave; hmac/publickey exigem nome do requestor.
        """
        errors: list[str] = []
        method = self.irma_auth_method.lower()
        if method not in VALID_AUTH_METHODS:
            errors.append(
                f"IRMA_AUTH_METHOD '{method}' inválido. Valores válidos: {sorted(VALID_AUTH_METHODS)}"
            )
            return errors

        if method != "none" and not self.irma_auth_key:
            errors.append(f"IRMA_AUTH_METHOD={method} requer IRMA_AUTH_KEY configurado")
        if method in {"hmac", "publickey"} and not self.irma_requestor_name:
            errors.append(f"IRMA_AUTH_METHOD={method} requer IRMA_REQUESTOR_NAME configurado")
        return errors

    def validate_logging_config(self) -> list[str]:
        """Valida formato de log."""
        errors: list[str] = []
        if self.log_format.lower() not in VALID_LOG_FORMATS:
            errors.append("LOG_FORMAT inválido: use json | text")
        return errors

    def validate_all(self) -> list[str]:
        """Agrega todas as validações."""
        return [
            *self.validate_server_config(),
            *self.validate_status_config(),
            *self.validate_auth_config(),
            *self.validate_logging_config(),
        ]

    @property
    def is_production(self) -> bool:
        """Retorna True se ambiente é produção."""
        return self.environment.lower() in ("production", "prod")

    @property
    def is_development(self) -> bool:
        """Retorna True se ambiente é desenvolvimento."""
        return self.environment.lower() in ("development", "dev", "local")

    @property
    def user_agent(self) -> str:
        """User-Agent enviado ao servidor IRMA."""
        return f"{self.service_name}/{self.version}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Retorna uma instância cacheada de Settings.

    A cache garante que múltiplos clientes compartilham a mesma leitura do ambiente.
    """
    return Settings()
