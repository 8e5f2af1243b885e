"""Configurações centralizadas do pyirma.

Este módulo exporta:
- Settings: classe de configuração via variáveis de ambiente
- get_settings: função cacheada para obter instância única
- Constantes de protocolo (intervalo de polling, janela de SSE)

Uso típico:
    from pyirma.config import get_settings
"""

from pyirma.config.settings import (
    DEFAULT_LANGUAGE,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_SSE_TIMEOUT_SECONDS,
    Settings,
    get_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "DEFAULT_LANGUAGE",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "DEFAULT_SSE_TIMEOUT_SECONDS",
]
