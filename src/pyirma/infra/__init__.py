"""Camada de infraestrutura: transporte HTTP para o servidor IRMA.

Uso típico:
    from pyirma.infra import create_http_client

Infraestrutura não decide regra de sessão; só transporta e reporta falhas.
"""

from pyirma.infra.http import (
    HttpClient,
    HttpClientConfig,
    TransportError,
    create_http_client,
)

__all__ = [
    "HttpClient",
    "HttpClientConfig",
    "TransportError",
    "create_http_client",
]
