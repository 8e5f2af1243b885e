"""Assinatura de pedidos de sessão (JWT HS256 / RS256).

Para hmac/publickey o pedido vai embrulhado num campo que depende do tipo
de sessão, com `sub` fixo por tipo e `iss` igual ao nome do requestor.
Para none/token o corpo é o JSON do pedido.
"""

from __future__ import annotations

import json
import time
from collections.abc import Mapping
from typing import Any

import jwt

from pyirma.domain.errors import NotASessionRequest, UnsupportedMethod
from pyirma.domain.session.options import (
    RequestAuth,
    RequestAuthMethod,
    parse_auth_method,
)
from pyirma.domain.session.states import SessionType

JWT_FIELDS: dict[SessionType, str] = {
    SessionType.DISCLOSING: "sprequest",
    SessionType.ISSUING: "iprequest",
    SessionType.SIGNING: "absrequest",
}

JWT_SUBJECTS: dict[SessionType, str] = {
    SessionType.DISCLOSING: "verification_request",
    SessionType.ISSUING: "issue_request",
    SessionType.SIGNING: "signature_request",
}

JWT_ALGORITHMS: dict[RequestAuthMethod, str] = {
    RequestAuthMethod.HMAC: "HS256",
    RequestAuthMethod.PUBLICKEY: "RS256",
}

_CONTEXT_PREFIX = "https://irma.app/ld/request/"

# Último segmento de `@context` sem a versão
_CONTEXT_TYPES: dict[str, SessionType] = {
    "disclosure": SessionType.DISCLOSING,
    "issuance": SessionType.ISSUING,
    "signature": SessionType.SIGNING,
}

JSON_CONTENT_TYPE = "application/json"
JWT_CONTENT_TYPE = "text/plain"


def detect_session_type(request: Mapping[str, Any]) -> SessionType:
    """Determina o tipo de sessão de um pedido.

    Ordem: `@context` do pedido, `type` legado, pedido aninhado em `request`
    (pedido estendido com opções do requestor).
    """
    if not isinstance(request, Mapping):
        raise NotASessionRequest("Session request must be a mapping")

    context = request.get("@context")
    if isinstance(context, str) and context.startswith(_CONTEXT_PREFIX):
        kind = context[len(_CONTEXT_PREFIX):].split("/")[0]
        if kind in _CONTEXT_TYPES:
            return _CONTEXT_TYPES[kind]

    legacy_type = request.get("type")
    if isinstance(legacy_type, str):
        try:
            return SessionType(legacy_type)
        except ValueError:
            pass

    nested = request.get("request")
    if isinstance(nested, Mapping):
        return detect_session_type(nested)

    raise NotASessionRequest("Not an IRMA session request")


def sign_session_request(
    request: Mapping[str, Any],
    method: RequestAuthMethod | str,
    key: str | bytes,
    name: str | None,
) -> str:
    """Assina o pedido como JWT.

    Args:
        request: Pedido de sessão
        method: hmac (HS256) ou publickey (RS256)
        key: Segredo HMAC ou chave privada RSA em PEM
        name: Nome do requestor (claim iss)

    Returns:
        JWT compacto

    Raises:
        UnsupportedMethod: Se method não assina
        NotASessionRequest: Se o tipo de sessão não puder ser determinado
    """
    auth_method = parse_auth_method(method)
    algorithm = JWT_ALGORITHMS.get(auth_method)
    if algorithm is None:
        raise UnsupportedMethod(method)

    session_type = detect_session_type(request)
    claims: dict[str, Any] = {
        "iat": int(time.time()),
        "sub": JWT_SUBJECTS[session_type],
        JWT_FIELDS[session_type]: dict(request),
    }
    if name:
        claims["iss"] = name
    return jwt.encode(claims, key, algorithm=algorithm)


def encode_session_request(
    request: Mapping[str, Any] | str,
    auth: RequestAuth | None = None,
) -> tuple[str, dict[str, str]]:
    """Monta corpo e headers de `POST /session`.

    Pedido já serializado (str) é enviado como está.
    """
    auth = auth or RequestAuth()
    headers: dict[str, str] = {}

    if auth.method in JWT_ALGORITHMS:
        headers["Content-Type"] = JWT_CONTENT_TYPE
        if isinstance(request, str):
            return request, headers
        return sign_session_request(request, auth.method, auth.key or "", auth.name), headers

    if auth.method is RequestAuthMethod.TOKEN:
        key = auth.key
        headers["Authorization"] = key.decode() if isinstance(key, bytes) else str(key)
    elif auth.method is not RequestAuthMethod.NONE:
        raise UnsupportedMethod(auth.method)

    headers["Content-Type"] = JSON_CONTENT_TYPE
    if isinstance(request, str):
        return request, headers
    return json.dumps(dict(request)), headers
