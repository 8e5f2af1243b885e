"""Testes de ponta a ponta do SessionClient contra o servidor IRMA falso."""

from __future__ import annotations

import asyncio
import io
import json
import logging

import pytest

from pyirma.adapters.renderers import ConsoleRenderer
from pyirma.application.client import SessionClient
from pyirma.config.settings import Settings
from pyirma.domain.errors import InvalidOptions, UnexpectedStatus
from pyirma.domain.session.options import RequestAuth, SessionOptions
from pyirma.domain.session.pointer import SessionPointer
from pyirma.domain.session.states import SessionStatus
from pyirma.infra.http import TransportError
from tests.helpers.fake_irma_server import (
    BASE_URL,
    CLIENT_TOKEN,
    REQUESTOR_TOKEN,
    SIGNED_RESULT,
    EventStream,
    FakeIrmaServer,
)

DISCLOSURE_REQUEST = {
    "@context": "https://irma.app/ld/request/disclosure/v2",
    "disclose": [[["irma-demo.MijnOverheid.ageLimits.over18"]]],
}


def _client(server: FakeIrmaServer, make_http, settings, **kwargs) -> SessionClient:
    return SessionClient(BASE_URL, http=make_http(server), settings=settings, **kwargs)


class TestSessionScenarios:
    """Cenários principais do ciclo de vida via polling."""

    @pytest.mark.asyncio
    async def test_polling_until_done(self, make_http, settings) -> None:
        server = FakeIrmaServer(["INITIALIZED", "INITIALIZED", "CONNECTED", "CONNECTED", "DONE"])
        client = _client(server, make_http, settings)

        status = await client.handle_session(
            SessionPointer(u=server.pointer_url, irmaqr="disclosing"),
            SessionOptions(method="immediate"),
        )

        assert status == "DONE"
        assert server.calls("DELETE", CLIENT_TOKEN) == []

    @pytest.mark.asyncio
    async def test_cancelled_sends_single_delete(self, make_http, settings) -> None:
        server = FakeIrmaServer(["INITIALIZED", "CANCELLED"])
        client = _client(server, make_http, settings)

        with pytest.raises(UnexpectedStatus) as exc_info:
            await client.handle_session(
                SessionPointer(u=server.pointer_url, irmaqr="disclosing"),
                SessionOptions(method="immediate"),
            )

        assert str(exc_info.value) == "CANCELLED"
        deletes = server.calls("DELETE", CLIENT_TOKEN)
        assert len(deletes) == 1
        assert str(deletes[0].url) == server.pointer_url

    @pytest.mark.asyncio
    async def test_return_initialized_never_watches(self, make_http, settings) -> None:
        server = FakeIrmaServer(["INITIALIZED"])
        client = _client(server, make_http, settings)

        status = await client.handle_session(
            SessionPointer(u=server.pointer_url, irmaqr="disclosing"),
            SessionOptions(method="immediate", return_status="INITIALIZED"),
        )

        assert status == "INITIALIZED"
        assert server.calls("GET", "/status") == []
        assert server.calls("GET", "/statusevents") == []

    @pytest.mark.asyncio
    async def test_result_as_token_fetches_jwt_text(self, make_http, settings) -> None:
        server = FakeIrmaServer(["CONNECTED", "DONE"])
        client = _client(server, make_http, settings)

        result = await client.handle_session(
            {"sessionPtr": {"u": server.pointer_url, "irmaqr": "disclosing"},
             "token": REQUESTOR_TOKEN},
            SessionOptions(method="immediate", server="https://x", result_as_token=True),
        )

        assert result == SIGNED_RESULT
        fetched = [r for r in server.requests if r.url.path.endswith("/result-jwt")]
        assert [str(r.url) for r in fetched] == [f"https://x/session/{REQUESTOR_TOKEN}/result-jwt"]

    @pytest.mark.asyncio
    async def test_timeout_delete_failure_is_ignored(self, make_http, settings) -> None:
        server = FakeIrmaServer(["TIMEOUT"], delete_status_code=500)
        client = _client(server, make_http, settings)

        with pytest.raises(UnexpectedStatus) as exc_info:
            await client.handle_session(
                SessionPointer(u=server.pointer_url, irmaqr="disclosing"),
                SessionOptions(method="immediate"),
            )

        assert exc_info.value.status is SessionStatus.TIMEOUT
        assert len(server.calls("DELETE", CLIENT_TOKEN)) == 1

    @pytest.mark.asyncio
    async def test_stalled_delete_does_not_delay_error(self, make_http, settings, caplog) -> None:
        """DELETE que não responde é abandonado no prazo de abort."""
        server = FakeIrmaServer(["CANCELLED"], delete_delay=3600.0)
        logger = logging.getLogger("test.client.abort")
        client = _client(
            server,
            make_http,
            settings.model_copy(update={"irma_abort_timeout_seconds": 0.05}),
            logger=logger,
        )

        with caplog.at_level(logging.DEBUG, logger="test.client.abort"):
            with pytest.raises(UnexpectedStatus) as exc_info:
                await asyncio.wait_for(
                    client.handle_session(
                        SessionPointer(u=server.pointer_url, irmaqr="disclosing"),
                        SessionOptions(method="immediate"),
                    ),
                    timeout=3.0,
                )

        assert exc_info.value.status is SessionStatus.CANCELLED
        assert len(server.calls("DELETE", CLIENT_TOKEN)) == 1
        ignored = [r for r in caplog.records if r.getMessage() == "session_delete_ignored"]
        assert ignored[0].error_type == "TimeoutError"  # type: ignore[attr-defined]

    @pytest.mark.asyncio
    async def test_transport_error_does_not_delete(self, make_http, settings) -> None:
        server = FakeIrmaServer(status_error_code=502)
        client = _client(server, make_http, settings)

        with pytest.raises(TransportError):
            await client.handle_session(
                SessionPointer(u=server.pointer_url, irmaqr="disclosing"),
                SessionOptions(method="immediate"),
            )

        assert server.calls("DELETE", CLIENT_TOKEN) == []

    @pytest.mark.asyncio
    async def test_push_channel_used_when_enabled(self, make_http, settings) -> None:
        settings = settings.model_copy(update={"irma_sse_enabled": True})
        server = FakeIrmaServer(
            event_streams=[EventStream(["CONNECTED"]), EventStream(["DONE"])],
        )
        client = _client(server, make_http, settings)

        status = await client.handle_session(
            SessionPointer(u=server.pointer_url, irmaqr="disclosing"),
            SessionOptions(method="immediate"),
        )

        assert status == "DONE"
        assert len(server.calls("GET", "/statusevents")) == 2
        assert server.calls("GET", "/status") == []


class TestRun:
    @pytest.mark.asyncio
    async def test_run_creates_and_follows_session(self, make_http, settings) -> None:
        server = FakeIrmaServer(["CONNECTED", "DONE"], result={"proofStatus": "VALID"})
        client = _client(server, make_http, settings)

        result = await client.run(
            DISCLOSURE_REQUEST, SessionOptions(method="immediate", server=BASE_URL)
        )

        assert result == {"proofStatus": "VALID"}
        posts = server.calls("POST", "/session")
        assert len(posts) == 1
        assert posts[0].headers["Content-Type"] == "application/json"
        assert json.loads(posts[0].content) == DISCLOSURE_REQUEST
        results = server.calls("GET", "/result")
        assert str(results[0].url) == f"{BASE_URL}/session/{REQUESTOR_TOKEN}/result"

    @pytest.mark.asyncio
    async def test_headless_writes_qr_payload(self, make_http, settings) -> None:
        server = FakeIrmaServer(["DONE"])
        stream = io.StringIO()
        client = _client(server, make_http, settings, renderer=ConsoleRenderer(stream))

        await client.run(DISCLOSURE_REQUEST, SessionOptions(method="headless"))

        output = stream.getvalue()
        assert server.pointer_url in output
        assert "Session finished: DONE" in output

    @pytest.mark.asyncio
    async def test_interactive_without_renderer_fails_before_network(
        self, make_http, settings
    ) -> None:
        server = FakeIrmaServer()
        client = _client(server, make_http, settings)

        with pytest.raises(InvalidOptions):
            await client.run(DISCLOSURE_REQUEST, SessionOptions(method="interactive"))

        assert server.requests == []


class TestStartSession:
    @pytest.mark.asyncio
    async def test_token_auth_header(self, make_http, settings) -> None:
        server = FakeIrmaServer()
        client = _client(server, make_http, settings)

        package = await client.start_session(
            DISCLOSURE_REQUEST, RequestAuth(method="token", key="api-token")
        )

        assert package.token == REQUESTOR_TOKEN
        assert package.session_ptr.u == server.pointer_url
        assert server.requests[0].headers["Authorization"] == "api-token"

    @pytest.mark.asyncio
    async def test_hmac_auth_sends_jwt(self, make_http, settings) -> None:
        server = FakeIrmaServer()
        client = _client(server, make_http, settings)

        await client.start_session(
            DISCLOSURE_REQUEST,
            RequestAuth(
                method="hmac", key="a-hmac-secret-that-is-long-enough-for-hs256", name="req"
            ),
        )

        request = server.requests[0]
        assert request.headers["Content-Type"] == "text/plain"
        assert request.content.count(b".") == 2

    @pytest.mark.asyncio
    async def test_rejected_request(self, make_http, settings) -> None:
        server = FakeIrmaServer(start_status_code=401)
        client = _client(server, make_http, settings)

        with pytest.raises(TransportError) as exc_info:
            await client.start_session(DISCLOSURE_REQUEST)

        assert exc_info.value.status_code == 401
        assert exc_info.value.body == "session request rejected"

    @pytest.mark.asyncio
    async def test_requires_server(self, make_http) -> None:
        server = FakeIrmaServer()
        client = SessionClient(http=make_http(server), settings=Settings())

        with pytest.raises(InvalidOptions):
            await client.start_session(DISCLOSURE_REQUEST)

    @pytest.mark.asyncio
    async def test_logs_session_started(self, make_http, settings, caplog) -> None:
        server = FakeIrmaServer()
        logger = logging.getLogger("test.client")
        client = _client(server, make_http, settings, logger=logger)

        with caplog.at_level(logging.INFO, logger="test.client"):
            await client.start_session(DISCLOSURE_REQUEST)

        started = [r for r in caplog.records if r.message == "session_started"]
        assert started[0].session_type == "disclosing"  # type: ignore[attr-defined]
        assert REQUESTOR_TOKEN not in caplog.text


class TestDirectOperations:
    @pytest.mark.asyncio
    async def test_cancel_session(self, make_http, settings) -> None:
        server = FakeIrmaServer()
        client = _client(server, make_http, settings)

        await client.cancel_session(server.pointer_url + "/")

        assert [str(r.url) for r in server.calls("DELETE", CLIENT_TOKEN)] == [server.pointer_url]

    @pytest.mark.asyncio
    async def test_cancel_session_propagates_errors(self, make_http, settings) -> None:
        server = FakeIrmaServer(delete_status_code=404)
        client = _client(server, make_http, settings)

        with pytest.raises(TransportError):
            await client.cancel_session(SessionPointer(u=server.pointer_url, irmaqr="signing"))

    @pytest.mark.asyncio
    async def test_fetch_result(self, make_http, settings) -> None:
        server = FakeIrmaServer(result={"status": "DONE"})
        client = _client(server, make_http, settings)

        assert await client.fetch_result(REQUESTOR_TOKEN) == {"status": "DONE"}
        assert await client.fetch_result(REQUESTOR_TOKEN, as_token=True) == SIGNED_RESULT

    @pytest.mark.asyncio
    async def test_wait_helpers(self, make_http, settings) -> None:
        server = FakeIrmaServer(["INITIALIZED", "CONNECTED", "DONE"])
        client = _client(server, make_http, settings)

        assert await client.wait_connected(server.pointer_url) is SessionStatus.CONNECTED
        assert await client.wait_done(server.pointer_url) is SessionStatus.DONE

    @pytest.mark.asyncio
    async def test_default_auth_from_settings(self, make_http, settings) -> None:
        settings = settings.model_copy(
            update={"irma_auth_method": "token", "irma_auth_key": "from-env"}
        )
        client = _client(FakeIrmaServer(), make_http, settings)

        auth = client.default_auth()

        assert auth.key == "from-env"
        assert auth.method == "token"
