from __future__ import annotations

import pytest

from pyirma.config.settings import Settings, get_settings
from pyirma.infra.http import HttpClient, HttpClientConfig
from tests.helpers.fake_irma_server import BASE_URL, FakeIrmaServer


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def settings() -> Settings:
    # Polling sem espera e SSE desligado: cada teste liga o push quando precisa
    return Settings(
        irma_server_url=BASE_URL,
        irma_poll_interval_seconds=0.0,
        irma_sse_enabled=False,
        irma_sse_timeout_seconds=0.05,
    )


@pytest.fixture()
def fake_server() -> FakeIrmaServer:
    return FakeIrmaServer(["INITIALIZED", "CONNECTED", "DONE"])


@pytest.fixture()
def make_http():
    def _make(server: FakeIrmaServer) -> HttpClient:
        return HttpClient(HttpClientConfig(timeout_seconds=5.0), transport=server.transport())

    return _make
