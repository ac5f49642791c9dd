# Ensure tests import the service package from this directory first.
import inspect
import os
import sys
from types import SimpleNamespace

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

SERVICE_ROOT = os.path.dirname(__file__)

if SERVICE_ROOT not in sys.path:
    sys.path.insert(0, SERVICE_ROOT)

from cors_proxy.forwarding import (  # noqa: E402
    AllowList,
    ForwardingHandler,
    ProxyConfig,
    router,
)

ALLOWED_ORIGIN = "https://debridui-alt.vercel.app"


class RecordingUpstream:
    """MockTransport handler that remembers every request it was sent."""

    def __init__(self, responder=None):
        self.requests = []
        self.responses = []
        self.responder = responder or (
            lambda request: httpx.Response(200, stream=httpx.ByteStream(b"ok"))
        )

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responder(request)
        if inspect.isawaitable(response):
            response = await response
        self.responses.append(response)
        return response


@pytest.fixture
def make_proxy():
    """Build a proxy app around a fake upstream and return its TestClient."""

    def _make(responder=None, origins=(ALLOWED_ORIGIN,), timeout=30.0):
        upstream = RecordingUpstream(responder)
        handler = ForwardingHandler(
            ProxyConfig(AllowList.of(origins), timeout=timeout),
            client=httpx.AsyncClient(
                transport=httpx.MockTransport(upstream), follow_redirects=True
            ),
        )
        app = FastAPI()
        app.state.forwarding_handler = handler
        app.include_router(router)
        return SimpleNamespace(
            client=TestClient(app), upstream=upstream, handler=handler
        )

    return _make
