"""
Pytest Configuration and Centralized Fixtures.

Provides reusable fakes for testing the Amazon receipt validator:
- RVS response bodies (success and error)
- httpx MockTransport-backed clients that record outgoing requests
- Validators wired to those clients
- Local sockets for real transport failures
"""

import json
import socket
import threading
from collections.abc import Callable, Iterator
from typing import Any

import httpx
import pytest

from amazon_iap.config import Settings
from amazon_iap.models.amazon import SANDBOX_URL, AmazonValidatorConfig
from amazon_iap.services.amazon_provider import AmazonReceiptValidator

TEST_SECRET = "2:smXBjZkWCxDMSBvQ8HBGsUS1PK3jvVc8tuTjLNfPHfYAga6WaDzXJPoWpfemXaHg"
TEST_USER_ID = "LRyD0FfW_3zeOlfJyxpVll-Z1rKn6dSf9xD3-vv4HDs="
TEST_RECEIPT_ID = "q1YqVrJSSs7P1UvMTazKz9PLTCwoTswtyA_KTM1Lzy3NTaxKzs8tKEotTi7KLCg"


# ============================================================================
# RVS Response Bodies
# ============================================================================


@pytest.fixture
def receipt_body() -> dict[str, Any]:
    """Well-formed RVS success body for an entitlement purchase."""
    return {
        "receiptId": TEST_RECEIPT_ID,
        "productType": "ENTITLED",
        "productId": "com.example.premium",
        "purchaseDate": 1700000000000,
        "cancelDate": None,
        "testTransaction": True,
    }


@pytest.fixture
def error_body() -> dict[str, Any]:
    """Well-formed RVS error body."""
    return {"message": "invalid receipt", "status": False}


# ============================================================================
# HTTP Fakes
# ============================================================================


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it handled."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def transport_factory() -> Callable[..., RecordingTransport]:
    """Factory for transports answering with a fixed status and body."""

    def _create(
        status_code: int = 200,
        body: Any = None,
        content: bytes | None = None,
        exc: Exception | None = None,
    ) -> RecordingTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            if exc is not None:
                raise exc
            if content is not None:
                return httpx.Response(status_code, content=content)
            return httpx.Response(status_code, content=json.dumps(body).encode("utf-8"))

        return RecordingTransport(handler)

    return _create


@pytest.fixture
def validator_factory(
    transport_factory: Callable[..., RecordingTransport],
) -> Callable[..., tuple[AmazonReceiptValidator, RecordingTransport]]:
    """Factory for sandbox validators backed by a recording transport."""

    def _create(**kwargs: Any) -> tuple[AmazonReceiptValidator, RecordingTransport]:
        transport = transport_factory(**kwargs)
        validator = AmazonReceiptValidator.new_with_config(
            AmazonValidatorConfig(is_production=False, secret=TEST_SECRET),
            http_client=httpx.Client(transport=transport),
        )
        return validator, transport

    return _create


# ============================================================================
# Settings
# ============================================================================


@pytest.fixture
def settings_factory(monkeypatch: pytest.MonkeyPatch) -> Callable[..., Settings]:
    """Build Settings from a controlled environment, ignoring any .env file."""

    def _create(**env: str) -> Settings:
        for key in ("IAP_ENVIRONMENT", "IAP_TIMEOUT_SECONDS", "LOG_LEVEL", "LOG_FORMAT"):
            monkeypatch.delenv(key, raising=False)
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return Settings(_env_file=None)

    return _create


# ============================================================================
# Local Sockets
# ============================================================================


@pytest.fixture
def silent_server_url() -> Iterator[str]:
    """URL of a listening socket that accepts connections but never answers."""
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(8)
    host, port = server.getsockname()
    try:
        yield f"http://{host}:{port}"
    finally:
        server.close()


@pytest.fixture
def closed_port_url() -> str:
    """URL of a local port with nothing listening on it."""
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    host, port = probe.getsockname()
    probe.close()
    return f"http://{host}:{port}"


@pytest.fixture
def slow_body_server_url() -> Iterator[str]:
    """URL of a server that sends 200 headers, then one body byte every 0.1 s."""
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(8)
    server.settimeout(5.0)
    host, port = server.getsockname()
    stop = threading.Event()

    def serve() -> None:
        try:
            conn, _ = server.accept()
        except OSError:
            return
        with conn:
            conn.recv(65536)
            conn.sendall(b"HTTP/1.1 200 OK\r\nContent-Length: 100\r\n\r\n")
            for _ in range(100):
                if stop.wait(0.1):
                    return
                try:
                    conn.sendall(b"x")
                except OSError:
                    return

    worker = threading.Thread(target=serve, daemon=True)
    worker.start()
    try:
        yield f"http://{host}:{port}"
    finally:
        stop.set()
        server.close()
        worker.join(timeout=2.0)
