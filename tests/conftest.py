"""Pytest configuration and fixtures for fluent-rest tests.

This file provides:
- MockServer: an httpx.MockTransport handler with per-path canned responses
  that records every request it receives
- CountingStream / FailingStream: response bodies for materialization tests
- Fixtures: a server and a builder wired to it
"""

from __future__ import annotations

from typing import Any, Callable, Generator, Iterator

import httpx
import pytest

from fluent_rest.builder import RequestBuilder
from fluent_rest.models import ClientConfig

BASE_HOST = "api.test"
BASE_URL = f"http://{BASE_HOST}"


class CountingStream(httpx.SyncByteStream):
    """Response body that counts how often it is iterated and closed."""

    def __init__(self, chunks: list[bytes]) -> None:
        self._chunks = chunks
        self.iterations = 0
        self.closed = 0

    def __iter__(self) -> Iterator[bytes]:
        self.iterations += 1
        yield from self._chunks

    def close(self) -> None:
        self.closed += 1


class FailingStream(httpx.SyncByteStream):
    """Response body that fails part-way through reading."""

    def __init__(self) -> None:
        self.closed = 0

    def __iter__(self) -> Iterator[bytes]:
        yield b"partial"
        raise httpx.ReadError("connection reset while reading body")

    def close(self) -> None:
        self.closed += 1


class MockServer:
    """Serves canned responses by path through httpx.MockTransport.

    Usage:
        server = MockServer()
        server.route("/items", lambda request: httpx.Response(200, text="ok"))
        builder = RequestBuilder(transport=server.transport())

    Unrouted paths answer 404.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    def route(self, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self._routes[path] = handler

    def respond(self, path: str, status_code: int = 200, **kwargs: Any) -> None:
        """Route path to a fixed response built from httpx.Response kwargs."""
        self.route(path, lambda request: httpx.Response(status_code, **kwargs))

    def redirect(self, path: str, status_code: int, location: str) -> None:
        self.respond(path, status_code, headers={"Location": location})

    def fail(self, path: str, error: type[httpx.RequestError], message: str = "boom") -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise error(message, request=request)

        self.route(path, handler)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self._routes.get(request.url.path)
        if handler is None:
            return httpx.Response(404, text="not found")
        return handler(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    @property
    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


@pytest.fixture
def server() -> MockServer:
    return MockServer()


@pytest.fixture
def builder(server: MockServer) -> Generator[RequestBuilder, None, None]:
    """RequestBuilder whose client talks to the mock server."""
    client = RequestBuilder(transport=server.transport())
    try:
        yield client
    finally:
        client.close()


@pytest.fixture
def make_builder(
    server: MockServer,
) -> Generator[Callable[..., RequestBuilder], None, None]:
    """Factory for builders with a custom ClientConfig."""
    created: list[RequestBuilder] = []

    def factory(**config: Any) -> RequestBuilder:
        client = RequestBuilder(ClientConfig(**config), transport=server.transport())
        created.append(client)
        return client

    yield factory

    for client in created:
        client.close()
