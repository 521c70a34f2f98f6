"""
Pytest configuration and shared fixtures for idempotent_request tests.
"""

import json
import uuid

import pytest

from idempotent_request.core.request import Request
from idempotent_request.core.serializer import Response
from idempotent_request.specification import DefaultServerSpecification
from idempotent_request.storage.memory import MemoryStorageDriver


class CountingHandler:
    """Async handler greeting the ``name`` in a JSON body and counting calls."""

    def __init__(self) -> None:
        self.calls = 0

    async def __call__(self, request: Request) -> Response:
        self.calls += 1
        name = json.loads(request.body)["name"]
        return Response(
            status=200,
            headers={"Content-Type": "application/json"},
            body=json.dumps({"message": f"Hello, {name}!"}).encode(),
        )


def build_request(
    key: str | None,
    body: dict | None = None,
    method: str = "POST",
    path: str = "/api/hello",
    headers: dict[str, str] | None = None,
) -> Request:
    """Build a JSON request carrying ``key`` in the Idempotency-Key header."""
    all_headers = {"Content-Type": "application/json"}
    if key is not None:
        all_headers["Idempotency-Key"] = key
    all_headers.update(headers or {})
    return Request(
        method=method,
        path=path,
        headers=all_headers,
        body=json.dumps(body if body is not None else {"name": "Edison"}).encode(),
    )


@pytest.fixture
def idempotency_key() -> str:
    """Provide a fresh UUIDv4 idempotency key for tests."""
    return str(uuid.uuid4())


@pytest.fixture
def driver() -> MemoryStorageDriver:
    """Create a fresh in-memory storage driver for each test."""
    return MemoryStorageDriver()


@pytest.fixture
def specification() -> DefaultServerSpecification:
    return DefaultServerSpecification()


@pytest.fixture
def make_request():
    """Provide the JSON request builder."""
    return build_request


@pytest.fixture
def handler() -> CountingHandler:
    return CountingHandler()
