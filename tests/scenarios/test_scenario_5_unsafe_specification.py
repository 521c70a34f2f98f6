"""Scenario 5: Unsafe Specification and Storage Failures

- A specification whose storage key omits the idempotency key is refused
  before anything is stored or executed
- Storage failures propagate to the application as errors
"""

import uuid

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from idempotent_request.adapters.asgi import ASGIIdempotencyMiddleware
from idempotent_request.exceptions import StorageError, UnsafeImplementationError
from idempotent_request.specification import DefaultServerSpecification
from idempotent_request.storage.memory import MemoryStorageDriver


class Greeting(BaseModel):
    name: str


class PathOnlySpecification(DefaultServerSpecification):
    def get_storage_key(self, idempotency_key, request):
        return f"{request.method}-{request.path}"


class BrokenDriver:
    async def get(self, storage_key):
        raise ConnectionError("connection refused")

    async def save(self, record):
        raise ConnectionError("connection refused")


def build_app(specification, storage, calls: list[str]) -> FastAPI:
    app = FastAPI()
    app.add_middleware(ASGIIdempotencyMiddleware, specification=specification, storage=storage)

    @app.post("/api/hello")
    async def hello(greeting: Greeting):
        calls.append(greeting.name)
        return {"message": f"Hello, {greeting.name}!"}

    return app


def test_unsafe_storage_key_raises() -> None:
    calls: list[str] = []
    storage = MemoryStorageDriver()
    client = TestClient(build_app(PathOnlySpecification(), storage, calls))

    with pytest.raises(UnsafeImplementationError):
        client.post("/api/hello", json={"name": "Edison"}, headers={"Idempotency-Key": str(uuid.uuid4())})

    assert calls == []
    assert len(storage) == 0


def test_unsafe_storage_key_is_server_error() -> None:
    calls: list[str] = []
    client = TestClient(
        build_app(PathOnlySpecification(), MemoryStorageDriver(), calls),
        raise_server_exceptions=False,
    )

    response = client.post(
        "/api/hello", json={"name": "Edison"}, headers={"Idempotency-Key": str(uuid.uuid4())}
    )

    assert response.status_code == 500
    assert calls == []


def test_storage_failure_raises() -> None:
    calls: list[str] = []
    client = TestClient(build_app(DefaultServerSpecification(), BrokenDriver(), calls))

    with pytest.raises(StorageError) as exc_info:
        client.post("/api/hello", json={"name": "Edison"}, headers={"Idempotency-Key": str(uuid.uuid4())})

    assert exc_info.value.operation == "find_or_create"
    assert calls == []
