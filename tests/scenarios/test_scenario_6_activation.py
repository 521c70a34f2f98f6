"""Scenario 6: Activation

- Methods outside ``enabled_methods`` never reach the engine
- Requests without a valid key are rejected with 400 under "always"
- Under "opt-in", requests without the key header run normally
"""

import uuid

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from idempotent_request.adapters.asgi import ASGIIdempotencyMiddleware
from idempotent_request.config import IdempotencyConfig
from idempotent_request.specification import DefaultServerSpecification
from idempotent_request.storage.memory import MemoryStorageDriver


class Greeting(BaseModel):
    name: str


def build_client(config: IdempotencyConfig, calls: list[str]) -> TestClient:
    app = FastAPI()
    app.add_middleware(
        ASGIIdempotencyMiddleware,
        specification=DefaultServerSpecification(),
        storage=MemoryStorageDriver(),
        config=config,
    )

    @app.post("/api/hello")
    async def hello(greeting: Greeting):
        calls.append(greeting.name)
        return {"message": f"Hello, {greeting.name}!"}

    @app.put("/api/hello")
    async def replace_hello(greeting: Greeting):
        calls.append(greeting.name)
        return {"message": f"Hello again, {greeting.name}!"}

    @app.get("/api/status")
    async def status():
        calls.append("status")
        return {"status": "ok"}

    return TestClient(app)


def test_get_bypasses_engine() -> None:
    calls: list[str] = []
    client = build_client(IdempotencyConfig(), calls)

    assert client.get("/api/status").json() == {"status": "ok"}
    assert client.get("/api/status").status_code == 200
    assert calls == ["status", "status"]


def test_disabled_method_bypasses_engine() -> None:
    calls: list[str] = []
    client = build_client(IdempotencyConfig(), calls)

    response = client.put("/api/hello", json={"name": "Edison"})

    assert response.status_code == 200
    assert calls == ["Edison"]


@pytest.mark.parametrize("headers", [{}, {"Idempotency-Key": "not-a-uuid"}])
def test_missing_or_invalid_key_is_rejected(headers: dict[str, str]) -> None:
    calls: list[str] = []
    client = build_client(IdempotencyConfig(), calls)

    response = client.post("/api/hello", json={"name": "Edison"}, headers=headers)

    assert response.status_code == 400
    assert response.json() == {
        "title": "Idempotency-Key is missing",
        "detail": "This operation is idempotent and it requires correct usage of Idempotency Key.",
    }
    assert calls == []


def test_opt_in_without_header_runs_every_time() -> None:
    calls: list[str] = []
    client = build_client(IdempotencyConfig(activation_strategy="opt-in"), calls)

    client.post("/api/hello", json={"name": "Edison"})
    client.post("/api/hello", json={"name": "Edison"})

    assert calls == ["Edison", "Edison"]


def test_opt_in_with_header_is_idempotent() -> None:
    calls: list[str] = []
    client = build_client(IdempotencyConfig(activation_strategy="opt-in"), calls)
    headers = {"Idempotency-Key": str(uuid.uuid4())}

    client.post("/api/hello", json={"name": "Edison"}, headers=headers)
    client.post("/api/hello", json={"name": "Edison"}, headers=headers)

    assert calls == ["Edison"]


def test_enabled_methods_include_put() -> None:
    calls: list[str] = []
    client = build_client(IdempotencyConfig(enabled_methods=["POST", "PUT"]), calls)

    response = client.put("/api/hello", json={"name": "Edison"})

    assert response.status_code == 400
    assert calls == []
