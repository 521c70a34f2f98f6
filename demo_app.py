"""Demo FastAPI application with idempotent request handling.

Run with: python demo_app.py

Then try::

    KEY=$(python -c "import uuid; print(uuid.uuid4())")
    curl -X POST localhost:8000/api/hello -H "Idempotency-Key: $KEY" \
         -H "Content-Type: application/json" -d '{"name":"Edison"}'
    # same again -> replayed response, handler not called
    curl -X POST localhost:8000/api/hello -H "Idempotency-Key: $KEY" \
         -H "Content-Type: application/json" -d '{"name":"Evil"}'
    # -> 422 Idempotency-Key is already used
"""

import uvicorn
from fastapi import FastAPI
from pydantic import BaseModel

from idempotent_request.adapters.asgi import ASGIIdempotencyMiddleware
from idempotent_request.config import IdempotencyConfig
from idempotent_request.observability.logging import configure_logging
from idempotent_request.specification import DefaultServerSpecification
from idempotent_request.storage.memory import MemoryStorageDriver

config = IdempotencyConfig.from_env()
configure_logging(level=config.log_level, json_output=config.log_json)

app = FastAPI(
    title="Idempotent Request Demo",
    description="Demo API showing idempotent request handling",
    version="0.1.0",
)

app.add_middleware(
    ASGIIdempotencyMiddleware,
    specification=DefaultServerSpecification.from_config(config),
    storage=MemoryStorageDriver.from_config(config),
    config=config,
)


class Greeting(BaseModel):
    name: str


@app.post("/api/hello")
async def hello(greeting: Greeting):
    """Greet someone (idempotent)."""
    return {"message": f"Hello, {greeting.name}!"}


@app.get("/api/status")
async def get_status():
    """Health check - GET is not routed through the idempotency engine."""
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
