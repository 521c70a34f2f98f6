"""End-to-end scenarios running the ASGI middleware inside FastAPI apps."""
