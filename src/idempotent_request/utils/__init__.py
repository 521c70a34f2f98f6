"""Utility modules for idempotent request processing."""

from .awaitable import resolve
from .headers import canonicalize_headers, get_header_value, lowercase_headers, set_header

__all__ = [
    "resolve",
    "canonicalize_headers",
    "get_header_value",
    "lowercase_headers",
    "set_header",
]
