"""Framework-neutral request representation.

Framework adapters convert their native request objects into ``Request``.
The body is held as bytes so it can be read by the server specification for
fingerprinting and read again by the downstream handler.
"""

from idempotent_request.utils.headers import get_header_value


class Request:
    """Abstract request representation.

    Attributes:
        method: HTTP method (GET, POST, etc.)
        path: URL path
        query_string: Query string without leading '?'
        headers: Request headers as dict
        body: Request body as bytes
    """

    def __init__(
        self,
        method: str,
        path: str,
        query_string: str = "",
        headers: dict[str, str] | None = None,
        body: bytes = b"",
    ) -> None:
        self.method = method
        self.path = path
        self.query_string = query_string
        self.headers = headers or {}
        self.body = body

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        return get_header_value(self.headers, name)

    def __repr__(self) -> str:
        return f"Request(method={self.method!r}, path={self.path!r})"
