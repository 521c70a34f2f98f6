"""Response representation and (de)serialization.

This module provides the framework-neutral ``Response`` that flows through
the engine, its conversion to and from the storable ``SerializedResponse``,
and the canned responses the engine produces itself:

- problem responses (``application/problem+json``) for client protocol errors
- the generic 500 response stored when the downstream handler raises

Examples:
    Storing and replaying a response::

        from idempotent_request.core.serializer import (
            Response,
            deserialize_response,
            serialize_response,
        )

        original = Response(
            status=200,
            headers={"Content-Type": "application/json"},
            body=b'{"message":"Hello, Edison!"}',
        )
        stored = serialize_response(original)
        replayed = deserialize_response(stored)
        # replayed.status == 200
        # replayed.headers == {"content-type": "application/json"}
        # replayed.body == original.body
"""

import base64
import json
from http import HTTPStatus

from idempotent_request.exceptions import ClientProtocolError
from idempotent_request.models import SerializedResponse
from idempotent_request.utils.headers import lowercase_headers

PROBLEM_CONTENT_TYPE = "application/problem+json"


class Response:
    """Represents an HTTP response.

    Attributes:
        status: HTTP status code (e.g., 200, 404, 500)
        headers: Response headers as key-value pairs
        body: Response body as bytes
        status_text: Reason phrase, defaults to the standard phrase for status
        raw_headers: Header list as produced by the application, repeated
            names included. None for responses built by the engine or
            replayed from storage, which only keep ``headers``
    """

    def __init__(
        self,
        status: int,
        headers: dict[str, str] | None = None,
        body: bytes = b"",
        status_text: str | None = None,
        raw_headers: list[tuple[str, str]] | None = None,
    ) -> None:
        self.status = status
        self.headers = headers if headers is not None else {}
        self.body = body
        self.status_text = status_text if status_text is not None else _reason_phrase(status)
        self.raw_headers = raw_headers

    def json(self) -> object:
        """Decode the body as JSON."""
        return json.loads(self.body)

    def __repr__(self) -> str:
        return f"Response(status={self.status!r}, headers={self.headers!r})"


def serialize_response(response: Response) -> SerializedResponse:
    """Convert a response into its storable form.

    Header names are lower-cased. Only ``headers`` is stored, so a name
    the application repeated keeps its last value. The body is stored as
    text when it is valid UTF-8 and base64-encoded otherwise. The input
    response is not modified.

    Args:
        response: The response to serialize.

    Returns:
        A SerializedResponse equivalent to ``response``.
    """
    try:
        body = response.body.decode("utf-8")
        encoding = "text"
    except UnicodeDecodeError:
        body = base64.b64encode(response.body).decode("ascii")
        encoding = "base64"

    return SerializedResponse(
        status=response.status,
        status_text=response.status_text,
        headers=lowercase_headers(response.headers),
        body=body,
        body_encoding=encoding,
    )


def deserialize_response(serialized: SerializedResponse) -> Response:
    """Rebuild a response from its stored form.

    Args:
        serialized: The stored response.

    Returns:
        A new Response with the stored status, status text, headers and body.
    """
    return Response(
        status=serialized.status,
        headers=dict(serialized.headers),
        body=serialized.get_body_bytes(),
        status_text=serialized.status_text,
    )


def problem_response(error: ClientProtocolError) -> Response:
    """Render a client protocol error as a problem response.

    Example:
        >>> from idempotent_request.exceptions import IdempotencyKeyMissingError
        >>> response = problem_response(IdempotencyKeyMissingError())
        >>> response.status
        400
        >>> response.json()["title"]
        'Idempotency-Key is missing'
    """
    body = json.dumps({"title": error.title, "detail": error.detail})
    return Response(
        status=error.status,
        headers={"content-type": PROBLEM_CONTENT_TYPE},
        body=body.encode("utf-8"),
    )


def internal_error_response() -> Response:
    """Response recorded when the downstream handler raises.

    The exception text is not included to avoid leaking internals into a
    response that will be replayed to the client.
    """
    return Response(
        status=500,
        headers={"content-type": "text/plain; charset=utf-8"},
        body=b"Internal Server Error",
    )


def _reason_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return ""
