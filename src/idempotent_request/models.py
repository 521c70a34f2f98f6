"""Core type definitions and models for idempotent request processing.

This module provides the data structures shared by the engine, the record
store and storage drivers: request identities, serialized responses and the
stored idempotent record with its three lifecycle states.

A record moves through exactly three states::

    UNPROCESSED --acquire_lock--> PROCESSING --set_response_and_unlock--> PROCESSED

The state is derived from ``locked_at`` and ``response``; a record with both
set cannot be constructed.

Examples:
    Creating a new record::

        from idempotent_request.models import IdempotentRecord, RequestIdentity

        identity = RequestIdentity(
            method="POST",
            path="/api/hello",
            idempotency_key="8e0f9c1e-3f6b-4e0b-9a43-0e5f1f3c2a11",
            fingerprint="a" * 64,
        )
        record = IdempotentRecord.unprocessed(identity, storage_key="POST-/api/hello-8e0f...")

    Moving it through its lifecycle::

        locked = record.locked(datetime.now(UTC))
        done = locked.processed(
            SerializedResponse(status=200, headers={}, body='{"ok":true}')
        )
        assert done.state is RecordState.PROCESSED
"""

import base64
from datetime import datetime
from enum import Enum
from http import HTTPStatus
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator


class RecordState(str, Enum):
    """Lifecycle state of an idempotent record.

    Attributes:
        UNPROCESSED: Record created, no execution attempted yet.
        PROCESSING: An execution holds the lock (or died holding it).
        PROCESSED: A response is stored and can be replayed indefinitely.
    """

    UNPROCESSED = "UNPROCESSED"
    PROCESSING = "PROCESSING"
    PROCESSED = "PROCESSED"


class RequestIdentity(BaseModel):
    """Comparable identity of a request.

    Two identities are equal iff method, path, idempotency key and
    fingerprint are all equal. A ``None`` fingerprint only equals ``None``.

    Attributes:
        method: HTTP method as received.
        path: URL path (without query string).
        idempotency_key: Value of the Idempotency-Key header, verbatim.
        fingerprint: Digest of the request content, or None when the
            server specification opts out of payload-mismatch detection.
    """

    method: str = Field(..., description="HTTP method", examples=["POST", "PATCH"])
    path: str = Field(..., description="URL path", examples=["/api/hello"])
    idempotency_key: str = Field(
        ...,
        description="Idempotency-Key header value",
        examples=["8e0f9c1e-3f6b-4e0b-9a43-0e5f1f3c2a11"],
    )
    fingerprint: str | None = Field(
        default=None,
        description="Request content fingerprint (None disables mismatch detection)",
    )

    model_config = {"frozen": True}


class SerializedResponse(BaseModel):
    """A response in storable form.

    Bodies that decode as UTF-8 are kept as text. Anything else is stored
    base64-encoded and flagged with ``body_encoding="base64"`` so that replay
    is byte-identical.

    Attributes:
        status: HTTP status code.
        status_text: Reason phrase.
        headers: Response headers with lower-cased names.
        body: Response body as text or base64.
        body_encoding: How ``body`` is encoded.
    """

    status: int = Field(..., ge=100, le=599, examples=[200, 201, 500])
    status_text: str = Field(default="", examples=["OK", "Created"])
    headers: dict[str, str] = Field(
        default_factory=dict,
        examples=[{"content-type": "application/json"}],
    )
    body: str = Field(default="", examples=['{"message":"Hello, Edison!"}'])
    body_encoding: Literal["text", "base64"] = "text"

    model_config = {"frozen": True}

    @field_validator("headers")
    @classmethod
    def lowercase_header_names(cls, v: dict[str, str]) -> dict[str, str]:
        """Normalize header names to lower case."""
        return {key.lower(): value for key, value in v.items()}

    @model_validator(mode="before")
    @classmethod
    def fill_status_text(cls, data: Any) -> Any:
        """Default the status text to the standard reason phrase."""
        if isinstance(data, dict) and not data.get("status_text"):
            try:
                phrase = HTTPStatus(int(data.get("status", 0))).phrase
            except (TypeError, ValueError):
                phrase = ""
            data = {**data, "status_text": phrase}
        return data

    @model_validator(mode="after")
    def validate_base64_body(self) -> "SerializedResponse":
        if self.body_encoding == "base64":
            try:
                base64.b64decode(self.body, validate=True)
            except Exception as e:
                raise ValueError(f"Invalid base64 encoding: {e}") from e
        return self

    def get_body_bytes(self) -> bytes:
        """Decode and return the response body as bytes.

        Examples:
            >>> SerializedResponse(status=200, body="SGVsbG8=", body_encoding="base64").get_body_bytes()
            b'Hello'
            >>> SerializedResponse(status=200, body="Hello").get_body_bytes()
            b'Hello'
        """
        if self.body_encoding == "base64":
            return base64.b64decode(self.body)
        return self.body.encode("utf-8")


class IdempotentRecord(BaseModel):
    """Stored record of an idempotent request.

    The record carries the identity of the first request seen for its
    storage key, the lock timestamp while an execution is in flight, and the
    response once processing completes. Records are immutable; transitions
    return new instances which the record store persists as full replacements.

    Attributes:
        method: HTTP method of the original request.
        path: URL path of the original request.
        idempotency_key: Idempotency key of the original request.
        fingerprint: Fingerprint of the original request (may be None).
        storage_key: Key addressing this record in the storage driver.
        locked_at: When the execution lock was taken, None when unlocked.
        response: The stored response, None until processed.
    """

    method: str
    path: str
    idempotency_key: str
    fingerprint: str | None = None
    storage_key: str = Field(..., min_length=1)
    locked_at: datetime | None = None
    response: SerializedResponse | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_state(self) -> "IdempotentRecord":
        """Reject a record that is both locked and holding a response."""
        if self.locked_at is not None and self.response is not None:
            raise ValueError("A record cannot be locked and hold a response at the same time")
        return self

    @classmethod
    def unprocessed(cls, identity: RequestIdentity, storage_key: str) -> "IdempotentRecord":
        """Build a fresh record for ``identity`` stored under ``storage_key``."""
        return cls(**identity.model_dump(), storage_key=storage_key)

    @property
    def identity(self) -> RequestIdentity:
        return RequestIdentity(
            method=self.method,
            path=self.path,
            idempotency_key=self.idempotency_key,
            fingerprint=self.fingerprint,
        )

    @property
    def state(self) -> RecordState:
        if self.locked_at is not None:
            return RecordState.PROCESSING
        if self.response is not None:
            return RecordState.PROCESSED
        return RecordState.UNPROCESSED

    def locked(self, at: datetime) -> "IdempotentRecord":
        """Return a PROCESSING copy of an UNPROCESSED record.

        Raises:
            ValueError: If the record is not UNPROCESSED.
        """
        if self.state is not RecordState.UNPROCESSED:
            raise ValueError(f"Cannot lock a record in state {self.state.value}")
        return self.model_copy(update={"locked_at": at})

    def processed(self, response: SerializedResponse) -> "IdempotentRecord":
        """Return a PROCESSED copy of a PROCESSING record.

        Raises:
            ValueError: If the record is not PROCESSING.
        """
        if self.state is not RecordState.PROCESSING:
            raise ValueError(f"Cannot store a response for a record in state {self.state.value}")
        return self.model_copy(update={"locked_at": None, "response": response})
