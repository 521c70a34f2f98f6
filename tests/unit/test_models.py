"""Unit tests for core models.

Tests in this module verify record state derivation, transitions, the
illegal locked-and-processed state, and serialized response handling.
"""

import base64
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from idempotent_request.models import (
    IdempotentRecord,
    RecordState,
    RequestIdentity,
    SerializedResponse,
)

KEY = "8e0f9c1e-3f6b-4e0b-9a43-0e5f1f3c2a11"


@pytest.fixture
def identity() -> RequestIdentity:
    return RequestIdentity(method="POST", path="/api/hello", idempotency_key=KEY, fingerprint="f" * 64)


@pytest.fixture
def response() -> SerializedResponse:
    return SerializedResponse(
        status=200,
        headers={"content-type": "application/json"},
        body='{"message":"Hello, Edison!"}',
    )


class TestRequestIdentity:
    def test_identity_is_frozen(self, identity: RequestIdentity) -> None:
        with pytest.raises(ValidationError):
            identity.method = "PUT"  # type: ignore[misc]

    def test_fingerprint_defaults_to_none(self) -> None:
        identity = RequestIdentity(method="POST", path="/", idempotency_key=KEY)
        assert identity.fingerprint is None

    def test_equality_is_fieldwise(self, identity: RequestIdentity) -> None:
        same = RequestIdentity(method="POST", path="/api/hello", idempotency_key=KEY, fingerprint="f" * 64)
        assert identity == same
        assert identity != same.model_copy(update={"fingerprint": None})


class TestSerializedResponse:
    def test_status_text_defaults_to_reason_phrase(self) -> None:
        assert SerializedResponse(status=201).status_text == "Created"

    def test_unknown_status_has_empty_status_text(self) -> None:
        assert SerializedResponse(status=599).status_text == ""

    def test_explicit_status_text_is_kept(self) -> None:
        assert SerializedResponse(status=200, status_text="Fine").status_text == "Fine"

    def test_header_names_are_lowercased(self) -> None:
        response = SerializedResponse(status=200, headers={"Content-Type": "text/plain"})
        assert response.headers == {"content-type": "text/plain"}

    @pytest.mark.parametrize("status", [99, 600])
    def test_status_out_of_range_rejected(self, status: int) -> None:
        with pytest.raises(ValidationError):
            SerializedResponse(status=status)

    def test_text_body_bytes(self, response: SerializedResponse) -> None:
        assert response.get_body_bytes() == b'{"message":"Hello, Edison!"}'

    def test_base64_body_bytes(self) -> None:
        raw = b"\xff\x00\xfe"
        response = SerializedResponse(
            status=200,
            body=base64.b64encode(raw).decode("ascii"),
            body_encoding="base64",
        )
        assert response.get_body_bytes() == raw

    def test_invalid_base64_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Invalid base64"):
            SerializedResponse(status=200, body="not base64!!", body_encoding="base64")


class TestIdempotentRecord:
    def test_unprocessed_record(self, identity: RequestIdentity) -> None:
        record = IdempotentRecord.unprocessed(identity, storage_key=f"POST-/api/hello-{KEY}")

        assert record.state is RecordState.UNPROCESSED
        assert record.locked_at is None
        assert record.response is None
        assert record.identity == identity

    def test_lock_transition(self, identity: RequestIdentity) -> None:
        record = IdempotentRecord.unprocessed(identity, storage_key=KEY)
        now = datetime.now(UTC)

        locked = record.locked(now)

        assert locked.state is RecordState.PROCESSING
        assert locked.locked_at == now
        assert record.state is RecordState.UNPROCESSED

    def test_processed_transition(self, identity: RequestIdentity, response: SerializedResponse) -> None:
        locked = IdempotentRecord.unprocessed(identity, storage_key=KEY).locked(datetime.now(UTC))

        processed = locked.processed(response)

        assert processed.state is RecordState.PROCESSED
        assert processed.locked_at is None
        assert processed.response == response

    def test_cannot_lock_processing_record(self, identity: RequestIdentity) -> None:
        locked = IdempotentRecord.unprocessed(identity, storage_key=KEY).locked(datetime.now(UTC))
        with pytest.raises(ValueError, match="Cannot lock"):
            locked.locked(datetime.now(UTC))

    def test_cannot_store_response_on_unlocked_record(
        self, identity: RequestIdentity, response: SerializedResponse
    ) -> None:
        record = IdempotentRecord.unprocessed(identity, storage_key=KEY)
        with pytest.raises(ValueError, match="Cannot store a response"):
            record.processed(response)

    def test_locked_and_processed_is_unrepresentable(
        self, identity: RequestIdentity, response: SerializedResponse
    ) -> None:
        with pytest.raises(ValidationError, match="cannot be locked and hold a response"):
            IdempotentRecord(
                **identity.model_dump(),
                storage_key=KEY,
                locked_at=datetime.now(UTC),
                response=response,
            )

    def test_empty_storage_key_rejected(self, identity: RequestIdentity) -> None:
        with pytest.raises(ValidationError):
            IdempotentRecord.unprocessed(identity, storage_key="")

    def test_json_round_trip_preserves_state(
        self, identity: RequestIdentity, response: SerializedResponse
    ) -> None:
        processed = (
            IdempotentRecord.unprocessed(identity, storage_key=KEY)
            .locked(datetime.now(UTC))
            .processed(response)
        )

        restored = IdempotentRecord.model_validate_json(processed.model_dump_json())

        assert restored == processed
        assert restored.state is RecordState.PROCESSED
