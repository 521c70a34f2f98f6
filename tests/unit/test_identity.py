"""Unit tests for request identity derivation and comparison."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from idempotent_request.core.request import Request
from idempotent_request.identity import derive_identity, is_identical_request
from idempotent_request.models import RequestIdentity
from idempotent_request.specification import DefaultServerSpecification

identity_strategy = st.builds(
    RequestIdentity,
    method=st.sampled_from(["POST", "PATCH", "PUT"]),
    path=st.text(min_size=1, max_size=20),
    idempotency_key=st.text(min_size=1, max_size=40),
    fingerprint=st.one_of(st.none(), st.text(alphabet="0123456789abcdef", min_size=64, max_size=64)),
)


class AsyncFingerprintSpecification(DefaultServerSpecification):
    async def get_fingerprint(self, request: Request) -> str | None:
        return "async-" + request.body.decode()


@pytest.mark.asyncio
async def test_derive_identity_reads_method_and_path() -> None:
    request = Request(method="POST", path="/api/hello", query_string="a=1", body=b"{}")

    identity = await derive_identity(DefaultServerSpecification(), "key-1", request)

    assert identity.method == "POST"
    assert identity.path == "/api/hello"
    assert identity.idempotency_key == "key-1"
    assert identity.fingerprint is not None
    assert len(identity.fingerprint) == 64


@pytest.mark.asyncio
async def test_derive_identity_without_fingerprint() -> None:
    request = Request(method="POST", path="/api/hello", body=b"{}")

    identity = await derive_identity(DefaultServerSpecification(use_fingerprint=False), "k", request)

    assert identity.fingerprint is None


@pytest.mark.asyncio
async def test_derive_identity_awaits_async_specification() -> None:
    request = Request(method="POST", path="/x", body=b"body")

    identity = await derive_identity(AsyncFingerprintSpecification(), "k", request)

    assert identity.fingerprint == "async-body"


@given(identity=identity_strategy)
def test_identity_is_identical_to_itself(identity: RequestIdentity) -> None:
    assert is_identical_request(identity, identity)
    assert is_identical_request(identity, identity.model_copy())


@given(a=identity_strategy, b=identity_strategy)
def test_identical_matches_model_equality(a: RequestIdentity, b: RequestIdentity) -> None:
    assert is_identical_request(a, b) == (a == b)
    assert is_identical_request(a, b) == is_identical_request(b, a)


@pytest.mark.parametrize(
    "field,value",
    [
        ("method", "PATCH"),
        ("path", "/api/other"),
        ("idempotency_key", "other-key"),
        ("fingerprint", "b" * 64),
        ("fingerprint", None),
    ],
)
def test_any_differing_field_breaks_identity(field: str, value: str | None) -> None:
    base = RequestIdentity(method="POST", path="/api/hello", idempotency_key="k", fingerprint="a" * 64)
    assert not is_identical_request(base, base.model_copy(update={field: value}))


def test_none_fingerprints_are_identical() -> None:
    a = RequestIdentity(method="POST", path="/", idempotency_key="k")
    b = RequestIdentity(method="POST", path="/", idempotency_key="k", fingerprint=None)
    assert is_identical_request(a, b)
