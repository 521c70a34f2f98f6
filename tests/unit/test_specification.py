"""Unit tests for the default server specification."""

import uuid

import pytest

from idempotent_request.config import IdempotencyConfig
from idempotent_request.core.request import Request
from idempotent_request.specification import DefaultServerSpecification, ServerSpecification


@pytest.fixture
def spec() -> DefaultServerSpecification:
    return DefaultServerSpecification()


def test_default_specification_satisfies_protocol(spec: DefaultServerSpecification) -> None:
    assert isinstance(spec, ServerSpecification)


class TestKeySpec:
    def test_uuid4_accepted(self, spec: DefaultServerSpecification) -> None:
        assert spec.satisfies_key_spec(str(uuid.uuid4()))

    def test_uppercase_uuid4_accepted(self, spec: DefaultServerSpecification) -> None:
        assert spec.satisfies_key_spec(str(uuid.uuid4()).upper())

    @pytest.mark.parametrize(
        "key",
        [
            "invalid-key",
            "",
            str(uuid.uuid1()),
            "{" + str(uuid.uuid4()) + "}",
            str(uuid.uuid4()).replace("-", ""),
        ],
    )
    def test_invalid_keys_rejected(self, spec: DefaultServerSpecification, key: str) -> None:
        assert not spec.satisfies_key_spec(key)


class TestStorageKey:
    def test_storage_key_embeds_idempotency_key(self, spec: DefaultServerSpecification) -> None:
        key = str(uuid.uuid4())
        request = Request(method="post", path="/api/hello")

        storage_key = spec.get_storage_key(key, request)

        assert storage_key == f"POST-/api/hello-{key}"
        assert key in storage_key

    def test_storage_key_scoped_by_path(self, spec: DefaultServerSpecification) -> None:
        key = str(uuid.uuid4())
        a = spec.get_storage_key(key, Request(method="POST", path="/a"))
        b = spec.get_storage_key(key, Request(method="POST", path="/b"))
        assert a != b


class TestFingerprint:
    def test_same_request_same_fingerprint(self, spec: DefaultServerSpecification) -> None:
        a = Request(method="POST", path="/x", headers={"Content-Type": "application/json"}, body=b'{"a":1}')
        b = Request(method="POST", path="/x", headers={"content-type": "application/json"}, body=b'{"a":1}')
        assert spec.get_fingerprint(a) == spec.get_fingerprint(b)

    def test_different_body_different_fingerprint(self, spec: DefaultServerSpecification) -> None:
        a = Request(method="POST", path="/x", body=b'{"name":"Edison"}')
        b = Request(method="POST", path="/x", body=b'{"name":"Evil"}')
        assert spec.get_fingerprint(a) != spec.get_fingerprint(b)

    def test_ignores_headers_outside_configured_set(self, spec: DefaultServerSpecification) -> None:
        a = Request(method="POST", path="/x", headers={"User-Agent": "a", "Idempotency-Key": "1"})
        b = Request(method="POST", path="/x", headers={"User-Agent": "b", "Idempotency-Key": "2"})
        assert spec.get_fingerprint(a) == spec.get_fingerprint(b)

    def test_disabled_fingerprint_is_none(self) -> None:
        spec = DefaultServerSpecification(use_fingerprint=False)
        assert spec.get_fingerprint(Request(method="POST", path="/x")) is None

    def test_from_config_uses_fingerprint_headers(self) -> None:
        spec = DefaultServerSpecification.from_config(
            IdempotencyConfig(fingerprint_headers=["X-Tenant-Id"])
        )
        a = Request(method="POST", path="/x", headers={"X-Tenant-Id": "t1"})
        b = Request(method="POST", path="/x", headers={"X-Tenant-Id": "t2"})

        assert spec.fingerprint_headers == ["x-tenant-id"]
        assert spec.get_fingerprint(a) != spec.get_fingerprint(b)

    def test_from_config_with_comma_separated_headers(self) -> None:
        spec = DefaultServerSpecification.from_config(
            IdempotencyConfig(fingerprint_headers="Content-Type, X-Tenant-Id")
        )

        assert spec.fingerprint_headers == ["content-type", "x-tenant-id"]
