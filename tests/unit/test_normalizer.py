"""Unit tests for envelope detection and response normalization."""

import json

import httpx
import pytest

from zimcert_client.exceptions import ClassifiedError
from zimcert_client.models import CanonicalResponse
from zimcert_client.utils.errors import ErrorKind
from zimcert_client.utils.http.normalizer import (
    EnvelopeShape,
    ResponseNormalizer,
    detect_shape,
    unwrap_collection,
)
from zimcert_client.utils.http.transport import RawResponse


def raw(body, status: int = 200, content_type: str = "application/json") -> RawResponse:
    if isinstance(body, bytes):
        content = body
    else:
        content = json.dumps(body).encode()
    return RawResponse(
        status_code=status,
        headers=httpx.Headers({"content-type": content_type}),
        content=content,
        elapsed=0.01,
    )


@pytest.fixture
def normalizer():
    return ResponseNormalizer()


class TestDetectShape:
    """Ordered envelope detection policy."""

    def test_binary_wins(self):
        assert detect_shape({"success": True, "data": []}, binary=True) is EnvelopeShape.BINARY

    def test_enveloped_with_data(self):
        assert detect_shape({"success": True, "data": {"id": "c1"}}) is EnvelopeShape.ENVELOPED

    def test_enveloped_failure_without_data(self):
        assert detect_shape({"success": False, "error": "nope"}) is EnvelopeShape.ENVELOPED

    def test_success_true_without_data_is_flat(self):
        assert detect_shape({"success": True, "message": "imported"}) is EnvelopeShape.FLAT

    def test_plain_objects_and_lists_are_flat(self):
        assert detect_shape({"id": "c1"}) is EnvelopeShape.FLAT
        assert detect_shape([{"id": "c1"}]) is EnvelopeShape.FLAT

    def test_non_boolean_success_rejected(self):
        with pytest.raises(ValueError):
            detect_shape({"success": "true", "data": []})


class TestUnwrapCollection:
    """Collection unwrapping and pagination metadata."""

    def test_resource_key_beats_items(self):
        payload, meta = unwrap_collection(
            {"certificates": [1], "items": [2], "total": 1}, "certificates"
        )
        assert payload == [1]
        assert meta == {"total": 1}

    def test_generic_items(self):
        payload, meta = unwrap_collection({"items": [2], "hasMore": False}, "programs")
        assert payload == [2]
        assert meta == {"hasMore": False}

    def test_no_collection(self):
        body = {"id": "c1", "status": "issued"}
        assert unwrap_collection(body, "certificates") == (body, None)

    def test_non_dict_passthrough(self):
        assert unwrap_collection([1, 2], "certificates") == ([1, 2], None)


class TestResponseNormalizer:
    """Every success-range response maps to one canonical shape."""

    def test_equivalent_shapes_normalize_identically(self, normalizer):
        certificates = [{"id": "c1", "status": "issued"}]
        variants = [
            {"success": True, "data": {"certificates": certificates}},
            {"success": True, "data": {"items": certificates}},
            {"success": True, "data": certificates},
            {"certificates": certificates},
            {"items": certificates},
            certificates,
        ]
        results = [
            normalizer.normalize(raw(body), resource_key="certificates") for body in variants
        ]
        assert all(r == CanonicalResponse(payload=certificates) for r in results)
        assert len({r.model_dump_json() for r in results}) == 1

    def test_pagination_meta(self, normalizer):
        result = normalizer.normalize(
            raw(
                {
                    "success": True,
                    "data": {"certificates": [{"id": "c1"}], "total": 12, "hasMore": True},
                }
            ),
            resource_key="certificates",
        )
        assert result.payload == [{"id": "c1"}]
        assert result.meta.total == 12
        assert result.meta.has_more is True

    def test_envelope_meta_merged(self, normalizer):
        result = normalizer.normalize(
            raw({"success": True, "data": {"items": []}, "meta": {"page": 2, "pageSize": 20}})
        )
        assert result.payload == []
        assert result.meta.page == 2
        assert result.meta.page_size == 20

    def test_legacy_success_true_without_data(self, normalizer):
        body = {"success": True, "message": "Imported 3 students"}
        result = normalizer.normalize(raw(body))
        assert result.payload == body

    def test_single_object(self, normalizer):
        result = normalizer.normalize(
            raw({"success": True, "data": {"id": "c1", "status": "issued"}}),
            resource_key="certificates",
        )
        assert result.payload == {"id": "c1", "status": "issued"}
        assert result.meta is None

    def test_empty_body(self, normalizer):
        result = normalizer.normalize(raw(b"", status=204))
        assert result.payload is None
        assert result.meta is None

    def test_binary_payload_untouched(self, normalizer):
        content = b"name,nationalId\nTendai,63-123456A01\n"
        result = normalizer.normalize(raw(content, content_type="text/csv"), binary=True)
        assert result.payload == content

    def test_success_false_is_application_error(self, normalizer):
        with pytest.raises(ClassifiedError) as exc_info:
            normalizer.normalize(
                raw(
                    {
                        "success": False,
                        "error": {
                            "message": "Program code already exists",
                            "code": "DUPLICATE",
                            "details": {"field": "code"},
                        },
                    }
                )
            )
        err = exc_info.value
        assert err.kind is ErrorKind.APPLICATION_ERROR
        assert err.message == "Program code already exists"
        assert err.code == "DUPLICATE"
        assert err.details == {"field": "code"}

    def test_invalid_json_is_malformed(self, normalizer):
        with pytest.raises(ClassifiedError) as exc_info:
            normalizer.normalize(raw(b"<html>oops</html>", content_type="text/html"))
        assert exc_info.value.kind is ErrorKind.MALFORMED_RESPONSE

    def test_non_boolean_success_is_malformed(self, normalizer):
        with pytest.raises(ClassifiedError) as exc_info:
            normalizer.normalize(raw({"success": 1, "data": []}))
        assert exc_info.value.kind is ErrorKind.MALFORMED_RESPONSE

    def test_invalid_meta_is_malformed(self, normalizer):
        with pytest.raises(ClassifiedError) as exc_info:
            normalizer.normalize(raw({"items": [], "total": "many"}))
        assert exc_info.value.kind is ErrorKind.MALFORMED_RESPONSE
