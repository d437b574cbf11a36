"""Unit tests for the transport pipeline."""

import logging

import httpx
import pytest

from zimcert_client.utils.http.request import AttemptMetadata
from zimcert_client.utils.http.transport import RawResponse, Transport, TransportFailure

BASE_URL = "https://certs.test/api"

ATTEMPT = AttemptMetadata(index=0, issued_at=0.0, delay=0.0, correlation_id="req_1_cafe")


def client_for(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))


class TestTransport:
    """Single attempts and raw outcomes."""

    @pytest.mark.asyncio
    async def test_response_of_any_status_is_raw_response(self):
        client = client_for(lambda request: httpx.Response(503, json={"message": "busy"}))
        transport = Transport(client)

        outcome = await transport.execute(client.build_request("GET", "/certificates"), ATTEMPT)

        assert isinstance(outcome, RawResponse)
        assert outcome.status_code == 503
        assert not outcome.is_success
        assert outcome.json() == {"message": "busy"}
        assert outcome.elapsed >= 0
        await client.aclose()

    @pytest.mark.asyncio
    async def test_connection_failure_is_transport_failure(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused")

        client = client_for(refuse)
        outcome = await Transport(client).execute(
            client.build_request("GET", "/certificates"), ATTEMPT
        )

        assert isinstance(outcome, TransportFailure)
        assert isinstance(outcome.exception, httpx.ConnectError)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_timeout_is_transport_failure(self):
        def too_slow(request):
            raise httpx.ReadTimeout("timed out")

        client = client_for(too_slow)
        outcome = await Transport(client).execute(
            client.build_request("GET", "/certificates"), ATTEMPT
        )

        assert isinstance(outcome, TransportFailure)
        assert isinstance(outcome.exception, httpx.TimeoutException)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_debug_logging_redacts_token(self, caplog):
        client = client_for(lambda request: httpx.Response(200, json={"ok": True}))
        request = client.build_request(
            "POST",
            "/certificates",
            json={"nationalId": "63-123456A01", "name": "Tendai"},
            headers={"Authorization": "Bearer secret-token-value"},
        )

        with caplog.at_level(logging.DEBUG, logger="zimcert_client.utils.http.transport"):
            await Transport(client).execute(request, ATTEMPT)

        assert "secret-token-value" not in caplog.text
        assert "63-123456A01" not in caplog.text
        assert "req_1_cafe" in caplog.text
        await client.aclose()


class TestRawResponse:
    """Raw response helpers."""

    def test_empty_body_decodes_to_none(self):
        raw = RawResponse(status_code=204, headers=httpx.Headers(), content=b"", elapsed=0.0)
        assert raw.is_success
        assert raw.json() is None

    def test_invalid_json_raises(self):
        raw = RawResponse(status_code=200, headers=httpx.Headers(), content=b"{", elapsed=0.0)
        with pytest.raises(ValueError):
            raw.json()
