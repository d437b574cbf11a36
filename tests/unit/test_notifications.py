"""Unit tests for notifiers."""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from zimcert_client.exceptions import ClassifiedError
from zimcert_client.utils.errors import ErrorKind
from zimcert_client.utils.notifications import CallbackNotifier, LoggingNotifier


@pytest.fixture
def error():
    err = ClassifiedError(ErrorKind.CLIENT_ERROR, "Certificate not found", http_status=404)
    err.correlation_id = "req_3_beef"
    return err


class TestLoggingNotifier:

    @pytest.mark.asyncio
    async def test_error_logged_with_correlation_id(self, error, caplog):
        with caplog.at_level(logging.ERROR):
            await LoggingNotifier().error(error)
        assert "ClientError: Certificate not found [req_3_beef]" in caplog.text

    @pytest.mark.asyncio
    async def test_success_logged(self, caplog):
        custom = logging.getLogger("zimcert.test.notifications")
        with caplog.at_level(logging.INFO, logger="zimcert.test.notifications"):
            await LoggingNotifier(custom).success("Certificate issued successfully")
        assert "Certificate issued successfully" in caplog.text


class TestCallbackNotifier:

    @pytest.mark.asyncio
    async def test_sync_callbacks(self, error):
        on_error, on_success = MagicMock(), MagicMock()
        notifier = CallbackNotifier(on_error=on_error, on_success=on_success)

        await notifier.error(error)
        await notifier.success("done")

        on_error.assert_called_once_with(error)
        on_success.assert_called_once_with("done")

    @pytest.mark.asyncio
    async def test_async_callbacks(self, error):
        on_error = AsyncMock()
        await CallbackNotifier(on_error=on_error).error(error)
        on_error.assert_awaited_once_with(error)

    @pytest.mark.asyncio
    async def test_missing_callbacks_are_noops(self, error):
        notifier = CallbackNotifier()
        await notifier.error(error)
        await notifier.success("done")
