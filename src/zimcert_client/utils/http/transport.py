"""Transport pipeline: one HTTP attempt against the backend.

The transport sends a decorated request over the shared pooled
client and reports what happened as a raw outcome. It never retries
and never classifies; both decisions belong to the layers above.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Union

import httpx

from ..security import log_request
from .request import AttemptMetadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawResponse:
    """A response was received, whatever its status."""

    status_code: int
    headers: httpx.Headers
    content: bytes
    elapsed: float

    @property
    def is_success(self) -> bool:
        """True for 2xx statuses."""
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Decode the body as JSON; an empty body decodes to None.

        :raises ValueError: If the body is not valid JSON
        """
        if not self.content or not self.content.strip():
            return None
        return json.loads(self.content)


@dataclass(frozen=True)
class TransportFailure:
    """No response was obtained (DNS, connect, timeout, protocol)."""

    exception: Exception
    elapsed: float


RawOutcome = Union[RawResponse, TransportFailure]


class Transport:
    """Executes single attempts over a shared ``httpx.AsyncClient``.

    :param http_client: Pooled client, safe for concurrent use
    :type http_client: httpx.AsyncClient
    """

    def __init__(self, http_client: httpx.AsyncClient):
        self._client = http_client

    async def execute(
        self, request: httpx.Request, attempt: AttemptMetadata
    ) -> RawOutcome:
        """Send one attempt and report the raw outcome.

        :param request: Decorated request for this attempt
        :type request: httpx.Request
        :param attempt: Metadata of this attempt
        :type attempt: AttemptMetadata
        :return: Raw response or transport failure
        :rtype: RawOutcome
        """
        if logger.isEnabledFor(logging.DEBUG):
            log_request(
                request.method,
                str(request.url),
                dict(request.headers),
                _body_for_log(request),
                logger,
            )
        start = time.monotonic()
        try:
            response = await self._client.send(request)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            elapsed = time.monotonic() - start
            logger.debug(
                f"Attempt {attempt.index} [{attempt.correlation_id}] "
                f"{request.method} {request.url} failed after {elapsed * 1000:.0f}ms: "
                f"{type(e).__name__}: {e}"
            )
            return TransportFailure(exception=e, elapsed=elapsed)

        elapsed = time.monotonic() - start
        logger.debug(
            f"Attempt {attempt.index} [{attempt.correlation_id}] "
            f"{request.method} {request.url} -> {response.status_code} "
            f"({elapsed * 1000:.0f}ms)"
        )
        return RawResponse(
            status_code=response.status_code,
            headers=response.headers,
            content=response.content,
            elapsed=elapsed,
        )


def _body_for_log(request: httpx.Request) -> Any:
    if not request.content:
        return None
    try:
        return json.loads(request.content)
    except ValueError:
        return f"<{len(request.content)} bytes>"
