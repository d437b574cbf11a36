"""Request descriptors, attempt metadata and the request decorator.

A :class:`RequestDescriptor` describes one logical request and never
changes once issued. The retry engine creates one
:class:`AttemptMetadata` per attempt, and the :class:`RequestDecorator`
turns the pair into a fully formed ``httpx.Request``: session bearer
token, correlation id header and timing metadata.
"""

import inspect
import itertools
import logging
import secrets
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

import httpx

from ...auth.session_store import SessionStore
from .cancellation import CancellationToken

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"
ISSUED_AT_EXTENSION = "zimcert_issued_at"
ATTEMPT_EXTENSION = "zimcert_attempt"

_request_counter = itertools.count(1)


def mint_correlation_id() -> str:
    """Mint a process-unique correlation id.

    A monotonic counter guarantees uniqueness within the process; the
    random suffix keeps ids from different processes apart in shared
    server logs.

    :return: Correlation id such as ``req_42_9f1c2a7b``
    :rtype: str
    """
    return f"req_{next(_request_counter)}_{secrets.token_hex(4)}"


@dataclass(frozen=True)
class RequestOptions:
    """Per-call overrides. Every field is optional.

    :param retries: Retries after the first attempt. ``False`` or ``0``
                    disables retry, ``True`` or ``None`` uses the default
    :param retry_delay: Fixed delay in seconds replacing exponential backoff
    :param timeout: Per-attempt timeout in seconds
    :param headers: Extra request headers
    :param binary: The response is an opaque binary payload
    :param resource_key: Collection key to unwrap from the payload
    :param cancel_token: Token that aborts the logical request
    :param success_message: Message passed to the notifier on success
    :param notify_errors: Report the final error to the notifier
    """

    retries: Optional[Union[int, bool]] = None
    retry_delay: Optional[float] = None
    timeout: Optional[float] = None
    headers: Optional[Mapping[str, str]] = None
    binary: bool = False
    resource_key: Optional[str] = None
    cancel_token: Optional[CancellationToken] = None
    success_message: Optional[str] = None
    notify_errors: bool = True

    def __post_init__(self):
        if self.headers is not None:
            object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.retry_delay is not None and self.retry_delay < 0:
            raise ValueError("retry_delay must not be negative")


@dataclass(frozen=True)
class RequestDescriptor:
    """One logical request. Immutable once issued."""

    method: str
    path: str
    params: Optional[Mapping[str, Any]] = None
    json: Any = None
    options: RequestOptions = field(default_factory=RequestOptions)

    def __post_init__(self):
        object.__setattr__(self, "method", self.method.upper())
        if self.params is not None:
            object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    @property
    def resource_key(self) -> Optional[str]:
        """Collection key for payload unwrapping.

        Explicit ``resource_key`` wins. Otherwise only a collection read,
        a GET on a single-segment relative path such as ``/certificates``,
        infers the key from its path. Item reads and mutations return
        their payload whole.
        """
        if self.options.resource_key:
            return self.options.resource_key
        if self.method != "GET" or "://" in self.path:
            return None
        segments = self.path.split("?", 1)[0].strip("/").split("/")
        if len(segments) != 1:
            return None
        return segments[0] or None


@dataclass(frozen=True)
class AttemptMetadata:
    """State of one attempt, owned by the retry engine.

    :param index: 0-based attempt index
    :param issued_at: ``time.monotonic()`` when the attempt started
    :param delay: Seconds waited before this attempt
    :param correlation_id: Id shared by every attempt of the logical request
    """

    index: int
    issued_at: float
    delay: float
    correlation_id: str


class RequestDecorator:
    """Builds the outbound request for one attempt.

    The decorator attaches the bearer token from the session store,
    the correlation id header and timing metadata. It performs no
    network I/O of its own and never retries.

    :param http_client: Client whose base URL and default headers apply
    :type http_client: httpx.AsyncClient
    :param session_store: Optional session store providing bearer tokens
    :type session_store: Optional[SessionStore]
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        session_store: Optional[SessionStore] = None,
    ):
        self._client = http_client
        self.session_store = session_store

    async def decorate(
        self, descriptor: RequestDescriptor, attempt: AttemptMetadata
    ) -> httpx.Request:
        """Produce the ``httpx.Request`` for an attempt.

        :param descriptor: The logical request
        :type descriptor: RequestDescriptor
        :param attempt: Metadata for this attempt
        :type attempt: AttemptMetadata
        :return: Request ready to send
        :rtype: httpx.Request
        """
        options = descriptor.options
        headers = httpx.Headers(options.headers or {})
        if options.binary and "accept" not in headers:
            headers["Accept"] = "*/*"

        token = await self._read_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        headers[REQUEST_ID_HEADER] = attempt.correlation_id

        kwargs = {}
        if options.timeout is not None:
            kwargs["timeout"] = options.timeout

        return self._client.build_request(
            descriptor.method,
            descriptor.path,
            params=dict(descriptor.params) if descriptor.params else None,
            json=descriptor.json,
            headers=headers,
            extensions={
                ISSUED_AT_EXTENSION: attempt.issued_at,
                ATTEMPT_EXTENSION: attempt.index,
            },
            **kwargs,
        )

    async def _read_token(self) -> Optional[str]:
        """Read the current bearer token, if any.

        An unreachable store means an unauthenticated request; the
        server decides what that is worth.
        """
        if self.session_store is None:
            return None
        try:
            token = self.session_store.get_token()
            if inspect.isawaitable(token):
                token = await token
        except Exception as e:
            logger.warning(f"Session store unavailable, sending without auth: {e}")
            return None
        return token or None
