"""Resilient API client: the single entry point for backend calls.

:class:`ResilientApiClient` composes the request decorator, transport,
response normalizer and error classifier once at construction and runs
every logical request through the retry engine. Callers receive a
:class:`~zimcert_client.models.CanonicalResponse` on success; every
failure is raised as a :class:`~zimcert_client.exceptions.ClassifiedError`.

.. example::
   >>> async with await create_api_client() as client:
   ...     response = await client.get("/certificates", params={"limit": 10})
   ...     certificates = response.payload
"""

import asyncio
import logging
from functools import partial
from typing import Any, Awaitable, Callable, Mapping, Optional

import httpx

from ...auth.session_store import SessionStore, session_store_from_settings
from ...config.settings import ClientSettings, load_settings
from ...exceptions import ClassifiedError
from ...models.envelopes import CanonicalResponse
from ..errors import ErrorKind
from ..notifications import LoggingNotifier, Notifier
from ..security import setup_secure_logging
from .classifier import (
    classify_exception,
    classify_http_error,
    classify_transport_failure,
)
from .client_manager import create_limits, create_timeout, http_client_manager
from .normalizer import ResponseNormalizer
from .request import (
    AttemptMetadata,
    RequestDecorator,
    RequestDescriptor,
    RequestOptions,
    mint_correlation_id,
)
from .retry import RetryEngine, RetryPolicy
from .transport import Transport, TransportFailure

logger = logging.getLogger(__name__)


class ResilientApiClient:
    """API client with decoration, retry, normalization and classification.

    :param settings: Client settings providing retry and timeout defaults
    :type settings: ClientSettings
    :param http_client: Pooled client configured with the backend base URL
    :type http_client: httpx.AsyncClient
    :param session_store: Source of the bearer token, if any
    :type session_store: Optional[SessionStore]
    :param notifier: Sink for final errors and success messages, if any
    :type notifier: Optional[Notifier]
    :param sleep: Awaitable sleep used for backoff
    :param owns_client: Close ``http_client`` in :meth:`aclose`
    :type owns_client: bool
    """

    def __init__(
        self,
        settings: ClientSettings,
        *,
        http_client: httpx.AsyncClient,
        session_store: Optional[SessionStore] = None,
        notifier: Optional[Notifier] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        owns_client: bool = False,
    ):
        self.settings = settings
        self.notifier = notifier
        self._http_client = http_client
        self._owns_client = owns_client
        self._sleep = sleep

        self.decorator = RequestDecorator(http_client, session_store)
        self.transport = Transport(http_client)
        self.normalizer = ResponseNormalizer()

    @property
    def session_store(self) -> Optional[SessionStore]:
        return self.decorator.session_store

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        **options: Any,
    ) -> CanonicalResponse:
        """Perform one logical request.

        :param method: HTTP method
        :type method: str
        :param path: Path relative to the configured base URL
        :type path: str
        :param params: Query parameters
        :param json: JSON body
        :param options: Per-call :class:`RequestOptions` fields
        :return: Canonical response
        :rtype: CanonicalResponse
        :raises ClassifiedError: On any failure
        :raises TypeError: On an unknown option name
        """
        descriptor = RequestDescriptor(
            method=method,
            path=path,
            params=params,
            json=json,
            options=RequestOptions(**options),
        )
        return await self.execute(descriptor)

    async def execute(self, descriptor: RequestDescriptor) -> CanonicalResponse:
        """Run a prepared logical request through the retry engine.

        :param descriptor: The logical request
        :type descriptor: RequestDescriptor
        :return: Canonical response
        :rtype: CanonicalResponse
        :raises ClassifiedError: On any failure
        """
        options = descriptor.options
        correlation_id = mint_correlation_id()
        engine = RetryEngine(
            RetryPolicy.from_options(options, self.settings), sleep=self._sleep
        )

        try:
            response = await engine.run(
                partial(self._attempt, descriptor),
                correlation_id=correlation_id,
                cancel_token=options.cancel_token,
            )
        except ClassifiedError as e:
            e.correlation_id = correlation_id
            logger.warning(
                f"{descriptor.method} {descriptor.path} failed [{correlation_id}]: "
                f"{e.kind.value}: {e.message}"
            )
            if options.notify_errors and e.kind is not ErrorKind.CANCELLED:
                await self._notify_error(e)
            raise

        if options.success_message:
            await self._notify_success(options.success_message)
        return response

    async def _attempt(
        self, descriptor: RequestDescriptor, attempt: AttemptMetadata
    ) -> CanonicalResponse:
        """One attempt: decorate, send, then normalize or classify."""
        try:
            request = await self.decorator.decorate(descriptor, attempt)
            outcome = await self.transport.execute(request, attempt)
        except ClassifiedError:
            raise
        except Exception as e:
            raise classify_exception(e) from e

        if isinstance(outcome, TransportFailure):
            raise classify_transport_failure(outcome.exception)
        if not outcome.is_success:
            raise classify_http_error(
                outcome.status_code, outcome.content, outcome.headers
            )
        return self.normalizer.normalize(
            outcome,
            binary=descriptor.options.binary,
            resource_key=descriptor.resource_key,
        )

    async def _notify_error(self, error: ClassifiedError) -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier.error(error)
        except Exception as e:
            logger.warning(f"Notifier failed to report error: {e}")

    async def _notify_success(self, message: str) -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier.success(message)
        except Exception as e:
            logger.warning(f"Notifier failed to report success: {e}")

    async def get(
        self, path: str, *, params: Optional[Mapping[str, Any]] = None, **options: Any
    ) -> CanonicalResponse:
        """Perform a GET request."""
        return await self.request("GET", path, params=params, **options)

    async def post(
        self,
        path: str,
        json: Any = None,
        *,
        params: Optional[Mapping[str, Any]] = None,
        **options: Any,
    ) -> CanonicalResponse:
        """Perform a POST request."""
        return await self.request("POST", path, params=params, json=json, **options)

    async def put(
        self,
        path: str,
        json: Any = None,
        *,
        params: Optional[Mapping[str, Any]] = None,
        **options: Any,
    ) -> CanonicalResponse:
        """Perform a PUT request."""
        return await self.request("PUT", path, params=params, json=json, **options)

    async def patch(
        self,
        path: str,
        json: Any = None,
        *,
        params: Optional[Mapping[str, Any]] = None,
        **options: Any,
    ) -> CanonicalResponse:
        """Perform a PATCH request."""
        return await self.request("PATCH", path, params=params, json=json, **options)

    async def delete(
        self, path: str, *, params: Optional[Mapping[str, Any]] = None, **options: Any
    ) -> CanonicalResponse:
        """Perform a DELETE request."""
        return await self.request("DELETE", path, params=params, **options)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this client owns it.

        Pooled clients from the shared manager are closed with
        ``http_client_manager.close_all()`` instead.
        """
        if self._owns_client:
            await self._http_client.aclose()

    async def __aenter__(self) -> "ResilientApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


async def create_api_client(
    settings: Optional[ClientSettings] = None,
    *,
    session_store: Optional[SessionStore] = None,
    notifier: Optional[Notifier] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> ResilientApiClient:
    """Create an API client on the shared connection pool.

    Settings are loaded from the environment when not given. Without an
    explicit session store, one is chosen from the settings; without an
    explicit notifier, outcomes are reported to the log.

    :param settings: Client settings
    :type settings: Optional[ClientSettings]
    :param session_store: Source of the bearer token
    :type session_store: Optional[SessionStore]
    :param notifier: Sink for final errors and success messages
    :type notifier: Optional[Notifier]
    :param sleep: Awaitable sleep used for backoff
    :return: Ready-to-use client
    :rtype: ResilientApiClient
    :raises ConfigurationError: If the settings are invalid
    """
    settings = settings or load_settings()
    setup_secure_logging(settings.log_level)

    http_client = await http_client_manager.get_client(
        base_url=settings.api_base_url,
        timeout=create_timeout(settings.request_timeout),
        limits=create_limits(
            max_keepalive_connections=settings.max_keepalive_connections,
            max_connections=settings.max_connections,
        ),
        http2=settings.http2,
    )
    if session_store is None:
        session_store = session_store_from_settings(settings)

    logger.info(
        f"API client ready for {settings.api_base_url} "
        f"(max_retries={settings.max_retries}, timeout={settings.request_timeout}s)"
    )
    return ResilientApiClient(
        settings,
        http_client=http_client,
        session_store=session_store,
        notifier=notifier or LoggingNotifier(),
        sleep=sleep,
    )
