"""HTTP client manager with connection pooling and lifecycle management.

This module provides a singleton HTTP client manager that owns the
pooled ``httpx.AsyncClient`` instances the transport pipeline sends
through. Clients are cached by configuration so every API client
pointed at the same backend shares one connection pool, and all of
them are closed together at shutdown.
"""

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class HTTPClientManager:
    """Manages shared HTTP clients with connection pooling.

    This singleton caches clients keyed on base URL, timeout, limits,
    HTTP version and redirect behaviour, so callers with matching
    configuration reuse one pool.
    """

    _instance: Optional["HTTPClientManager"] = None
    _lock = asyncio.Lock()

    def __new__(cls):
        """Ensure singleton pattern - only one instance exists.

        :return: The single instance of HTTPClientManager
        :rtype: HTTPClientManager
        """
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize default timeout and limits once."""
        if not hasattr(self, "_initialized"):
            self._clients: Dict[str, httpx.AsyncClient] = {}
            self._default_timeout = create_timeout()
            self._default_limits = create_limits()
            self._initialized = True
            self._is_closing = False

    async def get_client(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[httpx.Timeout] = None,
        limits: Optional[httpx.Limits] = None,
        headers: Optional[Mapping[str, str]] = None,
        http2: bool = False,
        follow_redirects: bool = True,
        **kwargs: Any,
    ) -> httpx.AsyncClient:
        """Get or create a pooled client for the given configuration.

        :param base_url: Optional base URL for the client
        :type base_url: Optional[str]
        :param timeout: Optional custom timeout configuration
        :type timeout: Optional[httpx.Timeout]
        :param limits: Optional custom connection limits
        :type limits: Optional[httpx.Limits]
        :param headers: Default headers; JSON content negotiation if omitted
        :type headers: Optional[Mapping[str, str]]
        :param http2: Enable HTTP/2
        :type http2: bool
        :param follow_redirects: Follow redirects automatically
        :type follow_redirects: bool
        :return: Configured HTTP client instance
        :rtype: httpx.AsyncClient
        """
        if http2:
            try:
                import h2  # type: ignore  # noqa: F401
            except ImportError:
                logger.warning(
                    "HTTP/2 requested but 'h2' package not installed; falling back to HTTP/1.1"
                )
                http2 = False

        t = timeout or self._default_timeout
        lim = limits or self._default_limits
        cache_key = str(
            (
                base_url or "default",
                (t.connect, t.read, t.write, t.pool),
                (lim.max_keepalive_connections, lim.max_connections, lim.keepalive_expiry),
                http2,
                follow_redirects,
                tuple(sorted((headers or {}).items())),
            )
        )

        if cache_key not in self._clients:
            async with self._lock:
                if cache_key not in self._clients:
                    client_config: Dict[str, Any] = {
                        "timeout": t,
                        "limits": lim,
                        "http2": http2,
                        "follow_redirects": follow_redirects,
                        "headers": dict(headers) if headers is not None else DEFAULT_HEADERS,
                        **kwargs,
                    }
                    if base_url:
                        client_config["base_url"] = base_url
                    self._clients[cache_key] = httpx.AsyncClient(**client_config)
                    logger.debug("Created new pooled client for %s", cache_key)

        return self._clients[cache_key]

    async def close_all(self) -> None:
        """Close every managed client.

        Errors while closing one client are logged and do not stop the
        others from closing.
        """
        if self._is_closing:
            logger.debug("Already closing HTTP clients, skipping duplicate call")
            return

        self._is_closing = True
        try:
            if not self._clients:
                logger.debug("No HTTP clients to close")
                return
            logger.info("Closing %d HTTP client(s)...", len(self._clients))
            for cache_key, client in list(self._clients.items()):
                try:
                    await client.aclose()
                except Exception as e:
                    logger.warning("Error closing HTTP client %s: %s", cache_key, e)
            self._clients.clear()
        finally:
            self._is_closing = False


def create_timeout(
    timeout: float = 30.0,
    connect: Optional[float] = 5.0,
    pool: Optional[float] = 5.0,
) -> httpx.Timeout:
    """Create a per-attempt timeout configuration.

    :param timeout: Read and write timeout in seconds
    :type timeout: float
    :param connect: Connection timeout in seconds
    :type connect: Optional[float]
    :param pool: Pool acquisition timeout in seconds
    :type pool: Optional[float]
    :return: Configured timeout object
    :rtype: httpx.Timeout
    """
    return httpx.Timeout(timeout, connect=connect, pool=pool)


def create_limits(
    max_keepalive_connections: int = 10,
    max_connections: int = 20,
    keepalive_expiry: float = 30.0,
) -> httpx.Limits:
    """Create a connection limits configuration object.

    :param max_keepalive_connections: Maximum number of keepalive connections
    :type max_keepalive_connections: int
    :param max_connections: Maximum total number of connections
    :type max_connections: int
    :param keepalive_expiry: Keepalive connection expiry time in seconds
    :type keepalive_expiry: float
    :return: Configured limits object
    :rtype: httpx.Limits
    """
    return httpx.Limits(
        max_keepalive_connections=max_keepalive_connections,
        max_connections=max_connections,
        keepalive_expiry=keepalive_expiry,
    )


http_client_manager = HTTPClientManager()
