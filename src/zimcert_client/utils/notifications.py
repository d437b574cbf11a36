"""User-facing notification sink for request outcomes.

The API client reports the final error of a failed logical request and
the success message of a successful mutation to a :class:`Notifier`.
Presentation (toasts, banners, CLI output) belongs to the notifier
implementation; the client only decides when to notify.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from ..exceptions import ClassifiedError

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Receives request outcomes worth showing to a user."""

    @abstractmethod
    async def error(self, error: ClassifiedError) -> None:
        """Report the final error of a logical request."""
        pass

    @abstractmethod
    async def success(self, message: str) -> None:
        """Report a successful operation."""
        pass


class LoggingNotifier(Notifier):
    """Notifier writing outcomes to a logger.

    :param notify_logger: Logger to write to; this module's logger by default
    :type notify_logger: Optional[logging.Logger]
    """

    def __init__(self, notify_logger: Optional[logging.Logger] = None):
        self._logger = notify_logger or logger

    async def error(self, error: ClassifiedError) -> None:
        suffix = f" [{error.correlation_id}]" if error.correlation_id else ""
        self._logger.error(f"{error.kind.value}: {error.message}{suffix}")

    async def success(self, message: str) -> None:
        self._logger.info(message)


class CallbackNotifier(Notifier):
    """Adapts plain callables, sync or async, to the notifier interface.

    :param on_error: Called with the ClassifiedError of a failed request
    :param on_success: Called with the success message
    """

    def __init__(
        self,
        on_error: Optional[Callable[[ClassifiedError], Any]] = None,
        on_success: Optional[Callable[[str], Any]] = None,
    ):
        self._on_error = on_error
        self._on_success = on_success

    async def error(self, error: ClassifiedError) -> None:
        if self._on_error is not None:
            await _maybe_await(self._on_error(error))

    async def success(self, message: str) -> None:
        if self._on_success is not None:
            await _maybe_await(self._on_success(message))


async def _maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result
