"""Log sanitization utilities for the API client.

This module keeps bearer tokens, session secrets and similar values
out of log output. It provides string, header, URL and payload
sanitizers plus a logging formatter that applies them to every record.
"""

import copy
import logging
import re
import sys
from typing import Any, Dict, List, Optional

# Patterns for values that must never appear in logs
SENSITIVE_PATTERNS = {
    "jwt": re.compile(r"eyJ[A-Za-z0-9_-]+\.eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+"),
    "bearer": re.compile(r"Bearer\s+[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE),
    "basic_auth": re.compile(r"Basic\s+[A-Za-z0-9+/=]+", re.IGNORECASE),
}

# Headers that should never be logged
SENSITIVE_HEADERS = {
    "authorization",
    "x-api-key",
    "x-auth-token",
    "cookie",
    "set-cookie",
    "x-csrf-token",
    "x-access-token",
    "x-refresh-token",
}

# Body keys redacted by safe_log_dict
SENSITIVE_KEYS = {"password", "token", "secret", "key", "auth", "nationalid"}


def sanitize_string(value: str, partial: bool = False) -> str:
    """Sanitize a string containing potential sensitive data.

    :param value: String to sanitize
    :type value: str
    :param partial: If True, show length instead of full redaction
    :type partial: bool
    :return: Sanitized string with sensitive data redacted
    :rtype: str
    """
    if not value:
        return value
    for pattern_name, pattern in SENSITIVE_PATTERNS.items():
        if pattern.search(value):
            if partial and len(value) > 10:
                value = pattern.sub(f"<{pattern_name}:length={len(value)}>", value)
            else:
                value = pattern.sub(f"<{pattern_name}:REDACTED>", value)
    return value


def sanitize_headers(headers: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Sanitize HTTP headers for logging.

    :param headers: Dictionary of HTTP headers
    :type headers: Dict[str, Any]
    :return: Sanitized headers dictionary
    :rtype: Dict[str, Any]
    """
    if not headers:
        return headers
    sanitized = dict(headers)
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            if isinstance(value, str) and len(value) > 0:
                sanitized[key] = f"<REDACTED:length={len(value)}>"
            else:
                sanitized[key] = "<REDACTED>"
        elif isinstance(value, str):
            sanitized[key] = sanitize_string(value)
    return sanitized


def sanitize_url(url: str) -> str:
    """Sanitize URLs that might contain tokens or keys.

    :param url: URL to sanitize
    :type url: str
    :return: Sanitized URL with sensitive parameters redacted
    :rtype: str
    """
    if not url:
        return url
    for param in ("access_token", "token", "api_key", "secret", "password"):
        url = re.sub(rf"({param}=)[^&\s]+", r"\1<REDACTED>", url, flags=re.IGNORECASE)
    return url


def safe_log_dict(
    data: Dict[str, Any], sanitize_keys: Optional[List[str]] = None
) -> Dict[str, Any]:
    """Create a safe version of a dictionary for logging.

    Recursively replaces values whose key looks sensitive.

    :param data: Dictionary to sanitize
    :type data: Dict[str, Any]
    :param sanitize_keys: Additional keys to sanitize beyond defaults
    :type sanitize_keys: List[str]
    :return: Sanitized dictionary safe for logging
    :rtype: Dict[str, Any]
    """
    if not data:
        return data
    keys = set(SENSITIVE_KEYS)
    if sanitize_keys:
        keys.update(k.lower() for k in sanitize_keys)

    def _sanitize_nested(obj: Any) -> Any:
        if isinstance(obj, dict):
            for key, value in obj.items():
                lower_key = str(key).lower()
                if any(sensitive in lower_key for sensitive in keys):
                    obj[key] = "<REDACTED>"
                elif isinstance(value, str):
                    obj[key] = sanitize_string(value)
                elif isinstance(value, (dict, list)):
                    obj[key] = _sanitize_nested(value)
        elif isinstance(obj, list):
            return [_sanitize_nested(item) for item in obj]
        return obj

    return _sanitize_nested(copy.deepcopy(data))


class SanitizingFormatter(logging.Formatter):
    """Formatter that automatically sanitizes sensitive data."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with automatic sanitization.

        :param record: Log record to format
        :type record: logging.LogRecord
        :return: Sanitized log message
        :rtype: str
        """
        try:
            if record.args:
                try:
                    record.msg = sanitize_string(record.msg % record.args)
                    record.args = None
                except (TypeError, ValueError):
                    record.msg = sanitize_string(str(record.msg))
                    record.args = tuple(
                        sanitize_string(a) if isinstance(a, str) else a
                        for a in record.args
                    )
            else:
                record.msg = sanitize_string(str(record.msg))
        except Exception as e:  # keep logging alive even if sanitizing fails
            print(f"Warning: Failed to sanitize log record: {e}", file=sys.stderr)

        return super().format(record)


_LOGGING_CONFIGURED = False


def setup_secure_logging(level: str = "INFO") -> None:
    """Set up logging with automatic sanitization.

    Safe to call repeatedly; only the first call installs the handler.

    :param level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    :type level: str
    """
    global _LOGGING_CONFIGURED

    if _LOGGING_CONFIGURED:
        logging.getLogger(__name__).debug(
            "Logging already configured, skipping duplicate setup"
        )
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        SanitizingFormatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        handlers=[handler],
        force=True,
    )

    # httpx logs every request at INFO; keep it for DEBUG sessions only
    if level.upper() != "DEBUG":
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    _LOGGING_CONFIGURED = True


def log_request(
    method: str,
    url: str,
    headers: Dict[str, Any],
    body: Any,
    logger: logging.Logger,
) -> None:
    """Log outbound request details with sanitization.

    :param method: HTTP method
    :type method: str
    :param url: Request URL
    :type url: str
    :param headers: Request headers
    :type headers: Dict[str, Any]
    :param body: Request body
    :type body: Any
    :param logger: Logger instance to use
    :type logger: logging.Logger
    """
    if not logger.isEnabledFor(logging.DEBUG):
        return
    safe_body = safe_log_dict(body) if isinstance(body, dict) else body
    if isinstance(safe_body, (str, bytes)) and len(safe_body) > 100:
        safe_body = safe_body[:100] + ("..." if isinstance(safe_body, str) else b"...")
    logger.debug(f"Request: {method} {sanitize_url(url)}")
    logger.debug(f"Headers: {sanitize_headers(headers)}")
    logger.debug(f"Body: {safe_body}")
