"""Resilient API client core for the ZIM certificate platform.

This package provides the HTTP transport layer used by every
certificate, student, program and reporting call: authentication
header injection, request correlation, exponential-backoff retry,
and normalization of the backend's response envelopes into one
canonical success shape and one classified error shape.

:var __version__: Current package version
:type __version__: str
"""

__version__ = "0.3.0"
