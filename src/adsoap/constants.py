"""
Application-wide constants for adsoap.

API version, service roots, namespaces, timeouts and size limits are
centralized here.  Re-pointing the client at a new API version means
changing ``API_VERSION``, not any transport logic.
"""

from __future__ import annotations

import importlib.metadata

try:
    __version__ = importlib.metadata.version("adsoap")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "API_HOST",
    "API_VERSION",
    "BYTES_PER_MB",
    "DEFAULT_TIMEOUT_HTTP_POST",
    "DEFAULT_USER_AGENT",
    "ENV_DEBUG",
    "FAULT_STATUS_CODES",
    "MAX_RESPONSE_SIZE",
    "RECV_BUFFER_SIZE",
    "ROOT_CM",
    "ROOT_MCM",
    "ROOT_REMARKETING",
    "ROOT_REPORT_DOWNLOAD",
    "ROOT_TRAFFIC",
    "SOAP_ENV_NS",
    "XML_PREVIEW_LENGTH",
    "XSI_NS",
    "__version__",
]

# ── API versioning ────────────────────────────────────────────────────

API_VERSION = "v201603"

API_HOST = "https://adwords.google.com/api/adwords"

# Service group roots, relative to API_HOST
ROOT_CM = "cm"
ROOT_MCM = "mcm"
ROOT_REMARKETING = "rm"
ROOT_REPORT_DOWNLOAD = "reportdownload"
ROOT_TRAFFIC = "o"


# ── XML namespaces ────────────────────────────────────────────────────

SOAP_ENV_NS = "http://schemas.xmlsoap.org/soap/envelope/"

XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"


# ── Protocol constants ────────────────────────────────────────────────

# HTTP statuses whose body is parsed as a fault.  Exact set, not a range.
FAULT_STATUS_CODES: frozenset[int] = frozenset({400, 401, 403, 405, 500})

DEFAULT_USER_AGENT = f"adsoap/{__version__}"

# XML preview truncation length for error messages (characters)
XML_PREVIEW_LENGTH = 300


# ── Timeout values (seconds) ──────────────────────────────────────────

DEFAULT_TIMEOUT_HTTP_POST = 120


# ── Size limits (bytes) ───────────────────────────────────────────────

BYTES_PER_MB = 1024 * 1024

# Responses are buffered whole; anything larger is rejected (100 MB)
MAX_RESPONSE_SIZE = 100 * 1024 * 1024

RECV_BUFFER_SIZE = 8192


# ── Environment variable names ──────────────────────────────────────

# Any non-empty value enables request/response dumps via logging
ENV_DEBUG = "DEBUG"
