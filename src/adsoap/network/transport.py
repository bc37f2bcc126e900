"""
Default HTTP client for the SOAP transport.

Standard HTTPS via ``urllib.request`` (system TLS).  Error statuses are
returned, not raised: the API reports application faults in 4xx/5xx
bodies, and the envelope transport decides what they mean.

The response is read whole into memory with a size ceiling; the API's
reporting use case keeps bodies bounded.
"""

from __future__ import annotations

__all__ = ["UrllibHttpClient", "join_headers"]

import http.client
import logging
import urllib.error
import urllib.request
from typing import TYPE_CHECKING, Protocol
from urllib.parse import urlparse

from ..constants import BYTES_PER_MB, MAX_RESPONSE_SIZE, RECV_BUFFER_SIZE
from ..errors import TransportError
from .protocol import HttpResponse

if TYPE_CHECKING:
    from .protocol import Headers

_logger = logging.getLogger(__name__)


def _require_https_url(url: str) -> None:
    """Reject non-HTTPS URLs to prevent token leakage over plaintext.

    Raises:
        TransportError: If the URL scheme is not https.
    """
    scheme = urlparse(url).scheme.lower()
    if scheme != "https":
        raise TransportError(
            f"Only HTTPS URLs are allowed (got {scheme}://). "
            "Developer tokens must not be sent over unencrypted connections.",
            url=url,
        )


def join_headers(headers: Headers) -> dict[str, str]:
    """Collapse repeated header names into one comma-separated value.

    urllib keeps a single value per header name; a repeated field is
    equivalent to its values joined with ", " (RFC 9110 section 5.3).
    """
    joined: dict[str, str] = {}
    spelling: dict[str, str] = {}
    for name, value in headers:
        key = spelling.setdefault(name.lower(), name)
        if key in joined:
            joined[key] = f"{joined[key]}, {value}"
        else:
            joined[key] = value
    return joined


# ── Buffered read ────────────────────────────────────────────────────


class _Readable(Protocol):
    def read(self, amt: int = ...) -> bytes: ...


def _read_with_limit(response: _Readable, url: str) -> bytes:
    """Read an HTTP response body with size limit to prevent memory exhaustion."""
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = response.read(RECV_BUFFER_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > MAX_RESPONSE_SIZE:
            raise TransportError(
                f"Response from {url} exceeds {MAX_RESPONSE_SIZE // BYTES_PER_MB} MB limit",
                url=url,
            )
        chunks.append(chunk)
    return b"".join(chunks)


class _SafeRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Redirect handler that refuses HTTPS to HTTP downgrades."""

    def redirect_request(  # type: ignore[override]  # urllib stubs use incompatible signature
        self,
        req: urllib.request.Request,
        fp: http.client.HTTPResponse,
        code: int,
        msg: str,
        headers: http.client.HTTPMessage,
        newurl: str,
    ) -> urllib.request.Request | None:
        parsed_orig = urlparse(req.full_url)
        parsed_new = urlparse(newurl)
        if parsed_orig.scheme == "https" and parsed_new.scheme == "http":
            raise TransportError(f"Refused redirect from HTTPS to HTTP: {newurl}", url=newurl)
        return super().redirect_request(req, fp, code, msg, headers, newurl)


_safe_opener = urllib.request.build_opener(_SafeRedirectHandler)


def _safe_urlopen(request: urllib.request.Request, *, timeout: float) -> http.client.HTTPResponse:
    """Open a Request with safe redirect handling.

    Thin wrapper to simplify testing.
    """
    return _safe_opener.open(request, timeout=timeout)


def _error_response(exc: urllib.error.HTTPError, url: str) -> HttpResponse:
    """Buffer the body of a 4xx/5xx reply into an HttpResponse."""
    data = b""
    if exc.fp is not None:
        try:
            data = _read_with_limit(exc, url)
        except (http.client.HTTPException, OSError) as e:
            raise TransportError(f"Failed to read error response from {url}: {e}", url=url) from e
        finally:
            exc.close()
    _logger.debug("POST %s -> %d (%d bytes)", url, exc.code, len(data))
    return HttpResponse(
        status=exc.code,
        body=data,
        reason=str(exc.reason or ""),
        headers=tuple(exc.headers.items()) if exc.headers else (),
    )


# ── Client ───────────────────────────────────────────────────────────


class UrllibHttpClient:
    """HttpClient implementation on top of ``urllib.request``.

    Stateless and safe to share between threads: each call opens its
    own connection.
    """

    def post(self, url: str, body: bytes, headers: Headers, timeout: float) -> HttpResponse:
        """Send a POST and buffer the response, whatever its status."""
        _require_https_url(url)
        _logger.debug("POST %s (urllib, timeout=%ss, %d bytes)", url, timeout, len(body))
        req = urllib.request.Request(url, data=body, method="POST")  # noqa: S310 -- URL is validated as HTTPS above
        for name, value in join_headers(headers).items():
            req.add_header(name, value)
        try:
            with _safe_urlopen(req, timeout=timeout) as response:
                data = _read_with_limit(response, url)
                _logger.debug("POST %s -> %d (%d bytes)", url, response.status, len(data))
                return HttpResponse(
                    status=response.status,
                    body=data,
                    reason=response.reason or "",
                    headers=tuple(response.getheaders()),
                )
        except urllib.error.HTTPError as exc:
            # 4xx/5xx: the body carries the fault, hand it back to the caller
            return _error_response(exc, url)
        except urllib.error.URLError as exc:
            raise TransportError(f"HTTP POST failed: {url}: {exc.reason}", url=url) from exc
        except http.client.HTTPException as exc:
            # BadStatusLine, IncompleteRead, ...: not OSErrors, urllib lets them through
            raise TransportError(
                f"Malformed HTTP response from {url}: {type(exc).__name__}: {exc}", url=url
            ) from exc
        except TimeoutError as exc:
            raise TransportError(f"Connection timed out after {timeout}s: {url}", url=url) from exc
        except OSError as exc:
            raise TransportError(f"Connection to {url} failed: {exc}", url=url) from exc
