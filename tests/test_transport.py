"""Tests for adsoap.network.transport -- the urllib HTTP client."""

from __future__ import annotations

import http.client
import io
import urllib.error
from email.message import Message
from unittest.mock import MagicMock, patch

import pytest

from adsoap.constants import MAX_RESPONSE_SIZE
from adsoap.errors import TransportError
from adsoap.network import transport
from adsoap.network.protocol import HttpResponse
from adsoap.network.transport import UrllibHttpClient, join_headers

_URL = "https://example.com/api/cm/v1/WidgetService"
_HEADERS = [
    ("Accept", "text/xml"),
    ("Accept", "multipart/*"),
    ("Content-Type", "text/xml;charset=UTF-8"),
    ("Content-Length", "6"),
    ("SOAPAction", "get"),
]


def _make_urllib_response(data: bytes, status: int = 200) -> MagicMock:
    """Build a mock urllib response that works with chunked read()."""
    mock = MagicMock()
    mock.read.side_effect = [data, b""]
    mock.status = status
    mock.reason = "OK"
    mock.getheaders.return_value = [("Content-Type", "text/xml")]
    mock.__enter__ = MagicMock(return_value=mock)
    mock.__exit__ = MagicMock(return_value=False)
    return mock


def _make_http_error(code: int, body: bytes) -> urllib.error.HTTPError:
    headers = Message()
    headers["Content-Type"] = "text/xml"
    return urllib.error.HTTPError(_URL, code, "Server Error", headers, io.BytesIO(body))


# ── join_headers ────────────────────────────────────────────────────


def test_join_headers_combines_repeated_names():
    assert join_headers(_HEADERS) == {
        "Accept": "text/xml, multipart/*",
        "Content-Type": "text/xml;charset=UTF-8",
        "Content-Length": "6",
        "SOAPAction": "get",
    }


def test_join_headers_case_insensitive():
    assert join_headers([("accept", "a"), ("Accept", "b")]) == {"accept": "a, b"}


# ── post ────────────────────────────────────────────────────────────


def test_post_success():
    mock_response = _make_urllib_response(b"<ok/>")
    with patch.object(transport, "_safe_urlopen", return_value=mock_response) as mock_open:
        result = UrllibHttpClient().post(_URL, b"<env/>", _HEADERS, timeout=30)

    assert result == HttpResponse(
        status=200, body=b"<ok/>", reason="OK", headers=(("Content-Type", "text/xml"),)
    )
    request = mock_open.call_args.args[0]
    assert request.full_url == _URL
    assert request.get_method() == "POST"
    assert request.data == b"<env/>"
    assert request.get_header("Accept") == "text/xml, multipart/*"
    assert request.get_header("Soapaction") == "get"
    assert mock_open.call_args.kwargs["timeout"] == 30


@pytest.mark.parametrize("code", [400, 401, 500, 503], ids=str)
def test_post_error_status_returned(code):
    error = _make_http_error(code, b"<fault/>")
    with patch.object(transport, "_safe_urlopen", side_effect=error):
        result = UrllibHttpClient().post(_URL, b"<env/>", _HEADERS, timeout=30)

    assert result.status == code
    assert result.body == b"<fault/>"
    assert ("Content-Type", "text/xml") in result.headers


def test_post_connection_refused():
    with (
        patch.object(
            transport,
            "_safe_urlopen",
            side_effect=urllib.error.URLError("Connection refused"),
        ),
        pytest.raises(TransportError, match="Connection refused") as exc_info,
    ):
        UrllibHttpClient().post(_URL, b"<env/>", _HEADERS, timeout=30)
    assert exc_info.value.url == _URL


def test_post_timeout():
    with (
        patch.object(transport, "_safe_urlopen", side_effect=TimeoutError("timed out")),
        pytest.raises(TransportError, match="timed out after 5s"),
    ):
        UrllibHttpClient().post(_URL, b"<env/>", _HEADERS, timeout=5)


def test_post_os_error():
    with (
        patch.object(transport, "_safe_urlopen", side_effect=ConnectionResetError("reset")),
        pytest.raises(TransportError, match="reset"),
    ):
        UrllibHttpClient().post(_URL, b"<env/>", _HEADERS, timeout=5)


@pytest.mark.parametrize(
    "error",
    [http.client.BadStatusLine("garbage"), http.client.RemoteDisconnected("closed")],
    ids=["bad_status_line", "remote_disconnected"],
)
def test_post_malformed_response(error):
    with (
        patch.object(transport, "_safe_urlopen", side_effect=error),
        pytest.raises(TransportError) as exc_info,
    ):
        UrllibHttpClient().post(_URL, b"<env/>", _HEADERS, timeout=5)
    assert exc_info.value.url == _URL
    assert exc_info.value.__cause__ is error


def test_post_incomplete_read():
    mock_response = _make_urllib_response(b"")
    mock_response.read.side_effect = http.client.IncompleteRead(b"<partial", 100)
    with (
        patch.object(transport, "_safe_urlopen", return_value=mock_response),
        pytest.raises(TransportError, match="IncompleteRead"),
    ):
        UrllibHttpClient().post(_URL, b"<env/>", _HEADERS, timeout=5)


def test_post_incomplete_read_of_error_body():
    fp = MagicMock()
    fp.read.side_effect = http.client.IncompleteRead(b"<fau", 50)
    error = urllib.error.HTTPError(_URL, 500, "Server Error", Message(), fp)
    with (
        patch.object(transport, "_safe_urlopen", side_effect=error),
        pytest.raises(TransportError, match="Failed to read error response"),
    ):
        UrllibHttpClient().post(_URL, b"<env/>", _HEADERS, timeout=5)


@pytest.mark.parametrize(
    "url",
    ["http://example.com/api", "ftp://example.com/path"],
    ids=["http", "ftp"],
)
def test_post_rejects_non_https(url):
    with (
        patch.object(transport, "_safe_urlopen") as mock_open,
        pytest.raises(TransportError, match="Only HTTPS URLs are allowed"),
    ):
        UrllibHttpClient().post(url, b"<env/>", _HEADERS, timeout=5)
    mock_open.assert_not_called()


# ── _read_with_limit ────────────────────────────────────────────────


def test_read_with_limit_oversized():
    mock_resp = MagicMock()
    chunk_size = 1024 * 1024
    num_chunks = (MAX_RESPONSE_SIZE // chunk_size) + 2
    mock_resp.read.side_effect = [b"\x00" * chunk_size] * num_chunks

    with pytest.raises(TransportError, match=r"exceeds.*limit"):
        transport._read_with_limit(mock_resp, "https://example.com")


def test_read_with_limit_joins_chunks():
    mock_resp = MagicMock()
    mock_resp.read.side_effect = [b"ab", b"cd", b""]
    assert transport._read_with_limit(mock_resp, "https://example.com") == b"abcd"


# ── redirects ───────────────────────────────────────────────────────


def test_redirect_https_to_http_refused():
    import urllib.request

    handler = transport._SafeRedirectHandler()
    req = urllib.request.Request("https://example.com/a")
    with pytest.raises(TransportError, match="Refused redirect"):
        handler.redirect_request(req, MagicMock(), 302, "Found", Message(), "http://example.com/b")
