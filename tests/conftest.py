"""Shared test fixtures for the adsoap test suite."""

from __future__ import annotations

import pytest

from adsoap.auth import Auth
from adsoap.config.endpoints import ServiceUrl
from adsoap.network.protocol import HttpResponse

SOAP_NS = "http://schemas.xmlsoap.org/soap/envelope/"
WIDGET_NS = "https://example/api/cm/v1"


def make_response_envelope(body: str, header: str = "") -> bytes:
    """Wrap ``body`` (and an optional ResponseHeader fragment) in a soap:Envelope."""
    header_part = f"<soap:Header>{header}</soap:Header>" if header else ""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<soap:Envelope xmlns:soap="{SOAP_NS}">'
        f"{header_part}<soap:Body>{body}</soap:Body></soap:Envelope>"
    ).encode()


class FakeHttpClient:
    """HttpClient double: records every call, answers with a canned response."""

    def __init__(self, response: HttpResponse | None = None, error: Exception | None = None):
        self.response = response or HttpResponse(status=200, body=make_response_envelope(""))
        self.error = error
        self.calls: list[dict] = []

    def post(self, url, body, headers, timeout):
        self.calls.append({"url": url, "body": body, "headers": list(headers), "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


class RecordingObserver:
    """RequestObserver double that keeps every event."""

    def __init__(self):
        self.events: list[tuple] = []

    def on_request(self, url, headers, body):
        self.events.append(("request", url, list(headers), body))

    def on_response(self, url, status, body):
        self.events.append(("response", url, status, body))


@pytest.fixture(autouse=True)
def _no_debug_env(monkeypatch):
    """Tests must not depend on a DEBUG variable leaking in from the shell."""
    monkeypatch.delenv("DEBUG", raising=False)


@pytest.fixture
def fake_client():
    return FakeHttpClient()


@pytest.fixture
def widget_service():
    return ServiceUrl("https://example/api/cm/v1", "WidgetService")


@pytest.fixture
def auth(fake_client):
    return Auth(customer_id="123", developer_token="tok", user_agent="tests", client=fake_client)
