"""Tests for adsoap.auth — the credential context."""

from __future__ import annotations

import pytest

from adsoap.auth import Auth
from adsoap.constants import DEFAULT_USER_AGENT
from adsoap.errors import ConfigError
from adsoap.network.protocol import HttpResponse
from adsoap.network.transport import UrllibHttpClient
from adsoap.selector import Operation, Predicate, Selector

from .conftest import WIDGET_NS, FakeHttpClient, RecordingObserver, make_response_envelope


def test_defaults():
    auth = Auth(customer_id="123", developer_token="tok")
    assert auth.user_agent == DEFAULT_USER_AGENT
    assert auth.partial_failure is False
    assert isinstance(auth.client, UrllibHttpClient)
    assert auth.observers == ()


def test_is_frozen():
    auth = Auth(customer_id="123", developer_token="tok")
    with pytest.raises(AttributeError):
        auth.developer_token = "other"  # type: ignore[misc]


def test_empty_developer_token_rejected():
    with pytest.raises(ConfigError, match="Developer token"):
        Auth(customer_id="123", developer_token="")


def test_non_positive_timeout_rejected():
    with pytest.raises(ConfigError, match="Timeout"):
        Auth(customer_id="123", developer_token="tok", timeout=0)


def test_repr_masks_token():
    auth = Auth(customer_id="123", developer_token="super-secret")
    assert "super-secret" not in repr(auth)
    assert "customer_id='123'" in repr(auth)


def test_observers_stored_as_tuple():
    observer = RecordingObserver()
    auth = Auth(customer_id="1", developer_token="tok", observers=[observer])
    assert auth.observers == (observer,)


def test_with_partial_failure_returns_copy():
    auth = Auth(customer_id="1", developer_token="tok")
    flagged = auth.with_partial_failure()
    assert flagged.partial_failure is True
    assert auth.partial_failure is False
    assert flagged.client is auth.client
    assert flagged.with_partial_failure(False).partial_failure is False


def test_with_observer_appends():
    first, second = RecordingObserver(), RecordingObserver()
    auth = Auth(customer_id="1", developer_token="tok", observers=(first,))
    assert auth.with_observer(second).observers == (first, second)
    assert auth.observers == (first,)


# ── request / exchange ─────────────────────────────────────────────


def test_request_sends_selector(widget_service):
    response = make_response_envelope(f'<getResponse xmlns="{WIDGET_NS}"/>')
    client = FakeHttpClient(HttpResponse(status=200, body=response))
    auth = Auth(customer_id="123", developer_token="tok", client=client)

    selector = Selector(fields=["Id"], predicates=[Predicate("Status", "EQUALS", ["ENABLED"])])
    body = auth.request(widget_service, "get", Operation("get", selector))

    assert body.startswith(b"<")
    assert b"getResponse" in body
    sent = client.calls[0]["body"]
    assert b"<fields>Id</fields>" in sent
    assert b"<operator>EQUALS</operator>" in sent
    assert client.calls[0]["url"] == str(widget_service)


def test_exchange_returns_status(widget_service):
    client = FakeHttpClient(HttpResponse(status=200, body=make_response_envelope("")))
    auth = Auth(customer_id="123", developer_token="tok", client=client)
    assert auth.exchange(widget_service, "get", None).status == 200
