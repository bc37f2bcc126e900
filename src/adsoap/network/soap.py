"""
SOAP envelope transport for the API.

One call is one linear exchange: build the envelope, POST it, parse the
response envelope, and turn fault-eligible responses into ``ApiFault``.
No retries, no state kept between calls.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..constants import ENV_DEBUG, FAULT_STATUS_CODES
from .soap_envelope import (
    RequestHeader,
    build_request_envelope,
    build_request_header,
    build_request_headers,
    qname,
)
from .soap_parsers import (
    ResponseEnvelope,
    ResponseHeader,
    parse_fault,
    parse_request_header,
    parse_response_envelope,
)

if TYPE_CHECKING:
    import xml.etree.ElementTree as ET

    from ..auth import Auth
    from ..config.endpoints import ServiceUrl
    from .protocol import Headers, RequestObserver, XmlPayload

_logger = logging.getLogger(__name__)

__all__ = [
    "LoggingObserver",
    "RequestHeader",
    "ResponseEnvelope",
    "ResponseHeader",
    "SoapResponse",
    "build_request_envelope",
    "build_request_header",
    "build_request_headers",
    "debug_enabled",
    "exchange",
    "parse_fault",
    "parse_request_header",
    "parse_response_envelope",
    "qname",
    "send",
]


def debug_enabled() -> bool:
    """True when the ``DEBUG`` environment variable is set (read per call)."""
    return bool(os.environ.get(ENV_DEBUG, ""))


class LoggingObserver:
    """RequestObserver that dumps full requests and responses to a logger."""

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.DEBUG) -> None:
        self.logger = logger or _logger
        self.level = level

    def on_request(self, url: str, headers: Headers, body: bytes) -> None:
        self.logger.log(
            self.level,
            "request ->\n%s\n%r\n%s",
            url,
            list(headers),
            body.decode("utf-8", errors="replace"),
        )

    def on_response(self, url: str, status: int, body: bytes) -> None:
        self.logger.log(
            self.level,
            "response -> %s (HTTP %d)\n%s",
            url,
            status,
            body.decode("utf-8", errors="replace"),
        )


def _notify(observers: Iterable[RequestObserver], event: str, *args: object) -> None:
    """Call ``event`` on every observer; a failing observer is logged and skipped."""
    for observer in observers:
        try:
            getattr(observer, event)(*args)
        except Exception as e:  # noqa: BLE001, PERF203 -- diagnostics must never change the call's outcome
            _logger.warning("Request observer %r failed in %s: %s", observer, event, e)


@dataclass(frozen=True)
class SoapResponse:
    """Successful (non-fault) result of an exchange.

    ``body`` is the ``soap:Body`` content as received; ``namespaces`` holds
    the prefixes in scope there (see :class:`ResponseEnvelope`).
    """

    status: int
    header: ResponseHeader
    body: bytes
    namespaces: Mapping[str, str] = field(default_factory=dict)


def exchange(
    endpoint: ServiceUrl,
    action: str,
    body: XmlPayload | ET.Element | None,
    auth: Auth,
    *,
    observers: Iterable[RequestObserver] = (),
    fault_status_codes: Collection[int] = FAULT_STATUS_CODES,
) -> SoapResponse:
    """
    Send one SOAP request and return the parsed response.

    Args:
        endpoint: Target service; its URL is the POST target and its
            namespace qualifies the header and payload.
        action: Operation name, sent in the ``SOAPAction`` header.  Not
            validated here.
        body: Operation payload.
        auth: Credential context.  Only read, never modified.
        observers: Extra diagnostic observers for this call, in addition
            to ``auth.observers``.
        fault_status_codes: HTTP statuses whose body is parsed as a
            fault.  Any other status is a success.

    Returns:
        Status, response header metadata, inner body bytes and the
        namespaces in scope at ``soap:Body``.

    Raises:
        SerializationError: If the envelope cannot be built.
        TransportError: On connection failures.
        DeserializationError: If the response envelope, or the fault body
            of a fault-eligible status, cannot be parsed.
        ApiFault: If the server reported a fault.
    """
    url = str(endpoint)
    active = [*auth.observers, *observers]
    if debug_enabled():
        active.append(LoggingObserver(level=logging.INFO))

    header = build_request_header(auth)
    envelope = build_request_envelope(header, body, endpoint.namespace)
    headers = build_request_headers(action, len(envelope))

    _logger.debug("SOAP request: action=%s, url=%s, %d bytes", action, url, len(envelope))
    _notify(active, "on_request", url, headers, envelope)

    response = auth.client.post(url, envelope, headers, auth.timeout)

    _notify(active, "on_response", url, response.status, response.body)
    _logger.debug("SOAP response: HTTP %d, %d bytes", response.status, len(response.body))

    parsed = parse_response_envelope(response.body)

    if response.status in fault_status_codes:
        fault = parse_fault(parsed.body, response.status, parsed.namespaces)
        _logger.warning("API fault from %s (action=%s): %s", url, action, fault)
        raise fault

    return SoapResponse(
        status=response.status,
        header=parsed.header,
        body=parsed.body,
        namespaces=parsed.namespaces,
    )


def send(
    endpoint: ServiceUrl,
    action: str,
    body: XmlPayload | ET.Element | None,
    auth: Auth,
    *,
    observers: Iterable[RequestObserver] = (),
    fault_status_codes: Collection[int] = FAULT_STATUS_CODES,
) -> bytes:
    """
    Send one SOAP request and return the inner response body.

    Same contract as :func:`exchange`, returning only ``soap:Body``
    content as bytes.  Decoding it is left to the caller.
    """
    return exchange(
        endpoint,
        action,
        body,
        auth,
        observers=observers,
        fault_status_codes=fault_status_codes,
    ).body
