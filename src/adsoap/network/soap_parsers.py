"""SOAP response and fault parsers for the API."""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as _ET
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from xml.etree.ElementTree import ParseError as _XMLParseError
from xml.parsers import expat
from xml.sax.saxutils import quoteattr

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

from ..constants import SOAP_ENV_NS, XML_PREVIEW_LENGTH, XSI_NS
from ..errors import ApiError, ApiFault, DeserializationError
from .soap_envelope import RequestHeader

_logger = logging.getLogger(__name__)

__all__ = [
    "ResponseEnvelope",
    "ResponseHeader",
    "parse_fault",
    "parse_request_header",
    "parse_response_envelope",
]

# Regex pattern for redacting developer tokens from XML previews in error messages
_REDACT_TOKEN_PATTERN = rb"<([\w.-]+:)?developerToken>[^<]*</([\w.-]+:)?developerToken>"
_REDACT_TOKEN_REPLACEMENT = b"<developerToken>[REDACTED]</developerToken>"

# The API answers with ResponseHeader; some mocks and older services echo RequestHeader
_HEADER_TAGS = ("ResponseHeader", "RequestHeader")

# Rest of a start tag after its '<'; quoted attribute values may contain '>'
_START_TAG_REST = re.compile(rb"""(?:[^>"']|"[^"]*"|'[^']*')*>""")

# Synthetic parent used to parse a body fragment with the envelope's namespaces
_FRAGMENT_TAG = "fragment"


def _strip_namespace(tag: str) -> str:
    """Strip XML namespace prefix from a tag name."""
    return tag.split("}")[-1] if "}" in tag else tag


def _redact_and_truncate_xml(raw: bytes) -> str:
    """Redact tokens from XML and truncate to preview length.

    Used in error messages to prevent leaking credentials in logs/exceptions.
    """
    redacted = re.sub(_REDACT_TOKEN_PATTERN, _REDACT_TOKEN_REPLACEMENT, raw[:2000])
    return redacted.decode("utf-8", errors="replace")[:XML_PREVIEW_LENGTH]


def _parse_xml(raw: bytes, what: str) -> _ET.Element:
    try:
        return ET.fromstring(raw)
    except (_XMLParseError, DefusedXmlException) as e:
        _logger.debug("Invalid XML in %s", what, exc_info=True)
        raise DeserializationError(
            f"Invalid XML in {what}: {e}\nRaw: {_redact_and_truncate_xml(raw)}", raw=raw
        ) from e


def _find_child(elem: _ET.Element, *names: str) -> _ET.Element | None:
    """First direct child whose local name is one of ``names``."""
    for child in elem:
        if _strip_namespace(child.tag) in names:
            return child
    return None


def _child_text(elem: _ET.Element, name: str) -> str:
    child = _find_child(elem, name)
    if child is None:
        return ""
    return (child.text or "").strip()


def _child_int(elem: _ET.Element, name: str, raw: bytes) -> int:
    text = _child_text(elem, name)
    if not text:
        return 0
    try:
        return int(text)
    except ValueError as e:
        raise DeserializationError(
            f"Invalid integer in response header <{name}>: {text!r}", raw=raw
        ) from e


# ── Response envelope ───────────────────────────────────────────────


@dataclass(frozen=True)
class ResponseHeader:
    """Metadata from ``soap:Header/ResponseHeader``."""

    request_id: str = ""
    service_name: str = ""
    method_name: str = ""
    operations: int = 0
    response_time: int = 0


@dataclass(frozen=True)
class ResponseEnvelope:
    """A parsed response envelope.

    ``body`` holds the content of ``soap:Body`` exactly as received, the
    bytes between its start and end tags.  Prefixes in it may be bound on
    the envelope rather than in the body itself; ``namespaces`` maps every
    prefix in scope at ``soap:Body`` (``""`` for the default namespace) to
    its URI, so the fragment can be decoded on its own.
    """

    header: ResponseHeader
    body: bytes
    namespaces: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))


def _slice_body(raw: bytes) -> tuple[bytes, dict[str, str]]:
    """Locate the content of the first ``soap:Body`` in ``raw``.

    Only called on input that already passed the defused parse, so no
    entity declarations can be present.

    Returns:
        The bytes between the Body start and end tags, and the namespace
        declarations in scope on the Body element.
    """
    body_name = f"{SOAP_ENV_NS} Body"
    parser = expat.ParserCreate(namespace_separator=" ")
    depth = 0
    pending: dict[str, str] = {}
    in_scope: dict[str, str] = {}
    span: list[int] = []

    def start_namespace(prefix: str | None, uri: str | None) -> None:
        pending[prefix or ""] = uri or ""

    def start_element(name: str, attrs: dict[str, str]) -> None:
        nonlocal depth
        depth += 1
        if depth == 1 or (depth == 2 and name == body_name and not span):
            in_scope.update(pending)
            if depth == 2:
                span.append(parser.CurrentByteIndex)
        pending.clear()

    def end_element(name: str) -> None:
        nonlocal depth
        if depth == 2 and name == body_name and len(span) == 1:
            span.append(parser.CurrentByteIndex)
        depth -= 1

    parser.StartNamespaceDeclHandler = start_namespace
    parser.StartElementHandler = start_element
    parser.EndElementHandler = end_element
    try:
        parser.Parse(raw, True)
    except expat.ExpatError as e:
        raise DeserializationError(f"Invalid XML in response envelope: {e}", raw=raw) from e

    tag = _START_TAG_REST.match(raw, span[0] + 1)
    if tag is None:
        raise DeserializationError("Cannot locate soap:Body start tag", raw=raw)
    if raw[tag.end() - 2 : tag.end()] == b"/>":
        return b"", in_scope
    return raw[tag.end() : span[1]], in_scope


def parse_response_envelope(raw: bytes) -> ResponseEnvelope:
    """
    Parse a SOAP response envelope.

    Raises:
        DeserializationError: If the response is not well-formed XML, or
            is not a ``soap:Envelope`` with a ``soap:Body``.
    """
    root = _parse_xml(raw, "response envelope")

    if root.tag != f"{{{SOAP_ENV_NS}}}Envelope":
        raise DeserializationError(
            f"Unexpected response root <{root.tag}>, expected soap:Envelope\n"
            f"Raw: {_redact_and_truncate_xml(raw)}",
            raw=raw,
        )

    body_elem = root.find(f"{{{SOAP_ENV_NS}}}Body")
    if body_elem is None:
        raise DeserializationError("Response envelope has no soap:Body", raw=raw)

    header = ResponseHeader()
    soap_header = root.find(f"{{{SOAP_ENV_NS}}}Header")
    if soap_header is not None:
        header_elem = _find_child(soap_header, *_HEADER_TAGS)
        if header_elem is not None:
            header = ResponseHeader(
                request_id=_child_text(header_elem, "requestId"),
                service_name=_child_text(header_elem, "serviceName"),
                method_name=_child_text(header_elem, "methodName"),
                operations=_child_int(header_elem, "operations", raw),
                response_time=_child_int(header_elem, "responseTime", raw),
            )

    body, namespaces = _slice_body(raw)

    _logger.debug(
        "Parsed response envelope: request_id=%s, service=%s, method=%s, body=%d bytes",
        header.request_id,
        header.service_name,
        header.method_name,
        len(body),
    )
    return ResponseEnvelope(header=header, body=body, namespaces=MappingProxyType(namespaces))


def parse_request_header(raw: bytes) -> RequestHeader:
    """
    Read the ``RequestHeader`` back out of a serialized request envelope.

    Raises:
        DeserializationError: If the envelope or its header is missing.
    """
    root = _parse_xml(raw, "request envelope")
    soap_header = root.find(f"{{{SOAP_ENV_NS}}}Header")
    header_elem = None if soap_header is None else _find_child(soap_header, "RequestHeader")
    if header_elem is None:
        raise DeserializationError("Request envelope has no RequestHeader", raw=raw)

    return RequestHeader(
        user_agent=_child_text(header_elem, "userAgent"),
        developer_token=_child_text(header_elem, "developerToken"),
        client_customer_id=_child_text(header_elem, "clientCustomerId"),
        partial_failure=_child_text(header_elem, "partialFailure").lower() == "true",
    )


# ── Faults ──────────────────────────────────────────────────────────


def _parse_api_error(elem: _ET.Element) -> ApiError:
    # xsi:type="AuthenticationError" or "ns:AuthenticationError"
    error_type = elem.get(f"{{{XSI_NS}}}type", "").rpartition(":")[2]
    return ApiError(
        type=error_type or _child_text(elem, "ApiError.Type"),
        field_path=_child_text(elem, "fieldPath"),
        trigger=_child_text(elem, "trigger"),
        error_string=_child_text(elem, "errorString"),
        reason=_child_text(elem, "reason"),
    )


def _parse_fragment(body: bytes, namespaces: Mapping[str, str]) -> _ET.Element:
    """Parse body content under a synthetic parent declaring ``namespaces``."""
    declarations = "".join(
        f" xmlns:{prefix}={quoteattr(uri)}" if prefix else f" xmlns={quoteattr(uri)}"
        for prefix, uri in namespaces.items()
    )
    wrapped = (
        f"<{_FRAGMENT_TAG}{declarations}>".encode()
        + body
        + f"</{_FRAGMENT_TAG}>".encode()
    )
    try:
        return ET.fromstring(wrapped)
    except (_XMLParseError, DefusedXmlException) as e:
        _logger.debug("Invalid XML in fault body", exc_info=True)
        raise DeserializationError(
            f"Invalid XML in fault body: {e}\nRaw: {_redact_and_truncate_xml(body)}", raw=body
        ) from e


def parse_fault(
    body: bytes, status: int, namespaces: Mapping[str, str] | None = None
) -> ApiFault:
    """
    Parse a fault payload from the inner response body.

    Accepts a ``soap:Fault`` (with ``detail/ApiExceptionFault``) or a bare
    ``ApiExceptionFault``.

    Args:
        body: Inner ``soap:Body`` content, as in ``ResponseEnvelope.body``.
        status: HTTP status the fault arrived with.
        namespaces: Prefixes in scope at ``soap:Body``
            (``ResponseEnvelope.namespaces``).  Needed when the fault uses
            a prefix declared on the envelope, e.g. ``soap:Fault``.

    Returns:
        The structured fault (not raised -- the caller decides).

    Raises:
        DeserializationError: If the body is empty, malformed, or not a
            recognized fault element.
    """
    if not body.strip():
        raise DeserializationError(f"Empty fault body (HTTP {status})", raw=body)

    fragment = _parse_fragment(body, namespaces or {})
    if len(fragment) == 0:
        raise DeserializationError(
            f"No fault element in body (HTTP {status})\nRaw: {_redact_and_truncate_xml(body)}",
            raw=body,
        )
    root = fragment[0]
    tag = _strip_namespace(root.tag)

    fault_code = ""
    fault_string = ""
    if tag == "Fault":
        fault_code = _child_text(root, "faultcode")
        fault_string = _child_text(root, "faultstring")
        detail = _find_child(root, "detail")
        api_fault = None if detail is None else _find_child(detail, "ApiExceptionFault")
    elif tag == "ApiExceptionFault":
        api_fault = root
    else:
        raise DeserializationError(
            f"Unexpected fault element <{tag}> (HTTP {status})\n"
            f"Raw: {_redact_and_truncate_xml(body)}",
            raw=body,
        )

    message = ""
    exception_type = ""
    errors: list[ApiError] = []
    if api_fault is not None:
        message = _child_text(api_fault, "message")
        exception_type = _child_text(api_fault, "ApplicationExceptionType")
        errors = [
            _parse_api_error(child)
            for child in api_fault
            if _strip_namespace(child.tag) == "errors"
        ]

    _logger.debug(
        "Parsed fault: status=%d, code=%s, errors=%d", status, fault_code, len(errors)
    )
    return ApiFault(
        status,
        tuple(errors),
        fault_code=fault_code,
        fault_string=fault_string,
        message=message,
        exception_type=exception_type,
        raw=body,
    )
