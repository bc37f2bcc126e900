"""SOAP envelope builders for API requests."""

from __future__ import annotations

import copy
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..constants import SOAP_ENV_NS
from ..errors import SerializationError
from .protocol import XmlPayload

if TYPE_CHECKING:
    from ..auth import Auth

__all__ = [
    "RequestHeader",
    "build_request_envelope",
    "build_request_header",
    "build_request_headers",
    "qname",
]

_logger = logging.getLogger(__name__)

ET.register_namespace("soap", SOAP_ENV_NS)

# Anything outside the XML 1.0 Char production cannot appear in a document,
# escaped or not
_INVALID_XML_CHAR = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def qname(namespace: str, tag: str) -> str:
    """Clark-notation qualified name, ``{namespace}tag``."""
    return f"{{{namespace}}}{tag}" if namespace else tag


@dataclass(frozen=True)
class RequestHeader:
    """Authentication and behavior fields of ``soap:Header/RequestHeader``."""

    user_agent: str
    developer_token: str
    client_customer_id: str = ""
    partial_failure: bool = False

    def to_element(self, namespace: str) -> ET.Element:
        root = ET.Element(qname(namespace, "RequestHeader"))
        ET.SubElement(root, qname(namespace, "userAgent")).text = self.user_agent
        ET.SubElement(root, qname(namespace, "developerToken")).text = self.developer_token
        if self.client_customer_id:
            ET.SubElement(root, qname(namespace, "clientCustomerId")).text = (
                self.client_customer_id
            )
        # Servers treat "false" and "absent" differently: only ever send true
        if self.partial_failure:
            ET.SubElement(root, qname(namespace, "partialFailure")).text = "true"
        return root


def build_request_header(auth: Auth) -> RequestHeader:
    """Build the request header from a credential context (read only)."""
    return RequestHeader(
        user_agent=auth.user_agent,
        developer_token=auth.developer_token,
        client_customer_id=auth.customer_id,
        partial_failure=bool(auth.partial_failure),
    )


def _render_body(body: XmlPayload | ET.Element, namespace: str) -> ET.Element:
    if isinstance(body, ET.Element):
        # indent() rewrites text and tails in place; the caller's tree stays as given
        return copy.deepcopy(body)
    if not isinstance(body, XmlPayload):
        raise SerializationError(
            f"Request body of type {type(body).__name__} cannot be rendered to XML "
            "(expected an Element or an object with to_element())."
        )
    try:
        return body.to_element(namespace)
    except SerializationError:
        raise
    except Exception as e:  # noqa: BLE001 -- any payload failure is a serialization failure
        raise SerializationError(f"Cannot render {type(body).__name__}: {e}") from e


def _check_characters(envelope: ET.Element) -> None:
    """Reject text or attribute values that no XML parser would accept.

    Raises:
        SerializationError: Naming the element; the value itself is not
            echoed, it may be the developer token.
    """
    for elem in envelope.iter():
        values = [elem.text, elem.tail, *elem.attrib.values()]
        for value in values:
            if not isinstance(value, str):
                continue
            match = _INVALID_XML_CHAR.search(value)
            if match is not None:
                tag = elem.tag.rpartition("}")[2] if isinstance(elem.tag, str) else elem.tag
                raise SerializationError(
                    f"Invalid XML character {match.group()!r} in <{tag}> "
                    f"at offset {match.start()}"
                )


def build_request_envelope(
    header: RequestHeader,
    body: XmlPayload | ET.Element | None,
    namespace: str,
) -> bytes:
    """
    Build a SOAP envelope for an API request.

    The header and the payload are qualified with the service group's
    namespace, which becomes the default namespace of the document.

    Args:
        header: Request header fields.
        body: Operation payload; ``None`` sends an empty ``soap:Body``.
        namespace: Service group namespace (the versioned root URL).

    Returns:
        UTF-8 encoded envelope with XML declaration, indented by two
        spaces for readable debug output.

    Raises:
        SerializationError: If the payload cannot be rendered, contains
            names outside any namespace, or carries characters that are
            not allowed in XML 1.0 (control characters such as ``\\x00``).
    """
    envelope = ET.Element(qname(SOAP_ENV_NS, "Envelope"))
    soap_header = ET.SubElement(envelope, qname(SOAP_ENV_NS, "Header"))
    soap_header.append(header.to_element(namespace))
    soap_body = ET.SubElement(envelope, qname(SOAP_ENV_NS, "Body"))
    if body is not None:
        soap_body.append(_render_body(body, namespace))

    _check_characters(envelope)
    ET.indent(envelope, space="  ")
    try:
        data = ET.tostring(
            envelope,
            encoding="utf-8",
            xml_declaration=True,
            default_namespace=namespace or None,
        )
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Cannot serialize request envelope: {e}") from e

    _logger.debug("Built request envelope: %d bytes", len(data))
    return data


def build_request_headers(action: str, content_length: int) -> list[tuple[str, str]]:
    """Fixed outbound HTTP headers; ``Accept`` appears twice."""
    return [
        ("Accept", "text/xml"),
        ("Accept", "multipart/*"),
        ("Content-Type", "text/xml;charset=UTF-8"),
        ("Content-Length", str(content_length)),
        ("SOAPAction", action),
    ]
