"""
Protocol abstractions for the SOAP transport.

The envelope transport depends on these protocols, not on concrete
implementations: callers may supply their own HTTP client, request
payloads and diagnostic observers.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from xml.etree.ElementTree import Element

__all__ = ["Headers", "HttpClient", "HttpResponse", "RequestObserver", "XmlPayload"]

# Ordered (name, value) pairs; a name may repeat (e.g. two Accept values)
Headers = Sequence[tuple[str, str]]


@runtime_checkable
class XmlPayload(Protocol):
    """Anything that can be rendered to an XML fragment.

    Implemented by each operation-specific request type (selectors,
    queries, operation wrappers).
    """

    def to_element(self, namespace: str) -> Element:
        """
        Render this payload as an element tree.

        Args:
            namespace: XML namespace of the target service group.
                Element names should be qualified with it.

        Returns:
            Root element of the fragment.
        """
        ...


@dataclass(frozen=True)
class HttpResponse:
    """A fully buffered HTTP response."""

    status: int
    body: bytes
    reason: str = ""
    headers: tuple[tuple[str, str], ...] = field(default=())


class HttpClient(Protocol):
    """Protocol for the HTTP client used by the transport.

    Implementations must return non-2xx responses as ``HttpResponse``
    rather than raising, so the transport can inspect fault bodies.
    Any deadline is the client's responsibility.
    """

    def post(self, url: str, body: bytes, headers: Headers, timeout: float) -> HttpResponse:
        """
        Send a POST request and buffer the whole response.

        Args:
            url: Target URL.
            body: Request body bytes.
            headers: Request headers, in order.  Names may repeat.
            timeout: Request timeout in seconds.

        Returns:
            The buffered response, whatever its status.

        Raises:
            TransportError: On connection failures.
        """
        ...


class RequestObserver(Protocol):
    """Receives copies of outbound requests and inbound responses.

    Observability only: nothing an observer does affects the call.
    """

    def on_request(self, url: str, headers: Headers, body: bytes) -> None: ...

    def on_response(self, url: str, status: int, body: bytes) -> None: ...
