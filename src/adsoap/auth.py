"""
Credential and session context.

An :class:`Auth` carries the caller's identity and behavior flags plus
the HTTP client to use.  It is immutable: requests only read it, so one
instance can be shared by concurrent callers as long as its client is
thread-safe.
"""

from __future__ import annotations

__all__ = ["Auth"]

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .constants import DEFAULT_TIMEOUT_HTTP_POST, DEFAULT_USER_AGENT
from .errors import ConfigError
from .network.soap import exchange, send
from .network.transport import UrllibHttpClient

if TYPE_CHECKING:
    import xml.etree.ElementTree as ET

    from .config.endpoints import ServiceUrl
    from .network.protocol import HttpClient, RequestObserver, XmlPayload
    from .network.soap import SoapResponse

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Auth:
    """Per-caller identity and behavior flags.

    Attributes:
        customer_id: Client customer id the request acts on.  Omitted
            from the header when empty.
        developer_token: Already-issued developer token.
        user_agent: Sent as ``userAgent`` in every request header.
        partial_failure: Ask the server to apply as many operations of a
            batch as possible instead of rejecting the whole batch.
        client: HTTP client used for every request.
        observers: Diagnostic observers notified of every exchange.
        timeout: Passed to the HTTP client, in seconds.
    """

    customer_id: str
    developer_token: str
    user_agent: str = DEFAULT_USER_AGENT
    partial_failure: bool = False
    client: HttpClient = field(default_factory=UrllibHttpClient, compare=False)
    observers: tuple[RequestObserver, ...] = field(default=(), compare=False)
    timeout: float = DEFAULT_TIMEOUT_HTTP_POST

    def __post_init__(self) -> None:
        if not self.developer_token:
            raise ConfigError("Developer token must not be empty.")
        if self.timeout <= 0:
            raise ConfigError(f"Timeout must be positive, got {self.timeout}.")
        # Accept any iterable of observers, store a tuple
        object.__setattr__(self, "observers", tuple(self.observers))

    def __repr__(self) -> str:
        return (
            f"Auth(customer_id={self.customer_id!r}, developer_token='***', "
            f"user_agent={self.user_agent!r}, partial_failure={self.partial_failure})"
        )

    def with_partial_failure(self, enabled: bool = True) -> Auth:
        """Return a copy with the partial-failure flag set."""
        return dataclasses.replace(self, partial_failure=enabled)

    def with_observer(self, observer: RequestObserver) -> Auth:
        """Return a copy that also notifies ``observer``."""
        return dataclasses.replace(self, observers=(*self.observers, observer))

    def request(
        self,
        service_url: ServiceUrl,
        action: str,
        body: XmlPayload | ET.Element | None,
    ) -> bytes:
        """Send ``body`` to ``service_url`` and return the inner response body.

        See :func:`adsoap.network.soap.send`.
        """
        _logger.info("Calling %s (action=%s)", service_url, action)
        return send(service_url, action, body, self)

    def exchange(
        self,
        service_url: ServiceUrl,
        action: str,
        body: XmlPayload | ET.Element | None,
    ) -> SoapResponse:
        """Like :meth:`request`, but also return status and response header."""
        _logger.info("Calling %s (action=%s)", service_url, action)
        return exchange(service_url, action, body, self)
