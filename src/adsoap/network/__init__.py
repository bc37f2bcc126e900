"""Network transport and SOAP protocol layer."""

from __future__ import annotations

from .protocol import HttpClient, HttpResponse, RequestObserver, XmlPayload
from .soap import LoggingObserver, SoapResponse, exchange, send
from .transport import UrllibHttpClient

__all__ = [
    "HttpClient",
    "HttpResponse",
    "LoggingObserver",
    "RequestObserver",
    "SoapResponse",
    "UrllibHttpClient",
    "XmlPayload",
    "exchange",
    "send",
]
