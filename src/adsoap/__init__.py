"""
adsoap — SOAP/XML client binding for the AdWords management API.

Builds request envelopes for named service operations, attaches the
authentication header, POSTs them, and maps fault responses to
structured errors.
"""

from __future__ import annotations

from .auth import Auth
from .config import EndpointTable, ServiceUrl, build_endpoint_table, make_service_url
from .constants import API_VERSION, FAULT_STATUS_CODES, __version__
from .errors import (
    AdsError,
    ApiError,
    ApiFault,
    ConfigError,
    DeserializationError,
    SerializationError,
    TransportError,
)
from .network import (
    HttpClient,
    HttpResponse,
    LoggingObserver,
    RequestObserver,
    SoapResponse,
    UrllibHttpClient,
    XmlPayload,
    exchange,
    send,
)
from .selector import AwqlQuery, DateRange, Operation, OrderBy, Paging, Predicate, Selector

__all__ = [
    "API_VERSION",
    "FAULT_STATUS_CODES",
    "AdsError",
    "ApiError",
    "ApiFault",
    "Auth",
    "AwqlQuery",
    "ConfigError",
    "DateRange",
    "DeserializationError",
    "EndpointTable",
    "HttpClient",
    "HttpResponse",
    "LoggingObserver",
    "Operation",
    "OrderBy",
    "Paging",
    "Predicate",
    "RequestObserver",
    "SerializationError",
    "Selector",
    "ServiceUrl",
    "SoapResponse",
    "TransportError",
    "UrllibHttpClient",
    "XmlPayload",
    "__version__",
    "build_endpoint_table",
    "exchange",
    "make_service_url",
    "send",
]
