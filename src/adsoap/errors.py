"""adsoap error types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

__all__ = [
    "AdsError",
    "ApiError",
    "ApiFault",
    "ConfigError",
    "DeserializationError",
    "SerializationError",
    "TransportError",
]


class AdsError(Exception):
    """Base error for adsoap operations."""


class ConfigError(AdsError):
    """Endpoint or credential configuration is invalid."""


class SerializationError(AdsError):
    """Outbound request envelope could not be built."""


class TransportError(AdsError):
    """Network/connection error.

    Args:
        message: Human-readable error description.
        url: Request URL, if known.
    """

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url

    def __reduce__(self) -> tuple[type[TransportError], tuple[str], dict[str, Any]]:
        """Preserve url across pickle/unpickle."""
        return (type(self), (str(self),), {"url": self.url})

    def __setstate__(self, state: dict[str, Any] | None) -> None:
        if state is None:
            return
        self.url = state.get("url")


class DeserializationError(AdsError):
    """Inbound XML (response envelope or fault body) could not be parsed.

    Args:
        message: Human-readable error description.
        raw: The bytes that failed to parse.  Diagnostic only -- never
            a usable response.
    """

    def __init__(self, message: str, *, raw: bytes = b"") -> None:
        super().__init__(message)
        self.raw = raw

    def __reduce__(self) -> tuple[type[DeserializationError], tuple[str], dict[str, Any]]:
        """Preserve raw bytes across pickle/unpickle."""
        return (type(self), (str(self),), {"raw": self.raw})

    def __setstate__(self, state: dict[str, Any] | None) -> None:
        if state is None:
            return
        self.raw = state.get("raw", b"")


@dataclass(frozen=True)
class ApiError:
    """One error description from an ``ApiExceptionFault``.

    Attributes:
        type: Error class reported by the server, e.g. ``AuthenticationError``.
        field_path: OGNL path of the offending request field.
        trigger: Value that triggered the error.
        error_string: ``Type.REASON`` summary string.
        reason: Reason enum, e.g. ``NOT_ADS_USER``.
    """

    type: str = ""
    field_path: str = ""
    trigger: str = ""
    error_string: str = ""
    reason: str = ""

    def __str__(self) -> str:
        text = self.error_string or ".".join(p for p in (self.type, self.reason) if p)
        if self.field_path:
            text = f"{text} @ {self.field_path}"
        if self.trigger:
            text = f"{text}; trigger:{self.trigger!r}"
        return text or "unknown error"


class ApiFault(AdsError):
    """Structured application fault reported by the remote service.

    Raised for fault-eligible HTTP statuses when the body parses as a
    fault.  Callers branch on this to tell remote rejections (auth,
    quota, bad request) apart from local and network failures.

    Attributes:
        status: HTTP status code of the response.
        errors: Parsed error descriptions, in document order.
        fault_code: SOAP ``faultcode``, if the body was a ``soap:Fault``.
        fault_string: SOAP ``faultstring``, if present.
        message: ``ApiExceptionFault/message``, if present.
        exception_type: ``ApplicationExceptionType``, if present.
        raw: Inner response body bytes, for diagnostics.
    """

    def __init__(
        self,
        status: int,
        errors: tuple[ApiError, ...] = (),
        *,
        fault_code: str = "",
        fault_string: str = "",
        message: str = "",
        exception_type: str = "",
        raw: bytes = b"",
    ) -> None:
        self.status = status
        self.errors = tuple(errors)
        self.fault_code = fault_code
        self.fault_string = fault_string
        self.message = message
        self.exception_type = exception_type
        self.raw = raw
        super().__init__(self._describe())

    def _describe(self) -> str:
        detail = self.fault_string or self.message
        if not detail and self.errors:
            detail = ", ".join(str(e) for e in self.errors)
        return f"API fault (HTTP {self.status}): {detail or 'no detail'}"

    def __reduce__(self) -> tuple[type[ApiFault], tuple[int, tuple[ApiError, ...]], dict[str, Any]]:
        """Preserve structured fields across pickle/unpickle."""
        return (
            type(self),
            (self.status, self.errors),
            {
                "fault_code": self.fault_code,
                "fault_string": self.fault_string,
                "message": self.message,
                "exception_type": self.exception_type,
                "raw": self.raw,
            },
        )

    def __setstate__(self, state: dict[str, Any] | None) -> None:
        if state is None:
            return
        for key, value in state.items():
            setattr(self, key, value)
        self.args = (self._describe(),)
