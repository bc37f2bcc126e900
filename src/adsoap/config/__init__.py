"""
Endpoint configuration.

Import from this package rather than from individual submodules.
"""

from __future__ import annotations

from .endpoints import (
    REPORT_DOWNLOAD,
    SERVICE_GROUPS,
    EndpointTable,
    ServiceUrl,
    build_endpoint_table,
    make_service_url,
)

__all__ = [
    "REPORT_DOWNLOAD",
    "SERVICE_GROUPS",
    "EndpointTable",
    "ServiceUrl",
    "build_endpoint_table",
    "make_service_url",
]
