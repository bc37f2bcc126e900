"""
Service endpoints for the advertising management API.

Every remote service belongs to one of five service groups (campaign
management, account management, remarketing, report download, traffic
estimation).  Each group lives under a versioned root URL, which also
serves as the XML namespace for that group's messages.

The table is built once at startup and passed to whoever needs it;
nothing here is module-level mutable state.
"""

from __future__ import annotations

__all__ = [
    "REPORT_DOWNLOAD",
    "SERVICE_GROUPS",
    "EndpointTable",
    "ServiceUrl",
    "build_endpoint_table",
    "make_service_url",
]

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from urllib.parse import urlparse

from ..constants import (
    API_HOST,
    API_VERSION,
    ROOT_CM,
    ROOT_MCM,
    ROOT_REMARKETING,
    ROOT_REPORT_DOWNLOAD,
    ROOT_TRAFFIC,
)
from ..errors import ConfigError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceUrl:
    """A remote operation group: base URL plus optional service name.

    Attributes:
        url: Versioned service root, e.g.
            ``https://adwords.google.com/api/adwords/cm/v201603``.
        name: Service name appended to the root, e.g. ``CampaignService``.
            Empty for endpoints addressed by the root alone.
    """

    url: str
    name: str = ""

    @property
    def full_url(self) -> str:
        if self.name:
            return f"{self.url}/{self.name}"
        return self.url

    @property
    def namespace(self) -> str:
        """XML namespace of the service group's messages."""
        return self.url

    def __str__(self) -> str:
        return self.full_url


def make_service_url(url: str, name: str = "") -> ServiceUrl:
    """
    Create a validated ServiceUrl.

    Raises:
        ConfigError: If the URL is empty, not HTTPS, or has no hostname.
    """
    url = url.strip().rstrip("/")
    if not url:
        raise ConfigError("Service URL must not be empty.")

    parsed = urlparse(url)
    if parsed.scheme != "https":
        raise ConfigError(
            f"Invalid URL scheme {parsed.scheme!r} in {url!r}. "
            "Use https:// to protect the developer token in transit."
        )
    if not parsed.hostname:
        raise ConfigError(f"Invalid URL: no hostname found in {url!r}")

    return ServiceUrl(url=url, name=name.strip())


# ── Built-in service table ───────────────────────────────────────────

# Service name -> service group root.  An empty name would address the
# root itself; ReportDownload is registered separately for that reason.
SERVICE_GROUPS: Mapping[str, str] = MappingProxyType(
    {
        "AdGroupAdService": ROOT_CM,
        "AdGroupBidModifierService": ROOT_CM,
        "AdGroupCriterionService": ROOT_CM,
        "AdGroupFeedService": ROOT_CM,
        "AdGroupService": ROOT_CM,
        "AdParamService": ROOT_CM,
        "AdwordsUserListService": ROOT_REMARKETING,
        "BatchJobService": ROOT_CM,
        "BiddingStrategyService": ROOT_CM,
        "BudgetOrderService": ROOT_CM,
        "BudgetService": ROOT_CM,
        "CampaignAdExtensionService": ROOT_CM,
        "CampaignCriterionService": ROOT_CM,
        "CampaignFeedService": ROOT_CM,
        "CampaignService": ROOT_CM,
        "CampaignSharedSetService": ROOT_CM,
        "ConstantDataService": ROOT_CM,
        "ConversionTrackerService": ROOT_CM,
        "CustomerFeedService": ROOT_CM,
        "CustomerService": ROOT_MCM,
        "CustomerSyncService": ROOT_CM,
        "DataService": ROOT_CM,
        "ExperimentService": ROOT_CM,
        "FeedItemService": ROOT_CM,
        "FeedMappingService": ROOT_CM,
        "FeedService": ROOT_CM,
        "GeoLocationService": ROOT_CM,
        "LabelService": ROOT_CM,
        "LocationCriterionService": ROOT_CM,
        "ManagedCustomerService": ROOT_MCM,
        "MediaService": ROOT_CM,
        "MutateJobService": ROOT_CM,
        "OfflineConversionFeedService": ROOT_CM,
        "ReportDefinitionService": ROOT_CM,
        "SharedCriterionService": ROOT_CM,
        "SharedSetService": ROOT_CM,
        "TargetingIdeaService": ROOT_CM,
        "TrafficEstimatorService": ROOT_TRAFFIC,
    }
)

# Addressed by its root URL alone (no service name suffix)
REPORT_DOWNLOAD = "ReportDownloadService"


class EndpointTable(Mapping[str, ServiceUrl]):
    """Immutable mapping of service name -> ServiceUrl."""

    def __init__(self, services: Mapping[str, ServiceUrl]) -> None:
        self._services: Mapping[str, ServiceUrl] = MappingProxyType(dict(services))

    def __getitem__(self, name: str) -> ServiceUrl:
        return self._services[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._services)

    def __len__(self) -> int:
        return len(self._services)

    def __repr__(self) -> str:
        return f"EndpointTable({len(self)} services)"

    def get_service(self, name: str) -> ServiceUrl:
        """
        Look up a service endpoint by name.

        Raises:
            ConfigError: If no service matches.
        """
        try:
            return self._services[name]
        except KeyError:
            available = ", ".join(sorted(self._services))
            raise ConfigError(f"Unknown service {name!r}. Available: {available}") from None


def build_endpoint_table(version: str = API_VERSION, host: str = API_HOST) -> EndpointTable:
    """
    Build the service table for one API version.

    Args:
        version: API version string baked into every URL.
        host: API host root, without trailing slash.

    Raises:
        ConfigError: If the host is not a valid HTTPS URL or version is empty.
    """
    version = version.strip()
    if not version:
        raise ConfigError("API version must not be empty.")
    host = host.rstrip("/")

    def _root(group: str) -> str:
        return f"{host}/{group}/{version}"

    services = {
        name: make_service_url(_root(group), name) for name, group in SERVICE_GROUPS.items()
    }
    services[REPORT_DOWNLOAD] = make_service_url(_root(ROOT_REPORT_DOWNLOAD))
    _logger.debug("Built endpoint table: %d services, version=%s", len(services), version)
    return EndpointTable(services)
