"""brandfeed - Async data orchestration for an NFT brand analytics dashboard."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("brandfeed")
except PackageNotFoundError:
    __version__ = "0+local"
from brandfeed._cache import CacheEntry, TtlCache
from brandfeed.client import BrandFeedClient
from brandfeed.config import BrandFeedConfig
from brandfeed.exceptions import (
    BrandFeedConfigError,
    BrandFeedError,
    BrandFeedTransportError,
    MalformedRecordError,
    RefreshCancelledError,
)
from brandfeed.ingestion.aggregate import AggregationResult, Aggregator
from brandfeed.ingestion.domains import Domain, DomainResult, FetchAdapter, combined_domain, records_domain
from brandfeed.models import (
    BrandMetrics,
    CombinedEntity,
    FetchResult,
    Pagination,
    RawRecord,
    SortSpec,
)
from brandfeed.state.cycle import CancellationToken
from brandfeed.state.events import DomainView, StoreSnapshot
from brandfeed.state.store import DashboardStore

__all__ = [
    "__version__",
    "AggregationResult",
    "Aggregator",
    "BrandFeedClient",
    "BrandFeedConfig",
    "BrandFeedConfigError",
    "BrandFeedError",
    "BrandFeedTransportError",
    "BrandMetrics",
    "CacheEntry",
    "CancellationToken",
    "CombinedEntity",
    "DashboardStore",
    "Domain",
    "DomainResult",
    "DomainView",
    "FetchAdapter",
    "FetchResult",
    "MalformedRecordError",
    "Pagination",
    "RawRecord",
    "RefreshCancelledError",
    "SortSpec",
    "StoreSnapshot",
    "TtlCache",
    "combined_domain",
    "records_domain",
]
