"""Typed models for records, aggregation results and fetch results."""

from brandfeed.models._base import FeedBaseModel, RawRecord
from brandfeed.models.brand import BrandMetrics
from brandfeed.models.entity import DEFAULT_TEXT_FIELDS, CombinedEntity, SortSpec
from brandfeed.models.fetch import FetchResult, Pagination

__all__ = [
    "BrandMetrics",
    "CombinedEntity",
    "DEFAULT_TEXT_FIELDS",
    "FeedBaseModel",
    "FetchResult",
    "Pagination",
    "RawRecord",
    "SortSpec",
]
