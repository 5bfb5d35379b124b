"""Custom exception hierarchy for brandfeed."""

from __future__ import annotations


class BrandFeedError(Exception):
    """Base exception for all brandfeed errors."""


class BrandFeedConfigError(BrandFeedError):
    """Invalid or missing configuration."""


class BrandFeedTransportError(BrandFeedError):
    """A fetch adapter failed (network, timeout, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class MalformedRecordError(BrandFeedError):
    """A record has no usable identifying field.

    The aggregator never lets this escape: such records are dropped from
    aggregation. It is raised by :meth:`brandfeed.models.RawRecord.require_key`
    for callers that want the strict behaviour.
    """

    def __init__(self, message: str, *, fields: tuple[str, ...] = ()) -> None:
        self.fields = fields
        super().__init__(message)


class RefreshCancelledError(BrandFeedError):
    """The refresh cycle this work belongs to was cancelled or superseded."""


def describe_error(exc: BaseException) -> str:
    """Human-readable message for an exception, suitable for ``StoreSnapshot.error``."""
    text = str(exc).strip()
    return text or type(exc).__name__
