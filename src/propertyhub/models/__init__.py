"""Data models for PropertyHub."""

from propertyhub.models.dto import (
    DetailDTO,
    ListingDTO,
    OwnerDTO,
    PagedResult,
    PropertyFilter,
    TraceDTO,
)
from propertyhub.models.records import (
    ImageRecord,
    OwnerRecord,
    PropertyRecord,
    TraceRecord,
)

__all__ = [
    "PropertyRecord",
    "OwnerRecord",
    "ImageRecord",
    "TraceRecord",
    "OwnerDTO",
    "TraceDTO",
    "ListingDTO",
    "DetailDTO",
    "PagedResult",
    "PropertyFilter",
]
