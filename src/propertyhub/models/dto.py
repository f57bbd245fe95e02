"""UI-ready data transfer objects returned by the aggregation layer."""

import math
from datetime import datetime
from decimal import Decimal
from typing import Generic, TypeVar

from pydantic import BaseModel, Field, computed_field, model_validator

T = TypeVar("T")


class OwnerDTO(BaseModel):
    """Full owner data embedded in a property detail."""

    id: str = Field(..., description="Owner storage id")
    owner_id: str = Field(default="", description="Owner domain id")
    name: str
    address: str = ""
    photo: str = ""
    birthday: datetime | None = None

    model_config = {"frozen": True}


class TraceDTO(BaseModel):
    """One sale-history entry of a property detail."""

    trace_id: str = ""
    date_sale: datetime
    name: str = ""
    value: Decimal
    tax: Decimal

    model_config = {"frozen": True}


class ListingDTO(BaseModel):
    """Property as shown in list and search views.

    ``image`` and ``owner_name`` are empty strings when the related data
    could not be resolved.
    """

    id: str = Field(..., description="Property storage id")
    owner_id: str = Field(default="", description="Owner key as stored on the property")
    name: str
    address: str = ""
    price: Decimal
    image: str = Field(default="", description="First enabled image file")
    owner_name: str = Field(default="", description="Resolved owner name")

    model_config = {"frozen": True}


class DetailDTO(BaseModel):
    """Property with every related record resolved."""

    id: str = Field(..., description="Property storage id")
    owner_id: str = ""
    name: str
    address: str = ""
    price: Decimal
    code_internal: str = ""
    year: int = 0

    images: tuple[str, ...] = Field(default=(), description="Enabled image files")
    owner: OwnerDTO | None = Field(default=None, description="Owner, if resolvable")
    traces: tuple[TraceDTO, ...] = Field(
        default=(), description="Sale history, oldest first"
    )

    model_config = {"frozen": True}


class PagedResult(BaseModel, Generic[T]):
    """One page of results plus the store's matching count."""

    items: tuple[T, ...] = ()
    total: int = Field(default=0, ge=0, description="Matching records in the store")
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_pages(self) -> int:
        """Number of pages needed for ``total`` records."""
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total / self.page_size)


class PropertyFilter(BaseModel):
    """Search criteria. Every field is optional and they combine with AND.

    ``name`` and ``address`` are case-insensitive substring matches; prices
    are inclusive bounds.
    """

    name: str | None = None
    address: str | None = None
    min_price: Decimal | None = Field(default=None, ge=0)
    max_price: Decimal | None = Field(default=None, ge=0)

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }

    @model_validator(mode="after")
    def _check_price_range(self) -> "PropertyFilter":
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.max_price < self.min_price
        ):
            raise ValueError("max_price must be greater than or equal to min_price")
        return self
