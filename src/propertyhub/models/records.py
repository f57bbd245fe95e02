"""Store record models.

Immutable snapshots of the four listing collections as read from the store.
The aggregation layer never owns these; cached copies are frozen so nothing
downstream can mutate a shared value in place.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class PropertyRecord(BaseModel):
    """A property listing as stored.

    Properties carry two identifiers: ``id`` assigned by the store and
    ``property_id`` assigned by the business. Related images and traces may
    reference either one.
    """

    # Identification
    id: str = Field(..., description="Storage id")
    property_id: str = Field(default="", description="Domain id (may be blank)")

    # Listing details
    name: str = Field(..., description="Listing name")
    address: str = Field(default="", description="Street address")
    price: Decimal = Field(..., ge=0, description="Asking price")
    code_internal: str = Field(default="", description="Internal catalogue code")
    year: int = Field(default=0, ge=0, description="Construction year")

    # Owner key: either the owner's storage id or its domain id
    owner_id: str = Field(default="", description="Owner key")

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }


class OwnerRecord(BaseModel):
    """A property owner as stored."""

    id: str = Field(..., description="Storage id")
    owner_id: str = Field(default="", description="Domain id (may be blank)")
    name: str = Field(..., description="Owner full name")
    address: str = Field(default="")
    photo: str = Field(default="", description="Photo URL or path")
    birthday: datetime | None = Field(default=None)

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }


class ImageRecord(BaseModel):
    """A property image. Only enabled images are ever shown."""

    id: str = Field(..., description="Storage id")
    image_id: str = Field(default="", description="Domain id of the image")
    property_id: str = Field(..., description="Owning property key (either id form)")
    file: str = Field(..., description="Image URL or path")
    enabled: bool = Field(default=True)

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }


class TraceRecord(BaseModel):
    """One entry of a property's sale history."""

    id: str = Field(..., description="Storage id")
    trace_id: str = Field(default="", description="Domain id of the trace")
    property_id: str = Field(..., description="Owning property key (either id form)")
    date_sale: datetime = Field(..., description="Sale date")
    name: str = Field(default="", description="Trace label")
    value: Decimal = Field(default=Decimal("0"), ge=0, description="Sale value")
    tax: Decimal = Field(default=Decimal("0"), ge=0, description="Tax paid on the sale")

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }
