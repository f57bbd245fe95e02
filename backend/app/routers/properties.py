"""Property listing API endpoints."""

import logging
from decimal import Decimal
from typing import Any, Generic, Optional, TypeVar

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from propertyhub.aggregation import PropertyAggregator
from propertyhub.config import config
from propertyhub.models.dto import DetailDTO, ListingDTO, PagedResult, PropertyFilter

from ..constants import (
    DEFAULT_PAGE,
    MSG_DETAIL_OK,
    MSG_IMAGE_NOT_FOUND,
    MSG_IMAGE_OK,
    MSG_INVALID_FILTER,
    MSG_NOT_FOUND,
    MSG_PAGE_OK,
    MSG_SEARCH_OK,
)

router = APIRouter()
logger = logging.getLogger(__name__)

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope wrapping every response body."""
    success: bool
    message: str = ""
    data: Optional[T] = None
    errors: list[str] = Field(default_factory=list)


class PropertyImageResponse(BaseModel):
    """First enabled image of a property."""
    property_id: str
    image: str


def error_response(status_code: int, message: str, errors: Optional[list[str]] = None) -> JSONResponse:
    """Build an error envelope response."""
    body = ApiResponse[Any](success=False, message=message, errors=errors or [])
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def normalize_paging(page: int, page_size: Optional[int]) -> tuple[int, int]:
    """Clamp paging input: page >= 1 and 1 <= page_size <= max."""
    page = DEFAULT_PAGE if page <= 0 else page
    if page_size is None or page_size <= 0:
        page_size = config.default_page_size
    return page, min(page_size, config.max_page_size)


def get_aggregator(request: Request) -> PropertyAggregator:
    return request.app.state.aggregator


@router.get("", response_model=ApiResponse[PagedResult[ListingDTO]])
async def list_properties(
    page: int = Query(default=DEFAULT_PAGE, description="1-based page number"),
    page_size: Optional[int] = Query(default=None, description="Listings per page"),
    aggregator: PropertyAggregator = Depends(get_aggregator),
):
    """Get a page of listings with image and owner name."""
    page, page_size = normalize_paging(page, page_size)
    result = await aggregator.get_page(page, page_size)
    return ApiResponse[PagedResult[ListingDTO]](success=True, message=MSG_PAGE_OK, data=result)


@router.get("/search", response_model=ApiResponse[PagedResult[ListingDTO]])
async def search_properties(
    name: Optional[str] = Query(default=None, description="Name contains (case-insensitive)"),
    address: Optional[str] = Query(default=None, description="Address contains (case-insensitive)"),
    min_price: Optional[Decimal] = Query(default=None),
    max_price: Optional[Decimal] = Query(default=None),
    page: int = Query(default=DEFAULT_PAGE),
    page_size: Optional[int] = Query(default=None),
    aggregator: PropertyAggregator = Depends(get_aggregator),
):
    """Search listings. All filters are optional and combine with AND."""
    try:
        criteria = PropertyFilter(
            name=name, address=address, min_price=min_price, max_price=max_price
        )
    except ValidationError as e:
        errors = [err["msg"] for err in e.errors()]
        logger.warning(f"Rejected search filter: {errors}")
        return error_response(400, MSG_INVALID_FILTER, errors)

    page, page_size = normalize_paging(page, page_size)
    result = await aggregator.search(criteria, page, page_size)
    return ApiResponse[PagedResult[ListingDTO]](success=True, message=MSG_SEARCH_OK, data=result)


@router.get("/{property_id}", response_model=ApiResponse[DetailDTO])
async def get_property(
    property_id: str,
    aggregator: PropertyAggregator = Depends(get_aggregator),
):
    """Get a property with all images, its owner and sale history."""
    detail = await aggregator.get_detail(property_id)
    if detail is None:
        return error_response(404, MSG_NOT_FOUND)
    return ApiResponse[DetailDTO](success=True, message=MSG_DETAIL_OK, data=detail)


@router.get("/{property_id}/image", response_model=ApiResponse[PropertyImageResponse])
async def get_property_image(
    property_id: str,
    aggregator: PropertyAggregator = Depends(get_aggregator),
):
    """Get the first enabled image stored against a property key."""
    image = await aggregator.get_property_image(property_id)
    if image is None:
        return error_response(404, MSG_IMAGE_NOT_FOUND)
    return ApiResponse[PropertyImageResponse](
        success=True,
        message=MSG_IMAGE_OK,
        data=PropertyImageResponse(property_id=property_id, image=image),
    )
