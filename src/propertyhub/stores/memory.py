"""In-memory listing store.

Holds the four collections in plain lists, in insertion order. Used for
local development, for the API when no database is configured, and by the
test suite.
"""

import logging
from collections.abc import Iterable
from decimal import Decimal
from typing import Optional

from ..identity import owner_identity
from ..models.records import ImageRecord, OwnerRecord, PropertyRecord, TraceRecord
from .base import PropertyStore

logger = logging.getLogger(__name__)


def _paginate(records: list, page: int, page_size: int) -> list:
    start = (page - 1) * page_size
    return records[start:start + page_size]


class InMemoryPropertyStore(PropertyStore):
    """List-backed PropertyStore.

    "First" image means first in insertion order among enabled images.

    Example:
        store = InMemoryPropertyStore(
            properties=[...],
            owners=[...],
        )
        records, total = await store.get_paged(page=1, page_size=20)
    """

    name = "memory"

    def __init__(
        self,
        properties: Optional[Iterable[PropertyRecord]] = None,
        owners: Optional[Iterable[OwnerRecord]] = None,
        images: Optional[Iterable[ImageRecord]] = None,
        traces: Optional[Iterable[TraceRecord]] = None,
    ):
        self.properties: list[PropertyRecord] = list(properties or [])
        self.owners: list[OwnerRecord] = list(owners or [])
        self.images: list[ImageRecord] = list(images or [])
        self.traces: list[TraceRecord] = list(traces or [])
        logger.debug(
            f"In-memory store: {len(self.properties)} properties, "
            f"{len(self.owners)} owners, {len(self.images)} images, "
            f"{len(self.traces)} traces"
        )

    def _ordered(self, records: Iterable[PropertyRecord]) -> list[PropertyRecord]:
        return sorted(records, key=lambda p: (p.name.lower(), p.id))

    def _matches(
        self,
        record: PropertyRecord,
        name: Optional[str],
        address: Optional[str],
        min_price: Optional[Decimal],
        max_price: Optional[Decimal],
    ) -> bool:
        if name is not None and name.lower() not in record.name.lower():
            return False
        if address is not None and address.lower() not in record.address.lower():
            return False
        if min_price is not None and record.price < min_price:
            return False
        if max_price is not None and record.price > max_price:
            return False
        return True

    async def get_paged(
        self, page: int, page_size: int
    ) -> tuple[list[PropertyRecord], int]:
        ordered = self._ordered(self.properties)
        return _paginate(ordered, page, page_size), len(ordered)

    async def search_paged(
        self,
        name: Optional[str],
        address: Optional[str],
        min_price: Optional[Decimal],
        max_price: Optional[Decimal],
        page: int,
        page_size: int,
    ) -> tuple[list[PropertyRecord], int]:
        matches = await self.search(name, address, min_price, max_price)
        return _paginate(matches, page, page_size), len(matches)

    async def get_all(self) -> list[PropertyRecord]:
        return self._ordered(self.properties)

    async def search(
        self,
        name: Optional[str],
        address: Optional[str],
        min_price: Optional[Decimal],
        max_price: Optional[Decimal],
    ) -> list[PropertyRecord]:
        return self._ordered(
            p for p in self.properties
            if self._matches(p, name, address, min_price, max_price)
        )

    async def get_by_id(self, id: str) -> Optional[PropertyRecord]:
        for record in self.properties:
            if record.id == id:
                return record
        if not id:
            return None
        for record in self.properties:
            if record.property_id == id:
                return record
        return None

    async def get_owners_by_keys(
        self, keys: Iterable[str]
    ) -> dict[str, OwnerRecord]:
        wanted = {k for k in keys if k}
        return owner_identity.rekey(self.owners, wanted)

    async def get_first_enabled_images_by_property_keys(
        self, keys: Iterable[str]
    ) -> dict[str, ImageRecord]:
        wanted = {k for k in keys if k}
        result: dict[str, ImageRecord] = {}
        for image in self.images:
            if image.enabled and image.property_id in wanted:
                result.setdefault(image.property_id, image)
        return result

    async def get_enabled_images_by_property_keys(
        self, keys: Iterable[str]
    ) -> dict[str, list[ImageRecord]]:
        wanted = {k for k in keys if k}
        result: dict[str, list[ImageRecord]] = {}
        for image in self.images:
            if image.enabled and image.property_id in wanted:
                result.setdefault(image.property_id, []).append(image)
        return result

    async def get_traces_by_property_keys(
        self, keys: Iterable[str]
    ) -> dict[str, list[TraceRecord]]:
        wanted = {k for k in keys if k}
        result: dict[str, list[TraceRecord]] = {}
        for trace in self.traces:
            if trace.property_id in wanted:
                result.setdefault(trace.property_id, []).append(trace)
        return result

    def is_available(self) -> bool:
        return True
