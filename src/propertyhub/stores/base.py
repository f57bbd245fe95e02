"""Abstract base class for listing stores.

This module defines the PropertyStore interface the aggregation layer reads
from. The store owns the data; the aggregation layer only ever reads it,
batching related-entity lookups through the ``*_by_keys`` methods.

Example usage:
    class MyStore(PropertyStore):
        name = "my_store"

        async def get_paged(self, page, page_size):
            ...

        def is_available(self):
            return True
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from decimal import Decimal
from typing import Optional

from ..models.records import ImageRecord, OwnerRecord, PropertyRecord, TraceRecord


class PropertyStore(ABC):
    """Abstract base class for listing stores.

    Every batched method receives a collection of keys and must resolve all
    of them in a single round-trip. Keys with no matching record are simply
    absent from the returned mapping.

    Search semantics shared by all implementations:
    - ``name`` and ``address`` are case-insensitive substring matches
    - ``min_price`` and ``max_price`` are inclusive bounds
    - criteria combine with AND; ``None`` means "not filtered"
    - results are ordered by name, then storage id; pages are 1-based

    Attributes:
        name: Identifier used in logs and error messages (e.g., "postgres")
    """

    name: str

    @abstractmethod
    async def get_paged(
        self, page: int, page_size: int
    ) -> tuple[list[PropertyRecord], int]:
        """Get one page of properties.

        Returns:
            ``(records, total)`` where ``total`` counts every property

        Raises:
            StoreError: If the store is unavailable or the read fails
        """

    @abstractmethod
    async def search_paged(
        self,
        name: Optional[str],
        address: Optional[str],
        min_price: Optional[Decimal],
        max_price: Optional[Decimal],
        page: int,
        page_size: int,
    ) -> tuple[list[PropertyRecord], int]:
        """Get one page of properties matching the criteria.

        Returns:
            ``(records, total)`` where ``total`` counts every match

        Raises:
            StoreError: If the store is unavailable or the read fails
        """

    @abstractmethod
    async def get_all(self) -> list[PropertyRecord]:
        """Get every property, in search order."""

    @abstractmethod
    async def search(
        self,
        name: Optional[str],
        address: Optional[str],
        min_price: Optional[Decimal],
        max_price: Optional[Decimal],
    ) -> list[PropertyRecord]:
        """Get every property matching the criteria, unpaged."""

    @abstractmethod
    async def get_by_id(self, id: str) -> Optional[PropertyRecord]:
        """Get a single property.

        The storage id is tried first; a property whose domain id equals
        ``id`` is returned only when no storage id matches.

        Returns:
            PropertyRecord, or None if not found
        """

    @abstractmethod
    async def get_owners_by_keys(
        self, keys: Iterable[str]
    ) -> dict[str, OwnerRecord]:
        """Get owners whose storage id or domain id is in ``keys``.

        Returns:
            Mapping of requested key to owner
        """

    @abstractmethod
    async def get_first_enabled_images_by_property_keys(
        self, keys: Iterable[str]
    ) -> dict[str, ImageRecord]:
        """Get the first enabled image of each property key."""

    @abstractmethod
    async def get_enabled_images_by_property_keys(
        self, keys: Iterable[str]
    ) -> dict[str, list[ImageRecord]]:
        """Get every enabled image of each property key."""

    @abstractmethod
    async def get_traces_by_property_keys(
        self, keys: Iterable[str]
    ) -> dict[str, list[TraceRecord]]:
        """Get the sale history of each property key."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this store is configured and ready to serve reads."""

    async def close(self) -> None:
        """Release any resources held by the store."""


class StoreError(Exception):
    """Base exception for store errors.

    Attributes:
        store: Name of the store that raised the error
        message: Error description
    """

    def __init__(self, store: str, message: str):
        self.store = store
        self.message = message
        super().__init__(f"[{store}] {message}")


class StoreUnavailableError(StoreError):
    """Raised when the store cannot be reached or is not configured."""

    def __init__(self, store: str, reason: Optional[str] = None):
        message = "Store unavailable"
        if reason:
            message += f": {reason}"
        super().__init__(store, message)
