"""Listing aggregation orchestrator.

This module provides the PropertyAggregator class which turns property
records read from the store into list and detail DTOs. It batches every
related-entity lookup, consults the lookaside cache before each batch, and
caches composed pages under a composite query key with a shorter TTL.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any, Optional

from ..config import Settings
from ..config import config as default_config
from ..identity import clean_key, property_identity
from ..models.dto import DetailDTO, ListingDTO, OwnerDTO, PagedResult, PropertyFilter, TraceDTO
from ..models.records import OwnerRecord, PropertyRecord
from ..storage import keys as cache_keys
from ..storage.cache import InMemoryLookasideCache, LookasideCache
from ..stores.base import PropertyStore
from .batch_keys import BatchKeyCollector
from .loaders import BatchLoader, FirstImageLoader, ImageListLoader, OwnerLoader, TraceLoader

logger = logging.getLogger(__name__)

PagedRead = Callable[[], Awaitable[tuple[list[PropertyRecord], int]]]


class PropertyAggregator:
    """Composes listing and detail views from the store's collections.

    Features:
        - One batched store call per related-entity type per request
        - Owner and image batches fetched concurrently
        - Per-entity lookaside caching (long TTL)
        - Composed page caching (short TTL), never for empty pages
        - Storage id / domain id fallback for every related lookup

    Store errors are not retried or wrapped; they reach the caller as
    raised. Page and page size are expected to be normalized already.

    Example:
        aggregator = PropertyAggregator(store)

        page = await aggregator.get_page(page=1, page_size=20)
        found = await aggregator.search(PropertyFilter(name="Casa"), 1, 20)
        detail = await aggregator.get_detail("507f1f77bcf86cd799439011")
    """

    def __init__(
        self,
        store: PropertyStore,
        cache: Optional[LookasideCache] = None,
        settings: Optional[Settings] = None,
    ):
        """Initialize the aggregator.

        Args:
            store: Source of truth for every collection.
            cache: Shared lookaside cache. A private in-memory cache is
                   created when omitted.
            settings: TTL configuration. Defaults to the process settings.
        """
        settings = settings or default_config
        self.store = store
        self.cache: LookasideCache = cache if cache is not None else InMemoryLookasideCache()
        self.entity_ttl = settings.entity_cache_ttl_seconds
        self.query_ttl = settings.query_cache_ttl_seconds

        self.collector = BatchKeyCollector()
        self.owners = OwnerLoader(store)
        self.first_images = FirstImageLoader(store)
        self.image_lists = ImageListLoader(store)
        self.traces = TraceLoader(store)

    # --- Paged entry points ---

    async def get_page(self, page: int, page_size: int) -> PagedResult[ListingDTO]:
        """Get one page of listings.

        Args:
            page: 1-based page number
            page_size: Listings per page

        Returns:
            PagedResult of ListingDTO with the store's total count
        """
        query_key = cache_keys.page_query_key(page, page_size)
        return await self._paged(
            query_key,
            lambda: self.store.get_paged(page, page_size),
            page,
            page_size,
        )

    async def search(
        self, criteria: PropertyFilter, page: int, page_size: int
    ) -> PagedResult[ListingDTO]:
        """Get one page of listings matching ``criteria``.

        Args:
            criteria: Name/address substrings and price bounds
            page: 1-based page number
            page_size: Listings per page

        Returns:
            PagedResult of ListingDTO with the store's matching count
        """
        query_key = cache_keys.search_query_key(criteria, page, page_size)
        return await self._paged(
            query_key,
            lambda: self.store.search_paged(
                criteria.name,
                criteria.address,
                criteria.min_price,
                criteria.max_price,
                page,
                page_size,
            ),
            page,
            page_size,
        )

    async def _paged(
        self, query_key: str, read: PagedRead, page: int, page_size: int
    ) -> PagedResult[ListingDTO]:
        hits, _ = self.cache.partition([query_key])
        if query_key in hits:
            logger.debug(f"Page cache hit: {query_key}")
            return hits[query_key]

        records, total = await read()
        items = await self._to_listings(records)
        result = PagedResult[ListingDTO](
            items=tuple(items), total=total, page=page, page_size=page_size
        )

        # Empty results are cheap to recompute and must not hide new data
        if items:
            self.cache.absorb({query_key: result}, self.query_ttl)
        logger.info(f"Built {query_key}: {len(items)} of {total} listings")
        return result

    # --- Unpaged entry points ---

    async def list_all(self) -> list[ListingDTO]:
        """Get every listing. Not cached as a whole."""
        records = await self.store.get_all()
        return await self._to_listings(records)

    async def search_all(self, criteria: PropertyFilter) -> list[ListingDTO]:
        """Get every listing matching ``criteria``. Not cached as a whole."""
        records = await self.store.search(
            criteria.name, criteria.address, criteria.min_price, criteria.max_price
        )
        return await self._to_listings(records)

    async def get_detail(self, id: str) -> Optional[DetailDTO]:
        """Get a property with its owner, images and sale history.

        Args:
            id: Storage id or domain id of the property

        Returns:
            DetailDTO, or None if the store has no such property. Missing
            related data leaves ``owner`` None and ``images``/``traces``
            empty.
        """
        record = await self.store.get_by_id(id)
        if record is None:
            logger.debug(f"Property not found: {id}")
            return None

        owner_key = clean_key(record.owner_id)
        property_keys = property_identity.resolve(record).present()
        owners, images, traces = await asyncio.gather(
            self._resolve(self.owners, [owner_key] if owner_key else []),
            self._resolve(self.image_lists, property_keys),
            self._resolve(self.traces, property_keys),
        )

        owner = owners.get(owner_key) if owner_key else None
        return DetailDTO(
            id=record.id,
            owner_id=record.owner_id,
            name=record.name,
            address=record.address,
            price=record.price,
            code_internal=record.code_internal,
            year=record.year,
            images=tuple(
                image.file for image in property_identity.lookup(images, record) or ()
            ),
            owner=_owner_dto(owner) if owner else None,
            traces=tuple(
                TraceDTO(
                    trace_id=t.trace_id,
                    date_sale=t.date_sale,
                    name=t.name,
                    value=t.value,
                    tax=t.tax,
                )
                for t in property_identity.lookup(traces, record) or ()
            ),
        )

    async def get_property_image(self, property_id: str) -> Optional[str]:
        """Get the first enabled image file stored against ``property_id``."""
        key = clean_key(property_id)
        if key is None:
            return None
        images = await self._resolve(self.first_images, [key])
        image = images.get(key)
        return image.file if image else None

    # --- Batch resolution ---

    async def _resolve(self, loader: BatchLoader, keys: Iterable[str]) -> dict[str, Any]:
        """Resolve keys through the cache, loading only the misses."""
        namespace = loader.namespace
        hits, misses = self.cache.partition(
            cache_keys.entity_key(namespace, key) for key in keys
        )
        resolved = {
            cache_keys.strip_namespace(namespace, cache_key): value
            for cache_key, value in hits.items()
        }
        if not misses:
            return resolved

        loaded = await loader.load_many(
            cache_keys.strip_namespace(namespace, cache_key) for cache_key in misses
        )
        self.cache.absorb(
            {cache_keys.entity_key(namespace, k): v for k, v in loaded.items()},
            self.entity_ttl,
        )
        resolved.update(loaded)
        return resolved

    async def _to_listings(self, records: Sequence[PropertyRecord]) -> list[ListingDTO]:
        if not records:
            return []

        owner_keys, property_keys = self.collector.collect(records)
        owners, images = await asyncio.gather(
            self._resolve(self.owners, owner_keys),
            self._resolve(self.first_images, property_keys),
        )

        listings = []
        for record in records:
            owner_key = clean_key(record.owner_id)
            owner = owners.get(owner_key) if owner_key else None
            image = property_identity.lookup(images, record)
            listings.append(
                ListingDTO(
                    id=record.id,
                    owner_id=record.owner_id,
                    name=record.name,
                    address=record.address,
                    price=record.price,
                    image=image.file if image else "",
                    owner_name=owner.name if owner else "",
                )
            )
        return listings


def _owner_dto(owner: OwnerRecord) -> OwnerDTO:
    return OwnerDTO(
        id=owner.id,
        owner_id=owner.owner_id,
        name=owner.name,
        address=owner.address,
        photo=owner.photo,
        birthday=owner.birthday,
    )
