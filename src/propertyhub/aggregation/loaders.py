"""Batch loaders for entities related to a property.

Each loader resolves many keys with exactly one store call. Loaders do no
caching themselves; the aggregator puts the lookaside cache in front of them.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from ..identity import owner_identity
from ..models.records import ImageRecord, OwnerRecord, TraceRecord
from ..storage import keys as cache_keys
from ..stores.base import PropertyStore

logger = logging.getLogger(__name__)


class BatchLoader(ABC):
    """Base class for batched loaders.

    Attributes:
        namespace: Cache namespace the loaded values are stored under
    """

    namespace: str

    def __init__(self, store: PropertyStore):
        self.store = store

    async def load_many(self, keys: Iterable[str]) -> dict[str, Any]:
        """Load every key in one store request.

        Args:
            keys: Keys to resolve. An empty collection makes no store call.

        Returns:
            Mapping of requested key to entity (or tuple of entities). Keys
            with nothing in the store are absent.

        Raises:
            StoreError: Propagated unchanged from the store
        """
        wanted = sorted(set(keys))
        if not wanted:
            return {}

        loaded = await self._fetch(wanted)
        logger.debug(
            f"{type(self).__name__}: {len(loaded)} entries for {len(wanted)} keys"
        )
        return loaded

    @abstractmethod
    async def _fetch(self, keys: list[str]) -> dict[str, Any]:
        """Issue the single batched store request for ``keys``."""


class OwnerLoader(BatchLoader):
    """Owners by storage id or domain id.

    Every owner found is returned under the requested key and also under
    both of its own identifiers, so either one hits the cache afterwards.
    """

    namespace = cache_keys.OWNER_NAMESPACE

    async def _fetch(self, keys: list[str]) -> dict[str, OwnerRecord]:
        owners = await self.store.get_owners_by_keys(keys)
        return owner_identity.with_aliases(owner_identity.rekey(owners.values(), keys))


class FirstImageLoader(BatchLoader):
    """First enabled image per property key.

    "First" is the store's return order; see each store for what that is.
    """

    namespace = cache_keys.FIRST_IMAGE_NAMESPACE

    async def _fetch(self, keys: list[str]) -> dict[str, ImageRecord]:
        images = await self.store.get_first_enabled_images_by_property_keys(keys)
        return {key: image for key, image in images.items() if image.enabled}


class ImageListLoader(BatchLoader):
    """Every enabled image per property key."""

    namespace = cache_keys.IMAGE_LIST_NAMESPACE

    async def _fetch(self, keys: list[str]) -> dict[str, tuple[ImageRecord, ...]]:
        images = await self.store.get_enabled_images_by_property_keys(keys)
        result = {}
        for key, found in images.items():
            enabled = tuple(image for image in found if image.enabled)
            if enabled:
                result[key] = enabled
        return result


class TraceLoader(BatchLoader):
    """Sale history per property key, oldest sale first."""

    namespace = cache_keys.TRACE_NAMESPACE

    async def _fetch(self, keys: list[str]) -> dict[str, tuple[TraceRecord, ...]]:
        traces = await self.store.get_traces_by_property_keys(keys)
        return {
            key: tuple(sorted(found, key=lambda t: t.date_sale))
            for key, found in traces.items()
            if found
        }
