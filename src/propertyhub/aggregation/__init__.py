"""Read aggregation for property listings.

This package turns pages of property records into UI-ready DTOs while
batching and caching every related-entity lookup.

Main Components:
    - IdentityResolver: Storage id / domain id fallback
    - BatchKeyCollector: Distinct owner and property keys for a batch
    - BatchLoader subclasses: One store call per related-entity type
    - PropertyAggregator: Paged, search and detail entry points
"""

from ..identity import IdentityKeys, IdentityResolver, owner_identity, property_identity
from .aggregator import PropertyAggregator
from .batch_keys import BatchKeyCollector, BatchKeys
from .loaders import BatchLoader, FirstImageLoader, ImageListLoader, OwnerLoader, TraceLoader

__all__ = [
    "PropertyAggregator",
    "BatchKeyCollector",
    "BatchKeys",
    "IdentityKeys",
    "IdentityResolver",
    "owner_identity",
    "property_identity",
    "BatchLoader",
    "OwnerLoader",
    "FirstImageLoader",
    "ImageListLoader",
    "TraceLoader",
]
