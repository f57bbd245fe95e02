"""Key collection for batched related-entity lookups."""

from collections.abc import Iterable
from typing import NamedTuple

from ..identity import IdentityResolver, clean_key, property_identity
from ..models.records import PropertyRecord


class BatchKeys(NamedTuple):
    """Distinct keys needed to resolve a batch of properties."""

    owner_keys: frozenset[str]
    property_keys: frozenset[str]


class BatchKeyCollector:
    """Derives the owner and property key sets for a batch of properties.

    Property keys include both identifier forms of every property, since
    images and traces may have been stored against either. Blank keys are
    dropped and duplicates collapse. Pure: the same batch always yields the
    same keys.
    """

    def __init__(self, identity: IdentityResolver = property_identity):
        self.identity = identity

    def collect(self, records: Iterable[PropertyRecord]) -> BatchKeys:
        owner_keys: set[str] = set()
        property_keys: set[str] = set()

        for record in records:
            owner_key = clean_key(record.owner_id)
            if owner_key is not None:
                owner_keys.add(owner_key)
            property_keys.update(self.identity.resolve(record).present())

        return BatchKeys(frozenset(owner_keys), frozenset(property_keys))
