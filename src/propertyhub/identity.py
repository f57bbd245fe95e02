"""Dual identifier resolution.

Properties and owners can be addressed by the id the store assigned
(storage id) or by the id the business assigned (domain id), and related
records may reference either one. All fallback between the two lives here
so that retiring one scheme touches only this module.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Optional, TypeVar

V = TypeVar("V")


@dataclass(frozen=True)
class IdentityKeys:
    """Canonical lookup keys for one entity, in resolution order."""

    primary: Optional[str]
    secondary: Optional[str] = None

    def present(self) -> tuple[str, ...]:
        """The keys that are actually set, primary first."""
        return tuple(k for k in (self.primary, self.secondary) if k)


def clean_key(value: Optional[str]) -> Optional[str]:
    """Return ``value`` stripped, or None when it is missing or blank."""
    if value is None:
        return None
    value = value.strip()
    return value or None


class IdentityResolver:
    """Resolves entities addressable by storage id or domain id.

    Policy: the storage id is always tried first; the domain id is a
    fallback and only when it is non-blank. A missing identifier is skipped,
    never an error.

    Args:
        domain_attr: Attribute holding the domain id on the entities this
            resolver handles (``property_id`` for properties, ``owner_id``
            for owners).
    """

    def __init__(self, domain_attr: str):
        self.domain_attr = domain_attr

    def _ids(self, record: Any) -> tuple[Optional[str], Optional[str]]:
        return (
            clean_key(record.id),
            clean_key(getattr(record, self.domain_attr, None)),
        )

    def resolve(self, record: Any) -> IdentityKeys:
        """Get the keys under which ``record`` is looked up and cached."""
        storage_id, domain_id = self._ids(record)
        if storage_id is None:
            return IdentityKeys(domain_id)
        if domain_id == storage_id:
            domain_id = None
        return IdentityKeys(storage_id, domain_id)

    def lookup(self, values: Mapping[str, V], record: Any) -> Optional[V]:
        """Get the value for ``record``, by storage id then by domain id.

        Empty values (e.g. an empty image list) count as not found, so the
        domain id is consulted.
        """
        for key in self.resolve(record).present():
            value = values.get(key)
            if value:
                return value
        return None

    def rekey(self, entities: Iterable[V], requested: Iterable[str]) -> dict[str, V]:
        """Map every requested key to the entity it resolves to.

        When one entity was requested under both identifiers, both keys get
        an entry. When a key is one entity's storage id and another's domain
        id, the storage id match wins.
        """
        by_storage: dict[str, V] = {}
        by_domain: dict[str, V] = {}
        for entity in entities:
            storage_id, domain_id = self._ids(entity)
            if storage_id is not None:
                by_storage.setdefault(storage_id, entity)
            if domain_id is not None:
                by_domain.setdefault(domain_id, entity)

        result: dict[str, V] = {}
        for key in set(requested):
            if key in by_storage:
                result[key] = by_storage[key]
            elif key in by_domain:
                result[key] = by_domain[key]
        return result

    def with_aliases(self, values: Mapping[str, V]) -> dict[str, V]:
        """Add every found entity under its own storage id and domain id.

        A lookup made through one identifier then also fills the cache for
        the other. Existing keys are kept, and a domain id that is some
        found entity's storage id is not aliased.
        """
        result = dict(values)
        entities = list(result.values())
        storage_ids = {self._ids(entity)[0] for entity in entities}
        for entity in entities:
            storage_id, domain_id = self._ids(entity)
            if storage_id is not None:
                result.setdefault(storage_id, entity)
            if domain_id is not None and domain_id not in storage_ids:
                result.setdefault(domain_id, entity)
        return result


property_identity = IdentityResolver("property_id")
owner_identity = IdentityResolver("owner_id")
