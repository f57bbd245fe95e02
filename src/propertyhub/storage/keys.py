"""Cache key builders. Single place for key format.

Entity keys are namespaced so one process-wide cache can hold owners,
images, traces and composed pages side by side. Query keys encode every
parameter of a paged read in a fixed order; absent filters render as a
sentinel so that "no filter" never collides with "empty filter".
"""

from decimal import Decimal
from urllib.parse import quote

from ..models.dto import PropertyFilter

CACHE_KEY_SEP = "|"

OWNER_NAMESPACE = "owner"
FIRST_IMAGE_NAMESPACE = "image:first"
IMAGE_LIST_NAMESPACE = "image:all"
TRACE_NAMESPACE = "trace"
QUERY_NAMESPACE = "query"

# Rendered in place of "=<value>" when a filter field is None
ABSENT = "~"


def entity_key(namespace: str, key: str) -> str:
    """Cache key for one related-entity lookup (e.g. ``owner|OWNER001``)."""
    return f"{namespace}{CACHE_KEY_SEP}{key}"


def strip_namespace(namespace: str, cache_key: str) -> str:
    """Inverse of :func:`entity_key`."""
    return cache_key[len(namespace) + len(CACHE_KEY_SEP):]


def _text_field(name: str, value: str | None) -> str:
    if value is None:
        return f"{name}{ABSENT}"
    # Percent-encoding keeps the separator out of user-supplied text
    return f"{name}={quote(value.lower(), safe='')}"


def _price_field(name: str, value: Decimal | None) -> str:
    if value is None:
        return f"{name}{ABSENT}"
    # 100000, 100000.0 and 1E+5 must all render the same
    return f"{name}={format(value.normalize(), 'f')}"


def page_query_key(page: int, page_size: int) -> str:
    """Cache key for an unfiltered page."""
    return CACHE_KEY_SEP.join(
        [QUERY_NAMESPACE, "page", f"page={page}", f"size={page_size}"]
    )


def search_query_key(criteria: PropertyFilter, page: int, page_size: int) -> str:
    """Cache key for a filtered page.

    Text filters are lower-cased as ILIKE does. casefold() is not used:
    it maps "Straße" and "STRASSE" to one key, which Postgres keeps apart.
    """
    return CACHE_KEY_SEP.join(
        [
            QUERY_NAMESPACE,
            "search",
            _text_field("name", criteria.name),
            _text_field("address", criteria.address),
            _price_field("min", criteria.min_price),
            _price_field("max", criteria.max_price),
            f"page={page}",
            f"size={page_size}",
        ]
    )
