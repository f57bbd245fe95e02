"""Database connection pool, table management and the Postgres listing store."""

import logging
from collections.abc import Iterable
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Optional

import asyncpg

from propertyhub.identity import owner_identity
from propertyhub.models.records import ImageRecord, OwnerRecord, PropertyRecord, TraceRecord
from propertyhub.stores.base import PropertyStore, StoreError, StoreUnavailableError

logger = logging.getLogger(__name__)

# Global connection pool
_pool: Optional[asyncpg.Pool] = None

PROPERTY_COLUMNS = "id, property_id, name, address, price, code_internal, year, owner_id"
OWNER_COLUMNS = "id, owner_id, name, address, photo, birthday"
IMAGE_COLUMNS = "id, image_id, property_id, file, enabled"
TRACE_COLUMNS = "id, trace_id, property_id, date_sale, name, value, tax"


async def init_pool(database_url: str) -> asyncpg.Pool:
    """Create the connection pool and initialize tables."""
    global _pool
    if not database_url:
        raise RuntimeError("Database URL is not set")

    _pool = await asyncpg.create_pool(database_url, min_size=2, max_size=10)
    await _create_tables()
    logger.info("Database pool created and tables initialized")
    return _pool


async def close_pool():
    """Close the connection pool."""
    global _pool
    if _pool:
        await _pool.close()
        _pool = None
        logger.info("Database pool closed")


def get_pool() -> asyncpg.Pool:
    """Get the current connection pool."""
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")
    return _pool


async def _create_tables():
    """Create tables if they don't exist."""
    async with _pool.acquire() as conn:
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS owners (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL DEFAULT '',
                name TEXT NOT NULL,
                address TEXT NOT NULL DEFAULT '',
                photo TEXT NOT NULL DEFAULT '',
                birthday TIMESTAMPTZ
            )
        """)
        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_owners_owner_id
            ON owners(owner_id)
        """)

        await conn.execute("""
            CREATE TABLE IF NOT EXISTS properties (
                id TEXT PRIMARY KEY,
                property_id TEXT NOT NULL DEFAULT '',
                name TEXT NOT NULL,
                address TEXT NOT NULL DEFAULT '',
                price NUMERIC(18, 2) NOT NULL,
                code_internal TEXT NOT NULL DEFAULT '',
                year INTEGER NOT NULL DEFAULT 0,
                owner_id TEXT NOT NULL DEFAULT ''
            )
        """)
        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_properties_property_id
            ON properties(property_id)
        """)
        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_properties_name
            ON properties(LOWER(name), id)
        """)
        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_properties_price
            ON properties(price)
        """)

        # seq preserves insertion order; it decides which image is "first"
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS property_images (
                seq BIGSERIAL,
                id TEXT PRIMARY KEY,
                image_id TEXT NOT NULL DEFAULT '',
                property_id TEXT NOT NULL,
                file TEXT NOT NULL,
                enabled BOOLEAN NOT NULL DEFAULT TRUE
            )
        """)
        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_property_images_property
            ON property_images(property_id, seq) WHERE enabled
        """)

        await conn.execute("""
            CREATE TABLE IF NOT EXISTS property_traces (
                seq BIGSERIAL,
                id TEXT PRIMARY KEY,
                trace_id TEXT NOT NULL DEFAULT '',
                property_id TEXT NOT NULL,
                date_sale TIMESTAMPTZ NOT NULL,
                name TEXT NOT NULL DEFAULT '',
                value NUMERIC(18, 2) NOT NULL DEFAULT 0,
                tax NUMERIC(18, 2) NOT NULL DEFAULT 0
            )
        """)
        await conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_property_traces_property
            ON property_traces(property_id, date_sale)
        """)


def _like_pattern(value: str) -> str:
    """Substring ILIKE pattern with LIKE wildcards in ``value`` escaped."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _search_conditions(
    name: Optional[str],
    address: Optional[str],
    min_price: Optional[Decimal],
    max_price: Optional[Decimal],
) -> tuple[str, list]:
    """Build the WHERE clause and its parameters for a property search."""
    conditions = []
    params: list = []
    idx = 1

    if name is not None:
        conditions.append(f"name ILIKE ${idx}")
        params.append(_like_pattern(name))
        idx += 1

    if address is not None:
        conditions.append(f"address ILIKE ${idx}")
        params.append(_like_pattern(address))
        idx += 1

    if min_price is not None:
        conditions.append(f"price >= ${idx}")
        params.append(min_price)
        idx += 1

    if max_price is not None:
        conditions.append(f"price <= ${idx}")
        params.append(max_price)
        idx += 1

    where = " AND ".join(conditions) if conditions else "TRUE"
    return where, params


class PostgresPropertyStore(PropertyStore):
    """PropertyStore backed by the asyncpg pool.

    Every batched lookup is a single ``= ANY($1)`` query. The first image of
    a property is its enabled image with the lowest insertion sequence.
    """

    name = "postgres"

    def __init__(self, pool: Optional[asyncpg.Pool] = None):
        """Initialize the store.

        Args:
            pool: Connection pool. Defaults to the module's global pool.
        """
        self._pool = pool

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is not None:
            return self._pool
        if _pool is None:
            raise StoreUnavailableError(self.name, "connection pool not initialized")
        return _pool

    @asynccontextmanager
    async def _connection(self):
        """Acquire a connection, translating driver failures to StoreError."""
        try:
            async with self.pool.acquire() as conn:
                yield conn
        except StoreError:
            raise
        except (OSError, asyncpg.exceptions.InterfaceError) as e:
            raise StoreUnavailableError(self.name, str(e)) from e
        except asyncpg.PostgresError as e:
            raise StoreError(self.name, f"Query failed: {e}") from e

    async def get_paged(
        self, page: int, page_size: int
    ) -> tuple[list[PropertyRecord], int]:
        async with self._connection() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {PROPERTY_COLUMNS} FROM properties
                ORDER BY LOWER(name), id
                LIMIT $1 OFFSET $2
                """,
                page_size, (page - 1) * page_size,
            )
            total = await conn.fetchval("SELECT COUNT(*) FROM properties")
        return [PropertyRecord(**dict(r)) for r in rows], total or 0

    async def search_paged(
        self,
        name: Optional[str],
        address: Optional[str],
        min_price: Optional[Decimal],
        max_price: Optional[Decimal],
        page: int,
        page_size: int,
    ) -> tuple[list[PropertyRecord], int]:
        where, params = _search_conditions(name, address, min_price, max_price)
        idx = len(params) + 1
        query = f"""
            SELECT {PROPERTY_COLUMNS} FROM properties
            WHERE {where}
            ORDER BY LOWER(name), id
            LIMIT ${idx} OFFSET ${idx + 1}
        """

        async with self._connection() as conn:
            rows = await conn.fetch(query, *params, page_size, (page - 1) * page_size)
            total = await conn.fetchval(
                f"SELECT COUNT(*) FROM properties WHERE {where}", *params
            )
        return [PropertyRecord(**dict(r)) for r in rows], total or 0

    async def get_all(self) -> list[PropertyRecord]:
        async with self._connection() as conn:
            rows = await conn.fetch(
                f"SELECT {PROPERTY_COLUMNS} FROM properties ORDER BY LOWER(name), id"
            )
        return [PropertyRecord(**dict(r)) for r in rows]

    async def search(
        self,
        name: Optional[str],
        address: Optional[str],
        min_price: Optional[Decimal],
        max_price: Optional[Decimal],
    ) -> list[PropertyRecord]:
        where, params = _search_conditions(name, address, min_price, max_price)
        async with self._connection() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {PROPERTY_COLUMNS} FROM properties
                WHERE {where}
                ORDER BY LOWER(name), id
                """,
                *params,
            )
        return [PropertyRecord(**dict(r)) for r in rows]

    async def get_by_id(self, id: str) -> Optional[PropertyRecord]:
        # A storage id match sorts ahead of a domain id match
        async with self._connection() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {PROPERTY_COLUMNS} FROM properties
                WHERE id = $1 OR (property_id = $1 AND $1 <> '')
                ORDER BY (id = $1) DESC, id
                LIMIT 1
                """,
                id,
            )
        return PropertyRecord(**dict(row)) if row else None

    async def get_owners_by_keys(
        self, keys: Iterable[str]
    ) -> dict[str, OwnerRecord]:
        wanted = [k for k in set(keys) if k]
        if not wanted:
            return {}
        async with self._connection() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {OWNER_COLUMNS} FROM owners
                WHERE id = ANY($1::text[]) OR owner_id = ANY($1::text[])
                ORDER BY id
                """,
                wanted,
            )
        return owner_identity.rekey((OwnerRecord(**dict(r)) for r in rows), wanted)

    async def get_first_enabled_images_by_property_keys(
        self, keys: Iterable[str]
    ) -> dict[str, ImageRecord]:
        wanted = [k for k in set(keys) if k]
        if not wanted:
            return {}
        async with self._connection() as conn:
            rows = await conn.fetch(
                f"""
                SELECT DISTINCT ON (property_id) {IMAGE_COLUMNS}
                FROM property_images
                WHERE enabled AND property_id = ANY($1::text[])
                ORDER BY property_id, seq
                """,
                wanted,
            )
        return {r["property_id"]: ImageRecord(**dict(r)) for r in rows}

    async def get_enabled_images_by_property_keys(
        self, keys: Iterable[str]
    ) -> dict[str, list[ImageRecord]]:
        wanted = [k for k in set(keys) if k]
        if not wanted:
            return {}
        async with self._connection() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {IMAGE_COLUMNS} FROM property_images
                WHERE enabled AND property_id = ANY($1::text[])
                ORDER BY property_id, seq
                """,
                wanted,
            )
        result: dict[str, list[ImageRecord]] = {}
        for r in rows:
            result.setdefault(r["property_id"], []).append(ImageRecord(**dict(r)))
        return result

    async def get_traces_by_property_keys(
        self, keys: Iterable[str]
    ) -> dict[str, list[TraceRecord]]:
        wanted = [k for k in set(keys) if k]
        if not wanted:
            return {}
        async with self._connection() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {TRACE_COLUMNS} FROM property_traces
                WHERE property_id = ANY($1::text[])
                ORDER BY property_id, date_sale, seq
                """,
                wanted,
            )
        result: dict[str, list[TraceRecord]] = {}
        for r in rows:
            result.setdefault(r["property_id"], []).append(TraceRecord(**dict(r)))
        return result

    def is_available(self) -> bool:
        return self._pool is not None or _pool is not None

    async def close(self) -> None:
        if self._pool is None:
            await close_pool()
