"""Pytest fixtures and test utilities."""

from datetime import datetime
from decimal import Decimal

import pytest

from propertyhub.aggregation import PropertyAggregator
from propertyhub.config import Settings
from propertyhub.models.records import ImageRecord, OwnerRecord, PropertyRecord, TraceRecord
from propertyhub.storage import InMemoryLookasideCache
from propertyhub.stores import InMemoryPropertyStore

ENTITY_TTL = 1800
QUERY_TTL = 300


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingStore(InMemoryPropertyStore):
    """In-memory store that records every call it receives."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls: list[tuple[str, tuple]] = []

    def calls_to(self, method: str) -> list[tuple]:
        """Arguments of every call to ``method``, in order."""
        return [args for name, args in self.calls if name == method]

    async def get_paged(self, page, page_size):
        self.calls.append(("get_paged", (page, page_size)))
        return await super().get_paged(page, page_size)

    async def search_paged(self, name, address, min_price, max_price, page, page_size):
        self.calls.append(
            ("search_paged", (name, address, min_price, max_price, page, page_size))
        )
        return await super().search_paged(
            name, address, min_price, max_price, page, page_size
        )

    async def get_all(self):
        self.calls.append(("get_all", ()))
        return await super().get_all()

    async def search(self, name, address, min_price, max_price):
        self.calls.append(("search", (name, address, min_price, max_price)))
        return await super().search(name, address, min_price, max_price)

    async def get_by_id(self, id):
        self.calls.append(("get_by_id", (id,)))
        return await super().get_by_id(id)

    async def get_owners_by_keys(self, keys):
        keys = sorted(keys)
        self.calls.append(("get_owners_by_keys", (keys,)))
        return await super().get_owners_by_keys(keys)

    async def get_first_enabled_images_by_property_keys(self, keys):
        keys = sorted(keys)
        self.calls.append(("get_first_enabled_images_by_property_keys", (keys,)))
        return await super().get_first_enabled_images_by_property_keys(keys)

    async def get_enabled_images_by_property_keys(self, keys):
        keys = sorted(keys)
        self.calls.append(("get_enabled_images_by_property_keys", (keys,)))
        return await super().get_enabled_images_by_property_keys(keys)

    async def get_traces_by_property_keys(self, keys):
        keys = sorted(keys)
        self.calls.append(("get_traces_by_property_keys", (keys,)))
        return await super().get_traces_by_property_keys(keys)


def make_property(
    id: str,
    property_id: str = "",
    name: str = "Casa",
    owner_id: str = "",
    price: int = 250000,
    address: str = "Calle 5 #10, Medellin",
) -> PropertyRecord:
    """PropertyRecord with sensible defaults."""
    return PropertyRecord(
        id=id,
        property_id=property_id,
        name=name,
        address=address,
        price=Decimal(price),
        code_internal=f"CODE-{id}",
        year=2015,
        owner_id=owner_id,
    )


@pytest.fixture
def clock() -> ManualClock:
    """Manually advanced clock."""
    return ManualClock()


@pytest.fixture
def cache(clock: ManualClock) -> InMemoryLookasideCache:
    """Empty cache driven by the manual clock."""
    return InMemoryLookasideCache(clock=clock)


@pytest.fixture
def settings() -> Settings:
    """Settings with the default TTLs, independent of the environment."""
    return Settings(
        entity_cache_ttl_seconds=ENTITY_TTL,
        query_cache_ttl_seconds=QUERY_TTL,
        _env_file=None,
    )


@pytest.fixture
def owner() -> OwnerRecord:
    """Owner addressable as 'o1' (storage) or 'OWNER001' (domain)."""
    return OwnerRecord(
        id="o1",
        owner_id="OWNER001",
        name="Juan Perez",
        address="Av. Principal 12",
        photo="https://example.com/owners/juan.jpg",
        birthday=datetime(1980, 5, 17),
    )


@pytest.fixture
def other_owner() -> OwnerRecord:
    """Second owner, only known by its storage id in properties."""
    return OwnerRecord(id="o2", owner_id="OWNER002", name="Ana Garcia")


@pytest.fixture
def properties() -> list[PropertyRecord]:
    """Three properties; two share OWNER001."""
    return [
        make_property("p1", "PROP001", name="Casa Azul", owner_id="OWNER001", price=300000),
        make_property("p2", "PROP002", name="Casa Verde", owner_id="OWNER001", price=450000),
        make_property(
            "p3", "", name="Apartamento Centro", owner_id="o2", price=150000,
            address="Carrera 43 #1, Bogota",
        ),
    ]


@pytest.fixture
def images() -> list[ImageRecord]:
    """Images stored against both identifier forms, some disabled."""
    return [
        ImageRecord(id="i1", property_id="p1", file="p1-disabled.jpg", enabled=False),
        ImageRecord(id="i2", property_id="p1", file="p1-front.jpg"),
        ImageRecord(id="i3", property_id="p1", file="p1-back.jpg"),
        # p2's images were stored against its domain id
        ImageRecord(id="i4", property_id="PROP002", file="p2-front.jpg"),
    ]


@pytest.fixture
def traces() -> list[TraceRecord]:
    """Sale history for p1, inserted out of date order."""
    return [
        TraceRecord(
            id="t2", trace_id="TR2", property_id="p1", date_sale=datetime(2021, 3, 1),
            name="Venta", value=Decimal("280000"), tax=Decimal("5600"),
        ),
        TraceRecord(
            id="t1", trace_id="TR1", property_id="p1", date_sale=datetime(2018, 7, 9),
            name="Compra inicial", value=Decimal("200000"), tax=Decimal("4000"),
        ),
        TraceRecord(
            id="t3", trace_id="TR3", property_id="p1", date_sale=datetime(2019, 1, 15),
            name="Remodelacion", value=Decimal("230000"), tax=Decimal("4600"),
        ),
    ]


@pytest.fixture
def store(
    properties: list[PropertyRecord],
    owner: OwnerRecord,
    other_owner: OwnerRecord,
    images: list[ImageRecord],
    traces: list[TraceRecord],
) -> CountingStore:
    """Counting store seeded with the sample collections."""
    return CountingStore(
        properties=properties,
        owners=[owner, other_owner],
        images=images,
        traces=traces,
    )


@pytest.fixture
def aggregator(
    store: CountingStore, cache: InMemoryLookasideCache, settings: Settings
) -> PropertyAggregator:
    """Aggregator over the sample store with a manual-clock cache."""
    return PropertyAggregator(store, cache=cache, settings=settings)
