"""Listing store collaborators.

Main Components:
    - PropertyStore: Abstract base class for every store
    - InMemoryPropertyStore: List-backed store for development and tests
    - StoreError / StoreUnavailableError: Failures raised by stores

The Postgres store lives with the API process in ``backend/app/db.py``.
"""

from .base import PropertyStore, StoreError, StoreUnavailableError
from .memory import InMemoryPropertyStore

__all__ = [
    "PropertyStore",
    "StoreError",
    "StoreUnavailableError",
    "InMemoryPropertyStore",
]
