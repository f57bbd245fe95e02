"""API routers."""

from . import properties

__all__ = ["properties"]
