"""PropertyHub: batched, cached read aggregation for real estate listings."""

__version__ = "0.1.0"
