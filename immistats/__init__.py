"""Immigration processing statistics — normalization, aggregation, and wait estimation."""
__version__ = "1.0.0"
