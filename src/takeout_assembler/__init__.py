"""Google Photos Takeout reconciliation toolkit."""

__version__ = "0.1.0"
