"""CastCheck: deterministic arithmetic verification of financial statements."""

__version__ = "1.0.0"
