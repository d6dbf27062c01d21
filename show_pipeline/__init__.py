"""Card show listing ingestion pipeline."""

__version__ = "0.1.0"
