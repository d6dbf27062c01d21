"""JSON-file stores for staging, production and source scores."""

from show_pipeline.stores.base import JsonTable
from show_pipeline.stores.staging import StagingStore
from show_pipeline.stores.production import ProductionStore
from show_pipeline.stores.sources import SourceScoreStore

__all__ = ["JsonTable", "StagingStore", "ProductionStore", "SourceScoreStore"]
