"""Promotion of staged shows into production."""

from show_pipeline.promoters.transfer import (
    Promoter,
    TransferSummary,
    detect_features,
    map_to_show_schema,
    print_transfer_summary,
)

__all__ = ["Promoter", "TransferSummary", "detect_features", "map_to_show_schema", "print_transfer_summary"]
