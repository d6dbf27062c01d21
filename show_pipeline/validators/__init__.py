"""Show validators for data quality."""

from .show_validator import ValidationResult, validate_show

__all__ = ["ValidationResult", "validate_show"]
