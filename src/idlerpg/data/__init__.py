"""Data layer: JSON definition files and their repositories."""

from .errors import DataLoadError, DataValidationError
from .paths import get_definitions_path

__all__ = [
    "DataLoadError",
    "DataValidationError",
    "get_definitions_path",
]
