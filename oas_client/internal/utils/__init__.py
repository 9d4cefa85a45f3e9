"""Утилиты для построения запросов"""

from .params import (
    as_array,
    apply_collection_format,
    resolve_collection_format,
    stringify,
)

__all__ = [
    "as_array",
    "apply_collection_format",
    "resolve_collection_format",
    "stringify",
]
