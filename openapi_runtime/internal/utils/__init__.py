"""Утилиты для построения запросов"""

from .field_utils import (
    stringify,
    split_path,
    expand_segment,
    expand_path,
    query_items,
    form_value,
)

__all__ = [
    "stringify",
    "split_path",
    "expand_segment",
    "expand_path",
    "query_items",
    "form_value",
]
