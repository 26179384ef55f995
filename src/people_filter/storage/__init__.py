"""Storage and persistence layer."""

from people_filter.storage.csv_storage import (
    order_columns,
    parse_candidates,
    read_candidates,
    render_results,
    write_results,
)
from people_filter.storage.local_storage import LocalStorage

__all__ = [
    "LocalStorage",
    "order_columns",
    "parse_candidates",
    "read_candidates",
    "render_results",
    "write_results",
]
