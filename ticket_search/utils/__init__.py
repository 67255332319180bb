"""
Utility functions
"""
from ticket_search.utils.logger import setup_logger, get_logger
from ticket_search.utils.dates import (
    parse_timestamp,
    local_date,
    relative_date_label
)

__all__ = [
    "setup_logger",
    "get_logger",
    "parse_timestamp",
    "local_date",
    "relative_date_label",
]
