"""Utility functions for the invoice dashboard."""

from .activity import flush_activity_logs, log_activity
from .formatting import format_currency, format_date, from_cents, to_cents
from .page_cache import remember, revalidate_path

__all__ = [
    "flush_activity_logs",
    "log_activity",
    "format_currency",
    "format_date",
    "from_cents",
    "to_cents",
    "remember",
    "revalidate_path",
]
