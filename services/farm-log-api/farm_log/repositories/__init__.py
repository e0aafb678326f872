from .daily_logs import (
    DEFAULT_RECENT_LIMIT,
    build_upsert_statement,
    get_daily_log_by_date,
    list_recent_daily_logs,
    upsert_daily_log,
)

__all__ = [
    "DEFAULT_RECENT_LIMIT",
    "build_upsert_statement",
    "get_daily_log_by_date",
    "list_recent_daily_logs",
    "upsert_daily_log",
]
