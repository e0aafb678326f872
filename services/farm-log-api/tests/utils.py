from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import Any

import httpx

from farm_log.database import get_session
from farm_log.main import app
from farm_log.models import CONTENT_FIELDS


def build_mock_transport(handler):
    return httpx.MockTransport(handler)


def make_log(log_id: int = 1, log_date: date = date(2024, 6, 1), **fields: Any) -> dict[str, Any]:
    log: dict[str, Any] = {"id": log_id, "date": log_date}
    for field in CONTENT_FIELDS:
        log[field] = fields.get(field)
    log["created_at"] = datetime(2024, 6, 1, 14, 30, tzinfo=timezone.utc)
    return log


class InMemoryLogStore:
    """Stand-in for the daily_logs table keyed by date, like ON CONFLICT (date)."""

    def __init__(self) -> None:
        self.rows: dict[date, dict[str, Any]] = {}
        self._next_id = 1

    async def upsert(self, session, *, log_date: date, fields: dict[str, Any]) -> int:
        existing = self.rows.get(log_date)
        if existing is None:
            row = make_log(self._next_id, log_date, **fields)
            self._next_id += 1
        else:
            row = {**existing, **{field: fields.get(field) for field in CONTENT_FIELDS}}
        self.rows[log_date] = row
        return row["id"]

    async def get_by_date(self, session, log_date: date) -> dict[str, Any] | None:
        return self.rows.get(log_date)

    async def list_recent(self, session, *, limit: int = 30) -> list[dict[str, Any]]:
        ordered = sorted(self.rows.values(), key=lambda row: row["date"], reverse=True)
        return ordered[:limit]


@asynccontextmanager
async def app_client(session: Any = None):
    async def override_get_session():
        yield session if session is not None else object()

    app.dependency_overrides[get_session] = override_get_session
    asgi_transport = httpx.ASGITransport(app=app)
    try:
        async with httpx.AsyncClient(transport=asgi_transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
