from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import Insert, insert
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import CONTENT_FIELDS, DailyLog

DEFAULT_RECENT_LIMIT = 30


def _log_to_dict(log: DailyLog) -> dict[str, Any]:
    data: dict[str, Any] = {"id": log.id, "date": log.date}
    for field in CONTENT_FIELDS:
        data[field] = getattr(log, field)
    data["created_at"] = log.created_at
    return data


def build_upsert_statement(log_date: date, fields: dict[str, Any]) -> Insert:
    """Build a single INSERT .. ON CONFLICT (date) DO UPDATE statement.

    Every content column is written, so fields missing from ``fields`` are
    reset to NULL on conflict. ``id`` and ``created_at`` are never part of
    the update set.
    """
    values: dict[str, Any] = {"date": log_date}
    for field in CONTENT_FIELDS:
        values[field] = fields.get(field)
    stmt = insert(DailyLog).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=[DailyLog.date],
        set_={field: stmt.excluded[field] for field in CONTENT_FIELDS},
    ).returning(DailyLog.id)


async def upsert_daily_log(
    session: AsyncSession, *, log_date: date, fields: dict[str, Any]
) -> int:
    result = await session.execute(build_upsert_statement(log_date, fields))
    log_id = result.scalar_one()
    await session.commit()
    return log_id


async def list_recent_daily_logs(
    session: AsyncSession, *, limit: int = DEFAULT_RECENT_LIMIT
) -> list[dict[str, Any]]:
    result = await session.execute(
        select(DailyLog).order_by(DailyLog.date.desc()).limit(limit)
    )
    return [_log_to_dict(item) for item in result.scalars().all()]


async def get_daily_log_by_date(
    session: AsyncSession, log_date: date
) -> dict[str, Any] | None:
    result = await session.execute(select(DailyLog).where(DailyLog.date == log_date))
    log = result.scalar_one_or_none()
    return _log_to_dict(log) if log else None

