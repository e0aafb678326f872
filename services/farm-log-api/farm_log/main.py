import logging
import os
from datetime import date, datetime, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

from fastapi import Depends, FastAPI, HTTPException
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from . import anthropic, sms
from .anthropic import shutdown_anthropic_client, startup_anthropic_client
from .database import get_session, shutdown_db, startup_db
from .notifier import enqueue_notification, get_stats, shutdown_notifier
from .repositories import (
    DEFAULT_RECENT_LIMIT,
    get_daily_log_by_date,
    list_recent_daily_logs,
    upsert_daily_log,
)
from .schemas import DailyLog, DailyLogCreate, DailyLogSaved, HealthStatus, NotificationStatus
from .sms import shutdown_close_client, startup_close_client

LOGGER = logging.getLogger(__name__)

FARM_TIMEZONE_NAME = os.getenv("FARM_TIMEZONE", "UTC")
FARM_TIMEZONE = timezone.utc if FARM_TIMEZONE_NAME.upper() == "UTC" else ZoneInfo(FARM_TIMEZONE_NAME)
STATIC_DIR = Path(os.getenv("STATIC_DIR", "public"))

app = FastAPI(title="Farm Log API")


def today() -> date:
    return datetime.now(FARM_TIMEZONE).date()


def warn_missing_credentials() -> None:
    if not anthropic.ANTHROPIC_API_KEY:
        LOGGER.warning("ANTHROPIC_API_KEY not set; daily summaries will fall back")
    if not sms.CLOSE_API_KEY:
        LOGGER.warning("CLOSE_API_KEY not set; SMS notifications will fail")


@app.on_event("startup")
async def startup() -> None:
    warn_missing_credentials()
    await startup_db()
    await startup_anthropic_client()
    await startup_close_client()
    LOGGER.info("Farm Log API ready (timezone %s)", FARM_TIMEZONE_NAME)


@app.on_event("shutdown")
async def shutdown() -> None:
    await shutdown_notifier()
    await shutdown_anthropic_client()
    await shutdown_close_client()
    await shutdown_db()


@app.get("/health", response_model=HealthStatus)
async def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc)}


@app.get("/notifications/status", response_model=NotificationStatus)
async def notification_status():
    return get_stats()


@app.get("/logs", response_model=list[DailyLog])
async def list_logs(session: AsyncSession = Depends(get_session)):
    try:
        return await list_recent_daily_logs(session, limit=DEFAULT_RECENT_LIMIT)
    except (SQLAlchemyError, OSError) as exc:
        LOGGER.exception("Error fetching logs")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.get("/logs/today", response_model=DailyLog | None)
async def get_today_log(session: AsyncSession = Depends(get_session)):
    try:
        return await get_daily_log_by_date(session, today())
    except (SQLAlchemyError, OSError) as exc:
        LOGGER.exception("Error fetching today's log")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.post("/logs", response_model=DailyLogSaved)
async def save_log(
    request: DailyLogCreate,
    session: AsyncSession = Depends(get_session),
):
    try:
        log_id = await upsert_daily_log(
            session, log_date=request.date, fields=request.content()
        )
    except (SQLAlchemyError, OSError) as exc:
        LOGGER.exception("Error saving log for %s", request.date)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    LOGGER.info("Daily log saved for %s (id %s)", request.date, log_id)
    enqueue_notification({"id": log_id, "date": request.date, **request.content()})
    return {"success": True, "id": log_id}


if STATIC_DIR.is_dir():
    app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")
