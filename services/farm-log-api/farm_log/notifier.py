import asyncio
import logging
import os
from datetime import datetime, timezone
from typing import Any

from .anthropic import generate_text, get_anthropic_client
from .daily_log_text import build_sms_body, build_summary_prompt
from .sms import get_close_client, send_sms

LOGGER = logging.getLogger(__name__)

NOTIFY_ON_SAVE = os.getenv("NOTIFY_ON_SAVE", "true").lower() == "true"
NOTIFY_PHONE = os.getenv("NOTIFY_PHONE", "2132215504")
NOTIFY_SHUTDOWN_GRACE = float(os.getenv("NOTIFY_SHUTDOWN_GRACE", "5"))
FARM_NAME = os.getenv("FARM_NAME", "702Greens")

FALLBACK_MESSAGE = "⚠️ Farm log received but analysis failed. Check logs."

_tasks: set[asyncio.Task[None]] = set()
_stats: dict[str, Any] = {}


def reset_stats() -> None:
    _stats.update(
        attempts=0,
        sms_sent=0,
        sms_failed=0,
        summary_fallbacks=0,
        last_attempt_at=None,
        last_error=None,
    )


reset_stats()


def get_stats() -> dict[str, Any]:
    return dict(_stats)


def _record_error(message: str) -> None:
    _stats["last_error"] = message


async def summarize_daily_log(log: dict[str, Any]) -> str | None:
    """Return the model's summary text, or None when summarization failed."""
    prompt = build_summary_prompt(log, FARM_NAME)
    try:
        summary = await generate_text(prompt, get_anthropic_client())
    except Exception as exc:
        LOGGER.warning("Summary for %s failed; sending fallback", log.get("date"), exc_info=True)
        _stats["summary_fallbacks"] += 1
        _record_error(f"summary: {exc}")
        return None
    LOGGER.info("Summary for %s complete", log.get("date"))
    return summary


async def deliver_message(body: str) -> bool:
    try:
        await send_sms(NOTIFY_PHONE, body, get_close_client())
    except Exception as exc:
        _stats["sms_failed"] += 1
        _record_error(f"sms: {exc}")
        LOGGER.error("SMS notification failed: %s", exc)
        return False
    _stats["sms_sent"] += 1
    return True


async def notify_daily_log(log: dict[str, Any]) -> bool:
    """Summarize a saved log and text the summary. Returns True if the SMS went out."""
    _stats["attempts"] += 1
    _stats["last_attempt_at"] = datetime.now(timezone.utc)
    summary = await summarize_daily_log(log)
    body = FALLBACK_MESSAGE if summary is None else build_sms_body(summary, FARM_NAME)
    return await deliver_message(body)


def enqueue_notification(log: dict[str, Any]) -> None:
    if not NOTIFY_ON_SAVE:
        return

    async def _runner() -> None:
        try:
            await notify_daily_log(log)
        except Exception:
            LOGGER.exception("Daily log notification failed; log was saved")

    task = asyncio.create_task(_runner())
    _tasks.add(task)
    task.add_done_callback(_tasks.discard)


def pending_notifications() -> int:
    return len(_tasks)


async def shutdown_notifier(grace: float | None = None) -> None:
    if not _tasks:
        return
    timeout = NOTIFY_SHUTDOWN_GRACE if grace is None else grace
    pending = set(_tasks)
    if timeout > 0:
        _, pending = await asyncio.wait(pending, timeout=timeout)
    for task in pending:
        task.cancel()
    if pending:
        LOGGER.warning("Cancelled %s pending notification(s) on shutdown", len(pending))
        await asyncio.gather(*pending, return_exceptions=True)
