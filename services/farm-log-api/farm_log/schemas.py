from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, field_validator

from .models import CONTENT_FIELDS


class DailyLogFields(BaseModel):
    plan_harvest: str | None = None
    plan_plant: str | None = None
    plan_deliveries: str | None = None
    plan_other: str | None = None
    done_harvest: str | None = None
    done_plant: str | None = None
    done_deliveries: str | None = None
    done_other: str | None = None

    sop_complete: str | None = None
    sop_missed: str | None = None
    sop_why: str | None = None

    yield_on_target: str | None = None
    yield_crop: str | None = None
    yield_off_reason: str | None = None
    yield_action: str | None = None

    time_start: str | None = None
    time_end: str | None = None
    time_drain: str | None = None
    time_why: str | None = None

    tomorrow_harvest: str | None = None
    tomorrow_plant: str | None = None
    tomorrow_focus: str | None = None
    tomorrow_risk: str | None = None

    initials: str | None = None


class DailyLogCreate(DailyLogFields):
    date: date

    @field_validator(*CONTENT_FIELDS, mode="before")
    @classmethod
    def normalize_text(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, bool):
            return "yes" if value else "no"
        if isinstance(value, (int, float)):
            value = str(value)
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def content(self) -> dict[str, str | None]:
        return {field: getattr(self, field) for field in CONTENT_FIELDS}


class DailyLog(DailyLogFields):
    id: int
    date: date
    created_at: datetime


class DailyLogSaved(BaseModel):
    success: bool = True
    id: int


class HealthStatus(BaseModel):
    status: str
    timestamp: datetime


class NotificationStatus(BaseModel):
    attempts: int
    sms_sent: int
    sms_failed: int
    summary_fallbacks: int
    last_attempt_at: datetime | None = None
    last_error: str | None = None
