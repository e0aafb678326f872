from __future__ import annotations

from datetime import date as date_type, datetime

from sqlalchemy import Date, DateTime, Integer, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Order matches the daily log form: plan vs actual, SOP, yield, time, tomorrow.
CONTENT_FIELDS: tuple[str, ...] = (
    "plan_harvest",
    "plan_plant",
    "plan_deliveries",
    "plan_other",
    "done_harvest",
    "done_plant",
    "done_deliveries",
    "done_other",
    "sop_complete",
    "sop_missed",
    "sop_why",
    "yield_on_target",
    "yield_crop",
    "yield_off_reason",
    "yield_action",
    "time_start",
    "time_end",
    "time_drain",
    "time_why",
    "tomorrow_harvest",
    "tomorrow_plant",
    "tomorrow_focus",
    "tomorrow_risk",
    "initials",
)


class Base(DeclarativeBase):
    pass


class DailyLog(Base):
    __tablename__ = "daily_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[date_type] = mapped_column(Date, nullable=False, unique=True)

    plan_harvest: Mapped[str | None] = mapped_column(Text)
    plan_plant: Mapped[str | None] = mapped_column(Text)
    plan_deliveries: Mapped[str | None] = mapped_column(Text)
    plan_other: Mapped[str | None] = mapped_column(Text)
    done_harvest: Mapped[str | None] = mapped_column(Text)
    done_plant: Mapped[str | None] = mapped_column(Text)
    done_deliveries: Mapped[str | None] = mapped_column(Text)
    done_other: Mapped[str | None] = mapped_column(Text)

    sop_complete: Mapped[str | None] = mapped_column(Text)
    sop_missed: Mapped[str | None] = mapped_column(Text)
    sop_why: Mapped[str | None] = mapped_column(Text)

    yield_on_target: Mapped[str | None] = mapped_column(Text)
    yield_crop: Mapped[str | None] = mapped_column(Text)
    yield_off_reason: Mapped[str | None] = mapped_column(Text)
    yield_action: Mapped[str | None] = mapped_column(Text)

    time_start: Mapped[str | None] = mapped_column(Text)
    time_end: Mapped[str | None] = mapped_column(Text)
    time_drain: Mapped[str | None] = mapped_column(Text)
    time_why: Mapped[str | None] = mapped_column(Text)

    tomorrow_harvest: Mapped[str | None] = mapped_column(Text)
    tomorrow_plant: Mapped[str | None] = mapped_column(Text)
    tomorrow_focus: Mapped[str | None] = mapped_column(Text)
    tomorrow_risk: Mapped[str | None] = mapped_column(Text)

    initials: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
