# FILE: billing_docs/utils/timezone.py
from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from billing_docs.core.config import settings


def local_tz() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE or "Asia/Kolkata")


def now_local() -> datetime:
    return datetime.now(local_tz())


def today_local() -> date:
    return now_local().date()
