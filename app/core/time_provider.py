from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from app.config import settings


APP_TIMEZONE = settings.app_timezone or "Asia/Kolkata"
APP_ZONEINFO = ZoneInfo(APP_TIMEZONE)


class TimeProvider:
    def now(self) -> datetime:
        return datetime.now(APP_ZONEINFO)

    def today(self) -> date:
        return self.now().date()

    def utcnow_naive(self) -> datetime:
        """Timestamp for DateTime columns, which are stored naive in UTC."""
        return self.now().astimezone(timezone.utc).replace(tzinfo=None)


default_time_provider = TimeProvider()
