# quake_dashboard/config.py
from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from quake_dashboard.table import PAGE_SIZES
from quake_dashboard.usgs import PERIOD_FEEDS

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

@dataclass(frozen=True)
class Settings:
    feed_day_url: str = PERIOD_FEEDS["day"]
    feed_month_url: str = PERIOD_FEEDS["month"]
    fetch_timeout: float = 30.0
    page_size: int = 50
    display_tz: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Read QUAKE_* variables. Raises ValueError on a bad value so a
        misconfigured server fails at start-up, not on first request.
        """
        env = os.environ if env is None else env

        timeout_raw = env.get("QUAKE_FETCH_TIMEOUT", "30")
        try:
            timeout = float(timeout_raw)
        except ValueError:
            raise ValueError(f"QUAKE_FETCH_TIMEOUT must be a number, got {timeout_raw!r}") from None
        if timeout <= 0:
            raise ValueError("QUAKE_FETCH_TIMEOUT must be positive")

        size_raw = env.get("QUAKE_PAGE_SIZE", "50")
        try:
            page_size = int(size_raw)
        except ValueError:
            raise ValueError(f"QUAKE_PAGE_SIZE must be an integer, got {size_raw!r}") from None
        if page_size not in PAGE_SIZES:
            raise ValueError(f"QUAKE_PAGE_SIZE must be one of {PAGE_SIZES}")

        tz = env.get("QUAKE_DISPLAY_TZ") or None
        if tz:
            try:
                ZoneInfo(tz)
            except (ZoneInfoNotFoundError, ValueError):
                raise ValueError(f"QUAKE_DISPLAY_TZ: unknown time zone {tz!r}") from None

        level = env.get("QUAKE_LOG_LEVEL", "INFO").upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"QUAKE_LOG_LEVEL must be one of {LOG_LEVELS}")

        return cls(
            feed_day_url=env.get("QUAKE_FEED_DAY_URL") or PERIOD_FEEDS["day"],
            feed_month_url=env.get("QUAKE_FEED_MONTH_URL") or PERIOD_FEEDS["month"],
            fetch_timeout=timeout,
            page_size=page_size,
            display_tz=tz,
            log_level=level,
        )

    def period_urls(self) -> Dict[str, str]:
        return {"day": self.feed_day_url, "month": self.feed_month_url}

    def tzinfo(self) -> Optional[ZoneInfo]:
        return ZoneInfo(self.display_tz) if self.display_tz else None
