"""Date/time tool returning the current time, optionally for a timezone."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

from taskagents.tools.base import BaseTool, ParameterType, ToolParameter

logger = structlog.get_logger()

TIMEZONE_PATTERN = re.compile(r"\bin\s+([A-Za-z_/]+)(?:\s+([A-Za-z_]+))?")

# Common city names mapped to IANA identifiers
CITY_TIMEZONES = {
    "moscow": "Europe/Moscow",
    "london": "Europe/London",
    "paris": "Europe/Paris",
    "berlin": "Europe/Berlin",
    "tokyo": "Asia/Tokyo",
    "new_york": "America/New_York",
    "newyork": "America/New_York",
    "los_angeles": "America/Los_Angeles",
    "sydney": "Australia/Sydney",
    "utc": "UTC",
}


def _city_key(name: str) -> str:
    return "_".join(name.lower().split())


class DateTimeTool(BaseTool):
    """Returns the current date and time."""

    KEYWORDS = ("time", "date", "today", "now", "current")

    def __init__(self, clock: Any = None) -> None:
        # clock(tz) -> datetime; overridable for deterministic tests
        self._clock = clock or (lambda tz: datetime.now(tz))

    @property
    def name(self) -> str:
        return "date_time"

    @property
    def description(self) -> str:
        return "Returns current date and time (optionally for given timezone)"

    @property
    def parameters(self) -> list[ToolParameter]:
        return [
            ToolParameter(
                name="timezone",
                type=ParameterType.STRING,
                description="IANA timezone name, e.g. 'Europe/Moscow'. Defaults to UTC",
                required=False,
            ),
        ]

    def match(self, prompt: str) -> bool:
        return self.contains_keywords(prompt, self.KEYWORDS)

    async def call(
        self,
        prompt: str,
        context: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        requested = self.extract_parameters(prompt or "")["timezone"]
        tz = self._resolve_timezone(requested) if requested else timezone.utc
        now = self._clock(tz)

        return {
            "timezone": str(tz) if requested else "UTC",
            "iso": now.isoformat(),
            "formatted": now.strftime("%Y-%m-%d %H:%M:%S %Z"),
        }

    def extract_parameters(self, prompt: str) -> dict[str, Any]:
        match = TIMEZONE_PATTERN.search(prompt)
        if match:
            first, second = match.groups()
            # Two-word city names such as "New York"
            if second and _city_key(f"{first} {second}") in CITY_TIMEZONES:
                return {"timezone": f"{first} {second}"}
            return {"timezone": first}
        stripped = prompt.strip()
        if _city_key(stripped) in CITY_TIMEZONES:
            return {"timezone": stripped}
        # A bare zone or city name is accepted as the whole input
        if stripped and " " not in stripped and not self.match(stripped):
            return {"timezone": stripped}
        return {"timezone": None}

    def _resolve_timezone(self, name: str) -> timezone | ZoneInfo:
        key = CITY_TIMEZONES.get(_city_key(name), name)
        try:
            return ZoneInfo(key)
        except (ZoneInfoNotFoundError, ValueError):
            logger.debug("Unknown timezone, falling back to UTC", timezone=name)
            return timezone.utc
