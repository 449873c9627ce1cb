"""Time-of-day parsing and the operating window the clock runs over."""

from __future__ import annotations

from dataclasses import dataclass

from ...errors import ConfigurationError

SECONDS_PER_DAY = 24 * 3600


def parse_time_to_seconds(value: str) -> int:
    """Parse ``HH:MM`` or ``HH:MM:SS`` into seconds since midnight."""

    parts = value.strip().split(":")
    if not 2 <= len(parts) <= 3:
        raise ValueError(f"Invalid time of day '{value}'. Expected HH:MM or HH:MM:SS.")
    try:
        hours, minutes, *rest = (int(part) for part in parts)
    except ValueError as exc:
        raise ValueError(f"Invalid time of day '{value}'.") from exc
    seconds = rest[0] if rest else 0
    if hours < 0 or not 0 <= minutes < 60 or not 0 <= seconds < 60:
        raise ValueError(f"Invalid time of day '{value}'.")
    return hours * 3600 + minutes * 60 + seconds


def format_seconds(seconds: int | float) -> str:
    """Format seconds since midnight as ``HH:MM:SS`` (wrapping past 24h)."""

    total = int(seconds)
    h = (total // 3600) % 24
    m = (total % 3600) // 60
    s = total % 60
    return f"{h:02d}:{m:02d}:{s:02d}"


@dataclass(slots=True, frozen=True)
class OperatingWindow:
    """Inclusive ``[start, end]`` range of simulated seconds.

    When the end time of day is not after the start, the window runs past
    midnight and ``end`` is shifted by one day.
    """

    start: int
    end: int
    start_label: str = ""
    end_label: str = ""

    @classmethod
    def from_strings(cls, start: str | None, end: str | None) -> "OperatingWindow":
        if not start or not end:
            raise ConfigurationError("Operating window requires both start and end times.")
        try:
            start_seconds = parse_time_to_seconds(start)
            end_seconds = parse_time_to_seconds(end)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        if end_seconds <= start_seconds:
            end_seconds += SECONDS_PER_DAY
        return cls(start=start_seconds, end=end_seconds, start_label=start, end_label=end)

    @property
    def duration(self) -> int:
        return self.end - self.start

    @property
    def wraps_midnight(self) -> bool:
        return self.end > SECONDS_PER_DAY

    def align(self, seconds: int) -> int:
        """Map a time of day onto this window's clock."""

        if self.wraps_midnight and seconds < self.start:
            return seconds + SECONDS_PER_DAY
        return seconds

    def contains(self, seconds: int) -> bool:
        return self.start <= seconds <= self.end
