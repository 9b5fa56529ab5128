from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from types import MappingProxyType

from .models import EngagementEntry, Weekday

# (weekday, hour UTC, score), three slots per day
_RawTable = Sequence[tuple[Weekday, int, float]]

_MON, _TUE, _WED, _THU, _FRI, _SAT, _SUN = (
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
    Weekday.SATURDAY,
    Weekday.SUNDAY,
)

DEFAULT_ENGAGEMENT_TABLES: Mapping[str, _RawTable] = MappingProxyType(
    {
        "tiktok": (
            (_MON, 14, 0.7), (_MON, 17, 0.8), (_MON, 20, 0.9),
            (_TUE, 13, 0.75), (_TUE, 16, 0.85), (_TUE, 19, 0.9),
            (_WED, 15, 0.8), (_WED, 18, 0.9), (_WED, 21, 0.95),
            (_THU, 14, 0.85), (_THU, 17, 0.9), (_THU, 20, 0.95),
            (_FRI, 13, 0.7), (_FRI, 16, 0.8), (_FRI, 19, 0.9),
            (_SAT, 10, 0.75), (_SAT, 14, 0.85), (_SAT, 18, 0.9),
            (_SUN, 11, 0.8), (_SUN, 15, 0.9), (_SUN, 19, 0.95),
        ),
        "instagram": (
            (_MON, 11, 0.75), (_MON, 15, 0.8), (_MON, 18, 0.85),
            (_TUE, 10, 0.7), (_TUE, 14, 0.8), (_TUE, 17, 0.85),
            (_WED, 12, 0.85), (_WED, 16, 0.9), (_WED, 19, 0.95),
            (_THU, 11, 0.8), (_THU, 15, 0.85), (_THU, 18, 0.9),
            (_FRI, 10, 0.7), (_FRI, 14, 0.75), (_FRI, 17, 0.8),
            (_SAT, 9, 0.7), (_SAT, 13, 0.8), (_SAT, 16, 0.85),
            (_SUN, 10, 0.75), (_SUN, 14, 0.85), (_SUN, 17, 0.9),
        ),
        "youtube": (
            (_MON, 16, 0.7), (_MON, 19, 0.8), (_MON, 21, 0.85),
            (_TUE, 15, 0.75), (_TUE, 18, 0.85), (_TUE, 20, 0.9),
            (_WED, 17, 0.8), (_WED, 20, 0.9), (_WED, 22, 0.95),
            (_THU, 16, 0.85), (_THU, 19, 0.9), (_THU, 21, 0.95),
            (_FRI, 15, 0.7), (_FRI, 18, 0.75), (_FRI, 20, 0.8),
            (_SAT, 12, 0.75), (_SAT, 16, 0.85), (_SAT, 19, 0.9),
            (_SUN, 13, 0.8), (_SUN, 17, 0.9), (_SUN, 20, 0.95),
        ),
        "kwai": (
            (_MON, 13, 0.7), (_MON, 16, 0.8), (_MON, 19, 0.85),
            (_TUE, 12, 0.75), (_TUE, 15, 0.85), (_TUE, 18, 0.9),
            (_WED, 14, 0.8), (_WED, 17, 0.9), (_WED, 20, 0.95),
            (_THU, 13, 0.85), (_THU, 16, 0.9), (_THU, 19, 0.95),
            (_FRI, 12, 0.7), (_FRI, 15, 0.75), (_FRI, 18, 0.8),
            (_SAT, 10, 0.75), (_SAT, 14, 0.85), (_SAT, 17, 0.9),
            (_SUN, 11, 0.8), (_SUN, 15, 0.9), (_SUN, 18, 0.95),
        ),
    }
)


def build_entries(platform: str, rows: Iterable[tuple[Weekday | str, int, float]]) -> tuple[EngagementEntry, ...]:
    entries: list[EngagementEntry] = []
    for weekday, hour, score in rows:
        hour = int(hour)
        score = float(score)
        if not 0 <= hour <= 23:
            raise ValueError(f"hour out of range for {platform}: {hour}")
        if not 0.0 <= score <= 1.0:
            raise ValueError(f"score out of range for {platform}: {score}")
        entries.append(EngagementEntry(platform=platform, weekday=Weekday(weekday), hour_utc=hour, score=score))
    return tuple(entries)


class EngagementScheduleCatalog:
    def __init__(self, tables: Mapping[str, Iterable[tuple[Weekday | str, int, float]]] | None = None) -> None:
        source = DEFAULT_ENGAGEMENT_TABLES if tables is None else tables
        self._tables: Mapping[str, tuple[EngagementEntry, ...]] = MappingProxyType(
            {name.lower(): build_entries(name.lower(), rows) for name, rows in source.items()}
        )

    def entries_for(self, platform: str, weekday: Weekday) -> tuple[EngagementEntry, ...]:
        table = self._tables.get(platform.lower(), ())
        return tuple(entry for entry in table if entry.weekday == weekday)

    def __contains__(self, platform: object) -> bool:
        return isinstance(platform, str) and platform.lower() in self._tables

    @property
    def platforms(self) -> list[str]:
        return list(self._tables)
