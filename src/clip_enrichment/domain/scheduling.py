from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

from .engagement import EngagementScheduleCatalog
from .errors import ScheduleUnavailable
from .models import (
    ClipCandidate,
    ClipSchedule,
    EngagementEntry,
    GlobalOptimum,
    ScheduleRecommendation,
    ScheduleReport,
    Weekday,
)

_OFFSET_RE = re.compile(r"^(?P<sign>[+-])?(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$")


def parse_utc_offset(value: str) -> int:
    """Parse ``-03:00``, ``+0530``, ``+2`` or ``Z`` into signed minutes."""
    text = value.strip().upper()
    if text in {"", "Z", "UTC", "GMT"}:
        return 0
    if text.startswith(("UTC", "GMT")):
        text = text[3:]
    match = _OFFSET_RE.match(text)
    if match is None:
        raise ValueError(f"invalid UTC offset: {value!r}")
    hours = int(match.group("hours"))
    minutes = int(match.group("minutes") or 0)
    if hours > 23 or minutes > 59:
        raise ValueError(f"invalid UTC offset: {value!r}")
    total = hours * 60 + minutes
    return -total if match.group("sign") == "-" else total


def format_utc_offset(offset_minutes: int) -> str:
    sign = "-" if offset_minutes < 0 else "+"
    hours, minutes = divmod(abs(offset_minutes), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


def convert_utc_hour(hour_utc: int, offset: str | int) -> int:
    """Local wall-clock hour for a UTC hour, wrapping modulo 24."""
    offset_minutes = parse_utc_offset(offset) if isinstance(offset, str) else offset
    return ((hour_utc * 60 + offset_minutes) // 60) % 24


def local_slot(hour_utc: int, offset_minutes: int) -> str:
    hours, minutes = divmod((hour_utc * 60 + offset_minutes) % (24 * 60), 60)
    return f"{hours:02d}:{minutes:02d}"


class SchedulingAdvisor:
    """Picks the next engagement slot per platform and the best slot of a batch."""

    def __init__(self, catalog: EngagementScheduleCatalog) -> None:
        self.catalog = catalog

    def recommend(
        self,
        clips: Sequence[ClipCandidate],
        utc_offset: str,
        reference: datetime | None = None,
    ) -> ScheduleReport:
        offset_minutes = parse_utc_offset(utc_offset)
        offset_label = format_utc_offset(offset_minutes)
        local_now = self._local_reference(reference, offset_minutes)
        weekday = Weekday.from_date(local_now)

        schedules: list[ClipSchedule] = []
        best: GlobalOptimum | None = None
        best_score = 0.0

        for clip in clips:
            schedule = ClipSchedule(clip_id=clip.clip_id)
            for platform in clip.platforms:
                recommendation = self._recommend_platform(
                    platform, weekday, local_now.hour, offset_minutes, offset_label
                )
                schedule.recommendations[platform] = recommendation
                if recommendation.time is not None and recommendation.score > best_score:
                    best_score = recommendation.score
                    best = GlobalOptimum(
                        clip_id=clip.clip_id,
                        platform=platform,
                        time=recommendation.time,
                        score=recommendation.score,
                    )
            schedules.append(schedule)

        return ScheduleReport(clips=schedules, global_optimum=best, utc_offset=offset_label, weekday=weekday)

    def select_entry(
        self,
        platform: str,
        weekday: Weekday,
        current_local_hour: int,
        offset_minutes: int,
    ) -> EngagementEntry:
        entries = self.catalog.entries_for(platform, weekday)
        if not entries:
            raise ScheduleUnavailable(platform, weekday.value)
        for entry in entries:
            if convert_utc_hour(entry.hour_utc, offset_minutes) > current_local_hour:
                return entry
        # every slot already passed today
        return max(entries, key=lambda e: e.score)

    def _recommend_platform(
        self,
        platform: str,
        weekday: Weekday,
        current_local_hour: int,
        offset_minutes: int,
        offset_label: str,
    ) -> ScheduleRecommendation:
        try:
            entry = self.select_entry(platform, weekday, current_local_hour, offset_minutes)
        except ScheduleUnavailable as exc:
            return ScheduleRecommendation(
                platform=platform,
                time=None,
                score=0.0,
                utc_offset=offset_label,
                weekday=weekday,
                reason=str(exc),
            )
        return ScheduleRecommendation(
            platform=platform,
            time=local_slot(entry.hour_utc, offset_minutes),
            score=entry.score,
            utc_offset=offset_label,
            weekday=weekday,
            reason=f"{platform} engagement data for {weekday.value} at UTC{offset_label}",
        )

    def _local_reference(self, reference: datetime | None, offset_minutes: int) -> datetime:
        instant = reference or datetime.now(timezone.utc)
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return instant.astimezone(timezone(timedelta(minutes=offset_minutes)))
