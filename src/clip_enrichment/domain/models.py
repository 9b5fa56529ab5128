from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from pathlib import Path


class JobStatus(StrEnum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class AspectRatio(StrEnum):
    VERTICAL = "9:16"
    SQUARE = "1:1"
    HORIZONTAL = "16:9"


class QualityTier(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "veryhigh"


class Weekday(StrEnum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, value: datetime) -> Weekday:
        return list(cls)[value.weekday()]


@dataclass(slots=True, frozen=True)
class ClipCandidate:
    clip_id: str
    start_sec: float
    end_sec: float
    viral_score: float
    emotion: str
    platforms: tuple[str, ...]

    @property
    def duration(self) -> float:
        return max(0.0, self.end_sec - self.start_sec)


@dataclass(slots=True, frozen=True)
class SyncResult:
    original_start_sec: float
    new_start_sec: float
    new_end_sec: float
    offset_sec: float
    nearby_markers: tuple[float, ...] = ()

    @property
    def shifted(self) -> bool:
        return self.offset_sec != 0.0


@dataclass(slots=True, frozen=True)
class PlatformProfile:
    aspect_ratio: AspectRatio
    quality: QualityTier
    max_duration_sec: float
    preset: str


@dataclass(slots=True, frozen=True)
class OptimizedVariant:
    platform: str
    output_path: Path
    aspect_ratio: AspectRatio
    quality: QualityTier
    preset: str
    effective_duration_sec: float
    max_duration_sec: float
    clip: ClipCandidate


@dataclass(slots=True, frozen=True)
class EngagementEntry:
    platform: str
    weekday: Weekday
    hour_utc: int
    score: float


@dataclass(slots=True, frozen=True)
class ScheduleRecommendation:
    platform: str
    time: str | None
    score: float
    utc_offset: str
    weekday: Weekday
    reason: str = ""

    @property
    def available(self) -> bool:
        return self.time is not None


@dataclass(slots=True, frozen=True)
class GlobalOptimum:
    clip_id: str
    platform: str
    time: str
    score: float


@dataclass(slots=True)
class ClipSchedule:
    clip_id: str
    recommendations: dict[str, ScheduleRecommendation] = field(default_factory=dict)


@dataclass(slots=True)
class ScheduleReport:
    clips: list[ClipSchedule]
    global_optimum: GlobalOptimum | None
    utc_offset: str
    weekday: Weekday


@dataclass(slots=True)
class WordToken:
    word: str
    start: float
    end: float


@dataclass(slots=True)
class TranscriptSegment:
    start: float
    end: float
    text: str
    words: list[WordToken] = field(default_factory=list)


@dataclass(slots=True)
class Transcript:
    segments: list[TranscriptSegment]
    language: str = "pt"
    duration_sec: float = 0.0

    @property
    def full_text(self) -> str:
        return " ".join(s.text.strip() for s in self.segments if s.text.strip())


@dataclass(slots=True, frozen=True)
class CaptionResult:
    language: str
    video_path: Path
    subtitle_path: Path | None
    srt_content: str
    transcript_text: str


@dataclass(slots=True)
class EnrichedClip:
    candidate: ClipCandidate
    sync: SyncResult
    variants: list[OptimizedVariant] = field(default_factory=list)
    caption: CaptionResult | None = None
    schedule: dict[str, ScheduleRecommendation] = field(default_factory=dict)

    @property
    def clip_id(self) -> str:
        return self.candidate.clip_id

    @property
    def start_sec(self) -> float:
        return self.sync.new_start_sec

    @property
    def end_sec(self) -> float:
        return self.sync.new_end_sec


@dataclass(slots=True)
class BatchSummary:
    total_clips: int
    avg_viral_score: float
    platforms: list[str]
    languages: list[str]
    variants_produced: int
    captions_produced: int
    best_timing: str | None


@dataclass(slots=True)
class EnrichedBatch:
    clips: list[EnrichedClip]
    global_optimum: GlobalOptimum | None
    summary: BatchSummary
    source: Path
    utc_offset: str
    language: str
    completed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(slots=True)
class JobRecord:
    job_id: str
    source: Path
    status: JobStatus
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    error_message: str = ""
