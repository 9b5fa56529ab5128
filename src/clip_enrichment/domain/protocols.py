from __future__ import annotations

from pathlib import Path
from threading import Event
from typing import Protocol

from .models import AspectRatio, CaptionResult, QualityTier, Transcript


class BeatTimestampSource(Protocol):
    def detect(self, source: Path, total_duration: float | None = None) -> list[float]:
        """Return ordered markers covering [0, duration) or raise SourceUnavailable."""


class Transcoder(Protocol):
    def transcode(
        self,
        source: Path,
        start_sec: float,
        duration_sec: float,
        aspect_ratio: AspectRatio | str,
        quality: QualityTier | str,
        preset: str,
        *,
        output_name: str,
        cancel_event: Event | None = None,
    ) -> Path:
        """Return the output artifact path or raise TranscodeFailure."""


class Captioner(Protocol):
    def caption(
        self,
        source: Path,
        start_sec: float,
        duration_sec: float,
        language: str,
        *,
        output_name: str,
        cancel_event: Event | None = None,
    ) -> CaptionResult:
        """Return the captioned artifact or raise CaptionFailure."""


class Transcriber(Protocol):
    def transcribe(self, audio_path: Path, language: str | None = None) -> Transcript:
        """Return transcript with word-level timestamps."""
