from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from threading import Event

from clip_enrichment.domain.errors import TranscodeFailure
from clip_enrichment.domain.models import ClipCandidate, OptimizedVariant, PlatformProfile
from clip_enrichment.domain.platform_profiles import PlatformProfileCatalog
from clip_enrichment.domain.protocols import Transcoder


@dataclass(slots=True)
class VariantOutcome:
    index: int
    platform: str
    variant: OptimizedVariant | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.variant is not None


class PlatformOptimizer:
    def __init__(
        self,
        catalog: PlatformProfileCatalog,
        transcoder: Transcoder,
        logger,
        max_workers: int = 3,
    ) -> None:
        self.catalog = catalog
        self.transcoder = transcoder
        self.logger = logger
        self.max_workers = max(1, max_workers)

    def optimize_for_platforms(
        self,
        clip: ClipCandidate,
        source: Path,
        cancel_event: Event | None = None,
        start_sec: float | None = None,
    ) -> list[OptimizedVariant]:
        outcomes = self.run(clip, source, cancel_event=cancel_event, start_sec=start_sec)
        return [outcome.variant for outcome in outcomes if outcome.variant is not None]

    def run(
        self,
        clip: ClipCandidate,
        source: Path,
        cancel_event: Event | None = None,
        start_sec: float | None = None,
    ) -> list[VariantOutcome]:
        """Scatter one transcode per profiled platform and gather outcomes in input order.

        ``start_sec`` overrides the clip start (a beat-synced start) while the clip
        duration stays as given.
        """
        start = clip.start_sec if start_sec is None else start_sec
        jobs: list[tuple[int, str, PlatformProfile]] = []
        for idx, platform in enumerate(dict.fromkeys(clip.platforms)):
            profile = self.catalog.get(platform)
            if profile is None:
                self.logger.warning(
                    "optimize.platform_skipped",
                    clip_id=clip.clip_id,
                    platform=platform,
                    reason="no profile registered",
                )
                continue
            jobs.append((idx, platform, profile))

        if not jobs:
            return []

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(jobs))) as executor:
            future_map = {
                executor.submit(self._transcode_one, idx, platform, profile, clip, start, source, cancel_event): idx
                for idx, platform, profile in jobs
            }
            outcomes = [future.result() for future in as_completed(future_map)]

        outcomes.sort(key=lambda outcome: outcome.index)
        return outcomes

    def _transcode_one(
        self,
        idx: int,
        platform: str,
        profile: PlatformProfile,
        clip: ClipCandidate,
        start_sec: float,
        source: Path,
        cancel_event: Event | None,
    ) -> VariantOutcome:
        effective_duration = min(clip.duration, profile.max_duration_sec)
        try:
            output_path = self.transcoder.transcode(
                source,
                start_sec,
                effective_duration,
                profile.aspect_ratio,
                profile.quality,
                profile.preset,
                output_name=f"{clip.clip_id}_{platform}_optimized",
                cancel_event=cancel_event,
            )
        except TranscodeFailure as exc:
            self.logger.warning(
                "optimize.transcode_failed",
                clip_id=clip.clip_id,
                platform=platform,
                stage="transcode",
                error=exc.reason,
            )
            return VariantOutcome(index=idx, platform=platform, error=exc.reason)
        except Exception as exc:
            self.logger.warning(
                "optimize.transcode_crashed",
                clip_id=clip.clip_id,
                platform=platform,
                stage="transcode",
                error=str(exc),
            )
            return VariantOutcome(index=idx, platform=platform, error=str(exc))

        self.logger.info(
            "optimize.variant_ready",
            clip_id=clip.clip_id,
            platform=platform,
            duration_sec=round(effective_duration, 3),
        )
        return VariantOutcome(
            index=idx,
            platform=platform,
            variant=OptimizedVariant(
                platform=platform,
                output_path=Path(output_path),
                aspect_ratio=profile.aspect_ratio,
                quality=profile.quality,
                preset=profile.preset,
                effective_duration_sec=effective_duration,
                max_duration_sec=profile.max_duration_sec,
                clip=clip,
            ),
        )
