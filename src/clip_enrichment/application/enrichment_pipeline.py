from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from pathlib import Path
from threading import Event

from clip_enrichment.application.platform_optimizer import PlatformOptimizer
from clip_enrichment.domain.beat_sync import BeatSynchronizer
from clip_enrichment.domain.errors import BatchCancelled, CaptionFailure, SourceUnavailable
from clip_enrichment.domain.models import (
    BatchSummary,
    CaptionResult,
    ClipCandidate,
    EnrichedBatch,
    EnrichedClip,
    OptimizedVariant,
    ScheduleReport,
)
from clip_enrichment.domain.protocols import BeatTimestampSource, Captioner
from clip_enrichment.domain.scheduling import SchedulingAdvisor, parse_utc_offset

# kind ("started" | "completed"), index (1-based), total, clip_id
ClipEventCallback = Callable[[str, int, int, str], None]


class EnrichmentPipeline:
    """Runs beat sync, platform optimization, captioning and scheduling over a batch.

    Every input clip yields exactly one EnrichedClip, in input order. Collaborator
    failures degrade the affected field and are logged; only cancellation aborts.
    """

    def __init__(
        self,
        synchronizer: BeatSynchronizer,
        beat_source: BeatTimestampSource,
        optimizer: PlatformOptimizer,
        captioner: Captioner | None,
        advisor: SchedulingAdvisor,
        logger,
        clip_parallelism: int = 3,
    ) -> None:
        self.synchronizer = synchronizer
        self.beat_source = beat_source
        self.optimizer = optimizer
        self.captioner = captioner
        self.advisor = advisor
        self.logger = logger
        self.clip_parallelism = max(1, clip_parallelism)

    def enrich_batch(
        self,
        clips: Sequence[ClipCandidate],
        source: Path,
        utc_offset: str,
        language: str,
        reference: datetime | None = None,
        cancel_event: Event | None = None,
    ) -> list[EnrichedClip]:
        return self.process_batch(
            clips,
            source,
            utc_offset,
            language,
            reference=reference,
            cancel_event=cancel_event,
        ).clips

    def process_batch(
        self,
        clips: Sequence[ClipCandidate],
        source: Path,
        utc_offset: str,
        language: str,
        reference: datetime | None = None,
        media_duration: float | None = None,
        cancel_event: Event | None = None,
        on_event: ClipEventCallback | None = None,
    ) -> EnrichedBatch:
        source = Path(source)
        # reject a malformed offset before any external work starts
        parse_utc_offset(utc_offset)
        total = len(clips)
        self.logger.info("batch.started", source=str(source), clips=total, language=language)

        markers = self._resolve_markers(source, media_duration)

        ordered: list[tuple[int, EnrichedClip]] = []
        if clips:
            with ThreadPoolExecutor(max_workers=min(self.clip_parallelism, total)) as executor:
                future_map = {
                    executor.submit(
                        self._enrich_one,
                        idx,
                        clip,
                        markers,
                        source,
                        language,
                        total,
                        cancel_event,
                        on_event,
                    ): idx
                    for idx, clip in enumerate(clips, start=1)
                }
                for future in as_completed(future_map):
                    ordered.append((future_map[future], future.result()))
        ordered.sort(key=lambda pair: pair[0])
        enriched = [clip for _, clip in ordered]

        if cancel_event is not None and cancel_event.is_set():
            self.logger.warning("batch.cancelled", source=str(source), clips=total)
            raise BatchCancelled(f"batch for {source} was cancelled")

        # barrier: scheduling sees every clip's final state
        report = self.advisor.recommend([clip.candidate for clip in enriched], utc_offset, reference)
        self._attach_schedule(enriched, report)

        summary = self._summarize(enriched, report, language)
        self.logger.info(
            "batch.completed",
            source=str(source),
            clips=summary.total_clips,
            variants=summary.variants_produced,
            captions=summary.captions_produced,
            best_timing=summary.best_timing,
        )
        return EnrichedBatch(
            clips=enriched,
            global_optimum=report.global_optimum,
            summary=summary,
            source=source,
            utc_offset=report.utc_offset,
            language=language,
        )

    def _resolve_markers(self, source: Path, media_duration: float | None) -> list[float]:
        try:
            markers = list(self.beat_source.detect(source, media_duration))
        except SourceUnavailable as exc:
            self.logger.warning("beats.unavailable", source=str(source), stage="beats", error=str(exc))
            return []
        except Exception as exc:
            self.logger.warning("beats.crashed", source=str(source), stage="beats", error=str(exc))
            return []
        self.logger.info("beats.detected", source=str(source), markers=len(markers))
        return markers

    def _enrich_one(
        self,
        idx: int,
        clip: ClipCandidate,
        markers: list[float],
        source: Path,
        language: str,
        total: int,
        cancel_event: Event | None,
        on_event: ClipEventCallback | None,
    ) -> EnrichedClip:
        if on_event:
            on_event("started", idx, total, clip.clip_id)

        sync = self.synchronizer.sync(clip, markers)
        result = EnrichedClip(candidate=clip, sync=sync)

        if cancel_event is not None and cancel_event.is_set():
            return result

        with ThreadPoolExecutor(max_workers=2) as stage_pool:
            variants_future = stage_pool.submit(self._optimize, clip, sync.new_start_sec, source, cancel_event)
            caption_future = stage_pool.submit(
                self._caption, clip, sync.new_start_sec, source, language, cancel_event
            )
            result.variants = variants_future.result()
            result.caption = caption_future.result()

        if on_event:
            on_event("completed", idx, total, clip.clip_id)
        return result

    def _optimize(
        self,
        clip: ClipCandidate,
        start_sec: float,
        source: Path,
        cancel_event: Event | None,
    ) -> list[OptimizedVariant]:
        try:
            return self.optimizer.optimize_for_platforms(
                clip, source, cancel_event=cancel_event, start_sec=start_sec
            )
        except Exception as exc:
            self.logger.warning("stage.failed", clip_id=clip.clip_id, stage="optimize", error=str(exc))
            return []

    def _caption(
        self,
        clip: ClipCandidate,
        start_sec: float,
        source: Path,
        language: str,
        cancel_event: Event | None,
    ) -> CaptionResult | None:
        if self.captioner is None:
            return None
        try:
            return self.captioner.caption(
                source,
                start_sec,
                clip.duration,
                language,
                output_name=clip.clip_id,
                cancel_event=cancel_event,
            )
        except CaptionFailure as exc:
            self.logger.warning("caption.failed", clip_id=clip.clip_id, stage="caption", error=exc.reason)
        except Exception as exc:
            self.logger.warning("caption.crashed", clip_id=clip.clip_id, stage="caption", error=str(exc))
        return None

    def _attach_schedule(self, enriched: list[EnrichedClip], report: ScheduleReport) -> None:
        for clip, schedule in zip(enriched, report.clips):
            clip.schedule = schedule.recommendations
            for platform, recommendation in schedule.recommendations.items():
                if not recommendation.available:
                    self.logger.warning(
                        "schedule.unavailable",
                        clip_id=clip.clip_id,
                        platform=platform,
                        stage="schedule",
                        weekday=recommendation.weekday.value,
                    )

    def _summarize(self, enriched: list[EnrichedClip], report: ScheduleReport, language: str) -> BatchSummary:
        platforms: list[str] = []
        for clip in enriched:
            for variant in clip.variants:
                if variant.platform not in platforms:
                    platforms.append(variant.platform)

        total = len(enriched)
        avg_score = sum(clip.candidate.viral_score for clip in enriched) / total if total else 0.0
        return BatchSummary(
            total_clips=total,
            avg_viral_score=avg_score,
            platforms=platforms,
            languages=[language],
            variants_produced=sum(len(clip.variants) for clip in enriched),
            captions_produced=sum(1 for clip in enriched if clip.caption is not None),
            best_timing=report.global_optimum.time if report.global_optimum else None,
        )
