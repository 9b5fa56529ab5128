from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

from clip_enrichment.application.batch_jobs import BatchJobRunner
from clip_enrichment.application.enrichment_pipeline import EnrichmentPipeline
from clip_enrichment.application.platform_optimizer import PlatformOptimizer
from clip_enrichment.domain.beat_sync import BeatSyncConfig, BeatSynchronizer
from clip_enrichment.domain.engagement import EngagementScheduleCatalog
from clip_enrichment.domain.platform_profiles import PlatformProfileCatalog
from clip_enrichment.domain.protocols import BeatTimestampSource
from clip_enrichment.domain.scheduling import SchedulingAdvisor
from clip_enrichment.infrastructure.beats.librosa_beats import LibrosaBeatSource
from clip_enrichment.infrastructure.beats.placeholder import PlaceholderBeatSource
from clip_enrichment.infrastructure.captions.burned_captioner import BurnedCaptioner
from clip_enrichment.infrastructure.render.ffmpeg_builder import FFmpegCommandBuilder
from clip_enrichment.infrastructure.render.ffmpeg_transcoder import FFmpegTranscoder
from clip_enrichment.infrastructure.render.subtitle_generator import SubtitleGenerator
from clip_enrichment.infrastructure.storage.artifact_store import ArtifactStore
from clip_enrichment.infrastructure.transcriber.faster_whisper import FasterWhisperTranscriber
from clip_enrichment.utils.config import PipelineConfig, Settings, load_settings
from clip_enrichment.utils.logger import configure_logger, get_logger


def build_beat_source(config: PipelineConfig) -> BeatTimestampSource:
    if config.beat_source == "librosa":
        return LibrosaBeatSource()
    if config.beat_source != "placeholder":
        raise ValueError(f"unknown beat source: {config.beat_source}")
    return PlaceholderBeatSource(
        interval_sec=config.beat_interval_sec,
        jitter_sec=config.beat_jitter_sec,
        seed=config.beat_seed,
    )


def build_pipeline(settings: Settings, store: ArtifactStore, logger) -> EnrichmentPipeline:
    command_builder = FFmpegCommandBuilder(settings.transcode)
    transcoder = FFmpegTranscoder(command_builder, output_dir=store.variants_dir(), logger=logger)

    captioner = None
    if settings.captions.enable_captions:
        captioner = BurnedCaptioner(
            transcriber=FasterWhisperTranscriber(
                model=settings.captions.whisper_model,
                word_timestamps=settings.captions.word_timestamps,
            ),
            subtitle_generator=SubtitleGenerator(),
            command_builder=command_builder,
            config=settings.captions,
            work_dir=store.work_dir(),
            output_dir=store.captions_dir(),
            logger=logger,
        )

    optimizer = PlatformOptimizer(
        catalog=PlatformProfileCatalog(settings.platforms),
        transcoder=transcoder,
        logger=logger,
        max_workers=settings.pipeline.platform_parallelism,
    )

    return EnrichmentPipeline(
        synchronizer=BeatSynchronizer(BeatSyncConfig(nearby_window_sec=settings.pipeline.nearby_window_sec)),
        beat_source=build_beat_source(settings.pipeline),
        optimizer=optimizer,
        captioner=captioner,
        advisor=SchedulingAdvisor(EngagementScheduleCatalog()),
        logger=logger,
        clip_parallelism=settings.pipeline.clip_parallelism,
    )


def build_runner(root_dir: Path) -> tuple[BatchJobRunner, Settings, ArtifactStore]:
    load_dotenv(root_dir / ".env")
    configure_logger()
    logger = get_logger()
    settings = load_settings(root_dir)
    store = ArtifactStore(settings.transcode.output_dir)
    pipeline = build_pipeline(settings, store, logger)
    return BatchJobRunner(pipeline, logger=logger), settings, store
