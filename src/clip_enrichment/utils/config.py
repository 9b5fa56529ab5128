from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from clip_enrichment.domain.models import PlatformProfile
from clip_enrichment.domain.platform_profiles import DEFAULT_PLATFORM_PROFILES, parse_profile


@dataclass(slots=True)
class PipelineConfig:
    clip_parallelism: int
    platform_parallelism: int
    default_utc_offset: str
    default_language: str
    nearby_window_sec: float = 5.0
    beat_source: str = "placeholder"
    beat_interval_sec: float = 0.8
    beat_jitter_sec: float = 0.4
    beat_seed: int | None = None


@dataclass(slots=True)
class TranscodeConfig:
    output_dir: Path
    video_codec: str
    audio_codec: str
    audio_bitrate: str
    audio_sample_rate: int


@dataclass(slots=True)
class CaptionConfig:
    enable_captions: bool
    whisper_model: str
    word_timestamps: bool
    font_name: str
    font_size: int
    primary_color: str
    outline_color: str
    max_retries: int
    keep_subtitle_files: bool = False


@dataclass(slots=True)
class Settings:
    pipeline: PipelineConfig
    transcode: TranscodeConfig
    captions: CaptionConfig
    root_dir: Path
    platforms: dict[str, PlatformProfile] = field(default_factory=lambda: dict(DEFAULT_PLATFORM_PROFILES))


def load_settings(root_dir: Path, config_path: Path | None = None) -> Settings:
    config_path = config_path or root_dir / "config" / "default.toml"
    with config_path.open("rb") as fh:
        raw = tomllib.load(fh)

    pipeline = raw["pipeline"]
    transcode = raw["transcode"]
    captions = raw["captions"]
    platforms = raw.get("platforms", {})

    output_dir = Path(os.getenv("CLIP_ENRICHMENT_OUTPUT_DIR", "") or str(transcode.get("output_dir", "processed_clips")))
    if not output_dir.is_absolute():
        output_dir = root_dir / output_dir

    seed = pipeline.get("beat_seed")

    return Settings(
        pipeline=PipelineConfig(
            clip_parallelism=max(1, int(pipeline["clip_parallelism"])),
            platform_parallelism=max(1, int(pipeline["platform_parallelism"])),
            default_utc_offset=str(pipeline.get("default_utc_offset", "+00:00")),
            default_language=str(pipeline.get("default_language", "pt")),
            nearby_window_sec=float(pipeline.get("nearby_window_sec", 5.0)),
            beat_source=str(pipeline.get("beat_source", "placeholder")),
            beat_interval_sec=float(pipeline.get("beat_interval_sec", 0.8)),
            beat_jitter_sec=float(pipeline.get("beat_jitter_sec", 0.4)),
            beat_seed=int(seed) if seed is not None else None,
        ),
        transcode=TranscodeConfig(
            output_dir=output_dir,
            video_codec=str(transcode.get("video_codec", "libx264")),
            audio_codec=str(transcode.get("audio_codec", "aac")),
            audio_bitrate=str(transcode.get("audio_bitrate", "192k")),
            audio_sample_rate=int(transcode.get("audio_sample_rate", 48000)),
        ),
        captions=CaptionConfig(
            enable_captions=bool(captions.get("enable_captions", True)),
            whisper_model=os.getenv("FASTER_WHISPER_MODEL", str(captions.get("whisper_model", "small"))),
            word_timestamps=bool(captions.get("word_timestamps", True)),
            font_name=str(captions["font_name"]),
            font_size=int(captions["font_size"]),
            primary_color=str(captions["primary_color"]),
            outline_color=str(captions["outline_color"]),
            max_retries=max(0, int(captions.get("max_retries", 1))),
            keep_subtitle_files=bool(captions.get("keep_subtitle_files", False)),
        ),
        root_dir=root_dir,
        platforms=(
            {name: parse_profile(table) for name, table in platforms.items()}
            if platforms
            else dict(DEFAULT_PLATFORM_PROFILES)
        ),
    )
