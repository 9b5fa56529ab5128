from __future__ import annotations

from pathlib import Path

from clip_enrichment.domain.models import AspectRatio, QualityTier
from clip_enrichment.domain.platform_profiles import crf_for_quality
from clip_enrichment.utils.config import CaptionConfig, TranscodeConfig

VERTICAL_SIZE = (720, 1280)
SQUARE_SIZE = (1080, 1080)
HORIZONTAL_SIZE = (1920, 1080)


def scale_filter(aspect_ratio: AspectRatio | str | None) -> str:
    try:
        ratio = AspectRatio(str(aspect_ratio)) if aspect_ratio else None
    except ValueError:
        ratio = None

    if ratio is AspectRatio.VERTICAL:
        width, height = VERTICAL_SIZE
        return f"scale=-2:{height},crop={width}:{height}"
    if ratio is AspectRatio.SQUARE:
        width, height = SQUARE_SIZE
        return f"scale={width}:-2,crop={width}:{width}"
    if ratio is AspectRatio.HORIZONTAL:
        width, height = HORIZONTAL_SIZE
        return f"scale={width}:-2,crop={width}:min(ih\\,{height})"
    # unknown ratio keeps the source aspect
    return f"scale={HORIZONTAL_SIZE[0]}:-2"


def _escape_filter_value(value: str) -> str:
    return value.replace("\\", r"\\").replace(":", r"\\:").replace("'", r"\\'")


class FFmpegCommandBuilder:
    def __init__(self, config: TranscodeConfig) -> None:
        self.config = config

    def build_transcode(
        self,
        input_video: Path,
        output_video: Path,
        start_sec: float,
        duration_sec: float,
        aspect_ratio: AspectRatio | str,
        quality: QualityTier | str,
        preset: str,
        fallback_software_codec: bool = False,
    ) -> list[str]:
        codec = "libx264" if fallback_software_codec else self.config.video_codec
        return [
            "ffmpeg",
            "-y",
            "-ss",
            f"{start_sec:.3f}",
            "-t",
            f"{duration_sec:.3f}",
            "-i",
            str(input_video),
            "-vf",
            scale_filter(aspect_ratio),
            "-c:v",
            codec,
            "-preset",
            preset,
            "-crf",
            str(crf_for_quality(quality)),
            "-c:a",
            self.config.audio_codec,
            "-b:a",
            self.config.audio_bitrate,
            "-ar",
            str(self.config.audio_sample_rate),
            "-pix_fmt",
            "yuv420p",
            "-movflags",
            "+faststart",
            str(output_video),
        ]

    def build_caption_burn(
        self,
        input_video: Path,
        output_video: Path,
        subtitle_path: Path,
        start_sec: float,
        duration_sec: float,
        style: CaptionConfig,
    ) -> list[str]:
        force_style = (
            f"Fontname={style.font_name},FontSize={int(style.font_size)},"
            f"PrimaryColour={style.primary_color},OutlineColour={style.outline_color},"
            "BorderStyle=1,Outline=1,Shadow=0,Alignment=2"
        )
        safe_sub_path = _escape_filter_value(str(subtitle_path))
        return [
            "ffmpeg",
            "-y",
            "-ss",
            f"{start_sec:.3f}",
            "-t",
            f"{duration_sec:.3f}",
            "-i",
            str(input_video),
            "-vf",
            f"subtitles=filename='{safe_sub_path}':force_style='{force_style}'",
            "-c:v",
            "libx264",
            "-preset",
            "fast",
            "-crf",
            str(crf_for_quality(QualityTier.HIGH)),
            "-c:a",
            "copy",
            "-movflags",
            "+faststart",
            str(output_video),
        ]
