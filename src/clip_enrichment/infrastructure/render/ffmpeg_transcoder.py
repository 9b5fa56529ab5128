from __future__ import annotations

from pathlib import Path
from threading import Event

from clip_enrichment.domain.errors import TranscodeFailure
from clip_enrichment.domain.models import AspectRatio, QualityTier
from clip_enrichment.infrastructure.render.ffmpeg_builder import FFmpegCommandBuilder
from clip_enrichment.utils.media import CommandError, run_command
from clip_enrichment.utils.paths import artifact_stem, ensure_dir


class FFmpegTranscoder:
    def __init__(self, command_builder: FFmpegCommandBuilder, output_dir: Path, logger=None) -> None:
        self.command_builder = command_builder
        self.output_dir = output_dir
        self.logger = logger

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
        if duration_sec <= 0:
            raise TranscodeFailure(f"non-positive duration {duration_sec:.3f}s")
        if cancel_event is not None and cancel_event.is_set():
            raise TranscodeFailure("cancelled")

        output_path = ensure_dir(self.output_dir) / f"{artifact_stem(output_name)}.mp4"
        cmd = self.command_builder.build_transcode(
            input_video=source,
            output_video=output_path,
            start_sec=start_sec,
            duration_sec=duration_sec,
            aspect_ratio=aspect_ratio,
            quality=quality,
            preset=preset,
        )
        try:
            run_command(cmd, cancel_event=cancel_event)
            return output_path
        except CommandError as primary_error:
            if self.command_builder.config.video_codec == "libx264" or (
                cancel_event is not None and cancel_event.is_set()
            ):
                raise TranscodeFailure(str(primary_error)) from primary_error
            if self.logger is not None:
                self.logger.warning(
                    "transcode.codec_fallback",
                    output=output_path.name,
                    codec=self.command_builder.config.video_codec,
                    error=str(primary_error),
                )

        fallback = self.command_builder.build_transcode(
            input_video=source,
            output_video=output_path,
            start_sec=start_sec,
            duration_sec=duration_sec,
            aspect_ratio=aspect_ratio,
            quality=quality,
            preset=preset,
            fallback_software_codec=True,
        )
        try:
            run_command(fallback, cancel_event=cancel_event)
        except CommandError as exc:
            raise TranscodeFailure(str(exc)) from exc
        return output_path
