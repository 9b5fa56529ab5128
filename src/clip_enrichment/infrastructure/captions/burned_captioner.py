from __future__ import annotations

from pathlib import Path
from threading import Event

from clip_enrichment.domain.errors import CaptionFailure
from clip_enrichment.domain.models import CaptionResult
from clip_enrichment.domain.protocols import Transcriber
from clip_enrichment.infrastructure.render.ffmpeg_builder import FFmpegCommandBuilder
from clip_enrichment.infrastructure.render.subtitle_generator import SubtitleGenerator
from clip_enrichment.utils.config import CaptionConfig
from clip_enrichment.utils.media import CommandError, extract_audio, run_command
from clip_enrichment.utils.paths import artifact_stem, ensure_dir, sanitize_filename
from clip_enrichment.utils.retry_policy import retry


class BurnedCaptioner:
    """Transcribes a clip range and burns word-level subtitles into a render."""

    def __init__(
        self,
        transcriber: Transcriber,
        subtitle_generator: SubtitleGenerator,
        command_builder: FFmpegCommandBuilder,
        config: CaptionConfig,
        work_dir: Path,
        output_dir: Path,
        logger=None,
        retry_delay_sec: float = 1.0,
    ) -> None:
        self.transcriber = transcriber
        self.subtitle_generator = subtitle_generator
        self.command_builder = command_builder
        self.config = config
        self.work_dir = work_dir
        self.output_dir = output_dir
        self.logger = logger
        self.retry_delay_sec = retry_delay_sec

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
        if duration_sec <= 0:
            raise CaptionFailure(f"non-positive duration {duration_sec:.3f}s")

        name = artifact_stem(output_name)
        lang = sanitize_filename(language)
        work_dir = ensure_dir(self.work_dir)
        audio_path = work_dir / f"{name}_audio.wav"
        srt_path = work_dir / f"{name}_{lang}.srt"
        output_path = ensure_dir(self.output_dir) / f"{name}_{lang}_final.mp4"

        try:
            try:
                extract_audio(source, audio_path, start_sec, duration_sec, cancel_event=cancel_event)
            except CommandError as exc:
                raise CaptionFailure(f"audio extraction failed: {exc}") from exc

            try:
                transcript = retry(
                    lambda: self.transcriber.transcribe(audio_path, language=language),
                    retries=self.config.max_retries,
                    delay_sec=self.retry_delay_sec,
                    on_retry=lambda attempt, exc: self._warn_retry(name, attempt, exc),
                )
            except Exception as exc:
                raise CaptionFailure(f"transcription failed: {exc}") from exc

            srt_content = self.subtitle_generator.generate(srt_path, transcript, clip_duration=duration_sec)
            if not srt_content.strip():
                raise CaptionFailure("no speech detected")

            cmd = self.command_builder.build_caption_burn(
                input_video=source,
                output_video=output_path,
                subtitle_path=srt_path,
                start_sec=start_sec,
                duration_sec=duration_sec,
                style=self.config,
            )
            try:
                run_command(cmd, cancel_event=cancel_event)
            except CommandError as exc:
                raise CaptionFailure(f"subtitle burn failed: {exc}") from exc

            return CaptionResult(
                language=language,
                video_path=output_path,
                subtitle_path=srt_path if self.config.keep_subtitle_files else None,
                srt_content=srt_content,
                transcript_text=transcript.full_text,
            )
        finally:
            audio_path.unlink(missing_ok=True)
            if not self.config.keep_subtitle_files:
                srt_path.unlink(missing_ok=True)

    def _warn_retry(self, name: str, attempt: int, exc: Exception) -> None:
        if self.logger is not None:
            self.logger.warning("caption.transcribe_retry", output=name, attempt=attempt, error=str(exc))
