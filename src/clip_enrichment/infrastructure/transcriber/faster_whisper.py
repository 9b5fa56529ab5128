from __future__ import annotations

from pathlib import Path

from clip_enrichment.domain.models import Transcript, TranscriptSegment, WordToken


class FasterWhisperTranscriber:
    def __init__(self, model: str, word_timestamps: bool = True, device: str = "cpu") -> None:
        self.model_name = model
        self.word_timestamps = word_timestamps
        self.device = device
        self._model = None

    def _get_model(self):
        if self._model is None:
            try:
                from faster_whisper import WhisperModel
            except ImportError as exc:  # pragma: no cover
                raise RuntimeError("faster-whisper is not installed") from exc
            self._model = WhisperModel(self.model_name, device=self.device, compute_type="int8")
        return self._model

    def transcribe(self, audio_path: Path, language: str | None = None) -> Transcript:
        model = self._get_model()
        segments_iter, info = model.transcribe(
            str(audio_path),
            language=language,
            word_timestamps=self.word_timestamps,
            vad_filter=True,
        )

        segments: list[TranscriptSegment] = []
        for seg in segments_iter:
            words = [
                WordToken(word=word.word.strip(), start=float(word.start), end=float(word.end))
                for word in getattr(seg, "words", None) or []
            ]
            segments.append(
                TranscriptSegment(
                    start=float(seg.start),
                    end=float(seg.end),
                    text=seg.text.strip(),
                    words=words,
                )
            )

        return Transcript(
            segments=segments,
            language=getattr(info, "language", None) or language or "pt",
            duration_sec=float(getattr(info, "duration", 0.0) or (segments[-1].end if segments else 0.0)),
        )
