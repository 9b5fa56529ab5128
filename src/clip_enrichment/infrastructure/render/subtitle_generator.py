from __future__ import annotations

from pathlib import Path

from clip_enrichment.domain.models import Transcript


class SubtitleGenerator:
    """Writes word-level SRT cues relative to the clip start."""

    def generate(self, path: Path, transcript: Transcript, clip_duration: float | None = None) -> str:
        cues = self._build_cues(transcript, clip_duration)
        content = self._render_srt(cues)
        path.write_text(content, encoding="utf-8")
        return content

    def _build_cues(self, transcript: Transcript, clip_duration: float | None) -> list[tuple[float, float, str]]:
        cues: list[tuple[float, float, str]] = []
        for seg in transcript.segments:
            # segments without word timing fall back to one cue per segment
            tokens = [(w.start, w.end, w.word) for w in seg.words] or [(seg.start, seg.end, seg.text)]
            for start, end, text in tokens:
                text = self._sanitize_text(text)
                if not text:
                    continue
                start = max(0.0, start)
                if clip_duration is not None:
                    end = min(end, clip_duration)
                if end <= start:
                    continue
                cues.append((start, end, text))
        return cues

    def _render_srt(self, cues: list[tuple[float, float, str]]) -> str:
        blocks = [
            f"{idx}\n{self._fmt_time(start)} --> {self._fmt_time(end)}\n{text}\n"
            for idx, (start, end, text) in enumerate(cues, start=1)
        ]
        return "\n".join(blocks)

    def _fmt_time(self, sec: float) -> str:
        total_ms = int(round(max(0.0, sec) * 1000))
        hours, rem = divmod(total_ms, 3_600_000)
        mins, rem = divmod(rem, 60_000)
        secs, millis = divmod(rem, 1000)
        return f"{hours:02d}:{mins:02d}:{secs:02d},{millis:03d}"

    def _sanitize_text(self, text: str) -> str:
        return text.replace("\n", " ").replace("-->", "->").strip()
