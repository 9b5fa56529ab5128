from __future__ import annotations

import json
from pathlib import Path

from clip_enrichment.domain.models import (
    ClipCandidate,
    EnrichedBatch,
    EnrichedClip,
    ScheduleRecommendation,
)


class ArtifactStore:
    def __init__(self, output_root: Path) -> None:
        self.output_root = output_root
        self.output_root.mkdir(parents=True, exist_ok=True)

    def variants_dir(self) -> Path:
        path = self.output_root / "variants"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def captions_dir(self) -> Path:
        path = self.output_root / "captions"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def work_dir(self) -> Path:
        path = self.output_root / "tmp"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def write_json(self, path: Path, payload: dict | list) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")

    def save_batch(self, path: Path, batch: EnrichedBatch) -> Path:
        self.write_json(path, batch_to_payload(batch))
        return path


def clip_from_payload(raw: dict) -> ClipCandidate:
    platforms = raw.get("platforms") or []
    # upstream detectors emit either plain ids or {"name": id}
    names = [str(p["name"] if isinstance(p, dict) else p).strip().lower() for p in platforms]
    if not names or any(not name for name in names):
        raise ValueError(f"clip {raw.get('id')!r} needs at least one platform")
    if len(set(names)) != len(names):
        raise ValueError(f"clip {raw.get('id')!r} lists a platform twice")

    start = float(raw.get("startTime", raw.get("start_sec", 0.0)))
    if "endTime" in raw or "end_sec" in raw:
        end = float(raw.get("endTime", raw.get("end_sec")))
    else:
        end = start + float(raw["duration"])
    if start < 0 or end <= start:
        raise ValueError(f"clip {raw.get('id')!r} has an invalid range {start}-{end}")

    score = float(raw.get("viralScore", raw.get("viral_score", 0.0)))
    if not 0.0 <= score <= 100.0:
        raise ValueError(f"clip {raw.get('id')!r} has viral score outside 0-100: {score}")

    return ClipCandidate(
        clip_id=str(raw["id"]),
        start_sec=start,
        end_sec=end,
        viral_score=score,
        emotion=str(raw.get("emotion", "")),
        platforms=tuple(names),
    )


def load_clips(path: Path) -> list[ClipCandidate]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    rows = payload.get("clips", []) if isinstance(payload, dict) else payload
    clips = [clip_from_payload(row) for row in rows]
    seen: set[str] = set()
    for clip in clips:
        if clip.clip_id in seen:
            raise ValueError(f"clip id {clip.clip_id!r} appears twice in {path}")
        seen.add(clip.clip_id)
    return clips


def _recommendation_payload(rec: ScheduleRecommendation) -> dict:
    return {
        "time": rec.time,
        "score": rec.score,
        "timezone": rec.utc_offset,
        "weekday": rec.weekday.value,
        "available": rec.available,
        "reason": rec.reason,
    }


def _clip_payload(clip: EnrichedClip) -> dict:
    return {
        "id": clip.clip_id,
        "startTime": clip.start_sec,
        "endTime": clip.end_sec,
        "duration": clip.candidate.duration,
        "viralScore": clip.candidate.viral_score,
        "emotion": clip.candidate.emotion,
        "requestedPlatforms": list(clip.candidate.platforms),
        "beatSync": {
            "originalStartTime": clip.sync.original_start_sec,
            "newStartTime": clip.sync.new_start_sec,
            "offset": clip.sync.offset_sec,
            "nearbyBeats": list(clip.sync.nearby_markers),
        },
        "variants": [
            {
                "platform": v.platform,
                "outputPath": str(v.output_path),
                "aspectRatio": v.aspect_ratio.value,
                "quality": v.quality.value,
                "preset": v.preset,
                "duration": v.effective_duration_sec,
            }
            for v in clip.variants
        ],
        "subtitles": (
            {
                "language": clip.caption.language,
                "filePath": str(clip.caption.video_path),
                "transcription": clip.caption.transcript_text,
            }
            if clip.caption is not None
            else None
        ),
        "schedule": {platform: _recommendation_payload(rec) for platform, rec in clip.schedule.items()},
    }


def batch_to_payload(batch: EnrichedBatch) -> dict:
    optimum = batch.global_optimum
    summary = batch.summary
    return {
        "source": str(batch.source),
        "processedAt": batch.completed_at.isoformat(),
        "timezone": batch.utc_offset,
        "language": batch.language,
        "clips": [_clip_payload(clip) for clip in batch.clips],
        "globalOptimal": (
            {"clipId": optimum.clip_id, "platform": optimum.platform, "time": optimum.time, "score": optimum.score}
            if optimum is not None
            else None
        ),
        "stats": {
            "totalClips": summary.total_clips,
            "avgViralScore": summary.avg_viral_score,
            "platforms": summary.platforms,
            "languages": summary.languages,
            "variantsProduced": summary.variants_produced,
            "captionsProduced": summary.captions_produced,
            "bestTiming": summary.best_timing,
        },
    }
