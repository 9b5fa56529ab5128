from __future__ import annotations

import argparse
from pathlib import Path

from clip_enrichment.app import build_runner
from clip_enrichment.infrastructure.storage.artifact_store import load_clips


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="clip-enrichment", description="Clip enrichment pipeline CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    enrich_cmd = sub.add_parser("enrich", help="Enrich a batch of clip candidates for one source video")
    enrich_cmd.add_argument("--clips", required=True, help="JSON file with clip candidates")
    enrich_cmd.add_argument("--source", required=True, help="Source video path")
    enrich_cmd.add_argument("--utc-offset", default="", help="Audience timezone offset, e.g. -03:00")
    enrich_cmd.add_argument("--language", default="", help="Caption language, e.g. pt")
    enrich_cmd.add_argument("--output", default="", help="Result JSON path (default: <output_dir>/result.json)")
    enrich_cmd.add_argument("--root", default="", help="Project root holding config/default.toml")
    return parser


def _cmd_enrich(args: argparse.Namespace) -> int:
    root_dir = Path(args.root).resolve() if args.root else Path.cwd()
    runner, settings, store = build_runner(root_dir)

    clips_path = Path(args.clips)
    source = Path(args.source)
    if not source.exists():
        raise SystemExit(f"source video not found: {source}")
    clips = load_clips(clips_path)
    if not clips:
        raise SystemExit(f"no clips in {clips_path}")

    utc_offset = str(args.utc_offset or "").strip() or settings.pipeline.default_utc_offset
    language = str(args.language or "").strip() or settings.pipeline.default_language

    try:
        job_id = runner.submit(clips, source, utc_offset, language)
        print(f"job submitted: {job_id} ({len(clips)} clips)")
        batch = runner.result(job_id)
    finally:
        runner.shutdown()

    output = Path(args.output) if args.output else store.output_root / "result.json"
    store.save_batch(output, batch)

    summary = batch.summary
    print(
        f"done: {summary.total_clips} clips / {summary.variants_produced} variants / "
        f"{summary.captions_produced} captions / best timing {summary.best_timing or 'N/A'}"
    )
    print(f"result: {output}")
    return 0


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()
    if args.command == "enrich":
        raise SystemExit(_cmd_enrich(args))
    raise SystemExit("unsupported command")


if __name__ == "__main__":
    main()
