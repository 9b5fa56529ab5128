from __future__ import annotations

import json
import subprocess
import time
from pathlib import Path


class CommandError(RuntimeError):
    pass


def run_command(cmd: list[str], cancel_event=None) -> None:
    if cancel_event is None:
        proc = subprocess.run(cmd, capture_output=True, text=True)
        if proc.returncode != 0:
            raise CommandError(f"Command failed: {' '.join(cmd)}\n{proc.stderr}")
        return

    proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    try:
        while True:
            if cancel_event.is_set():
                proc.terminate()
                try:
                    proc.wait(timeout=3)
                except subprocess.TimeoutExpired:
                    proc.kill()
                raise CommandError(f"Command cancelled: {' '.join(cmd)}")

            ret = proc.poll()
            if ret is not None:
                break
            time.sleep(0.2)

        _, stderr = proc.communicate()
        if ret != 0:
            raise CommandError(f"Command failed: {' '.join(cmd)}\n{stderr}")
    finally:
        if proc.poll() is None:
            proc.kill()


def ffprobe_duration(input_path: Path) -> float:
    cmd = [
        "ffprobe",
        "-v",
        "error",
        "-show_entries",
        "format=duration",
        "-of",
        "json",
        str(input_path),
    ]
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as exc:
        raise CommandError(f"ffprobe unavailable: {exc}") from exc
    if proc.returncode != 0:
        raise CommandError(proc.stderr)

    try:
        payload = json.loads(proc.stdout)
        duration = float(payload["format"]["duration"])
    except (ValueError, KeyError, TypeError) as exc:
        raise CommandError(f"ffprobe returned no duration for {input_path}") from exc
    if duration <= 0:
        raise CommandError(f"non-positive duration for {input_path}: {duration}")
    return duration


def extract_audio(
    input_video: Path,
    output_wav: Path,
    start_sec: float,
    duration_sec: float,
    cancel_event=None,
) -> None:
    cmd = [
        "ffmpeg",
        "-y",
        "-ss",
        f"{start_sec:.3f}",
        "-t",
        f"{duration_sec:.3f}",
        "-i",
        str(input_video),
        "-vn",
        "-acodec",
        "pcm_s16le",
        "-ac",
        "1",
        "-ar",
        "16000",
        str(output_wav),
    ]
    run_command(cmd, cancel_event=cancel_event)
