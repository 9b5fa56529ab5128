from __future__ import annotations

import hashlib
import re
from pathlib import Path


def sanitize_filename(name: str) -> str:
    sanitized = re.sub(r"[^0-9A-Za-z_\- ]+", "", name).strip()
    sanitized = re.sub(r"\s+", "_", sanitized)
    return sanitized[:64] or "clip"


def artifact_stem(name: str, max_len: int = 48) -> str:
    """File stem for an opaque identifier that never collides with another identifier.

    The readable part keeps the tail of the sanitized name (where platform and
    language suffixes live); a digest of the raw name keeps distinct names apart.
    """
    readable = re.sub(r"\s+", "_", re.sub(r"[^0-9A-Za-z_\- ]+", "", name).strip()) or "clip"
    digest = hashlib.sha1(name.encode("utf-8")).hexdigest()[:10]
    return f"{readable[-max_len:]}-{digest}"


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path
