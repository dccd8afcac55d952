from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


UPLOAD_DIR_DEFAULT = Path("uploads")
PREVIEW_ROWS_DEFAULT = 10
CORS_ORIGINS_DEFAULT = ["http://localhost:3000", "http://127.0.0.1:3000"]


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return max(0, int(raw))
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.environ.get(name)
    if raw is None:
        return list(default)
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass(frozen=True)
class Settings:
    upload_dir: Path = UPLOAD_DIR_DEFAULT
    cache_max_entries: int = 0
    preview_rows: int = PREVIEW_ROWS_DEFAULT
    cors_origins: List[str] = field(default_factory=lambda: list(CORS_ORIGINS_DEFAULT))


def load_settings(env_prefix: str = "SHEETCHARTS_") -> Settings:
    upload_dir: Optional[str] = os.environ.get(f"{env_prefix}UPLOAD_DIR")
    return Settings(
        upload_dir=Path(upload_dir).expanduser() if upload_dir else UPLOAD_DIR_DEFAULT,
        cache_max_entries=_env_int(f"{env_prefix}CACHE_MAX_ENTRIES", 0),
        preview_rows=_env_int(f"{env_prefix}PREVIEW_ROWS", PREVIEW_ROWS_DEFAULT),
        cors_origins=_env_list(f"{env_prefix}CORS_ORIGINS", CORS_ORIGINS_DEFAULT),
    )
