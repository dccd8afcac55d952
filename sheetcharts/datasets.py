from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Protocol

from sheetcharts.errors import NotFound


DATASET_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,127}$")
DATASET_SUFFIXES = (".xlsx", ".xlsm", ".xls", ".csv", ".txt")


@dataclass(frozen=True)
class DatasetRef:
    dataset_id: str
    file_path: Path
    original_filename: str


class DatasetResolver(Protocol):
    def resolve(self, dataset_id: str) -> DatasetRef:
        ...


class DirectoryResolver:
    """Resolve ``<id>`` to ``<root>/<id>.<ext>`` for a flat upload directory."""

    def __init__(self, root: Path, suffixes: Iterable[str] = DATASET_SUFFIXES) -> None:
        self.root = Path(root)
        self.suffixes = tuple(suffixes)

    def _candidate(self, dataset_id: str) -> Optional[Path]:
        for suffix in self.suffixes:
            path = self.root / f"{dataset_id}{suffix}"
            if path.is_file():
                return path
        return None

    def resolve(self, dataset_id: str) -> DatasetRef:
        if not dataset_id or not DATASET_ID_RE.match(dataset_id) or ".." in dataset_id:
            raise NotFound(f"dataset {dataset_id!r} not found")
        path = self._candidate(dataset_id)
        if path is None:
            raise NotFound(f"dataset {dataset_id!r} not found")
        return DatasetRef(dataset_id=dataset_id, file_path=path, original_filename=path.name)
