"""File identities addressed by buckets."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class StoredFile(Protocol):
    """A logical file known to the asset layer.

    ``filename`` is the path relative to the site root
    (e.g. ``assets/Uploads/report.pdf``); ``full_path`` is where the
    content can be read on the local filesystem.
    """

    @property
    def filename(self) -> str: ...

    @property
    def full_path(self) -> str: ...


@dataclass(frozen=True, slots=True)
class LocalFile:
    """StoredFile backed by a directory on the local filesystem."""

    filename: str
    base_dir: str = "."

    @property
    def full_path(self) -> str:
        return str(Path(self.base_dir) / self.filename.lstrip("/"))

    @property
    def name(self) -> str:
        return Path(self.filename).name
