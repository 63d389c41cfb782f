from __future__ import annotations

import shutil
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Union

from .batch import BatchOutcome, run_batch
from .errors import BackupTargetError, CacheDirError, TargetIsFileError
from .logger import setup_logger
from .version import PkgFile

_logger = setup_logger()

ProgressObserver = Callable[[int, int], None]


@dataclass(frozen=True)
class CacheSize:
    files: int
    bytes: int


@dataclass(frozen=True)
class CacheEntry:
    """What the cache holds for one package name."""

    name: str
    version: str
    created: datetime
    signature: bool
    size: int
    available: List[str] = field(default_factory=list)


class TransferProgress:
    """
    Count of finished file transfers out of a known total.

    Workers may only increment. The observer, if any, is told the new count
    after the lock has been released so slow reporters never serialize copies.
    """

    def __init__(self, total: int, observer: Optional[ProgressObserver] = None) -> None:
        self.total = total
        self._done = 0
        self._lock = threading.Lock()
        self._observer = observer

    def increment(self) -> int:
        with self._lock:
            self._done += 1
            done = self._done
        if self._observer:
            self._observer(done, self.total)
        return done

    @property
    def completed(self) -> int:
        with self._lock:
            return self._done


# --------------------------------------------------------
# Inspection
# --------------------------------------------------------

def _entries(path: Union[str, Path]) -> List[Path]:
    try:
        return list(Path(path).iterdir())
    except OSError as e:
        raise CacheDirError(f"Cannot read package cache {path}: {e}") from e


def size(path: Union[str, Path]) -> CacheSize:
    """Number and total byte size of the regular files directly under ``path``."""
    files = 0
    total = 0
    for entry in _entries(path):
        if entry.is_file():
            files += 1
            total += entry.stat().st_size
    return CacheSize(files=files, bytes=total)


def package_files(path: Union[str, Path]) -> List[PkgFile]:
    """Every parseable package archive in the cache. Signatures and strays are skipped."""
    out: List[PkgFile] = []
    for entry in _entries(path):
        if not entry.is_file():
            continue
        try:
            out.append(PkgFile.parse(entry))
        except ValueError:
            continue
    return out


def info(path: Union[str, Path], package: str) -> Optional[CacheEntry]:
    """Cache details for ``package``, or None if no version of it is cached."""
    matches = [p for p in package_files(path) if p.name == package]
    if not matches:
        return None

    matches.sort(reverse=True)
    latest = matches[0]
    stat = latest.path.stat()

    versions: List[str] = []
    for p in matches:
        if p.full_version not in versions:
            versions.append(p.full_version)

    return CacheEntry(
        name=latest.name,
        version=latest.full_version,
        created=datetime.fromtimestamp(stat.st_mtime),
        signature=latest.sig_path.exists(),
        size=stat.st_size,
        available=versions,
    )


def search(path: Union[str, Path], term: str) -> List[Path]:
    """Paths of cached package files whose filename contains ``term``."""
    return sorted(p.path for p in package_files(path) if term in p.path.name)


# --------------------------------------------------------
# Transfer
# --------------------------------------------------------

def copy(
    source: Union[str, Path],
    target: Union[str, Path],
    total: int,
    observer: Optional[ProgressObserver] = None,
    max_workers: Optional[int] = None,
) -> BatchOutcome[str]:
    """
    Copy every regular file of ``source`` into ``target`` concurrently.

    ``total`` is the progress denominator and must be known up front.
    A file that fails to copy neither advances progress nor stops the others;
    its name is reported in the outcome's failures.
    """
    source = Path(source)
    target = Path(target)
    _logger.debug("Begin cache copying.")

    entries = [e for e in _entries(source) if e.is_file()]

    # Silently succeeds if the directory already exists.
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise BackupTargetError(f"Cannot create backup target {target}: {e}") from e

    progress = TransferProgress(total, observer)

    def _copy(entry: Path) -> str:
        shutil.copy2(entry, target / entry.name)
        progress.increment()
        return entry.name

    outcome = run_batch(entries, _copy, key=lambda e: e.name, max_workers=max_workers)
    _logger.debug("Copied %d of %d file(s).", progress.completed, total)
    return outcome


def resolve_target(target: Union[str, Path]) -> Path:
    """Absolute backup target. Raises TargetIsFileError if it is an existing file."""
    target = Path(target)
    if not target.is_absolute():
        target = Path.cwd() / target
    if target.is_file():
        raise TargetIsFileError(f"Backup target {target} is a file.")
    return target


def backup(
    source: Union[str, Path],
    target: Union[str, Path],
    observer: Optional[ProgressObserver] = None,
    max_workers: Optional[int] = None,
) -> BatchOutcome[str]:
    """Back up the whole cache at ``source`` into the directory ``target``."""
    target = resolve_target(target)

    cache_size = size(source)
    return copy(source, target, cache_size.files, observer, max_workers)
