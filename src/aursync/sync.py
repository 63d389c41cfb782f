from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .batch import BatchOutcome, run_batch
from .errors import ClonesRootError
from .git import GitClient
from .logger import setup_logger
from .partition import valid_name

_logger = setup_logger()


class SyncMode(Enum):
    CLONE = "clone"
    PULL = "pull"


def package_remote(base_url: str, package: str) -> str:
    """The git remote of a package's AUR repository."""
    return f"{base_url.rstrip('/')}/{package}.git"


def clone_aur_repo(
    git: GitClient, base_url: str, package: str, root: Optional[Union[str, Path]] = None
) -> Path:
    """Shallow-clone a package's AUR repository and return the path of the clone."""
    if not valid_name(package):
        raise ValueError(f"Invalid package name: {package!r}")
    clone_path = Path(package) if root is None else Path(root) / package
    git.shallow_clone(package_remote(base_url, package), clone_path)
    return clone_path


def pull_clone(git: GitClient, path: Union[str, Path]) -> str:
    """Fast-forward an existing clone. Returns its package name."""
    path = Path(path)
    if not path.is_dir():
        raise FileNotFoundError(f"No clone at {path}")
    git.pull(path)
    return path.name


def clone_dirs(clone_root: Union[str, Path]) -> List[Path]:
    """Every clone directory under the root; stray files are ignored."""
    root = Path(clone_root)
    try:
        return sorted(p for p in root.iterdir() if p.is_dir())
    except FileNotFoundError:
        return []
    except OSError as e:
        raise ClonesRootError(f"Cannot read clones directory {root}: {e}") from e


def clone_aur_repos(
    git: GitClient,
    base_url: str,
    packages: Sequence[str],
    root: Optional[Union[str, Path]] = None,
    max_workers: Optional[int] = None,
    retries: int = 0,
    timeout: Optional[float] = None,
) -> BatchOutcome[str]:
    """Clone every package in parallel. Successes and failures are package names."""

    def _clone(package: str) -> str:
        _logger.info("Cloning %s...", package)
        clone_aur_repo(git, base_url, package, root)
        return package

    # One worker per destination path.
    packages = list(dict.fromkeys(packages))
    return run_batch(packages, _clone, max_workers=max_workers, retries=retries, timeout=timeout)


def refresh(
    git: GitClient,
    clone_root: Union[str, Path],
    packages: Optional[Sequence[str]] = None,
    max_workers: Optional[int] = None,
    retries: int = 0,
    timeout: Optional[float] = None,
) -> BatchOutcome[str]:
    """Pull the latest commits into every clone, or only the named ones."""
    if packages is None:
        packages = [d.name for d in clone_dirs(clone_root)]
    else:
        packages = list(dict.fromkeys(packages))

    def _pull(package: str) -> str:
        if not valid_name(package):
            raise ValueError(f"Invalid package name: {package!r}")
        return pull_clone(git, Path(clone_root) / package)

    return run_batch(packages, _pull, max_workers=max_workers, retries=retries, timeout=timeout)


def sync_batch(
    git: GitClient,
    base_url: str,
    clone_root: Union[str, Path],
    packages: Sequence[str],
    mode: SyncMode,
    max_workers: Optional[int] = None,
    retries: int = 0,
    timeout: Optional[float] = None,
) -> BatchOutcome[str]:
    if mode is SyncMode.CLONE:
        Path(clone_root).mkdir(parents=True, exist_ok=True)
        return clone_aur_repos(git, base_url, packages, clone_root, max_workers, retries, timeout)
    return refresh(git, clone_root, packages, max_workers, retries, timeout)
