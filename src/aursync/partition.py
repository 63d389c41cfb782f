from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence, Set, Union

from .aur import AurClient
from .errors import AurError, ClonesRootError, NothingValidError, ProviderUnreachableError
from .logger import setup_logger

_logger = setup_logger()

# The AUR RPC rejects very long query strings, so info lookups are chunked.
INFO_CHUNK = 150

VALID_NAME_RE = re.compile(r"^[A-Za-z0-9@_+][A-Za-z0-9@._+\-]*$")


@dataclass(frozen=True)
class PkgPartition:
    """Requested names split by where they stand. Each list keeps input order."""

    cloned: List[str] = field(default_factory=list)
    to_clone: List[str] = field(default_factory=list)
    not_real: List[str] = field(default_factory=list)

    @property
    def nothing_valid(self) -> bool:
        return not self.cloned and not self.to_clone


def valid_name(name: str) -> bool:
    """Whether ``name`` is safe to use as a single path segment."""
    return bool(VALID_NAME_RE.match(name or ""))


def clone_inventory(clone_root: Union[str, Path]) -> Set[str]:
    """
    Names of every entry under the clones root, read fresh on each call.
    A missing root is an empty inventory.
    """
    root = Path(clone_root)
    try:
        return {entry.name for entry in root.iterdir()}
    except FileNotFoundError:
        return set()
    except OSError as e:
        raise ClonesRootError(f"Cannot read clones directory {root}: {e}") from e


def _real_names(client: AurClient, names: Sequence[str]) -> Set[str]:
    """
    Ask the AUR which of ``names`` exist. A failed chunk only costs the names
    in it; if nothing could be looked up at all the whole call fails.
    """
    unique = list(dict.fromkeys(names))
    if not unique:
        return set()

    found: Set[str] = set()
    failed_chunks = 0
    chunks = [unique[i:i + INFO_CHUNK] for i in range(0, len(unique), INFO_CHUNK)]
    for chunk in chunks:
        try:
            found.update(p.name for p in client.info(chunk))
        except AurError as e:
            failed_chunks += 1
            _logger.warning("AUR lookup failed for %d package(s): %s", len(chunk), e)

    if failed_chunks == len(chunks):
        raise ProviderUnreachableError("Could not reach the AUR to verify package names.")
    return found


def partition_aur_pkgs(
    clone_root: Union[str, Path], names: Sequence[str], client: AurClient
) -> PkgPartition:
    """
    Split ``names`` into already cloned, cloneable and unknown packages.

    Raises NothingValidError (carrying the partition) when no name is either
    cloned or real.
    """
    if not names:
        raise ValueError("No packages given.")

    # Each name is classified once, at its first position.
    names = list(dict.fromkeys(names))

    inventory = clone_inventory(clone_root)

    pending = [n for n in names if n not in inventory and valid_name(n)]
    real = _real_names(client, pending)

    cloned: List[str] = []
    to_clone: List[str] = []
    not_real: List[str] = []
    for name in names:
        if name in inventory:
            cloned.append(name)
        elif name in real:
            to_clone.append(name)
        else:
            not_real.append(name)

    result = PkgPartition(cloned=cloned, to_clone=to_clone, not_real=not_real)
    _logger.debug("Already cloned: %s", result.cloned)
    _logger.debug("To clone: %s", result.to_clone)

    if result.nothing_valid:
        raise NothingValidError(result)
    return result
