from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Union

from .logger import setup_logger

_logger = setup_logger()


class LocalDb:
    """
    Read-only view of pacman's installed-package database.

    Every installed package has a ``<name>-<version>-<release>/desc`` entry
    under the local db directory; the desc file lists ``%NAME%`` and
    ``%VERSION%`` sections.
    """

    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)
        self._index: Optional[Dict[str, str]] = None

    def _load(self) -> Dict[str, str]:
        index: Dict[str, str] = {}
        try:
            entries = list(self.root.iterdir())
        except OSError as e:
            _logger.debug("Local package db %s unreadable: %s", self.root, e)
            return index

        for entry in entries:
            desc = entry / "desc"
            try:
                lines = desc.read_text(encoding="utf-8").splitlines()
            except OSError:
                continue
            fields = _parse_desc(lines)
            name = fields.get("NAME")
            version = fields.get("VERSION")
            if name and version:
                index[name] = version
        return index

    def lookup(self, name: str) -> Optional[str]:
        """Installed version of ``name``, or None when it is not installed."""
        if self._index is None:
            self._index = self._load()
        return self._index.get(name)


def _parse_desc(lines) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    key = None
    for line in lines:
        line = line.strip()
        if line.startswith("%") and line.endswith("%") and len(line) > 2:
            key = line[1:-1]
        elif line and key and key not in fields:
            fields[key] = line
        elif not line:
            key = None
    return fields
