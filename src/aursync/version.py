import functools
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

# name-[epoch:]version-release-arch.pkg.tar[.ext]
# Names may themselves contain dashes, so the last three dash-separated
# fields are version, release and arch.
PKG_FILE_RE = re.compile(
    r"""
    ^
    (?P<name>[A-Za-z0-9@._+\-]+)
    -
    (?:(?P<epoch>[0-9]+):)?                  # optional epoch (digits)
    (?P<version>[^-/:]+)
    -
    (?P<release>[^-/]+)
    -
    (?P<arch>[A-Za-z0-9_]+)
    \.pkg\.tar
    (?:\.(?P<ext>[A-Za-z0-9]+))?
    $
    """,
    re.VERBOSE,
)

SIG_SUFFIX = ".sig"


def split_evr(s: str) -> Tuple[int, str, Optional[str]]:
    """Split ``[epoch:]version[-release]`` into its three parts."""
    epoch = 0
    if ":" in s:
        e, s = s.split(":", 1)
        epoch = int(e) if e.isdigit() else 0
    release: Optional[str] = None
    if "-" in s:
        s, release = s.rsplit("-", 1)
    return epoch, s, release


def segment_cmp(a: str, b: str) -> int:
    """
    Compare two version strings segment by segment.
    Returns negative, zero or positive like a classic cmp.

    Numeric segments compare as integers and always beat alphabetic ones,
    which makes 1.0 newer than 1.0rc but older than 1.0.1.
    """

    def split_parts(s: str):
        return re.findall(r"[0-9]+|[A-Za-z]+", s or "")

    pa = split_parts(a)
    pb = split_parts(b)

    for xa, xb in zip(pa, pb):
        da, db = xa.isdigit(), xb.isdigit()
        if da and db:
            na, nb = int(xa), int(xb)
            if na != nb:
                return (na > nb) - (na < nb)
        elif da != db:
            return 1 if da else -1
        elif xa != xb:
            return (xa > xb) - (xa < xb)

    # if all zipped parts equal, a trailing numeric segment wins, a trailing alpha one loses
    if len(pa) == len(pb):
        return 0
    longer, sign = (pa, 1) if len(pa) > len(pb) else (pb, -1)
    tail = longer[min(len(pa), len(pb))]
    return sign if tail.isdigit() else -sign


def vercmp(a: str, b: str) -> int:
    """Compare two full ``[epoch:]version-release`` strings."""
    ea, va, ra = split_evr(a or "")
    eb, vb, rb = split_evr(b or "")
    if ea != eb:
        return (ea > eb) - (ea < eb)
    c = segment_cmp(va, vb)
    if c != 0 or ra is None or rb is None:
        return c
    return segment_cmp(ra, rb)


@functools.total_ordering
@dataclass(frozen=True)
class PkgFile:
    """
    A built package file in the pacman cache.

    Usage:
      PkgFile.parse("/var/cache/pacman/pkg/aura-3.2.1-1-x86_64.pkg.tar.zst")
    """

    path: Path
    name: str
    epoch: Optional[str]
    version: str
    release: str
    arch: str

    @staticmethod
    def parse(path: Union[str, Path]) -> "PkgFile":
        """Raises ValueError if the filename is not a package archive."""
        path = Path(path)
        m = PKG_FILE_RE.match(path.name)
        if not m:
            raise ValueError(f"Not a package file: {path.name}")
        d = m.groupdict()
        return PkgFile(
            path=path,
            name=d["name"],
            epoch=d.get("epoch"),
            version=d["version"],
            release=d["release"],
            arch=d["arch"],
        )

    @property
    def full_version(self) -> str:
        """``[epoch:]version-release``, the form pacman reports."""
        e = f"{self.epoch}:" if self.epoch else ""
        return f"{e}{self.version}-{self.release}"

    @property
    def sig_path(self) -> Path:
        return self.path.with_name(self.path.name + SIG_SUFFIX)

    def __str__(self) -> str:
        return f"{self.name}-{self.full_version}-{self.arch}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PkgFile):
            return False
        return (self.name, self.full_version, self.arch) == (other.name, other.full_version, other.arch)

    def __hash__(self) -> int:
        return hash((self.name, self.full_version, self.arch))

    def __lt__(self, other: "PkgFile") -> bool:
        if not isinstance(other, PkgFile):
            return NotImplemented
        if self.name != other.name:
            return self.name < other.name
        c = vercmp(self.full_version, other.full_version)
        if c != 0:
            return c < 0
        return self.arch < other.arch
