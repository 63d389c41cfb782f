from __future__ import annotations

import webbrowser
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from tqdm import tqdm

from . import cache as pkgcache
from .aur import AurClient
from .batch import BatchOutcome
from .config import Config
from .errors import NothingValidError
from .git import GitClient
from .localdb import LocalDb
from .logger import Colors, setup_logger
from .partition import PkgPartition, partition_aur_pkgs
from .search import rank_search
from .sync import SyncMode, clone_aur_repos, sync_batch
from .sync import refresh as refresh_clones

_logger = setup_logger()

# module-level singletons (initialized by init(cfg))
_cfg: Optional[Config] = None
aur: Optional[AurClient] = None
git: Optional[GitClient] = None
localdb: Optional[LocalDb] = None


# -------------------------
# Initialization
# -------------------------
def init(config: Config) -> None:
    """Initialize singleton instances from config."""
    global _cfg, aur, git, localdb
    _cfg = config
    aur = AurClient(_cfg)
    git = GitClient(timeout=_cfg.git_timeout)
    localdb = LocalDb(_cfg.localdb_dir)
    _logger.debug("operations initialized with clones=%s, cache=%s", _cfg.clones_dir, _cfg.cache_dir)


def _ensure_initialized() -> None:
    if not all((_cfg, aur, git, localdb)):
        raise RuntimeError("operations not initialized; call operations.init(config) first")


def _fmt_date(epoch: int) -> str:
    return datetime.fromtimestamp(epoch, tz=timezone.utc).strftime("%Y-%m-%d")


def _fmt_bytes(n: int) -> str:
    if n < 1024:
        return f"{n} B"
    size = n / 1024
    for unit in ("KiB", "MiB"):
        if size < 1024:
            return f"{size:.2f} {unit}"
        size /= 1024
    return f"{size:.2f} GiB"


def report(outcome: BatchOutcome, failure_title: str) -> bool:
    """Print a batch summary. Returns True when everything succeeded."""
    if outcome.ok:
        print(f"{Colors.GREEN}Done.{Colors.RESET}")
        return True
    print(f"{Colors.RED}{failure_title}{Colors.RESET}")
    for bad in sorted(outcome.failures):
        print(f"  - {bad}")
    return False


# -------------------------
# AUR queries
# -------------------------
def info(packages: List[str]) -> bool:
    _ensure_initialized()
    rows = aur.info(packages)
    if not rows:
        print("No packages found.")
        return False

    for p in rows:
        status = f"{Colors.RED}Out of Date!{Colors.RESET}" if p.is_out_of_date else f"{Colors.GREEN}Up to Date{Colors.RESET}"
        maintainer = p.maintainer or f"{Colors.RED}None{Colors.RESET}"
        print(f"Repository      : {Colors.MAGENTA}aur{Colors.RESET}")
        print(f"Name            : {Colors.BOLD}{p.name}{Colors.RESET}")
        print(f"Version         : {p.version}")
        print(f"AUR Status      : {status}")
        print(f"Maintainer      : {maintainer}")
        print(f"Project URL     : {p.url or 'None'}")
        print(f"AUR URL         : {aur.package_url(p.name)}")
        print(f"License         : {' '.join(p.license)}")
        print(f"Group           : {' '.join(p.groups)}")
        print(f"Provides        : {' '.join(p.provides)}")
        print(f"Depends On      : {' '.join(p.depends)}")
        print(f"Make Deps       : {' '.join(p.make_depends)}")
        print(f"Optional Deps   : {' '.join(p.opt_depends)}")
        print(f"Check Deps      : {' '.join(p.check_depends)}")
        print(f"Votes           : {Colors.YELLOW}{p.num_votes}{Colors.RESET}")
        print(f"Popularity      : {Colors.YELLOW}{p.popularity:.2f}{Colors.RESET}")
        print(f"Description     : {p.description or 'None'}")
        print(f"Keywords        : {' '.join(p.keywords)}")
        print(f"Submitted       : {_fmt_date(p.first_submitted)}")
        print(f"Updated         : {_fmt_date(p.last_modified)}")
        print()
    return True


def search(
    terms: List[str], abc: bool = False, reverse: bool = False, limit: Optional[int] = None, quiet: bool = False
) -> bool:
    _ensure_initialized()
    matches = rank_search(terms, aur.search, alpha=abc, reverse=reverse, limit=limit)
    if not matches:
        print("No packages found.")
        return True

    for p in matches:
        if quiet:
            print(p.name)
            continue
        ver_color = Colors.RED if p.is_out_of_date else Colors.GREEN
        installed = f" {Colors.BOLD}[installed]{Colors.RESET}" if localdb.lookup(p.name) else ""
        print(
            f"{Colors.MAGENTA}aur/{Colors.RESET}{Colors.BOLD}{p.name}{Colors.RESET} "
            f"{ver_color}{p.version}{Colors.RESET} "
            f"({Colors.YELLOW}{p.num_votes}{Colors.RESET} | {Colors.YELLOW}{p.popularity:.2f}{Colors.RESET}){installed}"
        )
        print(f"    {p.description or ''}")
    return True


def open_page(package: str) -> bool:
    """Open a package's AUR page in the default browser."""
    _ensure_initialized()
    url = aur.package_url(package)
    _logger.debug("Opening %s", url)
    if not webbrowser.open(url):
        print(f"{Colors.RED}Could not open a browser. Visit {url}{Colors.RESET}")
        return False
    return True


# -------------------------
# Clone management
# -------------------------
def clone(packages: List[str]) -> bool:
    """Clone AUR repositories into the current directory."""
    _ensure_initialized()
    outcome = clone_aur_repos(
        git, _cfg.aur_base_url, packages, max_workers=_cfg.max_workers, retries=_cfg.git_retries
    )
    return report(outcome, "Some packages failed to clone:")


def refresh(packages: Optional[List[str]] = None) -> bool:
    """Pull the latest commits into every local clone."""
    _ensure_initialized()
    outcome = refresh_clones(
        git, _cfg.clones_dir, packages or None, max_workers=_cfg.max_workers, retries=_cfg.git_retries
    )
    if not len(outcome):
        print("No clones to update.")
        return True
    return report(outcome, "Some clones failed to update:")


def real_packages(packages: Sequence[str]) -> Optional[PkgPartition]:
    """Partition ``packages``, warning about unknown names. None when nothing is valid."""
    try:
        part = partition_aur_pkgs(_cfg.clones_dir, packages, aur)
    except NothingValidError as e:
        for bad in e.partition.not_real:
            print(f"{Colors.YELLOW}{bad} is not an AUR package.{Colors.RESET}")
        print(f"{Colors.RED}No valid packages specified.{Colors.RESET}")
        return None

    for bad in part.not_real:
        print(f"{Colors.YELLOW}{bad} is not an AUR package.{Colors.RESET}")
    return part


def install(packages: List[str]) -> bool:
    """
    Fetch the build recipes of ``packages`` into the clones directory.
    Building them is not done here yet.
    """
    _ensure_initialized()
    if not packages:
        print(f"{Colors.RED}No packages specified.{Colors.RESET}")
        return False

    part = real_packages(packages)
    if part is None:
        return False

    outcome = sync_batch(
        git,
        _cfg.aur_base_url,
        _cfg.clones_dir,
        part.to_clone,
        SyncMode.CLONE,
        max_workers=_cfg.max_workers,
        retries=_cfg.git_retries,
    )
    ok = report(outcome, "Some packages failed to clone:")

    ready = part.cloned + sorted(outcome.successes)
    if ready:
        print(f"Build recipes ready in {_cfg.clones_dir}: {', '.join(ready)}")
        print("Building packages is not supported yet.")
    return ok


# -------------------------
# Package cache
# -------------------------
def cache_info(packages: List[str]) -> bool:
    _ensure_initialized()
    found = False
    for name in packages:
        entry = pkgcache.info(_cfg.cache_dir, name)
        if entry is None:
            continue
        found = True

        installed = localdb.lookup(entry.name)
        if installed is None:
            is_in = ""
        elif installed == entry.version:
            is_in = f" {Colors.CYAN}{Colors.BOLD}[installed]{Colors.RESET}"
        else:
            is_in = f" {Colors.YELLOW}{Colors.BOLD}[installed: {installed}]{Colors.RESET}"
        sig = f"{Colors.GREEN}{Colors.BOLD}Yes{Colors.RESET}" if entry.signature else f"{Colors.YELLOW}No{Colors.RESET}"

        print(f"{Colors.BOLD}Name              {Colors.RESET}: {entry.name}")
        print(f"{Colors.BOLD}Latest            {Colors.RESET}: {entry.version}{is_in}")
        print(f"{Colors.BOLD}Created           {Colors.RESET}: {entry.created:%Y-%m-%d %H:%M:%S}")
        print(f"{Colors.BOLD}Signature         {Colors.RESET}: {sig}")
        print(f"{Colors.BOLD}Tarball Size      {Colors.RESET}: {_fmt_bytes(entry.size)}")
        print(f"{Colors.BOLD}Available Versions{Colors.RESET}: {', '.join(entry.available)}")
        print()

    if not found:
        print("No cached packages match.")
    return found


def cache_search(term: str) -> bool:
    _ensure_initialized()
    for path in pkgcache.search(_cfg.cache_dir, term):
        print(path)
    return True


def _confirm(prompt: str) -> bool:
    try:
        answer = input(f"{prompt} [Y/n] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("", "y", "yes")


def backup(target: str, yes: bool = False) -> bool:
    """Copy the package cache into ``target`` with a progress bar."""
    _ensure_initialized()
    target_path = pkgcache.resolve_target(target)
    cache_size = pkgcache.size(_cfg.cache_dir)
    print(f"Current cache size: {_fmt_bytes(cache_size.bytes)}")

    try:
        nonempty = any(target_path.iterdir())
    except OSError:
        nonempty = False
    if nonempty:
        print(f"{Colors.YELLOW}{target_path} is not empty; existing files will be overwritten.{Colors.RESET}")
    else:
        print(f"Backing up to {target_path}")

    if not yes and not _confirm("Proceed?"):
        return False

    with tqdm(total=cache_size.files, unit="file", desc="Backup") as bar:
        outcome = pkgcache.backup(
            _cfg.cache_dir,
            target_path,
            observer=lambda done, total: bar.update(1),
            max_workers=_cfg.max_workers,
        )
    return report(outcome, "Some cache files could not be copied:")
