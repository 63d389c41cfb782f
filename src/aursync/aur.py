from __future__ import annotations

import atexit
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import requests
import urllib3
from requests.adapters import HTTPAdapter, Retry

from .config import Config
from .errors import AurError
from .logger import setup_logger

_logger = setup_logger()

RPC_VERSION = 5


@dataclass(frozen=True)
class AurPackage:
    """
    One package record as returned by the AUR RPC.

    Search results only carry the summary fields; the list fields stay empty
    unless the record came from an ``info`` lookup.
    """

    name: str
    version: str
    description: Optional[str] = None
    num_votes: int = 0
    popularity: float = 0.0
    maintainer: Optional[str] = None
    out_of_date: Optional[int] = None
    url: Optional[str] = None
    first_submitted: int = 0
    last_modified: int = 0
    license: List[str] = field(default_factory=list)
    groups: List[str] = field(default_factory=list)
    provides: List[str] = field(default_factory=list)
    depends: List[str] = field(default_factory=list)
    make_depends: List[str] = field(default_factory=list)
    opt_depends: List[str] = field(default_factory=list)
    check_depends: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)

    @staticmethod
    def from_json(row: Dict[str, Any]) -> "AurPackage":
        if row is None:
            raise ValueError("row must not be None")
        return AurPackage(
            name=row["Name"],
            version=row.get("Version") or "",
            description=row.get("Description"),
            num_votes=int(row.get("NumVotes") or 0),
            popularity=float(row.get("Popularity") or 0.0),
            maintainer=row.get("Maintainer"),
            out_of_date=row.get("OutOfDate"),
            url=row.get("URL"),
            first_submitted=int(row.get("FirstSubmitted") or 0),
            last_modified=int(row.get("LastModified") or 0),
            license=list(row.get("License") or []),
            groups=list(row.get("Groups") or []),
            provides=list(row.get("Provides") or []),
            depends=list(row.get("Depends") or []),
            make_depends=list(row.get("MakeDepends") or []),
            opt_depends=list(row.get("OptDepends") or []),
            check_depends=list(row.get("CheckDepends") or []),
            keywords=list(row.get("Keywords") or []),
        )

    @property
    def is_out_of_date(self) -> bool:
        return self.out_of_date is not None

    @property
    def is_orphan(self) -> bool:
        return self.maintainer is None


class AurClient:
    """
    Client for the AUR RPC interface.

    A single pooled session with HTTP-level retries is shared by every call,
    so concurrent lookups from worker threads reuse connections.
    """

    def __init__(self, config: Config, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.rpc_url = getattr(self.config, "rpc_url", "https://aur.archlinux.org/rpc/")
        self.base_url = getattr(self.config, "aur_base_url", "https://aur.archlinux.org").rstrip("/")
        self.proxy_url = getattr(self.config, "proxy_url", None)
        self.verify_ssl = getattr(self.config, "verify_ssl", True)
        self.retries = getattr(self.config, "retries", 3)

        # Timeouts (Connect, Read)
        self.timeout = (
            getattr(self.config, "timeout_connect", 10),
            getattr(self.config, "timeout_read", 60),
        )

        if session is not None:
            self.session = session
        else:
            self.session = self._init_session()
            atexit.register(self.close)

    def _init_session(self) -> requests.Session:
        session = requests.Session()

        if self.proxy_url:
            session.proxies.update({
                "http": self.proxy_url,
                "https": self.proxy_url,
            })

        retry_strategy = Retry(
            total=self.retries,
            backoff_factor=0.3,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"],
        )
        adapter = HTTPAdapter(pool_connections=10, pool_maxsize=10, max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        if not self.verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
            session.verify = False
            _logger.warning("SSL verification disabled (Insecure).")

        return session

    def close(self) -> None:
        if self.session:
            self.session.close()

    # --------------------------------------------------------
    # RPC calls
    # --------------------------------------------------------

    def _rpc(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        query = {"v": RPC_VERSION}
        query.update(params)
        _logger.debug("AUR RPC %s", query)
        try:
            resp = self.session.get(self.rpc_url, params=query, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise AurError(f"AUR request failed: {e}") from e

        if payload.get("type") == "error":
            raise AurError(payload.get("error") or "Unknown AUR error")
        return payload.get("results") or []

    def info(self, names: Sequence[str]) -> List[AurPackage]:
        """Look up full records for the given package names. Unknown names are simply absent."""
        if not names:
            return []
        rows = self._rpc({"type": "info", "arg[]": list(names)})
        return [AurPackage.from_json(r) for r in rows]

    def search(self, term: str) -> List[AurPackage]:
        """Search names and descriptions for a single term."""
        rows = self._rpc({"type": "search", "by": "name-desc", "arg": term})
        return [AurPackage.from_json(r) for r in rows]

    def package_url(self, name: str) -> str:
        return f"{self.base_url}/packages/{name}"
