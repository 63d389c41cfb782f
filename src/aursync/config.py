import configparser
import os
from pathlib import Path
from typing import Optional, Union

from .logger import setup_logger

_logger = setup_logger()


class Config:
    def __init__(self, config_path: Optional[Union[str, Path]] = None) -> None:
        if config_path:
            self.config_path = Path(config_path).expanduser()
            self.config_dir = self.config_path.parent
        else:
            self.config_dir = Path.home() / ".config" / "aursync"
            self.config_path = self.config_dir / "aursync.conf"
        self.config_dir.mkdir(parents=True, exist_ok=True)

        # Default values
        self.clones_dir: Path = Path.home() / ".cache" / "aursync" / "packages"
        self.cache_dir: Path = Path("/var/cache/pacman/pkg")
        self.localdb_dir: Path = Path("/var/lib/pacman/local")
        self.max_workers: Optional[int] = None

        # AUR
        self.aur_base_url: str = "https://aur.archlinux.org"
        self.rpc_url: str = "https://aur.archlinux.org/rpc/"

        # Network Defaults
        self.timeout_connect: int = 10
        self.timeout_read: int = 60
        self.retries: int = 3
        self.verify_ssl: bool = True
        self.proxy_url: Optional[str] = None

        # Git: no timeout and no retries unless configured
        self.git_timeout: Optional[float] = None
        self.git_retries: int = 0

        self.load()

    def load(self) -> None:
        parser = configparser.ConfigParser()
        if not self.config_path.exists():
            _logger.warning(f"Config file {self.config_path} not found. Creating default config.")
            self._write_default_config()

        parser.read(self.config_path)

        # [general]
        self.clones_dir = Path(parser.get("general", "clones_dir", fallback=str(self.clones_dir))).expanduser()
        self.cache_dir = Path(parser.get("general", "cache_dir", fallback=str(self.cache_dir))).expanduser()
        self.localdb_dir = Path(parser.get("general", "localdb_dir", fallback=str(self.localdb_dir))).expanduser()
        workers = parser.getint("general", "max_workers", fallback=0)
        self.max_workers = workers if workers > 0 else None

        # [aur]
        self.aur_base_url = parser.get("aur", "base_url", fallback=self.aur_base_url).rstrip("/")
        self.rpc_url = parser.get("aur", "rpc_url", fallback=self.rpc_url)

        # [network]
        if parser.has_section("network"):
            self.timeout_connect = parser.getint("network", "timeout_connect", fallback=10)
            self.timeout_read = parser.getint("network", "timeout_read", fallback=60)
            self.retries = parser.getint("network", "retries", fallback=3)
            self.verify_ssl = parser.getboolean("network", "verify_ssl", fallback=True)

            # Handle empty strings mapping to None
            p_url = parser.get("network", "proxy_url", fallback=None)
            self.proxy_url = p_url if p_url else None

        # [git]
        if parser.has_section("git"):
            g_timeout = parser.get("git", "timeout", fallback="")
            self.git_timeout = float(g_timeout) if g_timeout.strip() else None
            self.git_retries = parser.getint("git", "retries", fallback=0)

        # Environment override, mostly for tests and containers
        env_clones = os.environ.get("AURSYNC_CLONES_DIR")
        if env_clones:
            self.clones_dir = Path(env_clones)

    def _write_default_config(self) -> None:
        parser = configparser.ConfigParser()
        parser["general"] = {
            "clones_dir": str(self.clones_dir),
            "cache_dir": str(self.cache_dir),
            "localdb_dir": str(self.localdb_dir),
            "max_workers": str(self.max_workers or 0),
        }
        parser["aur"] = {
            "base_url": self.aur_base_url,
            "rpc_url": self.rpc_url,
        }
        parser["network"] = {
            "timeout_connect": str(self.timeout_connect),
            "timeout_read": str(self.timeout_read),
            "retries": str(self.retries),
            "verify_ssl": str(self.verify_ssl).lower(),
            "proxy_url": self.proxy_url or "",
        }
        parser["git"] = {
            "timeout": "" if self.git_timeout is None else str(self.git_timeout),
            "retries": str(self.git_retries),
        }
        with self.config_path.open("w") as f:
            parser.write(f)
        _logger.info(f"Default config written to {self.config_path}")
