from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List, Optional, Union

from .errors import GitError
from .logger import setup_logger

_logger = setup_logger()


class GitClient:
    """
    Thin wrapper over the ``git`` executable.

    ``timeout`` bounds a single invocation in seconds; None waits forever.
    """

    def __init__(self, executable: str = "git", timeout: Optional[float] = None) -> None:
        self.executable = executable
        self.timeout = timeout

    def _run(self, args: List[str], command: str) -> None:
        cmd = [self.executable] + args
        _logger.debug("Running %s", " ".join(cmd))
        try:
            subprocess.run(cmd, check=True, capture_output=True, timeout=self.timeout)
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode("utf-8", errors="ignore")
            raise GitError(command, e.returncode, stderr) from e
        except subprocess.TimeoutExpired as e:
            raise GitError(command, None, f"timed out after {self.timeout}s") from e
        except OSError as e:
            raise GitError(command, None, str(e)) from e

    def shallow_clone(self, url: str, dest: Union[str, Path]) -> None:
        self._run(["clone", "--depth=1", "--quiet", url, str(dest)], "clone")

    def pull(self, path: Union[str, Path]) -> None:
        self._run(["-C", str(path), "pull", "--ff-only", "--quiet"], "pull")
