import subprocess
import threading
from pathlib import Path
from unittest import mock

import pytest

from aursync.errors import GitError
from aursync.git import GitClient
from aursync.sync import SyncMode, clone_aur_repo, package_remote, refresh, sync_batch

BASE = "https://aur.archlinux.org"


class FakeGit:
    """Creates directories instead of talking to a remote."""

    def __init__(self, broken=()):
        self.broken = set(broken)
        self.cloned = []
        self.pulled = []
        self._lock = threading.Lock()

    def shallow_clone(self, url, dest):
        dest = Path(dest)
        if dest.name in self.broken:
            raise GitError("clone", 128, "remote hung up")
        if dest.exists() and any(dest.iterdir()):
            raise GitError("clone", 128, f"destination path '{dest}' already exists")
        dest.mkdir(parents=True, exist_ok=True)
        (dest / "PKGBUILD").write_text(f"# {url}\n")
        with self._lock:
            self.cloned.append(url)

    def pull(self, path):
        if Path(path).name in self.broken:
            raise GitError("pull", 1, "not possible to fast-forward")
        with self._lock:
            self.pulled.append(Path(path).name)


def test_package_remote():
    assert package_remote(BASE, "aura") == "https://aur.archlinux.org/aura.git"
    assert package_remote(BASE + "/", "aura") == "https://aur.archlinux.org/aura.git"


def test_clone_destination(tmp_path, monkeypatch):
    git = FakeGit()
    assert clone_aur_repo(git, BASE, "aura", tmp_path) == tmp_path / "aura"
    assert (tmp_path / "aura" / "PKGBUILD").exists()

    monkeypatch.chdir(tmp_path)
    assert clone_aur_repo(git, BASE, "yay") == Path("yay")
    assert (tmp_path / "yay").is_dir()


def test_clone_rejects_unsafe_name(tmp_path):
    with pytest.raises(ValueError):
        clone_aur_repo(FakeGit(), BASE, "../evil", tmp_path)


def test_clone_batch_accumulates_failures(tmp_path):
    git = FakeGit(broken={"bad1", "bad2"})
    names = ["a", "bad1", "b", "bad2", "c"]
    outcome = sync_batch(git, BASE, tmp_path / "clones", names, SyncMode.CLONE)
    assert set(outcome.successes) == {"a", "b", "c"}
    assert set(outcome.failures) == {"bad1", "bad2"}
    assert sorted(p.name for p in (tmp_path / "clones").iterdir()) == ["a", "b", "c"]


def test_clone_twice_is_idempotent(tmp_path):
    git = FakeGit()
    root = tmp_path / "clones"
    first = sync_batch(git, BASE, root, ["a", "b"], SyncMode.CLONE)
    snapshot = {p.name: (p / "PKGBUILD").read_text() for p in root.iterdir()}

    second = sync_batch(git, BASE, root, ["a", "b"], SyncMode.CLONE)
    assert set(first.successes) == {"a", "b"}
    assert set(second.failures) == {"a", "b"}
    assert {p.name: (p / "PKGBUILD").read_text() for p in root.iterdir()} == snapshot


def test_duplicate_names_clone_once(tmp_path):
    git = FakeGit()
    outcome = sync_batch(git, BASE, tmp_path, ["a", "a", "b", "a"], SyncMode.CLONE)
    assert sorted(outcome.successes) == ["a", "b"]
    assert outcome.failures == []
    assert len(git.cloned) == 2


def test_refresh_skips_files(tmp_path):
    for name in ("a", "b", "broken"):
        (tmp_path / name).mkdir()
    (tmp_path / "notes.txt").write_text("stray")
    git = FakeGit(broken={"broken"})
    outcome = refresh(git, tmp_path)
    assert set(outcome.successes) == {"a", "b"}
    assert outcome.failures == ["broken"]
    assert "notes.txt" not in git.pulled


def test_refresh_missing_root(tmp_path):
    outcome = refresh(FakeGit(), tmp_path / "nope")
    assert len(outcome) == 0


def test_pull_named_clones(tmp_path):
    (tmp_path / "a").mkdir()
    (tmp_path / "b").mkdir()
    git = FakeGit()
    outcome = sync_batch(git, BASE, tmp_path, ["a", "missing", ".."], SyncMode.PULL)
    assert outcome.successes == ["a"]
    assert set(outcome.failures) == {"missing", ".."}
    assert git.pulled == ["a"]


def test_duplicate_names_pull_once(tmp_path):
    (tmp_path / "a").mkdir()
    git = FakeGit()
    outcome = sync_batch(git, BASE, tmp_path, ["a", "a"], SyncMode.PULL)
    assert outcome.successes == ["a"]
    assert outcome.failures == []
    assert git.pulled == ["a"]


@mock.patch("aursync.git.subprocess.run")
def test_git_client_commands(mock_run, tmp_path):
    git = GitClient()
    git.shallow_clone("https://aur.archlinux.org/aura.git", tmp_path / "aura")
    git.pull(tmp_path / "aura")
    clone_cmd = mock_run.call_args_list[0].args[0]
    pull_cmd = mock_run.call_args_list[1].args[0]
    assert clone_cmd[:3] == ["git", "clone", "--depth=1"]
    assert clone_cmd[-2:] == ["https://aur.archlinux.org/aura.git", str(tmp_path / "aura")]
    assert pull_cmd[:4] == ["git", "-C", str(tmp_path / "aura"), "pull"]
    assert mock_run.call_args_list[0].kwargs["timeout"] is None


@mock.patch("aursync.git.subprocess.run")
def test_git_client_wraps_failures(mock_run):
    mock_run.side_effect = subprocess.CalledProcessError(128, ["git"], stderr=b"fatal: repository not found")
    with pytest.raises(GitError) as exc:
        GitClient().pull("aura")
    assert exc.value.returncode == 128
    assert "repository not found" in str(exc.value)


@mock.patch("aursync.git.subprocess.run")
def test_git_client_timeout(mock_run):
    mock_run.side_effect = subprocess.TimeoutExpired(["git"], 5)
    with pytest.raises(GitError):
        GitClient(timeout=5).shallow_clone("url", "dest")
    assert mock_run.call_args.kwargs["timeout"] == 5
