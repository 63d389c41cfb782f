from unittest import mock

import pytest

from aursync import cli, operations
from aursync.batch import BatchOutcome
from aursync.errors import CacheDirError, ProviderUnreachableError, TargetIsFileError
from aursync.partition import PkgPartition


def run_main(argv):
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    return exc.value.code


@mock.patch("aursync.cli.operations.init")
@mock.patch("aursync.cli.Config")
def test_search_command_wiring(mock_config, mock_init):
    with mock.patch("aursync.operations.search", return_value=True) as mock_search:
        code = run_main(["s", "linux", "zen", "--limit", "2", "--abc"])
    assert code == 0
    mock_init.assert_called_once_with(mock_config.return_value)
    mock_search.assert_called_once_with(terms=["linux", "zen"], abc=True, reverse=False, limit=2, quiet=False)


@mock.patch("aursync.cli.operations.init")
@mock.patch("aursync.cli.Config")
def test_failed_command_exits_nonzero(mock_config, mock_init):
    with mock.patch("aursync.operations.install", return_value=False):
        assert run_main(["install", "bogus"]) == 1


@mock.patch("aursync.cli.operations.init")
@mock.patch("aursync.cli.Config")
def test_fatal_error_exits_nonzero(mock_config, mock_init):
    with mock.patch("aursync.operations.refresh", side_effect=ProviderUnreachableError("down")):
        assert run_main(["refresh"]) == 1


@mock.patch("aursync.cli.operations.init")
@mock.patch("aursync.cli.Config")
def test_config_path_passed(mock_config, mock_init):
    with mock.patch("aursync.operations.backup", return_value=True) as mock_backup:
        run_main(["--config", "/tmp/a.conf", "cb", "/tmp/backup", "-y"])
    mock_config.assert_called_once_with("/tmp/a.conf")
    mock_backup.assert_called_once_with(target="/tmp/backup", yes=True)


@mock.patch("aursync.cli.operations.init")
@mock.patch("aursync.cli.Config")
def test_open_command_wiring(mock_config, mock_init):
    with mock.patch("aursync.operations.open_page", return_value=True) as mock_open:
        assert run_main(["o", "aura"]) == 0
    mock_open.assert_called_once_with(package="aura")


@mock.patch("aursync.cli.operations.init")
@mock.patch("aursync.cli.Config")
def test_unreadable_cache_exits_nonzero(mock_config, mock_init):
    with mock.patch("aursync.operations.backup", side_effect=CacheDirError("gone")):
        assert run_main(["cb", "/tmp/backup", "-y"]) == 1


# -------------------------
# operations layer
# -------------------------
@pytest.fixture
def ops(tmp_path, monkeypatch):
    cfg = mock.Mock(
        clones_dir=tmp_path / "clones",
        cache_dir=tmp_path / "cache",
        aur_base_url="https://aur.archlinux.org",
        max_workers=None,
        git_retries=0,
    )
    monkeypatch.setattr(operations, "_cfg", cfg)
    monkeypatch.setattr(operations, "aur", mock.Mock())
    monkeypatch.setattr(operations, "git", mock.Mock())
    monkeypatch.setattr(operations, "localdb", mock.Mock())
    return cfg


def test_install_reports_nothing_valid(ops, capsys):
    operations.aur.info.return_value = []
    assert operations.install(["bogus"]) is False
    out = capsys.readouterr().out
    assert "bogus is not an AUR package." in out
    assert "No valid packages specified." in out


def test_install_clones_missing(ops, capsys):
    part = PkgPartition(cloned=["a"], to_clone=["b", "c"], not_real=["x"])
    outcome = BatchOutcome(successes=["b"], failures=["c"])
    with mock.patch("aursync.operations.partition_aur_pkgs", return_value=part), \
         mock.patch("aursync.operations.sync_batch", return_value=outcome) as mock_sync:
        assert operations.install(["a", "b", "c", "x"]) is False
    assert mock_sync.call_args.args[3] == ["b", "c"]
    out = capsys.readouterr().out
    assert "  - c" in out
    assert "a, b" in out


def test_report_all_success(capsys):
    assert operations.report(BatchOutcome(successes=["a"]), "failed:") is True
    assert "Done." in capsys.readouterr().out


def test_open_page(ops):
    url = "https://aur.archlinux.org/packages/aura"
    operations.aur.package_url.return_value = url
    with mock.patch("aursync.operations.webbrowser.open", return_value=True) as mock_open:
        assert operations.open_page("aura") is True
    operations.aur.package_url.assert_called_once_with("aura")
    mock_open.assert_called_once_with(url)


def test_open_page_without_browser(ops, capsys):
    url = "https://aur.archlinux.org/packages/aura"
    operations.aur.package_url.return_value = url
    with mock.patch("aursync.operations.webbrowser.open", return_value=False):
        assert operations.open_page("aura") is False
    assert url in capsys.readouterr().out


def test_backup_missing_cache_dir(ops, tmp_path):
    with pytest.raises(CacheDirError):
        operations.backup(str(tmp_path / "out"), yes=True)
    assert not (tmp_path / "out").exists()


def test_backup_into_file_is_fatal(ops, tmp_path):
    target = tmp_path / "file"
    target.write_text("x")
    with mock.patch("builtins.input") as mock_input:
        with pytest.raises(TargetIsFileError):
            operations.backup(str(target))
    mock_input.assert_not_called()
    assert target.read_text() == "x"
