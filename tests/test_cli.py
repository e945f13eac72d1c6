"""Tests for argument parsing and the ucsreport entry point."""

from pathlib import Path
from unittest.mock import patch

import pytest

from ucsreport.__main__ import main
from ucsreport._util import RUN_LOG_NAME
from ucsreport.cli import parse_args
from ucsreport.client import SnapshotClient
from ucsreport.errors import ControllerConnectionError
from ucsreport.pipeline import SNAPSHOT_FILENAME, load_snapshot

FIXTURES = Path(__file__).parent / "fixtures"
SNAPSHOT = FIXTURES / "ucsm_snapshot.json"


def test_parse_args_single_endpoint():
    args = parse_args(["-e", "ucs-a", "-u", "admin", "--password-env", "PW", "-o", "/tmp/x"])
    assert args.endpoint == "ucs-a"
    assert args.password_env == "PW"
    assert args.output_dir == Path("/tmp/x")
    assert args.verify_tls is False
    assert args.timeout == 30.0


@pytest.mark.parametrize("argv", [
    [],
    ["-e", "ucs-a"],
    ["-e", "ucs-a", "-u", "admin", "--targets", "t.csv"],
    ["--from-snapshot", "s.json", "--targets", "t.csv"],
])
def test_parse_args_rejects_bad_combinations(argv):
    with pytest.raises(SystemExit):
        parse_args(argv)


def test_main_from_snapshot_writes_report(tmp_path, capsys):
    out = tmp_path / "out"
    rc = main(["--from-snapshot", str(SNAPSHOT), "-o", str(out)])
    assert rc == 0
    assert (out / "report.html").exists()
    assert (out / "recommendations.md").exists()
    assert not (out / SNAPSHOT_FILENAME).exists()
    assert "checks passed" in capsys.readouterr().out


def test_main_from_missing_snapshot_fails(tmp_path):
    assert main(["--from-snapshot", str(tmp_path / "nope.json"), "-o", str(tmp_path)]) == 1


class _UnreachableClient(SnapshotClient):
    def connect(self):
        raise ControllerConnectionError("ucs-down: connection refused")

    def close(self):
        pass


def _client_factory(endpoint, username, password, verify_tls=False, timeout=30):
    snapshot = load_snapshot(SNAPSHOT)
    if endpoint == "ucs-down":
        return _UnreachableClient(snapshot)
    return SnapshotClient(snapshot)


def test_batch_run_continues_past_failed_target(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("UCS_PW", "secret")
    targets = tmp_path / "targets.csv"
    targets.write_text(
        "endpoint,username,password_env\n"
        "ucs-down,admin,UCS_PW\n"
        "ucs-up,admin,UCS_PW\n"
    )
    out = tmp_path / "out"
    with patch("ucsreport.__main__.UcsmClient", side_effect=_client_factory):
        rc = main(["--targets", str(targets), "-o", str(out)])

    assert rc == 1
    assert not (out / "ucs-down").exists()
    assert (out / "ucs-up" / "report.html").exists()
    assert (out / "ucs-up" / SNAPSHOT_FILENAME).exists()

    log = (out / RUN_LOG_NAME).read_text().splitlines()
    assert len(log) == 2
    assert "FAILED  ucs-down: ucs-down: connection refused" in log[0]
    assert "OK      ucs-up" in log[1]
    assert "1 of 2 targets succeeded" in capsys.readouterr().err


def test_batch_run_continues_past_unwritable_output_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("UCS_PW", "secret")
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    targets = tmp_path / "targets.csv"
    targets.write_text(
        "endpoint,username,password_env,output_dir\n"
        f"ucs-bad,admin,UCS_PW,{blocker / 'sub'}\n"
        "ucs-good,admin,UCS_PW,\n"
    )
    out = tmp_path / "out"
    with patch("ucsreport.__main__.UcsmClient", side_effect=_client_factory):
        rc = main(["--targets", str(targets), "-o", str(out)])

    assert rc == 1
    assert (out / "ucs-good" / "report.html").exists()
    log = (out / RUN_LOG_NAME).read_text().splitlines()
    assert "FAILED  ucs-bad" in log[0]
    assert "OK      ucs-good" in log[1]


def test_single_target_collect_only(tmp_path, monkeypatch):
    monkeypatch.setenv("UCS_PW", "secret")
    out = tmp_path / "one"
    with patch("ucsreport.__main__.UcsmClient", side_effect=_client_factory):
        rc = main(["-e", "ucs-up", "-u", "admin", "--password-env", "UCS_PW",
                   "-o", str(out), "--collect-only"])
    assert rc == 0
    assert (out / SNAPSHOT_FILENAME).exists()
    assert not (out / "report.html").exists()


def test_missing_password_variable_exits_2(tmp_path, monkeypatch):
    monkeypatch.delenv("UCS_UNSET", raising=False)
    rc = main(["-e", "ucs-a", "-u", "admin", "--password-env", "UCS_UNSET", "-o", str(tmp_path)])
    assert rc == 2
