"""
Tests for the structured install log.
"""

import json
from pathlib import Path

from dotkit.core.persistence.install_log import InstallLog, LogEntry


class TestInstallLog:
    def test_one_json_object_per_line(self, install_log: InstallLog):
        install_log.record("backup", target=Path("/h/.zshrc"), destination=Path("/b/.zshrc"))
        install_log.record("link", resource="zshrc", status="ok")

        lines = install_log.path.read_text().splitlines()
        assert len(lines) == 2
        first = json.loads(lines[0])
        assert set(first) == {"timestamp", "event", "resource", "status", "message", "context"}
        assert first["context"] == {"target": "/h/.zshrc", "destination": "/b/.zshrc"}

    def test_append_only(self, install_log: InstallLog):
        install_log.record("run_started")
        before = install_log.path.read_text()
        install_log.record("run_finished")
        assert install_log.path.read_text().startswith(before)

    def test_read_all_in_order(self, install_log: InstallLog):
        for event in ("run_started", "unlink", "link", "run_finished"):
            install_log.record(event)
        assert [e.event for e in install_log.read_all()] == [
            "run_started", "unlink", "link", "run_finished",
        ]

    def test_corrupt_lines_skipped(self, install_log: InstallLog):
        install_log.write(LogEntry(event="ok-1"))
        with install_log.path.open("a") as f:
            f.write("{not json\n\n")
        install_log.write(LogEntry(event="ok-2"))
        assert [e.event for e in install_log.read_all()] == ["ok-1", "ok-2"]

    def test_missing_file(self, tmp_path: Path):
        assert InstallLog(tmp_path / "absent.log").read_all() == []

    def test_unwritable_location_does_not_raise(self, tmp_path: Path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        log = InstallLog(blocker / "install.log")
        log.record("run_started")
        assert log.read_all() == []
