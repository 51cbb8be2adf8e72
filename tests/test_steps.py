"""
Tests for recipe step selection, conditions and executors.
"""

import os
from pathlib import Path

from tests.helpers import FakeRunner, make_stub

from dotkit.core.data.catalog import TOOL_RECIPES
from dotkit.core.models.resource import OsFamily
from dotkit.core.persistence.install_log import InstallLog
from dotkit.core.services.package_managers import Apt, UnknownPlatform
from dotkit.core.services.steps import (
    _evaluate_condition,
    execute_step,
    execute_steps,
    expand,
    select_steps,
)
from dotkit.core.services.toolpath import ToolPath


class TestSelectSteps:
    def test_exact_family_wins(self):
        steps = select_steps(TOOL_RECIPES["nvim"]["install"], OsFamily.DEBIAN)
        assert any("git" in s.get("command", []) for s in steps)

    def test_linux_key_for_linux_families(self):
        kitty = TOOL_RECIPES["kitty"]["install"]
        for family in (OsFamily.DEBIAN, OsFamily.FEDORA, OsFamily.ARCH):
            assert select_steps(kitty, family) is kitty["_linux"]
        assert select_steps(kitty, OsFamily.MACOS) is kitty["macos"]

    def test_any_key(self):
        tmux = TOOL_RECIPES["tmux"]["install"]
        assert select_steps(tmux, OsFamily.ARCH) == [{"packages": ["tmux"]}]

    def test_unknown_never_matches(self):
        for recipe in TOOL_RECIPES.values():
            assert select_steps(recipe["install"], OsFamily.UNKNOWN) is None

    def test_missing_map(self):
        assert select_steps(None, OsFamily.DEBIAN) is None


class TestExpand:
    def test_placeholders_replaced(self):
        assert expand("{home}/.gemrc", {"home": "/h"}) == "/h/.gemrc"

    def test_shell_braces_untouched(self):
        text = "v=${v}; echo {home}"
        assert expand(text, {"home": "/h"}) == "v=${v}; echo /h"


class TestConditions:
    def test_none_is_true(self, tool_path: ToolPath):
        assert _evaluate_condition(None, tool_path, {}) is True

    def test_cli_conditions(self, tool_path: ToolPath, bin_dir: Path):
        make_stub(bin_dir, "cargo")
        assert _evaluate_condition("has_cli:cargo", tool_path, {}) is True
        assert _evaluate_condition("missing_cli:cargo", tool_path, {}) is False
        assert _evaluate_condition("has_cli:nope", tool_path, {}) is False

    def test_file_conditions(self, tool_path: ToolPath, tmp_path: Path):
        (tmp_path / "present").write_text("x")
        ph = {"home": str(tmp_path)}
        assert _evaluate_condition("file_exists:{home}/present", tool_path, ph) is True
        assert _evaluate_condition("missing_file:{home}/present", tool_path, ph) is False
        assert _evaluate_condition("missing_file:{home}/absent", tool_path, ph) is True

    def test_unknown_condition_runs(self, tool_path: ToolPath):
        assert _evaluate_condition("phase_of_moon:full", tool_path, {}) is True


class TestExecuteStep:
    def _run(self, step, runner, tool_path, log, placeholders=None, pm=None):
        return execute_step(
            step,
            pm=pm or Apt(runner=runner),
            tool_path=tool_path,
            runner=runner,
            log=log,
            placeholders=placeholders or {},
            resource="test",
        )

    def test_packages_go_through_strategy(self, fake_runner: FakeRunner, tool_path, install_log):
        result = self._run({"packages": ["tmux"]}, fake_runner, tool_path, install_log)
        assert result["ok"]
        cmd, kwargs = fake_runner.calls[0]
        assert cmd == ["apt-get", "install", "-y", "tmux"]
        assert kwargs["needs_sudo"] is True

    def test_command_expands_placeholders(self, fake_runner: FakeRunner, tool_path, install_log):
        step = {"command": ["{requires}", "install", "colorls"], "cwd": "{tmp}", "needs_sudo": True}
        self._run(step, fake_runner, tool_path, install_log,
                  placeholders={"requires": "/usr/bin/gem", "tmp": "/tmp/x"})
        cmd, kwargs = fake_runner.calls[0]
        assert cmd == ["/usr/bin/gem", "install", "colorls"]
        assert kwargs["cwd"] == "/tmp/x"
        assert kwargs["needs_sudo"] is True
        assert kwargs["env"]["PATH"] == tool_path.search_path

    def test_condition_skips_without_running(self, fake_runner: FakeRunner, tool_path, install_log):
        result = self._run({"command": ["cargo", "install", "zoxide"], "when": "has_cli:cargo"},
                           fake_runner, tool_path, install_log)
        assert result["skipped"]
        assert fake_runner.calls == []
        assert install_log.read_all() == []

    def test_write_file_only_when_missing(self, fake_runner, tool_path, install_log, tmp_path: Path):
        step = {"write_file": "{home}/.gemrc", "content": "gem: --user-install\n"}
        ph = {"home": str(tmp_path)}
        first = self._run(step, fake_runner, tool_path, install_log, ph)
        assert first["ok"] and not first.get("skipped")
        (tmp_path / ".gemrc").write_text("custom\n")
        second = self._run(step, fake_runner, tool_path, install_log, ph)
        assert second["skipped"]
        assert (tmp_path / ".gemrc").read_text() == "custom\n"

    def test_link_step(self, fake_runner, tool_path, install_log, tmp_path: Path):
        source = tmp_path / "kitty.app" / "bin" / "kitty"
        source.parent.mkdir(parents=True)
        source.write_text("")
        step = {"link": "{home}/.local/bin/kitty", "source": "{home}/kitty.app/bin/kitty"}
        result = self._run(step, fake_runner, tool_path, install_log, {"home": str(tmp_path)})
        assert result["ok"]
        assert os.readlink(tmp_path / ".local" / "bin" / "kitty") == str(source)

    def test_link_step_missing_source_fails(self, fake_runner, tool_path, install_log, tmp_path: Path):
        step = {"link": "{home}/.local/bin/kitty", "source": "{home}/missing"}
        result = self._run(step, fake_runner, tool_path, install_log, {"home": str(tmp_path)})
        assert not result["ok"]

    def test_unknown_platform_packages_never_run(self, fake_runner, tool_path, install_log):
        result = self._run({"packages": ["tmux"]}, fake_runner, tool_path, install_log,
                           pm=UnknownPlatform(runner=fake_runner))
        assert not result["ok"]
        assert result["manual"]
        assert fake_runner.calls == []

    def test_executed_steps_are_logged(self, fake_runner, tool_path, install_log):
        fake_runner.on("make", result={"ok": False, "error": "Command failed (exit 2)"})
        self._run({"command": ["make", "install"]}, fake_runner, tool_path, install_log)
        entry = install_log.read_all()[0]
        assert entry.event == "command"
        assert entry.status == "failed"
        assert entry.context["step"] == "make install"


class TestExecuteSteps:
    def test_stops_at_first_failure(self, fake_runner: FakeRunner, tool_path, install_log):
        fake_runner.on("false", result={"ok": False, "error": "boom"})
        result = execute_steps(
            [{"command": ["true"]}, {"command": ["false"]}, {"command": ["never"]}],
            pm=Apt(runner=fake_runner), tool_path=tool_path, runner=fake_runner,
            log=install_log, placeholders={},
        )
        assert not result["ok"]
        assert fake_runner.commands() == [["true"], ["false"]]

    def test_all_skipped(self, fake_runner: FakeRunner, tool_path, install_log):
        result = execute_steps(
            [{"command": ["cargo"], "when": "has_cli:cargo"}],
            pm=Apt(runner=fake_runner), tool_path=tool_path, runner=fake_runner,
            log=install_log, placeholders={},
        )
        assert result["ok"] and result["skipped"]
