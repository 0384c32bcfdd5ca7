#!/usr/bin/env python3
# CUI // SP-CTI
"""Tests for legacylift.analysis.external_tools — subprocess adapter and fallbacks."""

import subprocess
from unittest.mock import patch

import pytest

from legacylift.analysis.external_tools import (
    NullExternalTool,
    SubprocessExternalTool,
    parse_cycles,
)
from legacylift.config import ExternalToolConfig


def _completed(stdout="", returncode=0, stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode,
                                       stdout=stdout, stderr=stderr)


class TestParseCycles:
    def test_array_of_arrays(self):
        assert parse_cycles('[["a.js", "b.js"], ["c.js", "d.js", "e.js"]]') == [
            ["a.js", "b.js"], ["c.js", "d.js", "e.js"],
        ]

    def test_empty_output(self):
        assert parse_cycles("") == []
        assert parse_cycles("[]") == []

    def test_empty_cycles_dropped(self):
        assert parse_cycles('[[], ["a", "b"]]') == [["a", "b"]]

    def test_not_an_array(self):
        with pytest.raises(ValueError):
            parse_cycles('{"a": 1}')

    def test_malformed_entry(self):
        with pytest.raises(ValueError):
            parse_cycles('[["a", 1]]')

    def test_invalid_json(self):
        with pytest.raises(ValueError):
            parse_cycles("not json")


class TestNullExternalTool:
    def test_returns_empty_signals(self):
        tool = NullExternalTool()
        assert tool.run_cycle_detector("/x") == []
        assert tool.count_commits("/x/a.py") == 0


class TestSubprocessExternalTool:
    def _tool(self):
        return SubprocessExternalTool(
            cycle_command=["madge", "--circular", "--json"],
            history_command=["git", "log", "--format=%H", "--"],
            timeout=5,
        )

    def test_from_config(self):
        tool = SubprocessExternalTool.from_config(ExternalToolConfig(timeout_seconds=7))
        assert tool.timeout == 7
        assert tool.history_command[0] == "git"

    def test_cycle_detector_uses_argv_list(self, tmp_path):
        with patch("legacylift.analysis.external_tools.subprocess.run",
                   return_value=_completed('[["a.js", "b.js"]]')) as run:
            cycles = self._tool().run_cycle_detector(str(tmp_path))
        assert cycles == [["a.js", "b.js"]]
        argv = run.call_args.args[0]
        assert argv == ["madge", "--circular", "--json", str(tmp_path)]
        assert run.call_args.kwargs["timeout"] == 5
        assert "shell" not in run.call_args.kwargs

    def test_count_commits_counts_lines(self, tmp_path):
        target = tmp_path / "a.py"
        with patch("legacylift.analysis.external_tools.subprocess.run",
                   return_value=_completed("abc\ndef\n\n123\n")) as run:
            assert self._tool().count_commits(str(target)) == 3
        assert run.call_args.kwargs["cwd"] == str(tmp_path)

    def test_timeout_degrades_to_empty(self, tmp_path):
        with patch("legacylift.analysis.external_tools.subprocess.run",
                   side_effect=subprocess.TimeoutExpired(cmd="madge", timeout=5)):
            tool = self._tool()
            assert tool.run_cycle_detector(str(tmp_path)) == []
            assert tool.count_commits(str(tmp_path / "a.py")) == 0

    def test_missing_binary_degrades_to_empty(self, tmp_path):
        with patch("legacylift.analysis.external_tools.subprocess.run",
                   side_effect=FileNotFoundError("madge")):
            assert self._tool().run_cycle_detector(str(tmp_path)) == []

    def test_cycles_reported_with_non_zero_exit(self, tmp_path):
        with patch("legacylift.analysis.external_tools.subprocess.run",
                   return_value=_completed(stdout='[["a.js","b.js"]]', returncode=1)):
            assert self._tool().run_cycle_detector(str(tmp_path)) == [["a.js", "b.js"]]

    def test_non_zero_exit_without_output_degrades_to_empty(self, tmp_path):
        with patch("legacylift.analysis.external_tools.subprocess.run",
                   return_value=_completed(returncode=2, stderr="madge: bad config")):
            assert self._tool().run_cycle_detector(str(tmp_path)) == []

    def test_non_zero_exit_with_garbage_degrades_to_empty(self, tmp_path):
        with patch("legacylift.analysis.external_tools.subprocess.run",
                   return_value=_completed(stdout="Error: boom", returncode=1)):
            assert self._tool().run_cycle_detector(str(tmp_path)) == []

    def test_count_commits_reads_single_integer(self, tmp_path):
        with patch("legacylift.analysis.external_tools.subprocess.run",
                   return_value=_completed(stdout="42\n")):
            assert self._tool().count_commits(str(tmp_path / "a.py")) == 42

    def test_non_zero_exit_degrades_to_zero(self, tmp_path):
        with patch("legacylift.analysis.external_tools.subprocess.run",
                   return_value=_completed(returncode=128, stderr="fatal: not a git repository")):
            assert self._tool().count_commits(str(tmp_path / "a.py")) == 0

    def test_malformed_json_degrades_to_empty(self, tmp_path):
        with patch("legacylift.analysis.external_tools.subprocess.run",
                   return_value=_completed("Processed 12 files")):
            assert self._tool().run_cycle_detector(str(tmp_path)) == []

    def test_unconfigured_commands_do_nothing(self, tmp_path):
        tool = SubprocessExternalTool()
        with patch("legacylift.analysis.external_tools.subprocess.run") as run:
            assert tool.run_cycle_detector(str(tmp_path)) == []
            assert tool.count_commits(str(tmp_path / "a.py")) == 0
        run.assert_not_called()
