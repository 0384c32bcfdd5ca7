#!/usr/bin/env python3
# CUI // SP-CTI
"""External collaborator adapters for the LegacyLift analyzers.

The engine consumes exactly two signals from outside tools:

  run_cycle_detector(path) -> list of import cycles (each a list of paths)
  count_commits(path)      -> number of changesets that touched a file

SubprocessExternalTool shells out with argv lists (never a shell string) and
a bounded timeout. Every failure mode (missing binary, timeout, non-zero exit,
malformed output) degrades to an empty result and a logged warning, so a
missing tool never aborts an assessment.

Usage:
    tool = SubprocessExternalTool.from_config(config.external_tools)
    cycles = tool.run_cycle_detector("/opt/legacy/app/src")
    churn = tool.count_commits("/opt/legacy/app/src/billing.js")
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from legacylift.resilience.errors import ExternalToolError

logger = logging.getLogger("legacylift.analysis.external_tools")


class ExternalTool:
    """Capability interface for the external analysis collaborators."""

    def run_cycle_detector(self, path: str) -> List[List[str]]:
        raise NotImplementedError

    def count_commits(self, path: str) -> int:
        raise NotImplementedError


class NullExternalTool(ExternalTool):
    """No external tools available: no cycles, no churn."""

    def run_cycle_detector(self, path: str) -> List[List[str]]:
        return []

    def count_commits(self, path: str) -> int:
        return 0


def parse_cycles(raw: str) -> List[List[str]]:
    """Parse cycle-detector stdout (a JSON array of path arrays).

    Raises:
        ValueError: if the output is not a JSON array of string arrays.
    """
    text = (raw or "").strip()
    if not text:
        return []
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("cycle detector output is not a JSON array")
    cycles = []
    for cycle in data:
        if not isinstance(cycle, list) or not all(isinstance(p, str) for p in cycle):
            raise ValueError(f"malformed cycle entry: {cycle!r}")
        if cycle:
            cycles.append(list(cycle))
    return cycles


class SubprocessExternalTool(ExternalTool):
    """Shell-out adapter with a per-call timeout and non-fatal fallback."""

    def __init__(
        self,
        cycle_command: Optional[Sequence[str]] = None,
        history_command: Optional[Sequence[str]] = None,
        timeout: float = 30.0,
    ):
        self.cycle_command = list(cycle_command or [])
        self.history_command = list(history_command or [])
        self.timeout = timeout

    @classmethod
    def from_config(cls, tool_config) -> "SubprocessExternalTool":
        return cls(
            cycle_command=tool_config.cycle_command,
            history_command=tool_config.history_command,
            timeout=tool_config.timeout_seconds,
        )

    def _execute(self, argv: List[str], cwd: Optional[str] = None) -> subprocess.CompletedProcess:
        """Run argv and return the completed process, raising ExternalToolError if it cannot run."""
        tool = argv[0] if argv else ""
        if not argv:
            raise ExternalToolError("no command configured", tool=tool)
        try:
            return subprocess.run(
                argv,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise ExternalToolError(
                f"{tool} timed out after {self.timeout}s", tool=tool
            ) from exc
        except (OSError, subprocess.SubprocessError, ValueError) as exc:
            raise ExternalToolError(f"{tool} could not be started: {exc}", tool=tool) from exc

    @staticmethod
    def _failure(argv: List[str], proc: subprocess.CompletedProcess) -> ExternalToolError:
        stderr = (proc.stderr or "").strip().splitlines()
        detail = stderr[-1] if stderr else f"exit code {proc.returncode}"
        return ExternalToolError(f"{argv[0]} failed: {detail}", tool=argv[0])

    def _run(self, argv: List[str], cwd: Optional[str] = None) -> str:
        """Run argv and return stdout, raising ExternalToolError on any failure."""
        proc = self._execute(argv, cwd)
        if proc.returncode != 0:
            raise self._failure(argv, proc)
        return proc.stdout or ""

    def run_cycle_detector(self, path: str) -> List[List[str]]:
        """Cycles reported by the detector.

        Cycle detectors such as madge exit non-zero when they find cycles,
        so a non-zero exit is only a failure when stdout is not a cycle array.
        """
        if not self.cycle_command:
            return []
        argv = self.cycle_command + [str(path)]
        try:
            proc = self._execute(argv, cwd=str(path))
        except ExternalToolError as exc:
            logger.warning("Cycle detection skipped: %s", exc)
            return []
        stdout = proc.stdout or ""
        if proc.returncode != 0 and not stdout.strip():
            logger.warning("Cycle detection skipped: %s", self._failure(argv, proc))
            return []
        try:
            cycles = parse_cycles(stdout)
        except ValueError as exc:
            if proc.returncode != 0:
                logger.warning("Cycle detection skipped: %s", self._failure(argv, proc))
            else:
                logger.warning("Cycle detector returned unusable output: %s", exc)
            return []
        logger.debug("Cycle detector reported %d cycles", len(cycles))
        return cycles

    def count_commits(self, path: str) -> int:
        """Commit count for one file.

        A single integer on stdout (``git rev-list --count``) is the count;
        otherwise every non-empty line is one commit (``git log --format=%H``).
        """
        if not self.history_command:
            return 0
        file_path = Path(path)
        try:
            stdout = self._run(self.history_command + [str(file_path)],
                               cwd=str(file_path.parent))
        except ExternalToolError as exc:
            logger.warning("Churn for %s defaulted to 0: %s", path, exc)
            return 0
        text = stdout.strip()
        if text.isdigit():
            return int(text)
        return sum(1 for line in stdout.splitlines() if line.strip())
