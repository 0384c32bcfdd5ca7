#!/usr/bin/env python3
# CUI // SP-CTI
"""Test Coverage Reader — normalizes a previously generated coverage summary.

Expects the Istanbul/nyc ``json-summary`` shape:

    {"total": {"lines": {"pct": 81.2}, "branches": {"pct": 64.0},
               "functions": {"pct": 77.5}, ...}, ...}

Missing or unparsable summaries are not errors: every percentage defaults to
0, so the absence of coverage data shows up as a test quality score of 0.
"""

import json
import logging
import math
from pathlib import Path
from typing import Optional, Sequence

from legacylift.schemas.health import CoverageSummary

logger = logging.getLogger("legacylift.analysis.coverage_reader")


def compute_test_quality(line_pct: float, branch_pct: float, function_pct: float) -> float:
    return round(0.4 * line_pct + 0.35 * branch_pct + 0.25 * function_pct, 2)


def _pct(total: dict, key: str) -> float:
    section = total.get(key) or {}
    value = section.get("pct", 0) if isinstance(section, dict) else 0
    try:
        pct = float(value)
    except (TypeError, ValueError):
        # Istanbul writes "Unknown" when a category has no entries
        return 0.0
    if not math.isfinite(pct):
        return 0.0
    return max(0.0, min(100.0, pct))


def find_coverage_summary(root, candidates: Sequence[str] = ()) -> Optional[Path]:
    """Return the first existing coverage summary under root, if any."""
    for rel in candidates or ("coverage/coverage-summary.json",):
        path = Path(root) / rel
        if path.is_file():
            return path
    return None


def read_coverage_summary(path) -> CoverageSummary:
    """Read a coverage summary file; never raises."""
    if path is None:
        logger.warning("No coverage summary available; coverage reported as 0%")
        return CoverageSummary()
    summary_path = Path(path)
    try:
        data = json.loads(summary_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning("Coverage summary %s not found; coverage reported as 0%%", summary_path)
        return CoverageSummary(source=str(summary_path))
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        logger.warning("Coverage summary %s unreadable (%s); coverage reported as 0%%",
                       summary_path, exc)
        return CoverageSummary(source=str(summary_path))

    total = data.get("total") if isinstance(data, dict) else None
    if not isinstance(total, dict):
        logger.warning("Coverage summary %s has no 'total' section", summary_path)
        return CoverageSummary(source=str(summary_path))

    line_pct = _pct(total, "lines")
    branch_pct = _pct(total, "branches")
    function_pct = _pct(total, "functions")
    return CoverageSummary(
        line_pct=line_pct,
        branch_pct=branch_pct,
        function_pct=function_pct,
        test_quality_score=compute_test_quality(line_pct, branch_pct, function_pct),
        found=True,
        source=str(summary_path),
    )
