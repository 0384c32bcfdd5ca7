#!/usr/bin/env python3
# CUI // SP-CTI
"""Complexity & Churn Analyzer — per-file risk hotspots.

Cyclomatic complexity is approximated per file by counting decision-point
tokens (if/elif, loops, case, catch/except, &&, ||, ??, ternary ?, Python
and/or) from a baseline of 1. Coupling is the scanner's import count. The
three signals combine with churn into

    risk_score = 0.4 * complexity + 0.3 * (lines / 100) + 0.3 * churn

Hotspots are always reported sorted by risk_score, highest first. Files that
change often *and* branch heavily are additionally ranked by
churn * complexity / 100 (top 20).
"""

import logging
import re
from typing import List, Optional

from legacylift.config import ComplexityConfig
from legacylift.schemas.health import (
    ChurnCorrelation,
    ComplexityHotspot,
    ComplexityReport,
    ScanResult,
)

logger = logging.getLogger("legacylift.analysis.complexity_analyzer")


def count_decision_points(text: str, language: str,
                          config: Optional[ComplexityConfig] = None) -> int:
    """Count branching tokens in source text for the given language."""
    config = config or ComplexityConfig()
    patterns = config.branch_patterns.get(
        language, config.branch_patterns.get(config.default_branch_language, [])
    )
    return sum(len(re.findall(pattern, text)) for pattern in patterns)


def cyclomatic_complexity(text: str, language: str,
                          config: Optional[ComplexityConfig] = None) -> int:
    return 1 + count_decision_points(text, language, config)


def compute_risk_score(complexity: int, lines: int, coupling: int, churn: int) -> float:
    """Deterministic per-file risk score. Coupling is reported, not weighted."""
    return round(0.4 * complexity + 0.3 * (lines / 100.0) + 0.3 * churn, 2)


def recommend(complexity: int, lines: int, churn: int,
              config: Optional[ComplexityConfig] = None) -> str:
    """Pick the first matching recommendation tier."""
    config = config or ComplexityConfig()
    if complexity > config.critical_complexity and churn > config.critical_churn:
        return (f"CRITICAL: complexity {complexity} with {churn} changes. "
                "Extract and test before touching.")
    if complexity > config.decompose_complexity:
        return (f"Decompose: complexity {complexity} exceeds "
                f"{config.decompose_complexity}; split branching logic into smaller units.")
    if lines > config.split_lines:
        return f"Split by responsibility: {lines} lines in a single file."
    if churn > config.backfill_churn and complexity > config.backfill_complexity:
        return (f"Changed {churn} times: backfill tests and simplify incrementally.")
    return "Monitor: no immediate action required."


def _correlate(hotspots: List[ComplexityHotspot], config: ComplexityConfig) -> List[ChurnCorrelation]:
    rows = [
        ChurnCorrelation(
            path=h.path,
            churn=h.churn,
            complexity=h.cyclomatic_complexity,
            correlation_score=round(h.churn * h.cyclomatic_complexity / 100.0, 2),
        )
        for h in hotspots
        if h.churn > config.correlation_min_churn
        and h.cyclomatic_complexity > config.correlation_min_complexity
    ]
    rows.sort(key=lambda r: (-r.correlation_score, r.path))
    return rows[:config.correlation_limit]


def analyze_complexity(scan: ScanResult,
                       config: Optional[ComplexityConfig] = None) -> ComplexityReport:
    """Build complexity hotspots and the churn correlation list for a scan."""
    config = config or ComplexityConfig()
    hotspots = []
    for record in scan.files:
        if record.line_count < config.min_lines:
            continue
        complexity = cyclomatic_complexity(record.content, record.language, config)
        if complexity < config.min_complexity:
            continue
        hotspots.append(ComplexityHotspot(
            path=record.path,
            cyclomatic_complexity=complexity,
            cognitive_complexity=int(round(complexity * config.cognitive_factor)),
            line_count=record.line_count,
            coupling=record.import_count,
            churn=record.churn,
            risk_score=compute_risk_score(
                complexity, record.line_count, record.import_count, record.churn
            ),
            recommendation=recommend(complexity, record.line_count, record.churn, config),
        ))
    hotspots.sort(key=lambda h: (-h.risk_score, h.path))

    decompose = sum(1 for h in hotspots if h.cyclomatic_complexity > config.decompose_complexity)
    critical = sum(1 for h in hotspots if h.cyclomatic_complexity > config.critical_complexity)
    score = round(max(0.0, 100.0 - 5 * decompose - 10 * critical), 1)

    logger.info("Complexity: %d hotspots (%d over %d), score %.1f",
                len(hotspots), decompose, config.decompose_complexity, score)
    return ComplexityReport(
        hotspots=tuple(hotspots),
        churn_correlation=tuple(_correlate(hotspots, config)),
        complexity_health_score=score,
    )
