#!/usr/bin/env python3
# CUI // SP-CTI
"""Test Backfill Prioritizer — which hotspots need tests first.

Reuses complexity hotspots:

    priority_score = 0.4 * risk_score + 0.3 * churn + 0.3 * complexity

Risk tier by risk_score: > 8 critical, > 5 high, > 3 medium, else low.
Test types: unit always; integration when coupling > 5; characterization
when complexity > 20; regression when churn > 20.

Weights and thresholds above are the BackfillConfig defaults.
"""

import logging
from collections import Counter
from typing import Iterable, List, Optional, Tuple

from legacylift.compat.datetime_utils import utc_now_iso
from legacylift.config import BackfillConfig
from legacylift.schemas.artifacts import TestBackfillItem, TestBackfillPlan
from legacylift.schemas.health import ComplexityHotspot

logger = logging.getLogger("legacylift.modernization.test_backfill")

RISK_TIERS = ("critical", "high", "medium", "low")


def compute_priority_score(risk_score: float, churn: int, complexity: int,
                           config: Optional[BackfillConfig] = None) -> float:
    config = config or BackfillConfig()
    return round(config.risk_weight * risk_score
                 + config.churn_weight * churn
                 + config.complexity_weight * complexity, 2)


def risk_tier(risk_score: float, config: Optional[BackfillConfig] = None) -> str:
    config = config or BackfillConfig()
    if risk_score > config.critical_risk:
        return "critical"
    if risk_score > config.high_risk:
        return "high"
    if risk_score > config.medium_risk:
        return "medium"
    return "low"


def recommend_test_types(coupling: int, complexity: int, churn: int,
                         config: Optional[BackfillConfig] = None) -> Tuple[str, ...]:
    config = config or BackfillConfig()
    types = ["unit"]
    if coupling > config.integration_coupling:
        types.append("integration")
    if complexity > config.characterization_complexity:
        types.append("characterization")
    if churn > config.regression_churn:
        types.append("regression")
    return tuple(types)


def testing_approach(coupling: int, complexity: int, churn: int,
                     config: Optional[BackfillConfig] = None) -> str:
    config = config or BackfillConfig()
    steps = []
    if complexity > config.characterization_complexity:
        steps.append("Pin current behavior with characterization tests before refactoring")
    if coupling > config.integration_coupling:
        steps.append(f"cover its {coupling} collaborators with integration tests")
    if churn > config.regression_churn:
        steps.append(f"add regression tests for defects from its {churn} recent changes")
    if not steps:
        return "Add focused unit tests for the public functions."
    steps.append("then backfill unit tests per extracted function")
    text = "; ".join(steps)
    return text[0].upper() + text[1:] + "."


def prioritize_test_backfill(hotspots: Iterable[ComplexityHotspot],
                             config: Optional[BackfillConfig] = None) -> TestBackfillPlan:
    """Rank hotspots for test backfill, highest priority first."""
    config = config or BackfillConfig()
    items: List[TestBackfillItem] = []
    for h in hotspots:
        items.append(TestBackfillItem(
            path=h.path,
            priority_score=compute_priority_score(h.risk_score, h.churn,
                                                  h.cyclomatic_complexity, config),
            risk_tier=risk_tier(h.risk_score, config),
            risk_score=h.risk_score,
            complexity=h.cyclomatic_complexity,
            churn=h.churn,
            coupling=h.coupling,
            test_types=recommend_test_types(h.coupling, h.cyclomatic_complexity, h.churn, config),
            approach=testing_approach(h.coupling, h.cyclomatic_complexity, h.churn, config),
        ))
    items.sort(key=lambda i: (-i.priority_score, i.path))

    counts = Counter(i.risk_tier for i in items)
    logger.info("Test backfill plan: %d files (%d critical, %d high)",
                len(items), counts["critical"], counts["high"])
    return TestBackfillPlan(
        items=tuple(items),
        tier_counts=tuple((tier, counts[tier]) for tier in RISK_TIERS),
        generated_at=utc_now_iso(),
    )
