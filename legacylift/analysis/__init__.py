#!/usr/bin/env python3
# CUI // SP-CTI
"""LegacyLift Analysis — source scanning, five analyzers, health aggregation."""

from legacylift.analysis.health_aggregator import (  # noqa: F401
    aggregate_health,
    compute_overall_score,
    run_health_assessment,
)
