#!/usr/bin/env python3
# CUI // SP-CTI
"""Shared schema models for LegacyLift stage outputs.

Frozen stdlib dataclasses. Every record exposes to_dict() for JSON
serialization; records are never mutated once a stage returns them.
"""

from legacylift.schemas.artifacts import (
    CompatibilityLayer,
    DataMigrationScript,
    FeatureFlag,
    FieldMapping,
    HealthCheck,
    MigrationStep,
    RoutingRule,
    StranglerFigConfig,
    TestBackfillItem,
    TestBackfillPlan,
    ValidationQuery,
)
from legacylift.schemas.health import (
    ArchitectureReport,
    ArchitectureSmell,
    ChurnCorrelation,
    ComplexityHotspot,
    ComplexityReport,
    CoverageSummary,
    DeadCodeEntry,
    DeadCodeReport,
    DependencyEntry,
    DependencyReport,
    FileRecord,
    HealthReport,
    PrioritizedAction,
    ScanResult,
)
from legacylift.schemas.migration import (
    CostEstimate,
    MigrationModule,
    MigrationPhase,
    MigrationPlan,
    MigrationRisk,
    RollbackPlan,
    RollbackTrigger,
    TechnologyProfile,
    TimelineEstimate,
)

__all__ = [
    "ArchitectureReport",
    "ArchitectureSmell",
    "ChurnCorrelation",
    "CompatibilityLayer",
    "ComplexityHotspot",
    "ComplexityReport",
    "CostEstimate",
    "CoverageSummary",
    "DataMigrationScript",
    "DeadCodeEntry",
    "DeadCodeReport",
    "DependencyEntry",
    "DependencyReport",
    "FeatureFlag",
    "FieldMapping",
    "FileRecord",
    "HealthCheck",
    "HealthReport",
    "MigrationModule",
    "MigrationPhase",
    "MigrationPlan",
    "MigrationRisk",
    "MigrationStep",
    "PrioritizedAction",
    "RollbackPlan",
    "RollbackTrigger",
    "RoutingRule",
    "ScanResult",
    "StranglerFigConfig",
    "TechnologyProfile",
    "TestBackfillItem",
    "TestBackfillPlan",
    "TimelineEstimate",
    "ValidationQuery",
]
