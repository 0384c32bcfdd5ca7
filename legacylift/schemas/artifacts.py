#!/usr/bin/env python3
# CUI // SP-CTI
"""Generated artifact schema models.

Strangler-fig routing config, compatibility layers, data migration scripts,
and test backfill plans. Each artifact owns its own rule/mapping/step lists
and holds copies of any values taken from a HealthReport or MigrationPlan.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "ALL")


@dataclass(frozen=True)
class RoutingRule:
    path_pattern: str
    method: str = "ALL"
    target: str = "modern"
    rollout_percentage: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class FeatureFlag:
    name: str
    description: str
    path_pattern: str
    method: str
    target: str
    rollout_percentage: float
    enabled: bool

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class HealthCheck:
    backend: str  # legacy | modern
    url: str
    interval_seconds: int
    timeout_seconds: int
    unhealthy_threshold: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class StranglerFigConfig:
    legacy_base_url: str
    modern_base_url: str
    routing_rules: Tuple[RoutingRule, ...]
    feature_flags: Tuple[FeatureFlag, ...]
    health_checks: Tuple[HealthCheck, ...]
    fallback_behavior: str = "legacy"
    generated_at: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class FieldMapping:
    source_field: str
    target_field: str
    transformation: str = "direct"
    nullable: bool = False
    default: Any = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CompatibilityLayer:
    name: str
    mappings: Tuple[FieldMapping, ...]
    forward_transform: Tuple[str, ...]
    reverse_transform: Tuple[str, ...]
    generated_at: str = ""

    def forward(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        from legacylift.modernization.compatibility_layer import forward
        return forward(self, record)

    def reverse(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        from legacylift.modernization.compatibility_layer import reverse
        return reverse(self, record)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class MigrationStep:
    order: int
    name: str
    description: str
    sql: str
    reversible: bool
    estimated_duration: str
    rollback_sql: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ValidationQuery:
    name: str
    description: str
    sql: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class DataMigrationScript:
    table: str
    source_schema: str
    target_schema: str
    steps: Tuple[MigrationStep, ...]
    rollback_steps: Tuple[MigrationStep, ...]
    validation_queries: Tuple[ValidationQuery, ...]
    generated_at: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TestBackfillItem:
    __test__ = False

    path: str
    priority_score: float
    risk_tier: str
    risk_score: float
    complexity: int
    churn: int
    coupling: int
    test_types: Tuple[str, ...]
    approach: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TestBackfillPlan:
    __test__ = False

    items: Tuple[TestBackfillItem, ...] = ()
    tier_counts: Tuple[Tuple[str, int], ...] = ()
    generated_at: str = ""

    def to_dict(self) -> dict:
        return asdict(self)
