#!/usr/bin/env python3
# CUI // SP-CTI
"""Migration planning schema models.

TechnologyProfile pairs are the planner's only required input; MigrationPlan
is its only output. Phases refer to MigrationModule descriptors by name and
never own them.
"""

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Mapping, Tuple

ARCHITECTURE_STYLES = ("monolith", "modular-monolith", "microservices", "serverless")


@dataclass(frozen=True)
class TechnologyProfile:
    """Technology stack of one side of a migration."""

    language: str
    runtime: str
    framework: str
    database: str
    build_system: str
    test_framework: str
    deployment_model: str
    architecture: str

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TechnologyProfile":
        known = set(cls.field_names())
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass(frozen=True)
class MigrationModule:
    name: str
    paths: Tuple[str, ...] = ()
    complexity: int = 0
    churn: int = 0
    priority: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class MigrationPhase:
    number: int
    name: str
    description: str
    duration_weeks_min: int
    duration_weeks_max: int
    parallelizable: bool
    tasks: Tuple[str, ...] = ()
    milestones: Tuple[str, ...] = ()
    acceptance_criteria: Tuple[str, ...] = ()
    rollback_triggers: Tuple[str, ...] = ()
    module_names: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class MigrationRisk:
    risk_id: str
    title: str
    description: str
    probability: str  # low | medium | high
    impact: str  # low | medium | high | critical
    mitigation: str
    contingency: str
    owner: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class RollbackTrigger:
    metric: str
    threshold: str
    window: str
    action: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class RollbackPlan:
    strategy: str
    max_rollback_minutes_flag: int
    max_rollback_minutes_full: int
    triggers: Tuple[RollbackTrigger, ...] = ()
    verification_checklist: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TimelineEstimate:
    total_weeks_min: int
    total_weeks_max: int
    buffer_ratio: float
    buffered_weeks_min: int
    buffered_weeks_max: int
    parallelizable_phases: Tuple[int, ...] = ()

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CostEstimate:
    engineering_hours: float
    hourly_rate: float
    engineering_cost: float
    infrastructure: float
    tooling: float
    training: float
    risk_contingency_hours: float
    risk_contingency_cost: float
    total_estimate: float
    currency: str = "USD"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class MigrationPlan:
    current: TechnologyProfile
    target: TechnologyProfile
    strategy: str
    strategy_details: Dict[str, Any]
    phases: Tuple[MigrationPhase, ...]
    modules: Tuple[MigrationModule, ...]
    risk_register: Tuple[MigrationRisk, ...]
    rollback_plan: RollbackPlan
    timeline: TimelineEstimate
    cost: CostEstimate
    catalog_version: str
    generated_at: str
    notes: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return asdict(self)
