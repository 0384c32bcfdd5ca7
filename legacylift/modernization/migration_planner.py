#!/usr/bin/env python3
# CUI // SP-CTI
"""Migration Planner — strategy, phases, risks, rollback, timeline and cost.

Given a current and a target TechnologyProfile, selects a migration pattern
from a fixed decision table (first match wins):

  1. architecture differs and current is a monolith   strangler-fig
  2. framework differs, architecture does not         branch-by-abstraction
  3. database differs                                 parallel-run
  4. otherwise                                        branch-by-abstraction

then populates the five-phase template, the risk register and the rollback
plan from the template catalog, and estimates timeline and cost from the
phase list:

    engineering_hours = phases * hours_per_phase
    contingency_hours = engineering_hours * contingency_ratio
    total = engineering_hours * rate + infra + tooling + training
            + contingency_hours * rate

This is the only stage that rejects its input: incomplete profiles or an
unknown strategy override raise PlannerInputError.
"""

import logging
import math
from collections import OrderedDict
from pathlib import PurePosixPath
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from legacylift.compat.datetime_utils import utc_now_iso
from legacylift.config import PlannerConfig
from legacylift.modernization.catalog import Catalog
from legacylift.resilience.errors import PlannerInputError
from legacylift.schemas.health import HealthReport
from legacylift.schemas.migration import (
    ARCHITECTURE_STYLES,
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

logger = logging.getLogger("legacylift.modernization.migration_planner")

PROBABILITY_LADDER = ("low", "medium", "high")

ProfileInput = Union[TechnologyProfile, Mapping[str, Any]]


class _TemplateContext(dict):
    """format_map() context that leaves unknown placeholders untouched."""

    def __missing__(self, key):
        return "{" + key + "}"


def _fill(text: str, context: Mapping[str, str]) -> str:
    return text.format_map(_TemplateContext(context))


def _norm(value: str) -> str:
    return str(value).strip().lower()


# ---------------------------------------------------------------------------
# Profiles and strategy selection
# ---------------------------------------------------------------------------

def load_profile(data: ProfileInput, side: str = "current") -> TechnologyProfile:
    """Build and validate a TechnologyProfile.

    Args:
        data: A TechnologyProfile or a mapping with all eight profile fields.
        side: "current" or "target", used in error messages.

    Raises:
        PlannerInputError: On a missing/blank field or an unknown
            architecture style.
    """
    if isinstance(data, TechnologyProfile):
        data = data.to_dict()
    if not isinstance(data, Mapping):
        raise PlannerInputError(f"{side} profile must be a mapping, got {type(data).__name__}",
                                config_key=side)

    missing = [name for name in TechnologyProfile.field_names()
               if data.get(name) is None or not str(data.get(name)).strip()]
    if missing:
        raise PlannerInputError(
            f"{side} profile is missing required field(s): {', '.join(missing)}",
            config_key=f"{side}.{missing[0]}",
        )

    values = {name: str(data[name]).strip() for name in TechnologyProfile.field_names()}
    values["architecture"] = _norm(values["architecture"])
    if values["architecture"] not in ARCHITECTURE_STYLES:
        raise PlannerInputError(
            f"{side} profile has unknown architecture '{values['architecture']}'; "
            f"expected one of {', '.join(ARCHITECTURE_STYLES)}",
            config_key=f"{side}.architecture",
        )
    return TechnologyProfile(**values)


def select_strategy(current: TechnologyProfile, target: TechnologyProfile) -> str:
    """Apply the strategy decision table; a total, deterministic function."""
    architecture_differs = _norm(current.architecture) != _norm(target.architecture)
    if architecture_differs and _norm(current.architecture) == "monolith":
        return "strangler-fig"
    if _norm(current.framework) != _norm(target.framework) and not architecture_differs:
        return "branch-by-abstraction"
    if _norm(current.database) != _norm(target.database):
        return "parallel-run"
    return "branch-by-abstraction"


def _strategy_entry(strategy: str, catalog: Catalog) -> Mapping[str, Any]:
    try:
        return catalog.strategy(strategy)
    except KeyError:
        raise PlannerInputError(
            f"Unknown strategy '{strategy}'; expected one of {', '.join(sorted(catalog.strategies))}",
            config_key="strategy",
        ) from None


# ---------------------------------------------------------------------------
# Phases
# ---------------------------------------------------------------------------

def _milestone_modules(module_names: Sequence[str], milestones: Sequence[str]) -> List[str]:
    """Annotate percentage milestones with the modules that complete them."""
    if not module_names:
        return list(milestones)
    annotated = []
    done = 0
    for index, milestone in enumerate(milestones, start=1):
        upto = math.ceil(len(module_names) * index / len(milestones))
        batch = module_names[done:upto]
        done = upto
        annotated.append(f"{milestone} ({', '.join(batch)})" if batch else milestone)
    return annotated


def generate_phases(strategy: str, modules: Sequence[MigrationModule] = (),
                    catalog: Optional[Catalog] = None,
                    config: Optional[PlannerConfig] = None) -> List[MigrationPhase]:
    """Populate the five-phase template for a strategy.

    Phase count and order never depend on the strategy; only descriptive
    text does. Modules are referenced by name in priority order.
    """
    catalog = catalog or Catalog()
    config = config or PlannerConfig()
    entry = _strategy_entry(strategy, catalog)
    context = {
        "abstraction": entry.get("abstraction", ""),
        "migration_unit": entry.get("migration_unit", "module"),
        "strategy": entry.get("name", strategy),
    }
    ordered = sorted(modules, key=lambda m: (m.priority, m.name))
    names = [m.name for m in ordered]

    phases = []
    for template in catalog.phases:
        number = int(template["number"])
        weeks_min, weeks_max = template["weeks"]
        milestones = [_fill(m, context) for m in template.get("milestones", [])]
        module_names = ()
        if number == 1:
            module_names = tuple(names)
        elif number == 3:
            module_names = tuple(names)
            milestones = _milestone_modules(names, milestones)
        phases.append(MigrationPhase(
            number=number,
            name=template["name"],
            description=_fill(template["description"], context),
            duration_weeks_min=int(weeks_min),
            duration_weeks_max=int(weeks_max),
            parallelizable=number >= config.parallelizable_from_phase,
            tasks=tuple(_fill(t, context) for t in template.get("tasks", [])),
            milestones=tuple(milestones),
            acceptance_criteria=tuple(_fill(a, context) for a in template.get("acceptance_criteria", [])),
            rollback_triggers=tuple(_fill(r, context) for r in template.get("rollback_triggers", [])),
            module_names=module_names,
        ))
    return phases


# ---------------------------------------------------------------------------
# Risks and rollback
# ---------------------------------------------------------------------------

def _raise_probability(probability: str) -> str:
    if probability not in PROBABILITY_LADDER:
        return probability
    index = PROBABILITY_LADDER.index(probability)
    return PROBABILITY_LADDER[min(index + 1, len(PROBABILITY_LADDER) - 1)]


def _describe(profile: Optional[TechnologyProfile], fallback: str) -> str:
    if profile is None:
        return fallback
    return f"{profile.language}/{profile.framework}"


def build_risk_register(strategy: str, health_score: Optional[float] = None,
                        current: Optional[TechnologyProfile] = None,
                        target: Optional[TechnologyProfile] = None,
                        catalog: Optional[Catalog] = None,
                        config: Optional[PlannerConfig] = None) -> List[MigrationRisk]:
    """Populate the risk archetypes for a strategy.

    When a health score below ``low_health_threshold`` is supplied, every
    archetype's probability moves one step up (low -> medium -> high).
    """
    catalog = catalog or Catalog()
    config = config or PlannerConfig()
    entry = _strategy_entry(strategy, catalog)
    context = {
        "current": _describe(current, "legacy"),
        "target": _describe(target, "target"),
        "strategy": entry.get("name", strategy),
    }
    unhealthy = health_score is not None and health_score < config.low_health_threshold

    risks = []
    for template in catalog.risks:
        probability = template["probability"]
        if unhealthy:
            probability = _raise_probability(probability)
        risks.append(MigrationRisk(
            risk_id=template["risk_id"],
            title=_fill(template["title"], context),
            description=_fill(template["description"], context),
            probability=probability,
            impact=template["impact"],
            mitigation=_fill(template["mitigation"], context),
            contingency=_fill(template["contingency"], context),
            owner=template["owner"],
        ))
    return risks


def build_rollback_plan(strategy: str, catalog: Optional[Catalog] = None) -> RollbackPlan:
    catalog = catalog or Catalog()
    entry = _strategy_entry(strategy, catalog)
    rollback = catalog.rollback
    return RollbackPlan(
        strategy=entry.get("rollback_strategy", ""),
        max_rollback_minutes_flag=int(rollback["max_rollback_minutes_flag"]),
        max_rollback_minutes_full=int(rollback["max_rollback_minutes_full"]),
        triggers=tuple(RollbackTrigger(**t) for t in rollback.get("triggers", [])),
        verification_checklist=tuple(rollback.get("verification_checklist", [])),
    )


# ---------------------------------------------------------------------------
# Estimates
# ---------------------------------------------------------------------------

def estimate_timeline(phases: Sequence[MigrationPhase],
                      config: Optional[PlannerConfig] = None) -> TimelineEstimate:
    """Sum phase ranges and apply the schedule buffer (rounded up to whole weeks)."""
    config = config or PlannerConfig()
    total_min = sum(p.duration_weeks_min for p in phases)
    total_max = sum(p.duration_weeks_max for p in phases)
    ratio = config.schedule_buffer_ratio
    return TimelineEstimate(
        total_weeks_min=total_min,
        total_weeks_max=total_max,
        buffer_ratio=ratio,
        buffered_weeks_min=int(math.ceil(round(total_min * (1 + ratio), 6))),
        buffered_weeks_max=int(math.ceil(round(total_max * (1 + ratio), 6))),
        parallelizable_phases=tuple(p.number for p in phases if p.parallelizable),
    )


def estimate_cost(phases: Sequence[MigrationPhase],
                  config: Optional[PlannerConfig] = None) -> CostEstimate:
    config = config or PlannerConfig()
    hours = len(phases) * config.hours_per_phase
    contingency_hours = hours * config.contingency_ratio
    engineering_cost = hours * config.hourly_rate
    contingency_cost = contingency_hours * config.hourly_rate
    total = (engineering_cost + config.infrastructure_cost + config.tooling_cost
             + config.training_cost + contingency_cost)
    return CostEstimate(
        engineering_hours=round(hours, 2),
        hourly_rate=config.hourly_rate,
        engineering_cost=round(engineering_cost, 2),
        infrastructure=config.infrastructure_cost,
        tooling=config.tooling_cost,
        training=config.training_cost,
        risk_contingency_hours=round(contingency_hours, 2),
        risk_contingency_cost=round(contingency_cost, 2),
        total_estimate=round(total, 2),
        currency=config.currency,
    )


# ---------------------------------------------------------------------------
# Modules
# ---------------------------------------------------------------------------

def _module_key(path: str) -> str:
    parts = PurePosixPath(path).parts
    return parts[0] if len(parts) > 1 else "(root)"


def modules_from_health_report(report: HealthReport) -> List[MigrationModule]:
    """Group complexity hotspots by top-level directory, riskiest group first."""
    groups = OrderedDict()
    for hotspot in report.complexity.hotspots:
        groups.setdefault(_module_key(hotspot.path), []).append(hotspot)

    ranked = sorted(
        groups.items(),
        key=lambda item: (-sum(h.risk_score for h in item[1]), item[0]),
    )
    return [
        MigrationModule(
            name=name,
            paths=tuple(sorted(h.path for h in hotspots)),
            complexity=sum(h.cyclomatic_complexity for h in hotspots),
            churn=sum(h.churn for h in hotspots),
            priority=rank,
        )
        for rank, (name, hotspots) in enumerate(ranked, start=1)
    ]


def _coerce_modules(modules: Iterable[Any]) -> List[MigrationModule]:
    coerced = []
    for index, module in enumerate(modules, start=1):
        if isinstance(module, MigrationModule):
            coerced.append(module)
        elif isinstance(module, str):
            coerced.append(MigrationModule(name=module, priority=index))
        elif isinstance(module, Mapping) and module.get("name"):
            try:
                paths = tuple(module.get("paths", ()))
                complexity = int(module.get("complexity", 0))
                churn = int(module.get("churn", 0))
                priority = int(module.get("priority", index))
            except (TypeError, ValueError, OverflowError) as exc:
                raise PlannerInputError(
                    f"Module '{module['name']}' has an invalid field: {exc}",
                    config_key="modules",
                ) from exc
            coerced.append(MigrationModule(
                name=str(module["name"]),
                paths=paths,
                complexity=complexity,
                churn=churn,
                priority=priority,
            ))
        else:
            raise PlannerInputError(f"Invalid module descriptor: {module!r}", config_key="modules")
    return coerced


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------

def plan_migration(current: ProfileInput, target: ProfileInput,
                   modules: Iterable[Any] = (),
                   health_report: Optional[HealthReport] = None,
                   strategy: Optional[str] = None,
                   config: Optional[PlannerConfig] = None,
                   catalog: Optional[Catalog] = None) -> MigrationPlan:
    """Generate a complete MigrationPlan.

    Args:
        current: Current technology profile (TechnologyProfile or mapping).
        target: Target technology profile (TechnologyProfile or mapping).
        modules: MigrationModule descriptors, names, or mappings. When empty
            and a health report is given, modules are derived from its
            complexity hotspots.
        health_report: Optional HealthReport; its overall score adjusts risk
            probabilities.
        strategy: Optional explicit strategy overriding the decision table.
        config: PlannerConfig with cost and schedule constants.
        catalog: Template catalog; defaults to the built-in one.

    Raises:
        PlannerInputError: Invalid profiles, modules or strategy override.
    """
    config = config or PlannerConfig()
    catalog = catalog or Catalog()
    current_profile = load_profile(current, "current")
    target_profile = load_profile(target, "target")

    if strategy is not None and not isinstance(strategy, str):
        raise PlannerInputError(f"Strategy override must be a string, got {strategy!r}",
                                config_key="strategy")
    if strategy:
        chosen = strategy.strip().lower()
        _strategy_entry(chosen, catalog)
        selected_by = "override"
    else:
        chosen = select_strategy(current_profile, target_profile)
        selected_by = "decision-table"
    entry = _strategy_entry(chosen, catalog)

    module_list = _coerce_modules(modules)
    if not module_list and health_report is not None:
        module_list = modules_from_health_report(health_report)

    health_score = health_report.overall_health_score if health_report is not None else None

    phases = generate_phases(chosen, module_list, catalog, config)
    notes = []
    if current_profile == target_profile:
        notes.append("Current and target profiles are identical; the plan covers "
                     "internal restructuring only.")
    if health_score is not None and health_score < config.low_health_threshold:
        notes.append(f"Health score {health_score} is below {config.low_health_threshold}; "
                     "risk probabilities were raised one level.")
    if not module_list:
        notes.append("No modules supplied; phase milestones are expressed as percentages only.")

    plan = MigrationPlan(
        current=current_profile,
        target=target_profile,
        strategy=chosen,
        strategy_details={
            "name": entry.get("name", chosen),
            "rationale": entry.get("rationale", ""),
            "prerequisites": list(entry.get("prerequisites", [])),
            "constraints": list(entry.get("constraints", [])),
            "success_criteria": list(entry.get("success_criteria", [])),
            "selected_by": selected_by,
        },
        phases=tuple(phases),
        modules=tuple(module_list),
        risk_register=tuple(build_risk_register(
            chosen, health_score, current_profile, target_profile, catalog, config
        )),
        rollback_plan=build_rollback_plan(chosen, catalog),
        timeline=estimate_timeline(phases, config),
        cost=estimate_cost(phases, config),
        catalog_version=catalog.version,
        generated_at=utc_now_iso(),
        notes=tuple(notes),
    )
    logger.info("Planned %s migration (%s): %d phases, %d modules, %d-%d weeks",
                chosen, selected_by, len(plan.phases), len(plan.modules),
                plan.timeline.total_weeks_min, plan.timeline.total_weeks_max)
    return plan
