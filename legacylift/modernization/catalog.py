#!/usr/bin/env python3
# CUI // SP-CTI
"""Modernization Template Catalog — strategies, phases, risks, rollback text.

Everything the planner emits as prose comes from this catalog; the planner
only selects and populates entries. The catalog is versioned so a stored
MigrationPlan records which wording it was generated from.

A YAML file may override or extend the built-in catalog:

    version: "acme-2"
    strategies:
      strangler-fig:
        rationale: "..."
    risks:
      - risk_id: R6
        title: "..."

Strategy entries merge key-by-key over the built-ins; ``phases``, ``risks``
and ``rollback`` replace the built-in section wholesale.
"""

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from legacylift.resilience.errors import ConfigurationError

logger = logging.getLogger("legacylift.modernization.catalog")

CATALOG_VERSION = "2024.1"

# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

STRATEGIES: Dict[str, Dict[str, Any]] = {
    "strangler-fig": {
        "name": "Strangler Fig",
        "rationale": (
            "The current system is a monolith and the target architecture differs. "
            "A routing facade lets individual capabilities move to the new system "
            "one at a time while the monolith keeps serving everything else."
        ),
        "prerequisites": [
            "Routing facade or API gateway in front of the legacy system",
            "Feature flag service able to split traffic by percentage",
            "Observability on both legacy and modern paths (error rate, latency)",
            "Inventory of legacy entry points and their consumers",
        ],
        "constraints": [
            "Shared database tables must be accessed through one owner at a time",
            "Session and authentication state must be readable by both systems",
            "Facade latency overhead must stay within the performance budget",
        ],
        "success_criteria": [
            "100% of traffic served by the modern system for every migrated route",
            "Legacy routes removed from the facade with no consumer errors",
            "Error rate and P99 latency at or below the recorded baseline",
        ],
        "abstraction": (
            "Insert a routing facade in front of the monolith that proxies every "
            "request unchanged to the legacy backend."
        ),
        "migration_unit": "route",
        "rollback_strategy": (
            "Flip the route's feature flag back to the legacy backend at the facade; "
            "the legacy implementation stays deployed until decommission."
        ),
    },
    "branch-by-abstraction": {
        "name": "Branch by Abstraction",
        "rationale": (
            "The framework changes while the architecture stays the same. An "
            "interface placed in front of each framework-bound component lets old "
            "and new implementations coexist in one codebase on the main branch."
        ),
        "prerequisites": [
            "Framework-bound components identified and ranked by risk",
            "Dependency injection or factory seam to choose implementations",
            "Characterization tests around each component to be swapped",
        ],
        "constraints": [
            "Both implementations must satisfy the same interface contract",
            "No long-lived feature branches; all work merges to main behind flags",
            "Build must compile and test both implementations until cutover",
        ],
        "success_criteria": [
            "Every abstraction backed only by the new implementation",
            "Old framework removed from the dependency manifest",
            "Test suite green with no characterization test regressions",
        ],
        "abstraction": (
            "Introduce an interface in front of each framework-bound component with "
            "the legacy implementation as its only provider."
        ),
        "migration_unit": "component",
        "rollback_strategy": (
            "Switch the abstraction's provider back to the legacy implementation "
            "through configuration; no redeploy of callers is required."
        ),
    },
    "parallel-run": {
        "name": "Parallel Run",
        "rationale": (
            "The database changes while the application shape is preserved. Running "
            "old and new data paths side by side and comparing results proves "
            "parity before any reads are switched over."
        ),
        "prerequisites": [
            "Dual-write or change-data-capture from the legacy to the target store",
            "Result comparison harness with mismatch reporting",
            "Baseline row counts and checksums for every migrated table",
        ],
        "constraints": [
            "Legacy store remains the system of record until cutover",
            "Comparison must not add latency to the user-facing path",
            "Write amplification must fit within infrastructure capacity",
        ],
        "success_criteria": [
            "Zero unexplained mismatches over the agreed comparison window",
            "Reads served from the target store at full traffic",
            "Legacy store retired with a verified final backup",
        ],
        "abstraction": (
            "Introduce a data access layer that writes to both stores and shadows "
            "reads against the target store without serving its results."
        ),
        "migration_unit": "data set",
        "rollback_strategy": (
            "Route reads back to the legacy store, which remained the system of "
            "record throughout the parallel run."
        ),
    },
    "expand-contract": {
        "name": "Expand / Contract",
        "rationale": (
            "Schema or interface changes are made backward compatible first "
            "(expand), consumers move over, then the old shape is removed (contract)."
        ),
        "prerequisites": [
            "Versioned schema or API contract",
            "List of every consumer of the changing contract",
        ],
        "constraints": [
            "Every intermediate state must be backward compatible",
            "Contract step only after all consumers have moved",
        ],
        "success_criteria": [
            "No consumer reads the old shape",
            "Old columns or fields dropped without errors",
        ],
        "abstraction": (
            "Add the new fields or endpoints alongside the old ones and keep both "
            "populated."
        ),
        "migration_unit": "consumer",
        "rollback_strategy": (
            "Consumers switch back to the old shape, which is kept populated until "
            "the contract step."
        ),
    },
    "anti-corruption-layer": {
        "name": "Anti-Corruption Layer",
        "rationale": (
            "The new system must integrate with a legacy model it should not "
            "inherit. A translation layer isolates the new domain model from "
            "legacy concepts."
        ),
        "prerequisites": [
            "Documented mapping between legacy and target domain models",
            "Integration tests against the legacy interface",
        ],
        "constraints": [
            "Only the translation layer may reference legacy types",
            "Translations must be lossless for round-tripped records",
        ],
        "success_criteria": [
            "No legacy types referenced outside the translation layer",
            "Round-trip translation tests pass for every mapped entity",
        ],
        "abstraction": (
            "Build translators between the legacy and target models and route "
            "all cross-boundary calls through them."
        ),
        "migration_unit": "bounded context",
        "rollback_strategy": (
            "Point the translation layer back at the legacy implementation; callers "
            "only depend on the translated model."
        ),
    },
}

# ---------------------------------------------------------------------------
# Phases (always five, always in this order)
# ---------------------------------------------------------------------------

PHASES: List[Dict[str, Any]] = [
    {
        "number": 0,
        "name": "Foundation & Preparation",
        "description": (
            "Stand up the infrastructure the migration depends on before any code "
            "moves: feature flags, dual-stack CI, baselines and monitoring."
        ),
        "weeks": [2, 3],
        "tasks": [
            "Deploy feature flag infrastructure",
            "Configure CI to build and test legacy and modern stacks",
            "Record performance and error-rate baselines",
            "Set up dashboards and alerts for both paths",
        ],
        "milestones": [
            "Feature flags toggleable in every environment",
            "Dual-stack pipeline green",
            "Baselines published",
        ],
        "acceptance_criteria": [
            "Flag toggle takes effect in under 1 minute",
            "Baselines cover error rate, P50 and P99 latency",
        ],
        "rollback_triggers": [
            "Monitoring gaps on any production path",
        ],
    },
    {
        "number": 1,
        "name": "Test Backfill & Characterization",
        "description": (
            "Raise coverage on critical paths and pin down current behavior with "
            "characterization and contract tests before anything changes."
        ),
        "weeks": [3, 4],
        "tasks": [
            "Backfill tests for the highest-risk hotspots",
            "Write characterization tests capturing current outputs",
            "Add contract tests at every integration boundary",
        ],
        "milestones": [
            "Critical-path coverage at target",
            "Characterization suite running in CI",
        ],
        "acceptance_criteria": [
            "Every critical and high tier hotspot has tests",
            "Contract tests cover all external consumers",
        ],
        "rollback_triggers": [
            "Characterization tests are flaky or non-deterministic",
        ],
    },
    {
        "number": 2,
        "name": "Abstraction Layer Introduction",
        "description": "{abstraction} No behavior change is allowed in this phase.",
        "weeks": [2, 4],
        "tasks": [
            "Introduce the abstraction with the legacy implementation behind it",
            "Route all callers through the abstraction",
            "Verify zero behavior change against characterization tests",
        ],
        "milestones": [
            "Abstraction deployed to production",
            "All callers routed through the abstraction",
        ],
        "acceptance_criteria": [
            "Characterization tests pass unchanged",
            "Latency overhead within budget",
        ],
        "rollback_triggers": [
            "Any characterization test failure",
            "P99 latency above 2x baseline",
        ],
    },
    {
        "number": 3,
        "name": "Incremental Migration",
        "description": (
            "Move one {migration_unit} at a time to the target stack behind the "
            "abstraction, raising traffic in stages."
        ),
        "weeks": [8, 16],
        "tasks": [
            "Migrate the highest-priority {migration_unit} first",
            "Ramp traffic per {migration_unit} behind its flag",
            "Compare outputs between legacy and modern paths",
        ],
        "milestones": [
            "25% of modules migrated",
            "50% of modules migrated",
            "75% of modules migrated",
            "100% of modules migrated",
        ],
        "acceptance_criteria": [
            "Each migrated {migration_unit} at full traffic for one release cycle",
            "Error rate and latency at or below baseline",
        ],
        "rollback_triggers": [
            "Error rate above 1% sustained for 5 minutes",
            "P99 latency above 2x baseline sustained for 10 minutes",
            "Any data integrity check failure",
        ],
    },
    {
        "number": 4,
        "name": "Legacy Decommission & Cleanup",
        "description": (
            "Remove legacy code and infrastructure, collapse abstractions that no "
            "longer have two implementations, and delete spent feature flags."
        ),
        "weeks": [2, 4],
        "tasks": [
            "Delete legacy implementations and their tests",
            "Collapse single-provider abstractions",
            "Remove migration feature flags",
            "Archive final legacy backups",
        ],
        "milestones": [
            "Legacy code removed",
            "Feature flags cleaned up",
        ],
        "acceptance_criteria": [
            "No references to legacy code remain",
            "Legacy infrastructure shut down",
        ],
        "rollback_triggers": [
            "Consumer errors after legacy route removal",
        ],
    },
]

# ---------------------------------------------------------------------------
# Risk archetypes
# ---------------------------------------------------------------------------

RISKS: List[Dict[str, Any]] = [
    {
        "risk_id": "R1",
        "title": "Functional parity gaps",
        "description": (
            "Undocumented legacy behavior is not reproduced by the {target} "
            "implementation."
        ),
        "probability": "high",
        "impact": "high",
        "mitigation": "Characterization tests and output comparison before each cutover.",
        "contingency": "Route traffic back to legacy and add the missing behavior.",
        "owner": "Tech Lead",
    },
    {
        "risk_id": "R2",
        "title": "Schedule overrun",
        "description": "Hidden coupling in the {current} codebase extends migration phases.",
        "probability": "medium",
        "impact": "medium",
        "mitigation": "Schedule buffer and per-module progress tracking.",
        "contingency": "Re-scope remaining modules; keep legacy running longer.",
        "owner": "Project Manager",
    },
    {
        "risk_id": "R3",
        "title": "Performance regression",
        "description": "The {target} path is slower than the legacy baseline under load.",
        "probability": "medium",
        "impact": "high",
        "mitigation": "Load tests against recorded baselines before each traffic ramp.",
        "contingency": "Hold the rollout percentage and profile the hot path.",
        "owner": "SRE",
    },
    {
        "risk_id": "R4",
        "title": "Data loss or inconsistency",
        "description": "Records diverge or are lost while data moves between stores.",
        "probability": "low",
        "impact": "critical",
        "mitigation": "Backups before every data step and automated integrity checks.",
        "contingency": "Restore from backup and replay from the change log.",
        "owner": "Data Engineer",
    },
    {
        "risk_id": "R5",
        "title": "Team skill gap",
        "description": "The team has limited experience with the {target} stack.",
        "probability": "medium",
        "impact": "medium",
        "mitigation": "Training budget and pairing with experienced engineers.",
        "contingency": "Bring in outside expertise for the riskiest modules.",
        "owner": "Engineering Manager",
    },
]

# ---------------------------------------------------------------------------
# Rollback
# ---------------------------------------------------------------------------

ROLLBACK: Dict[str, Any] = {
    "max_rollback_minutes_flag": 5,
    "max_rollback_minutes_full": 30,
    "triggers": [
        {"metric": "error_rate", "threshold": "> 1%", "window": "5 minutes",
         "action": "Automatic flag rollback to legacy"},
        {"metric": "p99_latency", "threshold": "> 2x baseline", "window": "10 minutes",
         "action": "Automatic flag rollback to legacy"},
        {"metric": "data_integrity", "threshold": "any check failure", "window": "immediate",
         "action": "Halt migration and restore affected data"},
        {"metric": "manual", "threshold": "on-call decision", "window": "immediate",
         "action": "Flag rollback and incident review"},
    ],
    "verification_checklist": [
        "Confirm traffic is served by the legacy backend",
        "Confirm error rate has returned to baseline",
        "Confirm P99 latency has returned to baseline",
        "Run data integrity validation queries",
        "Notify stakeholders and open an incident review",
    ],
}


@dataclass
class Catalog:
    """A versioned set of planner templates."""

    version: str = CATALOG_VERSION
    strategies: Dict[str, Dict[str, Any]] = field(default_factory=lambda: copy.deepcopy(STRATEGIES))
    phases: List[Dict[str, Any]] = field(default_factory=lambda: copy.deepcopy(PHASES))
    risks: List[Dict[str, Any]] = field(default_factory=lambda: copy.deepcopy(RISKS))
    rollback: Dict[str, Any] = field(default_factory=lambda: copy.deepcopy(ROLLBACK))

    def strategy(self, strategy_id: str) -> Dict[str, Any]:
        return self.strategies[strategy_id]


def load_catalog(catalog_path=None) -> Catalog:
    """Load the built-in catalog, optionally overridden by a YAML file.

    Args:
        catalog_path: Optional path to a YAML override file.

    Raises:
        ConfigurationError: If the override file is missing or malformed.
    """
    catalog = Catalog()
    if catalog_path is None:
        return catalog

    path = Path(catalog_path)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except OSError as exc:
        raise ConfigurationError(f"Catalog not readable: {path} ({exc})",
                                 config_key="catalog") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Catalog is not valid YAML: {path} ({exc})",
                                 config_key="catalog") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Catalog must be a mapping: {path}", config_key="catalog")

    for strategy_id, entry in (data.get("strategies") or {}).items():
        merged = dict(catalog.strategies.get(strategy_id, {}))
        merged.update(entry or {})
        catalog.strategies[strategy_id] = merged
    if "phases" in data:
        if len(data["phases"]) != len(PHASES):
            raise ConfigurationError(
                f"Catalog must define exactly {len(PHASES)} phases, got {len(data['phases'])}",
                config_key="catalog.phases",
            )
        catalog.phases = data["phases"]
    if "risks" in data:
        catalog.risks = data["risks"]
    if "rollback" in data:
        catalog.rollback = data["rollback"]
    catalog.version = str(data.get("version", catalog.version))

    logger.info("Loaded catalog %s from %s", catalog.version, path)
    return catalog
