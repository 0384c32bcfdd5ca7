#!/usr/bin/env python3
# CUI // SP-CTI
"""Health Aggregator — one weighted score and a prioritized action list.

Combines the five analyzer outputs:

    overall = 0.10 * dead_code + 0.20 * dependency + 0.25 * complexity
            + 0.25 * architecture + 0.20 * coverage

and derives at most one action per rule:

    vulnerable dependency        critical
    end-of-life dependency       high
    file complexity > 30         high
    circular dependency          high
    dead code > 5% of codebase   medium
    line coverage < 60%          high

Actions are ordered by priority tier, then by estimated impact (health
points the action would recover); remaining ties keep discovery order.

run_health_assessment() is the end-to-end pipeline: scan, the five
analyzers, aggregation. It always returns a report; missing tools, manifests
and coverage data only reduce the completeness of their section.
"""

import logging
from pathlib import Path
from typing import List, Optional

from legacylift.analysis.architecture_smells import detect_architecture_smells
from legacylift.analysis.complexity_analyzer import analyze_complexity
from legacylift.analysis.coverage_reader import find_coverage_summary, read_coverage_summary
from legacylift.analysis.dead_code_detector import detect_dead_code
from legacylift.analysis.dependency_age import (
    AgeOracle,
    HeuristicAgeOracle,
    analyze_dependencies,
    load_manifest,
)
from legacylift.analysis.external_tools import ExternalTool, SubprocessExternalTool
from legacylift.analysis.source_scanner import scan_project
from legacylift.compat.datetime_utils import utc_now_iso
from legacylift.config import EngineConfig, HealthConfig
from legacylift.schemas.health import (
    ArchitectureReport,
    ComplexityReport,
    CoverageSummary,
    DeadCodeReport,
    DependencyReport,
    HealthReport,
    PrioritizedAction,
    ScanResult,
)

logger = logging.getLogger("legacylift.analysis.health_aggregator")

PRIORITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}

MANIFEST_CANDIDATES = ("package.json", "pyproject.toml", "requirements.txt")


def _clamp(score: float) -> float:
    return max(0.0, min(100.0, float(score)))


def compute_overall_score(dead_code_score: float, dependency_score: float,
                          complexity_score: float, architecture_score: float,
                          coverage_score: float,
                          config: Optional[HealthConfig] = None) -> float:
    """Weighted average of the five sub-scores, each clamped to [0, 100]."""
    config = config or HealthConfig()
    weighted = [
        (config.dead_code_weight, dead_code_score),
        (config.dependency_weight, dependency_score),
        (config.complexity_weight, complexity_score),
        (config.architecture_weight, architecture_score),
        (config.coverage_weight, coverage_score),
    ]
    total_weight = sum(w for w, _ in weighted)
    if total_weight <= 0:
        return 100.0
    score = sum(w * _clamp(s) for w, s in weighted) / total_weight
    return round(_clamp(score), 1)


def _coverage_applies(scan: ScanResult) -> bool:
    # Nothing to cover in a project without source files.
    return len(scan.files) > 0


def build_prioritized_actions(scan: ScanResult, dependencies: DependencyReport,
                              dead_code: DeadCodeReport, complexity: ComplexityReport,
                              architecture: ArchitectureReport, coverage: CoverageSummary,
                              config: Optional[HealthConfig] = None) -> List[PrioritizedAction]:
    """Apply the action rules and return actions in priority order."""
    config = config or HealthConfig()

    def impact(weight, score):
        return round(weight * (100.0 - _clamp(score)), 2)

    dep_impact = impact(config.dependency_weight, dependencies.dependency_health_score)
    actions = []

    if dependencies.vulnerable_dependencies:
        names = ", ".join(dependencies.vulnerable_dependencies)
        actions.append(PrioritizedAction(
            priority="critical",
            category="security",
            title="Patch vulnerable dependencies",
            description=f"Known advisories affect: {names}. Upgrade or replace before migration work starts.",
            impact=dep_impact,
        ))

    if dependencies.eol_dependencies:
        names = ", ".join(dependencies.eol_dependencies)
        actions.append(PrioritizedAction(
            priority="high",
            category="dependencies",
            title="Replace end-of-life dependencies",
            description=f"No longer maintained: {names}. Plan replacements as part of the migration.",
            impact=dep_impact,
        ))

    too_complex = [h for h in complexity.hotspots
                   if h.cyclomatic_complexity > config.complexity_action_threshold]
    if too_complex:
        paths = ", ".join(h.path for h in too_complex[:5])
        actions.append(PrioritizedAction(
            priority="high",
            category="complexity",
            title="Reduce complexity of critical hotspots",
            description=(f"{len(too_complex)} file(s) exceed complexity "
                         f"{config.complexity_action_threshold}: {paths}"),
            impact=impact(config.complexity_weight, complexity.complexity_health_score),
        ))

    if architecture.circular_dependencies:
        actions.append(PrioritizedAction(
            priority="high",
            category="architecture",
            title="Break circular dependencies",
            description=(f"{len(architecture.circular_dependencies)} import cycle(s) detected; "
                         "cycles block incremental extraction of modules."),
            impact=impact(config.architecture_weight, architecture.architecture_health_score),
        ))

    if dead_code.percentage_of_codebase > config.dead_code_action_pct:
        actions.append(PrioritizedAction(
            priority="medium",
            category="dead-code",
            title="Remove dead code",
            description=(f"An estimated {dead_code.percentage_of_codebase}% of the codebase "
                         "is unused; remove it before migrating so it is not ported."),
            impact=impact(config.dead_code_weight, dead_code.dead_code_health_score),
        ))

    if _coverage_applies(scan) and coverage.line_pct < config.coverage_target_pct:
        actions.append(PrioritizedAction(
            priority="high",
            category="testing",
            title="Raise test coverage",
            description=(f"Line coverage is {coverage.line_pct}% against a "
                         f"{config.coverage_target_pct}% target; add characterization "
                         "tests around the riskiest files first."),
            impact=impact(config.coverage_weight, coverage.test_quality_score),
        ))

    # sorted() is stable: equal (tier, impact) keeps discovery order
    return sorted(actions, key=lambda a: (PRIORITY_ORDER[a.priority], -a.impact))


def aggregate_health(scan: ScanResult, dependencies: DependencyReport,
                     dead_code: DeadCodeReport, complexity: ComplexityReport,
                     architecture: ArchitectureReport, coverage: CoverageSummary,
                     config: Optional[HealthConfig] = None) -> HealthReport:
    """Combine analyzer outputs into a HealthReport."""
    config = config or HealthConfig()
    coverage_score = coverage.test_quality_score if _coverage_applies(scan) else 100.0
    overall = compute_overall_score(
        dead_code.dead_code_health_score,
        dependencies.dependency_health_score,
        complexity.complexity_health_score,
        architecture.architecture_health_score,
        coverage_score,
        config,
    )
    actions = build_prioritized_actions(
        scan, dependencies, dead_code, complexity, architecture, coverage, config
    )
    return HealthReport(
        project_root=scan.root,
        generated_at=utc_now_iso(),
        file_count=len(scan.files),
        total_lines=scan.total_lines,
        dependencies=dependencies,
        dead_code=dead_code,
        complexity=complexity,
        architecture=architecture,
        coverage=coverage,
        overall_health_score=overall,
        prioritized_actions=tuple(actions),
    )


def _default_manifest(root: Path) -> Optional[Path]:
    for name in MANIFEST_CANDIDATES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def run_health_assessment(root, manifest_path=None, coverage_path=None,
                          config: Optional[EngineConfig] = None,
                          external_tool: Optional[ExternalTool] = None,
                          oracle: Optional[AgeOracle] = None) -> HealthReport:
    """Run the full assessment pipeline for a project root.

    Args:
        root: Project root directory.
        manifest_path: Dependency manifest; defaults to package.json,
            pyproject.toml or requirements.txt under root.
        coverage_path: Coverage summary; defaults to the configured
            summary_paths under root.
        config: EngineConfig; defaults to built-in thresholds.
        external_tool: History/cycle provider; defaults to the subprocess
            adapter built from config.external_tools.
        oracle: Dependency age oracle; defaults to HeuristicAgeOracle.
    """
    config = config or EngineConfig()
    tool = external_tool or SubprocessExternalTool.from_config(config.external_tools)
    root_path = Path(root).resolve()

    scan = scan_project(root_path, config.scanner, tool)

    manifest_file = Path(manifest_path) if manifest_path else _default_manifest(root_path)
    manifest = load_manifest(manifest_file) if manifest_file else {}
    dependencies = analyze_dependencies(
        manifest, oracle or HeuristicAgeOracle(config.dependencies), config.dependencies
    )

    dead_code = detect_dead_code(scan, config.dead_code)
    complexity = analyze_complexity(scan, config.complexity)

    cycles = tool.run_cycle_detector(str(root_path)) if root_path.is_dir() else []
    architecture = detect_architecture_smells(scan, cycles, config.architecture)

    summary_file = (Path(coverage_path) if coverage_path
                    else find_coverage_summary(root_path, config.coverage.summary_paths))
    coverage = read_coverage_summary(summary_file)

    report = aggregate_health(scan, dependencies, dead_code, complexity,
                              architecture, coverage, config.health)
    logger.info("Health assessment of %s complete: overall %.1f, %d actions",
                root_path, report.overall_health_score, len(report.prioritized_actions))
    return report
