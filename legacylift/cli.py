#!/usr/bin/env python3
# CUI // SP-CTI
"""LegacyLift command-line interface.

Usage:
    # Assess a project and write the health report
    legacylift assess /opt/legacy/my-app --output-dir reports

    # Plan a migration between two profiles, informed by an assessment
    legacylift plan --current current.yaml --target target.yaml \\
        --assess /opt/legacy/my-app --json

    # Rank hotspots for test backfill
    legacylift backfill /opt/legacy/my-app --top 20

    # Generate an artifact from a YAML description
    legacylift generate strangler --input routes.yaml --output-dir out

Classification: CUI // SP-CTI
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml

from legacylift.analysis.complexity_analyzer import analyze_complexity
from legacylift.analysis.external_tools import NullExternalTool, SubprocessExternalTool
from legacylift.analysis.health_aggregator import run_health_assessment
from legacylift.analysis.source_scanner import scan_project
from legacylift.config import load_config
from legacylift.modernization.catalog import load_catalog
from legacylift.modernization.compatibility_layer import (
    build_compatibility_layer,
    render_adapter_source,
)
from legacylift.modernization.data_migration_script import (
    generate_data_migration_script,
    render_sql,
)
from legacylift.modernization.migration_planner import plan_migration
from legacylift.modernization.report_writer import to_document, write_report
from legacylift.modernization.strangler_config import (
    generate_strangler_config,
    render_nginx_config,
)
from legacylift.modernization.test_backfill import prioritize_test_backfill
from legacylift.resilience.errors import ConfigurationError, LegacyLiftError

logger = logging.getLogger("legacylift.cli")


def _load_yaml(path, what):
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read {what} file {path}: {exc}", config_key=what) from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"{what} file {path} is not valid YAML/JSON: {exc}",
                                 config_key=what) from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{what} file {path} must contain a mapping", config_key=what)
    return data


def _external_tool(args, config):
    if args.no_external_tools:
        return NullExternalTool()
    return SubprocessExternalTool.from_config(config.external_tools)


def _emit(args, kind, record, summary_lines):
    if args.output_dir:
        path = write_report(record, kind, args.output_dir)
        summary_lines = list(summary_lines) + [f"Report written to {path}"]
    if args.json_output:
        print(json.dumps(to_document(record), indent=2, default=str))
    else:
        for line in summary_lines:
            print(line)


# ---------------------------------------------------------------------------
# Sub-commands
# ---------------------------------------------------------------------------

def cmd_assess(args, config):
    report = run_health_assessment(
        args.root,
        manifest_path=args.manifest,
        coverage_path=args.coverage,
        config=config,
        external_tool=_external_tool(args, config),
    )
    lines = [
        f"[INFO] Health assessment: {report.project_root}",
        f"  Files: {report.file_count}  Lines: {report.total_lines}",
        f"  Overall health: {report.overall_health_score}/100",
        f"    dependencies  {report.dependencies.dependency_health_score}",
        f"    dead code     {report.dead_code.dead_code_health_score}",
        f"    complexity    {report.complexity.complexity_health_score}",
        f"    architecture  {report.architecture.architecture_health_score}",
        f"    coverage      {report.coverage.test_quality_score}",
    ]
    for action in report.prioritized_actions:
        lines.append(f"  [{action.priority.upper()}] {action.title}: {action.description}")
    _emit(args, "health_report", report, lines)
    return 0


def cmd_plan(args, config):
    current = _load_yaml(args.current, "current")
    target = _load_yaml(args.target, "target")
    health_report = None
    if args.assess:
        health_report = run_health_assessment(
            args.assess, config=config, external_tool=_external_tool(args, config)
        )
    modules = [m.strip() for m in args.modules.split(",") if m.strip()] if args.modules else ()
    plan = plan_migration(
        current,
        target,
        modules=modules,
        health_report=health_report,
        strategy=args.strategy,
        config=config.planner,
        catalog=load_catalog(args.catalog),
    )
    lines = [
        f"[INFO] Migration plan: {plan.strategy} ({plan.strategy_details['selected_by']})",
        f"  {plan.strategy_details['rationale']}",
    ]
    for phase in plan.phases:
        lines.append(f"  Phase {phase.number}: {phase.name} "
                     f"({phase.duration_weeks_min}-{phase.duration_weeks_max} weeks)")
    lines.append(f"  Timeline: {plan.timeline.total_weeks_min}-{plan.timeline.total_weeks_max} weeks "
                 f"({plan.timeline.buffered_weeks_min}-{plan.timeline.buffered_weeks_max} with buffer)")
    lines.append(f"  Estimated cost: {plan.cost.total_estimate:,.2f} {plan.cost.currency}")
    lines.extend(f"  Note: {note}" for note in plan.notes)
    _emit(args, "migration_plan", plan, lines)
    return 0


def cmd_backfill(args, config):
    scan = scan_project(args.root, config.scanner, _external_tool(args, config))
    report = analyze_complexity(scan, config.complexity)
    hotspots = report.hotspots[:args.top] if args.top else report.hotspots
    plan = prioritize_test_backfill(hotspots, config.backfill)
    lines = [f"[INFO] Test backfill plan: {len(plan.items)} files"]
    for item in plan.items:
        lines.append(f"  [{item.risk_tier.upper()}] {item.path} "
                     f"(priority {item.priority_score}; {', '.join(item.test_types)})")
    _emit(args, "test_backfill_plan", plan, lines)
    return 0


def cmd_generate(args, config):
    data = _load_yaml(args.input, "input")
    if args.kind == "strangler":
        record = generate_strangler_config(
            data.get("legacy_base_url", ""), data.get("modern_base_url", ""),
            data.get("rules", []),
        )
        kind, rendered, suffix = "strangler_config", render_nginx_config(record), ".nginx.conf"
    elif args.kind == "compat":
        record = build_compatibility_layer(data.get("name", "compatibility"), data.get("mappings", []))
        kind, rendered, suffix = "compatibility_layer", render_adapter_source(record), "_adapter.py"
    else:
        record = generate_data_migration_script(
            data.get("table", ""), data.get("source_schema", ""), data.get("target_schema", ""),
            data.get("columns", []),
            primary_key=data.get("primary_key", "id"),
            foreign_keys=data.get("foreign_keys", []),
            estimated_rows=data.get("estimated_rows"),
            config=config.data_migration,
        )
        migration_sql, rollback_sql = render_sql(record)
        kind, rendered, suffix = "data_migration_script", migration_sql, ".sql"
        if args.output_dir:
            out = Path(args.output_dir)
            out.mkdir(parents=True, exist_ok=True)
            (out / f"{record.table}_rollback.sql").write_text(rollback_sql, encoding="utf-8")

    lines = [f"[INFO] Generated {kind}"]
    if args.output_dir:
        out = Path(args.output_dir)
        out.mkdir(parents=True, exist_ok=True)
        name = getattr(record, "name", None) or getattr(record, "table", None) or kind
        rendered_path = out / f"{name}{suffix}"
        rendered_path.write_text(rendered, encoding="utf-8")
        lines.append(f"Rendered output written to {rendered_path}")
    elif not args.json_output:
        lines.append(rendered)
    _emit(args, kind, record, lines)
    return 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_parser():
    parser = argparse.ArgumentParser(
        prog="legacylift",
        description="CUI // SP-CTI — Legacy codebase assessment and migration planning",
    )
    parser.add_argument("--config", help="YAML configuration file (default: args/modernization_config.yaml)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--json", action="store_true", dest="json_output",
                        help="Output results as JSON")
    common.add_argument("--output-dir", help="Write a timestamped JSON report to this directory")
    common.add_argument("--no-external-tools", action="store_true",
                        help="Skip git history and cycle detection")

    sub = parser.add_subparsers(dest="command", required=True)

    assess = sub.add_parser("assess", parents=[common], help="Assess codebase health")
    assess.add_argument("root", help="Project root directory")
    assess.add_argument("--manifest", help="Dependency manifest (default: auto-detect)")
    assess.add_argument("--coverage", help="Coverage summary JSON (default: auto-detect)")
    assess.set_defaults(func=cmd_assess)

    plan = sub.add_parser("plan", parents=[common], help="Plan a migration")
    plan.add_argument("--current", required=True, help="Current technology profile (YAML/JSON)")
    plan.add_argument("--target", required=True, help="Target technology profile (YAML/JSON)")
    plan.add_argument("--assess", metavar="ROOT", help="Assess ROOT first and plan from its hotspots")
    plan.add_argument("--strategy", help="Override the selected strategy")
    plan.add_argument("--modules", help="Comma-separated module names in priority order")
    plan.add_argument("--catalog", help="YAML catalog override")
    plan.set_defaults(func=cmd_plan)

    backfill = sub.add_parser("backfill", parents=[common], help="Prioritize test backfill")
    backfill.add_argument("root", help="Project root directory")
    backfill.add_argument("--top", type=int, default=0, help="Only the N riskiest hotspots")
    backfill.set_defaults(func=cmd_backfill)

    generate = sub.add_parser("generate", parents=[common], help="Generate a migration artifact")
    generate.add_argument("kind", choices=["strangler", "compat", "data-migration"])
    generate.add_argument("--input", required=True, help="YAML/JSON artifact description")
    generate.set_defaults(func=cmd_generate)
    return parser


def main(argv=None):
    """Command-line entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        config = load_config(args.config)
        return args.func(args, config)
    except (LegacyLiftError, FileNotFoundError, ValueError) as exc:
        print(f"[ERROR] {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
# CUI // SP-CTI
