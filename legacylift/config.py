#!/usr/bin/env python3
# CUI // SP-CTI
"""LegacyLift configuration.

Every heuristic table and threshold used by the analyzers and the planner
lives in one of the section dataclasses below and is passed into the stage
that uses it. Defaults are the built-in thresholds; a YAML file
(args/modernization_config.yaml) may override any key per section.

Usage:
    from legacylift.config import load_config

    config = load_config("args/modernization_config.yaml")
    config.complexity.min_lines          # 10
    config.planner.hourly_rate           # 150.0
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from legacylift.resilience.errors import ConfigurationError

logger = logging.getLogger("legacylift.config")

BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_PATH = BASE_DIR / "args" / "modernization_config.yaml"


# ---------------------------------------------------------------------------
# Built-in tables
# ---------------------------------------------------------------------------

DEFAULT_EXTENSIONS = {
    ".py": "python",
    ".java": "java",
    ".cs": "csharp",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".rb": "ruby",
    ".go": "golang",
    ".rs": "rust",
    ".php": "php",
    ".kt": "kotlin",
    ".scala": "scala",
    ".swift": "swift",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".hpp": "cpp",
    ".c": "c",
    ".h": "c",
    ".vb": "vbnet",
}

DEFAULT_EXCLUDE_DIRS = [
    ".git", ".hg", ".svn", "node_modules", "bower_components", "venv",
    ".venv", "env", "__pycache__", ".tox", ".eggs", ".mypy_cache",
    ".pytest_cache", "build", "dist", "target", "out", "bin", "obj",
    "vendor", "coverage", ".next", ".nuxt",
]

DEFAULT_IMPORT_PATTERNS = [
    r"^\s*import\s+\S",
    r"^\s*from\s+\S+\s+import\s",
    r"^\s*(?:const|let|var)\s+.+=\s*require\(",
    r"^\s*#include\s",
    r"^\s*using\s+[\w.]+\s*;",
    r"^\s*require(?:_relative)?\s+['\"]",
    r"^\s*use\s+[\w:\\]+",
]

DEFAULT_BRANCH_PATTERNS = {
    "javascript": [r"\bif\b", r"\bfor\b", r"\bwhile\b", r"\bcase\b",
                   r"\bcatch\b", r"&&", r"\|\|", r"\?\?",
                   r"(?<![?.])\?(?![?.:])"],
    "typescript": [r"\bif\b", r"\bfor\b", r"\bwhile\b", r"\bcase\b",
                   r"\bcatch\b", r"&&", r"\|\|", r"\?\?",
                   r"(?<![?.])\?(?![?.:])"],
    "python": [r"\bif\b", r"\belif\b", r"\bfor\b", r"\bwhile\b",
               r"\bexcept\b", r"\bcase\b", r"\band\b", r"\bor\b"],
    "java": [r"\bif\b", r"\bfor\b", r"\bwhile\b", r"\bcase\b",
             r"\bcatch\b", r"&&", r"\|\|", r"(?<![?.])\?(?![?.:])"],
    "csharp": [r"\bif\b", r"\bfor\b", r"\bforeach\b", r"\bwhile\b",
               r"\bcase\b", r"\bcatch\b", r"&&", r"\|\|", r"\?\?",
               r"(?<![?.])\?(?![?.:])"],
    "golang": [r"\bif\b", r"\bfor\b", r"\bcase\b", r"&&", r"\|\|"],
    "rust": [r"\bif\b", r"\bfor\b", r"\bwhile\b", r"\bmatch\b", r"&&", r"\|\|"],
    "ruby": [r"\bif\b", r"\belsif\b", r"\bunless\b", r"\bwhile\b",
             r"\bwhen\b", r"\brescue\b", r"&&", r"\|\|"],
}

DEFAULT_METHOD_PATTERNS = {
    "python": [r"^\s*(?:async\s+)?def\s+\w+\s*\("],
    "javascript": [r"\bfunction\b\s*\w*\s*\(",
                   r"^\s*(?:async\s+)?(?!if\b|for\b|while\b|switch\b|catch\b)\w+\s*\([^)]*\)\s*\{",
                   r"=\s*(?:async\s*)?\([^)]*\)\s*=>"],
    "typescript": [r"\bfunction\b\s*\w*\s*\(",
                   r"^\s*(?:public|private|protected|static|async|\s)*(?!if\b|for\b|while\b|switch\b|catch\b)\w+\s*\([^)]*\)\s*(?::\s*[\w<>\[\]|, ]+)?\s*\{",
                   r"=\s*(?:async\s*)?\([^)]*\)\s*=>"],
    "java": [r"^\s*(?:public|private|protected|static|final|synchronized|\s)+[\w<>\[\], ]+\s+\w+\s*\([^)]*\)\s*(?:throws\s+[\w., ]+)?\s*\{"],
    "csharp": [r"^\s*(?:public|private|protected|internal|static|virtual|override|async|\s)+[\w<>\[\], ]+\s+\w+\s*\([^)]*\)\s*\{?"],
    "golang": [r"^\s*func\s+"],
    "ruby": [r"^\s*def\s+\w+"],
    "rust": [r"^\s*(?:pub\s+)?fn\s+\w+"],
}

DEFAULT_EXPORT_PATTERNS = {
    "javascript": [r"^\s*export\s+(?:default\s+)?(?:async\s+)?(?:function\*?|class|const|let|var)\s+(\w+)"],
    "typescript": [r"^\s*export\s+(?:default\s+)?(?:async\s+)?(?:function\*?|class|const|let|var|interface|type|enum)\s+(\w+)"],
    "python": [r"^(?:async\s+)?def\s+([A-Za-z]\w*)\s*\(", r"^class\s+([A-Za-z]\w*)\b"],
}

DEFAULT_DEPRECATED_PATTERNS = [
    {"id": "deprecated-annotation", "pattern": r"@deprecated\b|@Deprecated\b",
     "description": "Explicit deprecation annotation"},
    {"id": "deprecated-comment", "pattern": r"\bDEPRECATED\b",
     "description": "Explicit DEPRECATED marker"},
    {"id": "react-legacy-lifecycle",
     "pattern": r"\b(?:componentWillMount|componentWillReceiveProps|componentWillUpdate)\b",
     "description": "Legacy React lifecycle method"},
    {"id": "node-buffer-constructor", "pattern": r"\bnew\s+Buffer\s*\(",
     "description": "Deprecated Buffer constructor"},
    {"id": "string-substr", "pattern": r"\.substr\s*\(",
     "description": "Deprecated String.prototype.substr"},
    {"id": "python-utcnow", "pattern": r"\bdatetime\.utcnow\s*\(",
     "description": "Deprecated naive datetime.utcnow()"},
    {"id": "python-imp-module", "pattern": r"^\s*import\s+imp\s*$",
     "description": "Removed imp module"},
    {"id": "python-asyncio-get-event-loop", "pattern": r"\basyncio\.get_event_loop\s*\(",
     "description": "Deprecated implicit event loop creation"},
]


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------

@dataclass
class ScannerConfig:
    """Source scanner: which files count and how many."""

    extensions: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_EXTENSIONS))
    exclude_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS))
    import_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_IMPORT_PATTERNS))
    max_files: int = 5000
    collect_churn: bool = True


@dataclass
class DependencyConfig:
    """Dependency age classification and score weights."""

    eol_days: int = 1095
    major_days: int = 365
    minor_days: int = 90
    eol_weight: float = 30.0
    vulnerable_weight: float = 40.0
    outdated_weight: float = 20.0
    major_weight: float = 10.0
    # Heuristic age oracle: a package at major version N is assumed to be
    # (current_major_horizon - N) years old, plus a hash-derived jitter.
    current_major_horizon: int = 5
    max_jitter_days: int = 90
    advisories: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class DeadCodeConfig:
    deep_analysis_cap: int = 200
    lines_per_unused_export: int = 5
    lines_per_unreachable_file: int = 50
    entry_stems: List[str] = field(default_factory=lambda: [
        "index", "main", "__init__", "__main__", "setup", "conftest",
        "manage", "app", "server", "wsgi", "asgi",
    ])
    test_prefixes: List[str] = field(default_factory=lambda: ["test_"])
    test_suffixes: List[str] = field(default_factory=lambda: [
        "_test", ".test", ".spec", "_spec", "Test", "Tests",
    ])
    export_patterns: Dict[str, List[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_EXPORT_PATTERNS.items()})
    deprecated_patterns: List[Dict[str, str]] = field(
        default_factory=lambda: [dict(p) for p in DEFAULT_DEPRECATED_PATTERNS])


@dataclass
class ComplexityConfig:
    min_lines: int = 10
    min_complexity: int = 5
    cognitive_factor: float = 1.3
    branch_patterns: Dict[str, List[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_BRANCH_PATTERNS.items()})
    default_branch_language: str = "javascript"
    # Recommendation tiers
    critical_complexity: int = 30
    critical_churn: int = 20
    decompose_complexity: int = 20
    split_lines: int = 500
    backfill_churn: int = 30
    backfill_complexity: int = 10
    # Churn x complexity correlation
    correlation_min_churn: int = 5
    correlation_min_complexity: int = 10
    correlation_limit: int = 20


@dataclass
class ArchitectureConfig:
    god_file_lines: int = 500
    god_file_methods: int = 15
    critical_lines: int = 1000
    method_patterns: Dict[str, List[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_METHOD_PATTERNS.items()})
    default_method_language: str = "javascript"


@dataclass
class CoverageConfig:
    summary_paths: List[str] = field(default_factory=lambda: [
        "coverage/coverage-summary.json",
        "coverage-summary.json",
    ])


@dataclass
class HealthConfig:
    dead_code_weight: float = 0.10
    dependency_weight: float = 0.20
    complexity_weight: float = 0.25
    architecture_weight: float = 0.25
    coverage_weight: float = 0.20
    coverage_target_pct: float = 60.0
    dead_code_action_pct: float = 5.0
    complexity_action_threshold: int = 30


@dataclass
class ExternalToolConfig:
    cycle_command: List[str] = field(default_factory=lambda: [
        "npx", "--no-install", "madge", "--circular", "--json",
    ])
    history_command: List[str] = field(default_factory=lambda: [
        "git", "log", "--follow", "--format=%H", "--",
    ])
    timeout_seconds: float = 30.0


@dataclass
class PlannerConfig:
    """Planner constants; the cost figures are placeholders meant to be tuned."""

    hours_per_phase: float = 200.0
    hourly_rate: float = 150.0
    infrastructure_cost: float = 50000.0
    tooling_cost: float = 25000.0
    training_cost: float = 15000.0
    contingency_ratio: float = 0.25
    schedule_buffer_ratio: float = 0.30
    currency: str = "USD"
    low_health_threshold: float = 50.0
    parallelizable_from_phase: int = 3


@dataclass
class BackfillConfig:
    """Test backfill prioritization weights and test-type thresholds."""

    risk_weight: float = 0.4
    churn_weight: float = 0.3
    complexity_weight: float = 0.3
    critical_risk: float = 8.0
    high_risk: float = 5.0
    medium_risk: float = 3.0
    integration_coupling: int = 5
    characterization_complexity: int = 20
    regression_churn: int = 20


@dataclass
class DataMigrationConfig:
    # Backfill throughput used to size the backfill step estimate.
    rows_per_minute: int = 100000


@dataclass
class EngineConfig:
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    dependencies: DependencyConfig = field(default_factory=DependencyConfig)
    dead_code: DeadCodeConfig = field(default_factory=DeadCodeConfig)
    complexity: ComplexityConfig = field(default_factory=ComplexityConfig)
    architecture: ArchitectureConfig = field(default_factory=ArchitectureConfig)
    coverage: CoverageConfig = field(default_factory=CoverageConfig)
    health: HealthConfig = field(default_factory=HealthConfig)
    external_tools: ExternalToolConfig = field(default_factory=ExternalToolConfig)
    planner: PlannerConfig = field(default_factory=PlannerConfig)
    backfill: BackfillConfig = field(default_factory=BackfillConfig)
    data_migration: DataMigrationConfig = field(default_factory=DataMigrationConfig)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def _merge_section(section, overrides: Dict[str, Any], section_name: str):
    """Return a copy of ``section`` with ``overrides`` applied.

    Dict-valued fields are merged key by key; every other field is replaced.
    """
    if not isinstance(overrides, dict):
        raise ConfigurationError(
            f"Section '{section_name}' must be a mapping", config_key=section_name
        )
    known = {f.name for f in dataclasses.fields(section)}
    changes = {}
    for key, value in overrides.items():
        if key not in known:
            raise ConfigurationError(
                f"Unknown key '{key}' in section '{section_name}'",
                config_key=f"{section_name}.{key}",
            )
        current = getattr(section, key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged = dict(current)
            merged.update(value)
            changes[key] = merged
        else:
            changes[key] = value
    return dataclasses.replace(section, **changes)


def config_from_dict(data: Optional[Dict[str, Any]]) -> EngineConfig:
    """Build an EngineConfig from a plain mapping of section -> overrides."""
    config = EngineConfig()
    if not data:
        return config
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration root must be a mapping")
    sections = {f.name for f in dataclasses.fields(config)}
    changes = {}
    for name, overrides in data.items():
        if name not in sections:
            raise ConfigurationError(f"Unknown configuration section '{name}'", config_key=name)
        changes[name] = _merge_section(getattr(config, name), overrides or {}, name)
    return dataclasses.replace(config, **changes)


def load_config(path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """Load configuration from YAML, falling back to defaults.

    A missing file yields the defaults. A file that exists but does not parse,
    or that names unknown sections or keys, raises ConfigurationError.
    """
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        if path:
            logger.warning("Config file %s not found; using defaults", config_path)
        return EngineConfig()
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot read config {config_path}: {exc}") from exc
    logger.debug("Loaded configuration from %s", config_path)
    return config_from_dict(data)
