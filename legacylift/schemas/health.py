#!/usr/bin/env python3
# CUI // SP-CTI
"""Health assessment schema models.

Frozen records produced by the source scanner and the five analyzers, and the
HealthReport that aggregates them. Nothing here is mutated after creation;
sequences are stored as tuples.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

CONFIDENCE_TIERS = ("low", "medium", "high")
DEAD_CODE_KINDS = ("export", "file", "function", "class", "variable", "import")
SEVERITY_TIERS = ("critical", "high", "medium", "low")
UPDATE_TYPES = ("patch", "minor", "major")


class _Record:
    """to_dict() helper shared by every schema record."""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FileRecord(_Record):
    """One scanned source file. ``content`` is held for analyzers, never serialized."""

    path: str
    language: str
    line_count: int
    churn: int = 0
    import_count: int = 0
    content: str = field(default="", repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "language": self.language,
            "line_count": self.line_count,
            "churn": self.churn,
            "import_count": self.import_count,
        }


@dataclass(frozen=True)
class ScanResult(_Record):
    """Output of the source scanner."""

    root: str
    files: Tuple[FileRecord, ...] = ()
    total_lines: int = 0
    truncated: bool = False
    skipped: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": self.root,
            "file_count": len(self.files),
            "total_lines": self.total_lines,
            "truncated": self.truncated,
            "skipped": self.skipped,
        }


@dataclass(frozen=True)
class DependencyEntry(_Record):
    name: str
    declared_version: str
    resolved_version: str
    age_days: int
    is_eol: bool
    vulnerabilities: Tuple[str, ...]
    update_type: str  # patch | minor | major
    migration_effort: str  # low | medium | high

    def __post_init__(self):
        if self.update_type not in UPDATE_TYPES:
            raise ValueError(f"Unknown update type '{self.update_type}'")


@dataclass(frozen=True)
class DependencyReport(_Record):
    dependencies: Tuple[DependencyEntry, ...] = ()
    eol_dependencies: Tuple[str, ...] = ()
    vulnerable_dependencies: Tuple[str, ...] = ()
    major_upgrades_available: Tuple[str, ...] = ()
    dependency_health_score: float = 100.0


@dataclass(frozen=True)
class DeadCodeEntry(_Record):
    """A removal candidate.

    Confidence is capped at ``medium`` unless the entry came from an explicit
    deprecation marker (reason ``deprecated-usage``).
    """

    path: str
    symbol: str
    kind: str
    reason: str  # unused-export | unreachable-file | deprecated-usage
    confidence: str
    removal_risk: str  # safe | verify | risky
    line: Optional[int] = None

    def __post_init__(self):
        if self.kind not in DEAD_CODE_KINDS:
            raise ValueError(f"Unknown dead code kind '{self.kind}'")
        if self.confidence not in CONFIDENCE_TIERS:
            raise ValueError(f"Unknown confidence tier '{self.confidence}'")
        if self.confidence == "high" and self.reason != "deprecated-usage":
            raise ValueError(
                "High confidence is reserved for explicit deprecation markers"
            )


@dataclass(frozen=True)
class DeadCodeReport(_Record):
    unused_exports: Tuple[DeadCodeEntry, ...] = ()
    unreachable_files: Tuple[DeadCodeEntry, ...] = ()
    deprecated_usages: Tuple[DeadCodeEntry, ...] = ()
    total_dead_lines: int = 0
    percentage_of_codebase: float = 0.0
    dead_code_health_score: float = 100.0


@dataclass(frozen=True)
class ComplexityHotspot(_Record):
    path: str
    cyclomatic_complexity: int
    cognitive_complexity: int
    line_count: int
    coupling: int
    churn: int
    risk_score: float
    recommendation: str


@dataclass(frozen=True)
class ChurnCorrelation(_Record):
    path: str
    churn: int
    complexity: int
    correlation_score: float


@dataclass(frozen=True)
class ComplexityReport(_Record):
    hotspots: Tuple[ComplexityHotspot, ...] = ()
    churn_correlation: Tuple[ChurnCorrelation, ...] = ()
    complexity_health_score: float = 100.0


@dataclass(frozen=True)
class ArchitectureSmell(_Record):
    smell_type: str  # circular-dependency | god-file
    files: Tuple[str, ...]
    severity: str
    recommendation: str
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ArchitectureReport(_Record):
    circular_dependencies: Tuple[ArchitectureSmell, ...] = ()
    god_files: Tuple[ArchitectureSmell, ...] = ()
    architecture_health_score: float = 100.0

    @property
    def smells(self) -> Tuple[ArchitectureSmell, ...]:
        return self.circular_dependencies + self.god_files


@dataclass(frozen=True)
class CoverageSummary(_Record):
    line_pct: float = 0.0
    branch_pct: float = 0.0
    function_pct: float = 0.0
    test_quality_score: float = 0.0
    found: bool = False
    source: Optional[str] = None


@dataclass(frozen=True)
class PrioritizedAction(_Record):
    priority: str  # critical | high | medium | low
    category: str
    title: str
    description: str
    impact: float = 0.0


@dataclass(frozen=True)
class HealthReport(_Record):
    project_root: str
    generated_at: str
    file_count: int
    total_lines: int
    dependencies: DependencyReport
    dead_code: DeadCodeReport
    complexity: ComplexityReport
    architecture: ArchitectureReport
    coverage: CoverageSummary
    overall_health_score: float
    prioritized_actions: Tuple[PrioritizedAction, ...] = ()
