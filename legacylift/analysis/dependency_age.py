#!/usr/bin/env python3
# CUI // SP-CTI
"""Dependency Age Analyzer — staleness, end-of-life and vulnerability scoring.

Takes a manifest's name -> version-spec map, resolves each spec to a concrete
version, asks an AgeOracle how old that version is and which advisories apply,
and classifies every dependency:

  is_eol       age_days > eol_days (1095)
  update_type  major > 365 days, minor > 90 days, else patch

The health score is 100 minus four penalties, each proportional to the
fraction of dependencies in that condition (EOL 30, vulnerable 40,
outdated 20, major upgrade 10), floored at 0.

The default HeuristicAgeOracle estimates age from the major version number
with a deterministic, name-derived jitter. It is a stand-in for a registry
lookup; pass any AgeOracle implementation to use real release dates.
"""

import hashlib
import json
import logging
import re
import tomllib
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from legacylift.config import DependencyConfig
from legacylift.schemas.health import DependencyEntry, DependencyReport

logger = logging.getLogger("legacylift.analysis.dependency_age")

_REQUIREMENT_RE = re.compile(r"^([A-Za-z0-9_][A-Za-z0-9._-]*)(?:\[[^\]]*\])?\s*(.*)$")
_VERSION_RE = re.compile(r"^[\s^~=<>!v]*(\d+(?:\.\d+)*)")


# ---------------------------------------------------------------------------
# Manifest parsing
# ---------------------------------------------------------------------------

def _parse_requirement_lines(lines) -> Dict[str, str]:
    deps = {}
    for line in lines:
        line = line.split("#", 1)[0].split(";", 1)[0].strip()
        if not line or line.startswith("-"):
            continue
        match = _REQUIREMENT_RE.match(line)
        if match:
            deps[match.group(1)] = match.group(2).strip() or "*"
    return deps


def load_manifest(path) -> Dict[str, str]:
    """Load a dependency manifest into a name -> version-spec map.

    Supports package.json (dependencies + devDependencies), requirements*.txt
    and pyproject.toml ([project].dependencies). A missing or unparsable file
    yields an empty map and a warning.
    """
    manifest = Path(path)
    if not manifest.is_file():
        logger.warning("Manifest %s not found; treating as no dependencies", manifest)
        return {}
    try:
        if manifest.name == "package.json":
            data = json.loads(manifest.read_text(encoding="utf-8"))
            deps = {}
            for section in ("dependencies", "devDependencies"):
                for name, spec in (data.get(section) or {}).items():
                    deps[name] = str(spec)
            return deps
        if manifest.suffix == ".toml":
            with open(manifest, "rb") as f:
                data = tomllib.load(f)
            return _parse_requirement_lines(data.get("project", {}).get("dependencies", []))
        if manifest.suffix == ".txt":
            return _parse_requirement_lines(
                manifest.read_text(encoding="utf-8").splitlines()
            )
    except (OSError, UnicodeDecodeError, ValueError, AttributeError, TypeError) as exc:
        logger.warning("Manifest %s could not be parsed (%s); treating as no dependencies",
                       manifest, exc)
        return {}
    logger.warning("Unsupported manifest type %s; treating as no dependencies", manifest.name)
    return {}


def strip_version_prefix(spec: str) -> str:
    """Reduce a version spec to its first concrete version.

    "^1.2.3" -> "1.2.3", ">=2.0,<3" -> "2.0", "v4" -> "4", "*" -> "unknown".
    """
    match = _VERSION_RE.match(str(spec or ""))
    return match.group(1) if match else "unknown"


def _major_version(version: str) -> Optional[int]:
    if not version or version == "unknown":
        return None
    try:
        return int(version.split(".", 1)[0])
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Age oracles
# ---------------------------------------------------------------------------

class AgeOracle:
    """Source of release age and advisories for a resolved dependency version."""

    def estimate_age_days(self, name: str, version: str) -> int:
        raise NotImplementedError

    def vulnerabilities(self, name: str, version: str) -> List[str]:
        return []


class HeuristicAgeOracle(AgeOracle):
    """Age from the major version: lower major means older.

    A version with major N is assumed to be (horizon - N) years old, plus a
    jitter of 0..max_jitter_days derived from a hash of the package name, so
    repeated runs give identical results.
    """

    def __init__(self, config: Optional[DependencyConfig] = None):
        self.config = config or DependencyConfig()

    def _jitter(self, name: str) -> int:
        bound = max(0, self.config.max_jitter_days)
        digest = hashlib.sha256(name.encode("utf-8")).hexdigest()
        return int(digest[:8], 16) % (bound + 1)

    def estimate_age_days(self, name: str, version: str) -> int:
        major = _major_version(version)
        if major is None:
            return 0
        years = max(0, self.config.current_major_horizon - major)
        return years * 365 + self._jitter(name)

    def vulnerabilities(self, name: str, version: str) -> List[str]:
        return list(self.config.advisories.get(name, []))


class StaticAgeOracle(AgeOracle):
    """Fixed ages and advisories, e.g. from a registry export or a test."""

    def __init__(self, ages: Mapping[str, int],
                 advisories: Optional[Mapping[str, List[str]]] = None,
                 default_age: int = 0):
        self.ages = dict(ages)
        self.advisories = dict(advisories or {})
        self.default_age = default_age

    def estimate_age_days(self, name: str, version: str) -> int:
        return int(self.ages.get(name, self.default_age))

    def vulnerabilities(self, name: str, version: str) -> List[str]:
        return list(self.advisories.get(name, []))


# ---------------------------------------------------------------------------
# Classification and scoring
# ---------------------------------------------------------------------------

def classify_update_type(age_days: int, config: Optional[DependencyConfig] = None) -> str:
    """patch -> minor -> major as age crosses minor_days and major_days."""
    config = config or DependencyConfig()
    if age_days > config.major_days:
        return "major"
    if age_days > config.minor_days:
        return "minor"
    return "patch"


def _migration_effort(is_eol: bool, update_type: str) -> str:
    if is_eol or update_type == "major":
        return "high"
    if update_type == "minor":
        return "medium"
    return "low"


def score_dependencies(entries, config: Optional[DependencyConfig] = None) -> float:
    config = config or DependencyConfig()
    total = len(entries)
    if total == 0:
        return 100.0
    eol = sum(1 for e in entries if e.is_eol) / total
    vulnerable = sum(1 for e in entries if e.vulnerabilities) / total
    outdated = sum(1 for e in entries if e.update_type != "patch") / total
    major = sum(1 for e in entries if e.update_type == "major") / total
    score = (100.0
             - config.eol_weight * eol
             - config.vulnerable_weight * vulnerable
             - config.outdated_weight * outdated
             - config.major_weight * major)
    return round(max(0.0, score), 1)


def analyze_dependencies(manifest: Mapping[str, str],
                         oracle: Optional[AgeOracle] = None,
                         config: Optional[DependencyConfig] = None) -> DependencyReport:
    """Classify every dependency of a manifest and score the set."""
    config = config or DependencyConfig()
    oracle = oracle or HeuristicAgeOracle(config)

    entries = []
    for name in sorted(manifest):
        declared = str(manifest[name])
        resolved = strip_version_prefix(declared)
        age_days = max(0, int(oracle.estimate_age_days(name, resolved)))
        is_eol = age_days > config.eol_days
        update_type = classify_update_type(age_days, config)
        entries.append(DependencyEntry(
            name=name,
            declared_version=declared,
            resolved_version=resolved,
            age_days=age_days,
            is_eol=is_eol,
            vulnerabilities=tuple(oracle.vulnerabilities(name, resolved)),
            update_type=update_type,
            migration_effort=_migration_effort(is_eol, update_type),
        ))

    report = DependencyReport(
        dependencies=tuple(entries),
        eol_dependencies=tuple(e.name for e in entries if e.is_eol),
        vulnerable_dependencies=tuple(e.name for e in entries if e.vulnerabilities),
        major_upgrades_available=tuple(e.name for e in entries if e.update_type == "major"),
        dependency_health_score=score_dependencies(entries, config),
    )
    logger.info("Dependencies: %d analyzed, %d EOL, %d vulnerable, score %.1f",
                len(entries), len(report.eol_dependencies),
                len(report.vulnerable_dependencies), report.dependency_health_score)
    return report
