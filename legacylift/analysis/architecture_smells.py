#!/usr/bin/env python3
# CUI // SP-CTI
"""Architecture Smell Detector — circular dependencies and god files.

Cycles come from the external cycle detector (a list of path lists); this
module only grades them:

  more than 3 members  critical
  exactly 3            high
  otherwise            medium

A god file exceeds both the line threshold (500) and the method threshold
(15); above 1000 lines it is critical, otherwise high.

    architecture_health_score = max(0, 100 - 3 * smells - 10 * critical)
"""

import logging
import re
from typing import List, Optional, Sequence

from legacylift.config import ArchitectureConfig
from legacylift.schemas.health import ArchitectureReport, ArchitectureSmell, ScanResult

logger = logging.getLogger("legacylift.analysis.architecture_smells")


def cycle_severity(cycle: Sequence[str]) -> str:
    if len(cycle) > 3:
        return "critical"
    if len(cycle) == 3:
        return "high"
    return "medium"


def count_methods(text: str, language: str,
                  config: Optional[ArchitectureConfig] = None) -> int:
    """Approximate the number of function/method definitions in a file."""
    config = config or ArchitectureConfig()
    patterns = config.method_patterns.get(
        language, config.method_patterns.get(config.default_method_language, [])
    )
    return sum(len(re.findall(p, text, re.MULTILINE)) for p in patterns)


def _circular_smells(cycles: Sequence[Sequence[str]]) -> List[ArchitectureSmell]:
    smells = []
    for cycle in cycles:
        members = tuple(cycle)
        if not members:
            continue
        chain = " -> ".join(members + (members[0],))
        smells.append(ArchitectureSmell(
            smell_type="circular-dependency",
            files=members,
            severity=cycle_severity(members),
            recommendation=(
                "Break the cycle by extracting the shared contract into a module "
                "both sides depend on, or invert one dependency behind an interface."
            ),
            details={"cycle": chain, "length": len(members)},
        ))
    return smells


def _god_file_smells(scan: ScanResult, config: ArchitectureConfig) -> List[ArchitectureSmell]:
    smells = []
    for record in scan.files:
        if record.line_count <= config.god_file_lines:
            continue
        methods = count_methods(record.content, record.language, config)
        if methods <= config.god_file_methods:
            continue
        severity = "critical" if record.line_count > config.critical_lines else "high"
        smells.append(ArchitectureSmell(
            smell_type="god-file",
            files=(record.path,),
            severity=severity,
            recommendation=(
                f"{record.path} holds {methods} functions in {record.line_count} lines. "
                "Split it along responsibility boundaries and move each group "
                "behind its own module interface."
            ),
            details={"lines": record.line_count, "methods": methods},
        ))
    return smells


def detect_architecture_smells(scan: ScanResult,
                               cycles: Optional[Sequence[Sequence[str]]] = None,
                               config: Optional[ArchitectureConfig] = None) -> ArchitectureReport:
    """Grade externally detected cycles and find god files in the scan."""
    config = config or ArchitectureConfig()
    circular = _circular_smells(cycles or [])
    god_files = _god_file_smells(scan, config)

    total = len(circular) + len(god_files)
    critical = sum(1 for s in circular + god_files if s.severity == "critical")
    score = float(max(0, 100 - total * 3 - critical * 10))

    logger.info("Architecture: %d cycles, %d god files, score %.1f",
                len(circular), len(god_files), score)
    return ArchitectureReport(
        circular_dependencies=tuple(circular),
        god_files=tuple(god_files),
        architecture_health_score=score,
    )
