#!/usr/bin/env python3
# CUI // SP-CTI
"""Dead Code Detector — reference-count heuristics over a scanned project.

Three independent passes over a capped sample of the scanned files:

  unused exports     exported/public top-level symbols whose name appears in
                     at most one other file (confidence medium, risk verify)
  unreachable files  non-entry, non-test files whose stem is referenced from
                     at most one other file (confidence low, risk risky)
  deprecated usage   explicit deprecation markers and known-deprecated APIs
                     (confidence high, risk verify)

Reference counting is textual, so results are removal *candidates* for a
human to verify; only the deprecation pass is ever reported with high
confidence.
"""

import logging
import re
from pathlib import PurePosixPath
from typing import Dict, List, Optional, Set

from legacylift.config import DeadCodeConfig
from legacylift.schemas.health import DeadCodeEntry, DeadCodeReport, ScanResult

logger = logging.getLogger("legacylift.analysis.dead_code_detector")

_IDENTIFIER_RE = re.compile(r"[A-Za-z_$][\w$]*")


def is_test_file(path: str, config: Optional[DeadCodeConfig] = None) -> bool:
    config = config or DeadCodeConfig()
    pure = PurePosixPath(path)
    if any(part in ("test", "tests", "__tests__", "spec") for part in pure.parts[:-1]):
        return True
    stem = pure.stem
    return (any(pure.name.startswith(p) for p in config.test_prefixes)
            or any(stem.endswith(s) for s in config.test_suffixes))


def _identifier_index(scan: ScanResult) -> Dict[str, Set[str]]:
    return {f.path: set(_IDENTIFIER_RE.findall(f.content)) for f in scan.files}


def find_exports(text: str, language: str, config: Optional[DeadCodeConfig] = None) -> List[str]:
    """Return exported (JS/TS) or public top-level (Python) symbol names, in order."""
    config = config or DeadCodeConfig()
    names = []
    for pattern in config.export_patterns.get(language, []):
        for match in re.finditer(pattern, text, re.MULTILINE):
            if match.group(1) not in names:
                names.append(match.group(1))
    return names


def _unused_exports(sample, identifiers, config) -> List[DeadCodeEntry]:
    entries = []
    for record in sample:
        if is_test_file(record.path, config):
            continue
        for name in find_exports(record.content, record.language, config):
            other_refs = sum(
                1 for path, idents in identifiers.items()
                if path != record.path and name in idents
            )
            if other_refs <= 1:
                entries.append(DeadCodeEntry(
                    path=record.path,
                    symbol=name,
                    kind="export",
                    reason="unused-export",
                    confidence="medium",
                    removal_risk="verify",
                ))
    return entries


def _unreachable_files(scan, sample, config) -> List[DeadCodeEntry]:
    entry_stems = set(config.entry_stems)
    entries = []
    for record in sample:
        stem = PurePosixPath(record.path).stem
        if stem in entry_stems or is_test_file(record.path, config):
            continue
        referencing = sum(
            1 for other in scan.files
            if other.path != record.path and stem in other.content
        )
        if referencing <= 1:
            entries.append(DeadCodeEntry(
                path=record.path,
                symbol=stem,
                kind="file",
                reason="unreachable-file",
                confidence="low",
                removal_risk="risky",
            ))
    return entries


def _deprecated_usages(sample, config) -> List[DeadCodeEntry]:
    compiled = [
        (p["id"], re.compile(p["pattern"], re.MULTILINE))
        for p in config.deprecated_patterns
    ]
    entries = []
    for record in sample:
        for pattern_id, regex in compiled:
            match = regex.search(record.content)
            if not match:
                continue
            entries.append(DeadCodeEntry(
                path=record.path,
                symbol=pattern_id,
                kind="function",
                reason="deprecated-usage",
                confidence="high",
                removal_risk="verify",
                line=record.content.count("\n", 0, match.start()) + 1,
            ))
    return entries


def detect_dead_code(scan: ScanResult, config: Optional[DeadCodeConfig] = None) -> DeadCodeReport:
    """Run the three dead-code passes and size the result against the codebase."""
    config = config or DeadCodeConfig()
    sample = scan.files[:config.deep_analysis_cap]
    if len(scan.files) > len(sample):
        logger.info("Dead code analysis sampled %d of %d files",
                    len(sample), len(scan.files))

    identifiers = _identifier_index(scan)
    unused = _unused_exports(sample, identifiers, config)
    unreachable = _unreachable_files(scan, sample, config)
    deprecated = _deprecated_usages(sample, config)

    dead_lines = (len(unused) * config.lines_per_unused_export
                  + len(unreachable) * config.lines_per_unreachable_file)
    percentage = round(dead_lines / scan.total_lines * 100, 2) if scan.total_lines else 0.0
    score = round(max(0.0, 100.0 - 2 * percentage - len(deprecated)), 1)

    logger.info("Dead code: %d unused exports, %d unreachable files, %d deprecated usages",
                len(unused), len(unreachable), len(deprecated))
    return DeadCodeReport(
        unused_exports=tuple(unused),
        unreachable_files=tuple(unreachable),
        deprecated_usages=tuple(deprecated),
        total_dead_lines=dead_lines,
        percentage_of_codebase=percentage,
        dead_code_health_score=score,
    )
