#!/usr/bin/env python3
# CUI // SP-CTI
"""Source Scanner — the only I/O-heavy stage of a health assessment.

Walks a project tree, keeps files whose extension is in the configured
extension->language table, and records for each one its line count, its
import-statement count (coupling) and its churn (number of changesets that
touched it, via the external history tool). All downstream analyzers work
from the returned ScanResult and never touch the filesystem themselves.

Failure handling:
  - unreadable or non-UTF-8 files are skipped and counted in ``skipped``
  - a failing history query yields churn 0 (logged by the tool adapter)
  - files beyond ``max_files`` are excluded and ``truncated`` is set
"""

import logging
import os
import re
from pathlib import Path
from typing import List, Optional

from legacylift.analysis.external_tools import ExternalTool, NullExternalTool
from legacylift.config import ScannerConfig
from legacylift.schemas.health import FileRecord, ScanResult

logger = logging.getLogger("legacylift.analysis.source_scanner")


def _compile_import_patterns(patterns: List[str]) -> "re.Pattern":
    return re.compile("|".join(f"(?:{p})" for p in patterns), re.MULTILINE)


def count_imports(text: str, config: Optional[ScannerConfig] = None) -> int:
    """Count import-like statements (import/from/require/#include/using/use)."""
    config = config or ScannerConfig()
    return len(_compile_import_patterns(config.import_patterns).findall(text))


def _iter_source_paths(root: Path, config: ScannerConfig):
    """Yield source file paths under root in a stable order, pruning excluded dirs."""
    excluded = set(config.exclude_dirs)
    for dirpath, dirnames, filenames in os.walk(str(root)):
        dirnames[:] = sorted(
            d for d in dirnames if d not in excluded and not d.endswith(".egg-info")
        )
        for fname in sorted(filenames):
            ext = Path(fname).suffix.lower()
            if ext in config.extensions:
                yield Path(dirpath) / fname


def scan_project(root, config: Optional[ScannerConfig] = None,
                 external_tool: Optional[ExternalTool] = None) -> ScanResult:
    """Scan a project tree into an immutable ScanResult.

    Args:
        root: Project root directory.
        config: ScannerConfig (extension table, excluded dirs, file cap).
        external_tool: Provider of per-file commit counts. Defaults to
            NullExternalTool (churn 0 everywhere).

    Returns:
        ScanResult. A missing root yields an empty result, not an error.
    """
    config = config or ScannerConfig()
    tool = external_tool or NullExternalTool()
    root_path = Path(root).resolve()

    if not root_path.is_dir():
        logger.warning("Project root %s is not a directory; scan is empty", root_path)
        return ScanResult(root=str(root_path))

    import_re = _compile_import_patterns(config.import_patterns)
    records = []
    total_lines = 0
    skipped = 0
    truncated = False

    for fpath in _iter_source_paths(root_path, config):
        if len(records) >= config.max_files:
            truncated = True
            break
        try:
            text = fpath.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Skipping unreadable file %s: %s", fpath, exc)
            skipped += 1
            continue

        line_count = len(text.splitlines())
        churn = tool.count_commits(str(fpath)) if config.collect_churn else 0
        rel_path = fpath.relative_to(root_path).as_posix()
        records.append(FileRecord(
            path=rel_path,
            language=config.extensions[fpath.suffix.lower()],
            line_count=line_count,
            churn=max(0, int(churn)),
            import_count=len(import_re.findall(text)),
            content=text,
        ))
        total_lines += line_count

    if truncated:
        logger.warning("File cap of %d reached; remaining files excluded", config.max_files)
    logger.info("Scanned %s: %d files, %d lines (%d skipped)",
                root_path, len(records), total_lines, skipped)
    return ScanResult(
        root=str(root_path),
        files=tuple(records),
        total_lines=total_lines,
        truncated=truncated,
        skipped=skipped,
    )

