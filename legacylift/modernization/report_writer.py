#!/usr/bin/env python3
# CUI // SP-CTI
"""Report persistence — timestamped JSON documents in an output directory."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from legacylift.compat.datetime_utils import file_stamp

logger = logging.getLogger("legacylift.modernization.report_writer")

REPORT_KINDS = (
    "health_report",
    "migration_plan",
    "strangler_config",
    "compatibility_layer",
    "data_migration_script",
    "test_backfill_plan",
)


def to_document(obj: Any) -> Any:
    """Return a JSON-serializable form of a schema record or plain value."""
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return obj


def write_report(document: Any, kind: str, output_dir, moment=None) -> Path:
    """Write ``document`` to ``<output_dir>/<kind>_<UTC stamp>.json``.

    Args:
        document: A schema record (anything with to_dict()) or a dict.
        kind: One of REPORT_KINDS.
        output_dir: Directory to write into; created if missing.
        moment: Optional datetime for the file stamp.

    Raises:
        ValueError: Unknown report kind.
    """
    if kind not in REPORT_KINDS:
        raise ValueError(f"Unknown report kind '{kind}'; expected one of {', '.join(REPORT_KINDS)}")
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    path = out_dir / f"{kind}_{file_stamp(moment)}.json"
    counter = 1
    while path.exists():
        counter += 1
        path = out_dir / f"{kind}_{file_stamp(moment)}_{counter}.json"

    path.write_text(json.dumps(to_document(document), indent=2, default=str) + "\n",
                    encoding="utf-8")
    logger.info("Wrote %s to %s", kind, path)
    return path
