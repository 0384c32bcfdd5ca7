#!/usr/bin/env python3
# CUI // SP-CTI
"""Timezone-aware datetime utilities for LegacyLift.

Report documents carry ISO 8601 timestamps; persisted report files carry a
compact filesystem-safe stamp.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Return current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


def file_stamp(moment: Optional[datetime] = None) -> str:
    """Return a filename-safe UTC stamp such as 20261019T142233Z."""
    moment = moment or utc_now()
    return moment.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
