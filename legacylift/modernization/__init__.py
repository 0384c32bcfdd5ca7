#!/usr/bin/env python3
# CUI // SP-CTI
"""LegacyLift Modernization — migration planning and artifact generators."""

from legacylift.modernization.migration_planner import plan_migration  # noqa: F401
