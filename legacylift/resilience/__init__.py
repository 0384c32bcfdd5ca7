#!/usr/bin/env python3
# CUI // SP-CTI
"""LegacyLift Resilience Package — structured error hierarchy."""

from legacylift.resilience.errors import (  # noqa: F401
    ConfigurationError,
    ExternalToolError,
    LegacyLiftError,
    PermanentError,
    PlannerInputError,
    TransientError,
)
