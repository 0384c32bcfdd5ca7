#!/usr/bin/env python3
# CUI // SP-CTI
"""LegacyLift Resilience — Structured Exception Hierarchy.

Failures split into two families. Transient failures (an external tool timed
out, a binary is missing) degrade one report section and are logged by the
caller. Permanent failures (bad configuration, an unusable planner input)
propagate to the caller.

Usage:
    from legacylift.resilience.errors import ExternalToolError, PlannerInputError

    raise ExternalToolError("madge timed out after 30s", tool="madge")
"""


class LegacyLiftError(Exception):
    """Base exception for all LegacyLift errors.

    Attributes:
        service: Name of the component that raised the error (e.g. "planner").
        retryable: Whether the caller may retry the operation.
    """

    def __init__(self, message: str, service: str = "", retryable: bool = False):
        super().__init__(message)
        self.service = service
        self.retryable = retryable


class TransientError(LegacyLiftError):
    """Transient error — the operation may succeed on another run.

    Examples: subprocess timeout, tool binary temporarily unavailable.
    """

    def __init__(self, message: str, service: str = "", retryable: bool = True):
        super().__init__(message, service=service, retryable=retryable)


class PermanentError(LegacyLiftError):
    """Permanent error — running again with the same input will not help.

    Examples: malformed configuration file, incomplete technology profile.
    """

    def __init__(self, message: str, service: str = "", retryable: bool = False):
        super().__init__(message, service=service, retryable=retryable)


class ExternalToolError(TransientError):
    """An external collaborator (history query, cycle detector) failed.

    Attributes:
        tool: Executable name of the failing tool.
    """

    def __init__(self, message: str, tool: str = ""):
        super().__init__(message, service=tool or "external-tool", retryable=True)
        self.tool = tool


class ConfigurationError(PermanentError):
    """Configuration error — missing or invalid configuration."""

    def __init__(self, message: str, config_key: str = ""):
        super().__init__(message, service="config", retryable=False)
        self.config_key = config_key


class PlannerInputError(ConfigurationError):
    """The migration planner was given an input it cannot plan from.

    Raised for missing technology-profile fields, unknown architecture
    styles, and unknown strategy overrides.
    """

    def __init__(self, message: str, config_key: str = ""):
        super().__init__(message, config_key=config_key)
        self.service = "planner"
