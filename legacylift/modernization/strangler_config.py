#!/usr/bin/env python3
# CUI // SP-CTI
"""Strangler Fig Config Generator — declarative routing and feature flags.

Turns a list of routing rules into one feature flag per rule plus a health
check per backend. Rollout percentages are clamped to 0-100; anything the
router cannot serve from the modern backend falls back to legacy.

render_nginx_config() renders the same config as an Nginx snippet using
split_clients for percentage-based routing.
"""

import logging
import math
import re
from typing import Any, Iterable, List, Mapping, Union
from urllib.parse import urlsplit

from legacylift.compat.datetime_utils import utc_now_iso
from legacylift.schemas.artifacts import (
    HTTP_METHODS,
    FeatureFlag,
    HealthCheck,
    RoutingRule,
    StranglerFigConfig,
)

logger = logging.getLogger("legacylift.modernization.strangler_config")

CUI_BANNER = "CUI // SP-CTI"
BACKENDS = ("legacy", "modern")
HEALTH_PATH = "/health"

RuleInput = Union[RoutingRule, Mapping[str, Any]]


def clamp_rollout(value) -> float:
    try:
        pct = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Rollout percentage must be numeric, got {value!r}") from None
    if not math.isfinite(pct):
        raise ValueError(f"Rollout percentage must be finite, got {value!r}")
    return max(0.0, min(100.0, pct))


def _coerce_rule(rule: RuleInput) -> RoutingRule:
    if isinstance(rule, Mapping):
        if not rule.get("path_pattern"):
            raise ValueError(f"Routing rule needs a path_pattern: {dict(rule)!r}")
        rule = RoutingRule(
            path_pattern=str(rule["path_pattern"]),
            method=str(rule.get("method", "ALL")),
            target=str(rule.get("target", "modern")),
            rollout_percentage=rule.get("rollout_percentage", 0.0),
        )
    method = rule.method.upper()
    if method not in HTTP_METHODS:
        raise ValueError(f"Unsupported HTTP method '{rule.method}'")
    target = rule.target.lower()
    if target not in BACKENDS:
        raise ValueError(f"Routing target must be one of {BACKENDS}, got '{rule.target}'")
    return RoutingRule(
        path_pattern=rule.path_pattern,
        method=method,
        target=target,
        rollout_percentage=clamp_rollout(rule.rollout_percentage),
    )


def flag_name(rule: RoutingRule) -> str:
    """Stable flag identifier, e.g. ``strangler_get_api_orders``."""
    slug = re.sub(r"[^a-z0-9]+", "_", rule.path_pattern.lower()).strip("_") or "root"
    return f"strangler_{rule.method.lower()}_{slug}"


def generate_strangler_config(legacy_base_url: str, modern_base_url: str,
                              rules: Iterable[RuleInput],
                              check_interval_seconds: int = 30,
                              check_timeout_seconds: int = 5,
                              unhealthy_threshold: int = 3) -> StranglerFigConfig:
    """Build the routing config for a strangler-fig facade.

    Raises:
        ValueError: Blank base URL, unsupported method or target, or a
            non-numeric rollout percentage.
    """
    for label, url in (("legacy", legacy_base_url), ("modern", modern_base_url)):
        if not url or not str(url).strip():
            raise ValueError(f"{label} base URL is required")

    routing_rules = [_coerce_rule(r) for r in rules]

    flags: List[FeatureFlag] = []
    seen = {}
    for rule in routing_rules:
        name = flag_name(rule)
        seen[name] = seen.get(name, 0) + 1
        if seen[name] > 1:
            name = f"{name}_{seen[name]}"
        flags.append(FeatureFlag(
            name=name,
            description=(f"Route {rule.rollout_percentage:g}% of {rule.method} "
                         f"{rule.path_pattern} to the {rule.target} backend"),
            path_pattern=rule.path_pattern,
            method=rule.method,
            target=rule.target,
            rollout_percentage=rule.rollout_percentage,
            enabled=rule.rollout_percentage > 0,
        ))

    health_checks = tuple(
        HealthCheck(
            backend=backend,
            url=str(url).rstrip("/") + HEALTH_PATH,
            interval_seconds=check_interval_seconds,
            timeout_seconds=check_timeout_seconds,
            unhealthy_threshold=unhealthy_threshold,
        )
        for backend, url in (("legacy", legacy_base_url), ("modern", modern_base_url))
    )

    logger.info("Generated strangler config: %d rules, %d enabled flags",
                len(routing_rules), sum(1 for f in flags if f.enabled))
    return StranglerFigConfig(
        legacy_base_url=legacy_base_url,
        modern_base_url=modern_base_url,
        routing_rules=tuple(routing_rules),
        feature_flags=tuple(flags),
        health_checks=health_checks,
        fallback_behavior="legacy",
        generated_at=utc_now_iso(),
    )


def _upstream_server(url: str) -> str:
    parts = urlsplit(url)
    if parts.port:
        return f"{parts.hostname}:{parts.port}"
    return f"{parts.hostname}:{443 if parts.scheme == 'https' else 80}"


def _location_prefix(path_pattern: str) -> str:
    prefix = path_pattern.split("*", 1)[0]
    return prefix or "/"


def render_nginx_config(config: StranglerFigConfig) -> str:
    """Render an Nginx snippet with one split_clients block per routed flag."""
    lines = [
        f"# {CUI_BANNER}",
        "# Strangler Fig Routing Configuration — Nginx",
        f"# Generated: {config.generated_at or utc_now_iso()}",
        "",
        "upstream legacy_upstream {",
        f"    server {_upstream_server(config.legacy_base_url)};",
        "}",
        "",
        "upstream modern_upstream {",
        f"    server {_upstream_server(config.modern_base_url)};",
        "}",
        "",
    ]
    for flag in config.feature_flags:
        other = "legacy" if flag.target == "modern" else "modern"
        if not flag.enabled:
            upstream = f"{config.fallback_behavior}_upstream"
        elif flag.rollout_percentage >= 100:
            upstream = f"{flag.target}_upstream"
        else:
            upstream = f"${flag.name}"
            lines.append(f'split_clients "${{remote_addr}}${{request_uri}}" ${flag.name} {{')
            lines.append(f"    {flag.rollout_percentage:g}%    {flag.target}_upstream;")
            lines.append(f"    *    {other}_upstream;")
            lines.append("}")
            lines.append("")

        lines.append(f"location {_location_prefix(flag.path_pattern)} {{")
        lines.append(f"    # Flag: {flag.name} ({flag.method}, {flag.rollout_percentage:g}% -> {flag.target})")
        lines.append(f"    proxy_pass http://{upstream};")
        lines.append(f"    proxy_set_header X-Strangler-Flag {flag.name};")
        lines.append(f"    error_page 502 503 504 = @{config.fallback_behavior}_fallback;")
        lines.append("}")
        lines.append("")

    lines.append(f"location @{config.fallback_behavior}_fallback {{")
    lines.append(f"    proxy_pass http://{config.fallback_behavior}_upstream;")
    lines.append("}")
    lines.append(f"# {CUI_BANNER}")
    return "\n".join(lines) + "\n"
