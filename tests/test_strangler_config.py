#!/usr/bin/env python3
# CUI // SP-CTI
"""Tests for legacylift.modernization.strangler_config."""

import pytest

from legacylift.modernization.strangler_config import (
    clamp_rollout,
    flag_name,
    generate_strangler_config,
    render_nginx_config,
)
from legacylift.schemas.artifacts import RoutingRule

LEGACY = "http://legacy.internal:8080"
MODERN = "https://modern.internal"


class TestClampRollout:
    @pytest.mark.parametrize("value,expected", [
        (-5, 0.0), (0, 0.0), (25, 25.0), ("40", 40.0), (100, 100.0), (150, 100.0),
    ])
    def test_clamped(self, value, expected):
        assert clamp_rollout(value) == expected

    def test_non_numeric(self):
        with pytest.raises(ValueError):
            clamp_rollout("half")

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), "-inf", "NaN"])
    def test_non_finite_rejected(self, value):
        with pytest.raises(ValueError):
            clamp_rollout(value)


class TestFlagName:
    def test_slug(self):
        assert flag_name(RoutingRule("/api/orders/*", "GET")) == "strangler_get_api_orders"

    def test_root_path(self):
        assert flag_name(RoutingRule("/", "ALL")) == "strangler_all_root"


class TestGenerateStranglerConfig:
    def test_one_flag_per_rule(self):
        config = generate_strangler_config(LEGACY, MODERN, [
            {"path_pattern": "/api/orders/*", "method": "get", "rollout_percentage": 25},
            {"path_pattern": "/api/users/*", "rollout_percentage": 0},
            RoutingRule("/reports/*", "POST", "legacy", 100),
        ])
        assert len(config.feature_flags) == len(config.routing_rules) == 3
        orders, users, reports = config.feature_flags
        assert orders.name == "strangler_get_api_orders"
        assert orders.method == "GET"
        assert orders.enabled is True
        assert users.enabled is False
        assert users.method == "ALL"
        assert users.target == "modern"
        assert reports.target == "legacy"
        assert "25%" in orders.description

    def test_rollout_clamped_on_rules_and_flags(self):
        config = generate_strangler_config(LEGACY, MODERN, [
            {"path_pattern": "/a", "rollout_percentage": 250},
            {"path_pattern": "/b", "rollout_percentage": -10},
        ])
        assert [r.rollout_percentage for r in config.routing_rules] == [100.0, 0.0]
        assert [f.rollout_percentage for f in config.feature_flags] == [100.0, 0.0]
        assert [f.enabled for f in config.feature_flags] == [True, False]

    def test_duplicate_flag_names_suffixed(self):
        config = generate_strangler_config(LEGACY, MODERN, [
            {"path_pattern": "/api/orders"},
            {"path_pattern": "/api/orders/"},
        ])
        assert [f.name for f in config.feature_flags] == [
            "strangler_all_api_orders", "strangler_all_api_orders_2",
        ]

    def test_health_checks_and_fallback(self):
        config = generate_strangler_config(LEGACY + "/", MODERN, [], check_interval_seconds=10)
        assert [(h.backend, h.url) for h in config.health_checks] == [
            ("legacy", "http://legacy.internal:8080/health"),
            ("modern", "https://modern.internal/health"),
        ]
        assert config.health_checks[0].interval_seconds == 10
        assert config.health_checks[0].unhealthy_threshold == 3
        assert config.fallback_behavior == "legacy"

    def test_no_rules(self):
        config = generate_strangler_config(LEGACY, MODERN, [])
        assert config.feature_flags == ()
        assert len(config.health_checks) == 2

    def test_blank_url(self):
        with pytest.raises(ValueError, match="modern"):
            generate_strangler_config(LEGACY, "  ", [])

    @pytest.mark.parametrize("rule", [
        {"path_pattern": "/a", "method": "FETCH"},
        {"path_pattern": "/a", "target": "canary"},
        {"path_pattern": "/a", "rollout_percentage": "lots"},
        {"method": "GET"},
    ])
    def test_invalid_rules(self, rule):
        with pytest.raises(ValueError):
            generate_strangler_config(LEGACY, MODERN, [rule])

    def test_serializes(self):
        config = generate_strangler_config(LEGACY, MODERN, [{"path_pattern": "/a"}])
        data = config.to_dict()
        assert data["feature_flags"][0]["name"] == "strangler_all_a"
        assert data["fallback_behavior"] == "legacy"


class TestRenderNginxConfig:
    def _render(self, rules):
        return render_nginx_config(generate_strangler_config(LEGACY, MODERN, rules))

    def test_upstreams(self):
        text = self._render([])
        assert "server legacy.internal:8080;" in text
        assert "server modern.internal:443;" in text
        assert text.startswith("# CUI // SP-CTI")
        assert text.rstrip().endswith("# CUI // SP-CTI")

    def test_partial_rollout_uses_split_clients(self):
        text = self._render([{"path_pattern": "/api/orders/*", "rollout_percentage": 25}])
        assert "$strangler_all_api_orders {" in text
        assert "25%    modern_upstream;" in text
        assert "*    legacy_upstream;" in text
        assert "location /api/orders/ {" in text
        assert "proxy_pass http://$strangler_all_api_orders;" in text

    def test_full_rollout_routes_directly(self):
        text = self._render([{"path_pattern": "/api/users", "rollout_percentage": 100}])
        assert "split_clients" not in text
        assert "proxy_pass http://modern_upstream;" in text

    def test_disabled_flag_routes_to_fallback(self):
        text = self._render([{"path_pattern": "/api/users", "rollout_percentage": 0}])
        assert "split_clients" not in text
        assert "location /api/users {\n" in text
        assert "location @legacy_fallback {" in text
        assert "proxy_pass http://modern_upstream;" not in text
