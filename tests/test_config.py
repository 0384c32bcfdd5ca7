#!/usr/bin/env python3
# CUI // SP-CTI
"""Tests for legacylift.config — defaults, YAML loading, section merging."""

import pytest

from legacylift.config import (
    DEFAULT_CONFIG_PATH,
    EngineConfig,
    config_from_dict,
    load_config,
)
from legacylift.resilience.errors import ConfigurationError


class TestDefaults:
    """Built-in defaults reproduce the reference thresholds."""

    def test_dependency_thresholds(self):
        cfg = EngineConfig().dependencies
        assert (cfg.eol_days, cfg.major_days, cfg.minor_days) == (1095, 365, 90)

    def test_health_weights_sum_to_one(self):
        h = EngineConfig().health
        total = (h.dead_code_weight + h.dependency_weight + h.complexity_weight
                 + h.architecture_weight + h.coverage_weight)
        assert total == pytest.approx(1.0)

    def test_planner_cost_constants(self):
        p = EngineConfig().planner
        assert p.hours_per_phase == 200
        assert p.contingency_ratio == 0.25
        assert p.schedule_buffer_ratio == 0.30

    def test_backfill_and_data_migration_defaults(self):
        cfg = EngineConfig()
        assert (cfg.backfill.integration_coupling, cfg.backfill.characterization_complexity,
                cfg.backfill.regression_churn) == (5, 20, 20)
        assert cfg.data_migration.rows_per_minute == 100000

    def test_sections_are_independent_copies(self):
        a, b = EngineConfig(), EngineConfig()
        a.scanner.extensions[".foo"] = "foo"
        assert ".foo" not in b.scanner.extensions


class TestConfigFromDict:
    def test_empty_gives_defaults(self):
        assert config_from_dict({}) == EngineConfig()
        assert config_from_dict(None) == EngineConfig()

    def test_scalar_override(self):
        cfg = config_from_dict({"planner": {"hourly_rate": 200}})
        assert cfg.planner.hourly_rate == 200
        assert cfg.planner.hours_per_phase == 200

    def test_dict_fields_merge_over_defaults(self):
        cfg = config_from_dict({"scanner": {"extensions": {".cob": "cobol"}}})
        assert cfg.scanner.extensions[".cob"] == "cobol"
        assert cfg.scanner.extensions[".py"] == "python"

    def test_unknown_section_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            config_from_dict({"database": {}})
        assert exc_info.value.config_key == "database"

    def test_unknown_key_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            config_from_dict({"complexity": {"max_depth": 3}})
        assert exc_info.value.config_key == "complexity.max_depth"

    def test_non_mapping_section_rejected(self):
        with pytest.raises(ConfigurationError):
            config_from_dict({"planner": [1, 2]})


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "nope.yaml") == EngineConfig()

    def test_reads_yaml(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("complexity:\n  min_lines: 3\nplanner:\n  currency: EUR\n")
        cfg = load_config(path)
        assert cfg.complexity.min_lines == 3
        assert cfg.planner.currency == "EUR"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("")
        assert load_config(path) == EngineConfig()

    def test_malformed_yaml_raises(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("planner: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_shipped_reference_config_matches_defaults(self):
        assert DEFAULT_CONFIG_PATH.exists()
        assert load_config(DEFAULT_CONFIG_PATH) == EngineConfig()
