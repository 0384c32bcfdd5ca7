#!/usr/bin/env python3
# CUI // SP-CTI
"""Tests for legacylift.analysis.dead_code_detector."""

import pytest

from conftest import write_tree
from legacylift.analysis.dead_code_detector import (
    detect_dead_code,
    find_exports,
    is_test_file,
)
from legacylift.analysis.source_scanner import scan_project
from legacylift.config import DeadCodeConfig
from legacylift.schemas.health import DeadCodeEntry


class TestIsTestFile:
    @pytest.mark.parametrize("path", [
        "tests/helpers.py", "src/__tests__/a.js", "test_api.py",
        "src/api_test.go", "src/api.test.js", "src/api.spec.ts", "src/ApiTest.java",
    ])
    def test_recognized(self, path):
        assert is_test_file(path) is True

    @pytest.mark.parametrize("path", ["src/latest.py", "src/contest.js", "src/attestation.py"])
    def test_not_test_files(self, path):
        assert is_test_file(path) is False


class TestFindExports:
    def test_js_exports(self):
        text = "export function a() {}\nexport default class B {}\nexport const c = 1;\nfunction d() {}\n"
        assert find_exports(text, "javascript") == ["a", "B", "c"]

    def test_python_public_top_level(self):
        text = "def run():\n    pass\n\ndef _private():\n    pass\n\nclass Worker:\n    def method(self):\n        pass\n"
        assert find_exports(text, "python") == ["run", "Worker"]

    def test_unknown_language_has_no_exports(self):
        assert find_exports("export function a() {}", "cobol") == []


class TestDeadCodeEntry:
    def test_high_confidence_requires_deprecation(self):
        with pytest.raises(ValueError):
            DeadCodeEntry("a.js", "x", "export", "unused-export", "high", "verify")

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            DeadCodeEntry("a.js", "x", "module", "unused-export", "low", "verify")


class TestDetectDeadCode:
    @pytest.fixture
    def project(self, tmp_path):
        return write_tree(tmp_path, {
            "index.js": """\
                import { used } from './lib';
                import { shared } from './shared';
                used(shared);
            """,
            "lib.js": """\
                export function used(x) { return x; }
                export function unusedHelper() { return 1; }
            """,
            "shared.js": "export const shared = 1;\n",
            "other.js": """\
                import { shared } from './shared';
                import { used } from './lib';
                export function otherMain() { return used(shared); }
            """,
            "legacy.js": """\
                // DEPRECATED: use lib.js
                export function oldThing() { return new Buffer(4); }
            """,
            "lib.test.js": "import { unusedHelper } from './lib';\n",
        })

    def test_unused_exports(self, project):
        report = detect_dead_code(scan_project(project))
        symbols = {(e.path, e.symbol) for e in report.unused_exports}
        assert ("lib.js", "unusedHelper") in symbols
        assert ("lib.js", "used") not in symbols
        assert all(e.kind == "export" and e.confidence == "medium" and e.removal_risk == "verify"
                   for e in report.unused_exports)

    def test_test_files_never_reported(self, project):
        report = detect_dead_code(scan_project(project))
        reported = {e.path for e in report.unused_exports + report.unreachable_files}
        assert "lib.test.js" not in reported

    def test_unreachable_files(self, project):
        report = detect_dead_code(scan_project(project))
        paths = {e.path for e in report.unreachable_files}
        assert "legacy.js" in paths
        assert "index.js" not in paths
        assert "lib.js" not in paths
        assert all(e.confidence == "low" and e.removal_risk == "risky" and e.kind == "file"
                   for e in report.unreachable_files)

    def test_deprecated_usages_are_high_confidence(self, project):
        report = detect_dead_code(scan_project(project))
        found = {(e.path, e.symbol) for e in report.deprecated_usages}
        assert ("legacy.js", "deprecated-comment") in found
        assert ("legacy.js", "node-buffer-constructor") in found
        assert all(e.confidence == "high" for e in report.deprecated_usages)
        comment = next(e for e in report.deprecated_usages if e.symbol == "deprecated-comment")
        assert comment.line == 1

    def test_only_deprecations_are_high_confidence(self, project):
        report = detect_dead_code(scan_project(project))
        for entry in report.unused_exports + report.unreachable_files:
            assert entry.confidence != "high"

    def test_dead_lines_and_score(self, project):
        scan = scan_project(project)
        report = detect_dead_code(scan)
        expected_lines = len(report.unused_exports) * 5 + len(report.unreachable_files) * 50
        assert report.total_dead_lines == expected_lines
        assert report.percentage_of_codebase == round(expected_lines / scan.total_lines * 100, 2)
        expected = max(0.0, 100 - 2 * report.percentage_of_codebase - len(report.deprecated_usages))
        assert report.dead_code_health_score == pytest.approx(expected, abs=0.05)

    def test_empty_project_is_clean(self, empty_project):
        report = detect_dead_code(scan_project(empty_project))
        assert report.total_dead_lines == 0
        assert report.percentage_of_codebase == 0.0
        assert report.dead_code_health_score == 100.0

    def test_sample_cap(self, tmp_path):
        write_tree(tmp_path, {f"m{i}.js": f"export function f{i}() {{}}\n" for i in range(6)})
        report = detect_dead_code(scan_project(tmp_path), DeadCodeConfig(deep_analysis_cap=2))
        assert {e.path for e in report.unused_exports} <= {"m0.js", "m1.js"}
