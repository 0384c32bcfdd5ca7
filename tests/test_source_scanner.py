#!/usr/bin/env python3
# CUI // SP-CTI
"""Tests for legacylift.analysis.source_scanner."""

import os

import pytest

from conftest import FakeExternalTool, write_tree
from legacylift.analysis.source_scanner import count_imports, scan_project
from legacylift.config import ScannerConfig


class TestCountImports:
    def test_python_imports(self):
        text = "import os\nfrom pathlib import Path\nx = 1\n"
        assert count_imports(text) == 2

    def test_js_require_and_import(self):
        text = "const a = require('a');\nimport b from 'b';\nlet c = 3;\n"
        assert count_imports(text) == 2

    def test_c_include_and_csharp_using(self):
        assert count_imports("#include <stdio.h>\nusing System.Text;\n") == 2

    def test_no_imports(self):
        assert count_imports("x = 1\n") == 0


class TestScanProject:
    def test_classifies_and_counts(self, js_project):
        scan = scan_project(js_project)
        paths = [f.path for f in scan.files]
        assert "src/billing.js" in paths
        assert all(f.language == "javascript" for f in scan.files)
        assert scan.total_lines == sum(f.line_count for f in scan.files)

    def test_excluded_dirs_pruned(self, js_project):
        scan = scan_project(js_project)
        assert not any(p.path.startswith("node_modules") for p in scan.files)

    def test_non_source_files_ignored(self, js_project):
        scan = scan_project(js_project)
        assert "package.json" not in [f.path for f in scan.files]

    def test_stable_order(self, js_project):
        first = [f.path for f in scan_project(js_project).files]
        second = [f.path for f in scan_project(js_project).files]
        assert first == second == sorted(first)

    def test_coupling_is_import_count(self, js_project):
        scan = scan_project(js_project)
        index = next(f for f in scan.files if f.path == "src/index.js")
        assert index.import_count == 2

    def test_churn_from_external_tool(self, js_project):
        tool = FakeExternalTool(churn={"billing.js": 25})
        scan = scan_project(js_project, external_tool=tool)
        billing = next(f for f in scan.files if f.path == "src/billing.js")
        assert billing.churn == 25
        assert len(tool.commit_queries) == len(scan.files)

    def test_churn_collection_can_be_disabled(self, js_project):
        tool = FakeExternalTool(churn={"billing.js": 25})
        scan = scan_project(js_project, ScannerConfig(collect_churn=False), tool)
        assert all(f.churn == 0 for f in scan.files)
        assert tool.commit_queries == []

    def test_missing_root_gives_empty_result(self, tmp_path):
        scan = scan_project(tmp_path / "does-not-exist")
        assert scan.files == ()
        assert scan.total_lines == 0

    def test_empty_project(self, empty_project):
        scan = scan_project(empty_project)
        assert scan.files == ()
        assert scan.truncated is False

    def test_undecodable_file_skipped(self, tmp_path):
        write_tree(tmp_path, {"good.py": "x = 1\n"})
        (tmp_path / "bad.py").write_bytes(b"\xff\xfe\x00bad")
        scan = scan_project(tmp_path)
        assert [f.path for f in scan.files] == ["good.py"]
        assert scan.skipped == 1

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0,
                        reason="permission bits not enforced")
    def test_unreadable_file_skipped(self, tmp_path):
        write_tree(tmp_path, {"good.py": "x = 1\n", "secret.py": "y = 2\n"})
        (tmp_path / "secret.py").chmod(0)
        try:
            scan = scan_project(tmp_path)
        finally:
            (tmp_path / "secret.py").chmod(0o644)
        assert [f.path for f in scan.files] == ["good.py"]
        assert scan.skipped == 1

    def test_max_files_cap_truncates(self, tmp_path):
        write_tree(tmp_path, {f"m{i}.py": "x = 1\n" for i in range(5)})
        scan = scan_project(tmp_path, ScannerConfig(max_files=3))
        assert len(scan.files) == 3
        assert scan.truncated is True

    def test_content_not_serialized(self, js_project):
        record = scan_project(js_project).files[0]
        assert "content" not in record.to_dict()
        assert record.content

    def test_result_is_immutable(self, js_project):
        scan = scan_project(js_project)
        with pytest.raises(AttributeError):
            scan.total_lines = 0
