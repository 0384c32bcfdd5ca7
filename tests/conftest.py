#!/usr/bin/env python3
# CUI // SP-CTI
"""Shared pytest fixtures for the LegacyLift test suite.

Provides on-disk project trees built under tmp_path, a fake external tool
with scripted churn and cycles, and canned technology profiles.
"""

import json
import sys
import textwrap
from pathlib import Path

import pytest

# Ensure project root is on sys.path
BASE_DIR = Path(__file__).resolve().parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from legacylift.analysis.external_tools import ExternalTool  # noqa: E402


class FakeExternalTool(ExternalTool):
    """Scripted ExternalTool: churn by file name, fixed cycle list."""

    def __init__(self, churn=None, cycles=None):
        self.churn = dict(churn or {})
        self.cycles = [list(c) for c in (cycles or [])]
        self.commit_queries = []
        self.cycle_queries = []

    def run_cycle_detector(self, path):
        self.cycle_queries.append(path)
        return [list(c) for c in self.cycles]

    def count_commits(self, path):
        self.commit_queries.append(path)
        return self.churn.get(Path(path).name, 0)


def write_tree(root, files):
    """Write {relative_path: text} under root and return root."""
    for rel, text in files.items():
        target = Path(root) / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(textwrap.dedent(text), encoding="utf-8")
    return Path(root)


def branchy_js(branches, name="process"):
    """JavaScript function with exactly ``branches`` if-statements."""
    body = "\n".join(f"  if (x === {i}) {{ y = {i}; }}" for i in range(branches))
    return f"function {name}(x) {{\n  let y = 0;\n{body}\n  return y;\n}}\n"


@pytest.fixture
def fake_tool():
    return FakeExternalTool()


@pytest.fixture
def empty_project(tmp_path):
    root = tmp_path / "empty"
    root.mkdir()
    return root


@pytest.fixture
def js_project(tmp_path):
    """Small JavaScript project with one hotspot, one orphan and a deprecation."""
    root = tmp_path / "app"
    write_tree(root, {
        "src/index.js": """\
            const billing = require('./billing');
            const util = require('./util');
            billing.charge(util.format(1));
        """,
        "src/billing.js": branchy_js(35, "charge"),
        "src/util.js": """\
            export function format(x) {
              return x.substr(0, 2);
            }
        """,
        "src/orphan.js": """\
            export function neverCalled() {
              return 42;
            }
        """,
        "src/billing.test.js": """\
            const billing = require('./billing');
            test('charge', () => billing.charge(1));
        """,
        "node_modules/lib/index.js": "module.exports = 1;\n",
        "package.json": json.dumps({
            "dependencies": {"express": "^4.18.2", "left-pad": "~1.3.0"},
            "devDependencies": {"jest": "29.7.0"},
        }),
    })
    return root


@pytest.fixture
def monolith_profile():
    return {
        "language": "java",
        "runtime": "jvm8",
        "framework": "struts",
        "database": "oracle",
        "build_system": "ant",
        "test_framework": "junit4",
        "deployment_model": "vm",
        "architecture": "monolith",
    }


@pytest.fixture
def microservices_profile():
    return {
        "language": "java",
        "runtime": "jvm21",
        "framework": "spring-boot",
        "database": "postgresql",
        "build_system": "gradle",
        "test_framework": "junit5",
        "deployment_model": "kubernetes",
        "architecture": "microservices",
    }
