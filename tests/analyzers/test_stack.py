"""Tests for repodigest.analyzers.stack."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from repodigest.analyzers.stack import DetectionRule, StackDetector, strip_version_range
from repodigest.content import InMemoryContentProvider
from repodigest.models import StackTechnology


def _detect(files: dict[str, str], tmp_path: Path, **kwargs) -> list[StackTechnology]:
    provider = InMemoryContentProvider(files, unreadable=kwargs.pop("unreadable", ()))
    return StackDetector(content=provider, **kwargs).detect(tmp_path)


def test_package_json_adds_runtime_version_and_frameworks(tmp_path: Path) -> None:
    manifest = {
        "name": "web",
        "engines": {"node": ">=18"},
        "dependencies": {"react": "^18.2.0"},
        "devDependencies": {"express": "~4.18.2"},
    }
    stack = _detect({"package.json": json.dumps(manifest), "tsconfig.json": "{}"}, tmp_path)

    assert [tech.name for tech in stack] == ["Node.js", "TypeScript", "React", "Express"]
    assert stack[0].version == ">=18"
    assert stack[2].version == "18.2.0"
    assert stack[2].category == "framework"
    assert stack[3].version == "4.18.2"


def test_malformed_package_json_degrades_silently(tmp_path: Path) -> None:
    stack = _detect({"package.json": "{not json"}, tmp_path)

    assert len(stack) == 1
    assert stack[0].name == "Node.js"
    assert stack[0].version is None
    assert stack[0].confidence == 1.0


def test_keyword_rules_downgrade_confidence(tmp_path: Path) -> None:
    themed = _detect({"style.css": "/*\nTheme Name: Aurora\n*/"}, tmp_path)
    plain = _detect({"style.css": "body { color: red; }"}, tmp_path)
    unreadable = _detect({}, tmp_path, unreadable=("style.css",))

    assert [(t.name, t.confidence) for t in themed] == [("WordPress Theme", 1.0)]
    assert [(t.name, t.confidence) for t in plain] == [("WordPress Theme", 0.6)]
    assert [(t.name, t.confidence) for t in unreadable] == [("WordPress Theme", 0.7)]


def test_flask_detection_requires_import(tmp_path: Path) -> None:
    stack = _detect({"app.py": "from flask import Flask\napp = Flask(__name__)\n"}, tmp_path)

    assert [(t.name, t.confidence) for t in stack] == [("Flask", 1.0)]


def test_duplicate_names_are_not_merged(tmp_path: Path) -> None:
    stack = _detect({"go.mod": "module x\n", "go.sum": ""}, tmp_path)

    assert [tech.name for tech in stack] == ["Go", "Go"]


def test_pyproject_adds_python_version_and_frameworks(tmp_path: Path) -> None:
    pyproject = """
[project]
name = "svc"
requires-python = ">=3.11"
dependencies = ["fastapi>=0.110", "django[argon2]==5.0", "requests"]
"""
    stack = _detect({"pyproject.toml": pyproject}, tmp_path)

    assert [tech.name for tech in stack] == ["Python", "FastAPI", "Django"]
    assert stack[0].version == ">=3.11"
    assert stack[1].version == "0.110"
    assert stack[2].version == "5.0"


def test_invalid_pyproject_keeps_rule_results(tmp_path: Path) -> None:
    stack = _detect({"pyproject.toml": "[project\nname ="}, tmp_path)

    assert [tech.name for tech in stack] == ["Python"]
    assert stack[0].version is None


def test_substitute_rule_set(tmp_path: Path) -> None:
    rules = [DetectionRule(files=("Makefile",), name="Make", category="tool")]
    stack = _detect({"Makefile": "all:\n", "package.json": "{}"}, tmp_path, rules=rules)

    assert [tech.name for tech in stack] == ["Make"]


def test_custom_detectors_append_results_and_skip_unknown(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    seen: list[Path] = []

    def terraform(root: Path) -> list[StackTechnology]:
        seen.append(root)
        return [StackTechnology(name="Terraform", category="tool")]

    detector = StackDetector(
        content=InMemoryContentProvider({"Dockerfile": "FROM alpine\n"}),
        plugins={"terraform": terraform},
    )
    with caplog.at_level(logging.WARNING, logger="repodigest"):
        stack = detector.detect(tmp_path, ["terraform", "not-installed"])

    assert [tech.name for tech in stack] == ["Docker", "Terraform"]
    assert seen == [tmp_path]
    assert "not-installed" in caplog.text


def test_failing_custom_detector_is_logged_and_skipped(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    def broken(root: Path) -> list[StackTechnology]:
        raise RuntimeError("cannot read terraform state")

    detector = StackDetector(
        content=InMemoryContentProvider({"Dockerfile": "FROM alpine\n"}),
        plugins={"broken": broken},
    )
    with caplog.at_level(logging.WARNING, logger="repodigest"):
        stack = detector.detect(tmp_path, ["broken"])

    assert [tech.name for tech in stack] == ["Docker"]
    failures = [record for record in caplog.records if record.levelno == logging.WARNING]
    assert any("broken" in record.getMessage() for record in failures)
    assert "cannot read terraform state" in caplog.text


def test_detect_reads_from_disk_by_default(tmp_path: Path) -> None:
    (tmp_path / "Cargo.toml").write_text("[package]\nname = 'x'\n", encoding="utf-8")

    stack = StackDetector().detect(tmp_path)

    assert [tech.name for tech in stack] == ["Rust"]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("^1.2.3", "1.2.3"), ("~0.4.0", "0.4.0"), (">=2.0.0", "2.0.0"), ("latest", "latest"), (None, None)],
)
def test_strip_version_range(raw, expected) -> None:
    assert strip_version_range(raw) == expected
