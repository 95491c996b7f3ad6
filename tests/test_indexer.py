"""Tests for repodigest.indexer."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

import pytest

from repodigest.analyzers.patterns import PatternSearchAdapter
from repodigest.indexer import IndexAssembler, build_repository_index
from repodigest.models import CodeInsights, IndexerConfig
from tests._fixtures.repo_builder import RepoBuilder, missing_tool_runner


def _fixed_assembler() -> IndexAssembler:
    return IndexAssembler(
        pattern_search=PatternSearchAdapter(runner=missing_tool_runner),
        clock=lambda: datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC),
    )


def _write_web_app(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "package.json": json.dumps(
                {"name": "demo", "dependencies": {"express": "^4.18.2"}}
            ),
            "README.md": "# Demo\n\nA tiny service.\n",
            "src/server.ts": """
                import express from 'express';
                export function startServer() {
                  return express();
                }
            """,
            "src/routes.ts": "export const routes = [];\n",
        }
    )


def test_scenario_manifest_source_and_readme(repo_builder: RepoBuilder) -> None:
    _write_web_app(repo_builder)

    index = repo_builder.index()

    stack = {tech.name: tech for tech in index.detected_stack}
    assert "Node.js" in stack
    assert stack["Express"].version == "4.18.2"
    assert [special.type for special in index.special_files] == ["readme"]

    metadata = {meta.path: meta for meta in index.file_metadata}
    assert "startServer" in metadata["src/server.ts"].exports
    assert metadata["src/server.ts"].dependencies == ("express",)
    assert metadata["package.json"].type == "config"
    assert index.total_files == len(index.file_metadata) == 4
    assert set(index.important_paths) == {"README.md", "package.json", "src/server.ts", "src/routes.ts"}
    assert index.workspace_packages[0].name == "demo"


def test_file_cap_stops_enumeration_with_single_warning(
    repo_builder: RepoBuilder, caplog: pytest.LogCaptureFixture
) -> None:
    repo_builder.write({f"src/part{index // 50}/file{index:03d}.ts": "export const x = 1;\n" for index in range(300)})

    with caplog.at_level(logging.WARNING, logger="repodigest"):
        index = repo_builder.index(max_files=100)

    assert index.total_files == 100
    assert len(index.file_metadata) == 100
    cap_records = [record for record in caplog.records if "max files" in record.getMessage()]
    assert len(cap_records) == 1
    assert index.warnings == ("Reached max files limit (100), stopping scan",)


def test_no_warning_when_tree_fits_the_cap(repo_builder: RepoBuilder) -> None:
    repo_builder.write({f"lib/file{index}.ts": "export {};\n" for index in range(5)})

    index = repo_builder.index(max_files=5)

    assert index.total_files == 5
    assert index.warnings == ()


def test_reindexing_is_idempotent(repo_builder: RepoBuilder) -> None:
    _write_web_app(repo_builder)
    repo_builder.write({"src/util/format.ts": "export function formatDate() {}\n", "src/util/parse.ts": "export {};\n"})
    assembler = _fixed_assembler()

    first = repo_builder.index(assembler)
    second = repo_builder.index(assembler)

    assert first.detected_stack == second.detected_stack
    assert first.file_metadata == second.file_metadata
    assert first.modules == second.modules
    assert first.to_dict() == second.to_dict()
    assert first.indexed_at == "2024-01-02T03:04:05.000Z"


def test_default_and_caller_ignores(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "src/app.ts": "export const app = 1;\n",
            "node_modules/react/index.js": "module.exports = {};\n",
            "packages/web/node_modules/left-pad/index.js": "module.exports = {};\n",
            "dist/app.js": "console.log(1);\n",
            "debug.log": "noise\n",
            "fixtures/data.json": "{}\n",
        }
    )

    index = repo_builder.index(ignore_patterns=("fixtures",))
    paths = {meta.path for meta in index.file_metadata}

    assert paths == {"src/app.ts"}
    assert "node_modules" in index.applied_ignore_patterns
    assert index.applied_ignore_patterns[-1] == "fixtures"


def test_theme_template_files_survive_vendor_ignores(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "style.css": "/*\nTheme Name: Aurora\n*/\n",
            "functions.php": "<?php\nadd_action('init', 'aurora_setup');\n",
            "single.php": "<?php get_header(); ?>\n",
            "inc/template-tags.php": "<?php\nfunction aurora_posted_on() {}\n",
            "vendor/autoload.php": "<?php\n",
            ".cache/compiled.php": "<?php\n",
        }
    )

    index = repo_builder.index()
    paths = {meta.path for meta in index.file_metadata}

    assert any(tech.name == "WordPress Theme" and tech.confidence == 1.0 for tech in index.detected_stack)
    assert {"style.css", "functions.php", "single.php", "inc/template-tags.php"} <= paths
    assert "vendor/autoload.php" not in paths
    assert ".cache/compiled.php" not in paths
    functions = next(meta for meta in index.file_metadata if meta.path == "functions.php")
    assert functions.importance == 1.0
    assert "init" in functions.keywords


def test_tests_are_skipped_unless_requested(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "src/app.ts": "export const app = 1;\n",
            "src/app.test.ts": "test('works', () => {});\n",
            "tests/test_app.py": "def test_ok():\n    assert True\n",
        }
    )

    default_paths = {meta.path for meta in repo_builder.index().file_metadata}
    with_tests = repo_builder.index(include_tests=True)

    assert default_paths == {"src/app.ts"}
    assert {meta.path for meta in with_tests.file_metadata} == {
        "src/app.ts",
        "src/app.test.ts",
        "tests/test_app.py",
    }
    assert {meta.type for meta in with_tests.file_metadata} == {"source", "test"}


def test_size_ceilings(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "data/huge.json": "x" * (600 * 1024),
            "src/large.ts": "export function generated() {}\n" + "// padding\n" * 6000,
            "src/small.ts": "export function tiny() {}\n",
        }
    )

    metadata = {meta.path: meta for meta in repo_builder.index().file_metadata}

    assert "data/huge.json" not in metadata
    assert metadata["src/large.ts"].keywords == ()
    assert metadata["src/large.ts"].exports is None
    assert metadata["src/small.ts"].exports == ("tiny",)


def test_unreadable_content_keeps_file_without_keywords(repo_builder: RepoBuilder) -> None:
    target = repo_builder.path() / "src" / "blob.ts"
    target.parent.mkdir(parents=True)
    target.write_bytes(b"\xff\xfe\x00export const broken = 1;")

    index = repo_builder.index()

    (meta,) = index.file_metadata
    assert meta.path == "src/blob.ts"
    assert meta.keywords == ()
    assert meta.exports is None


def test_gitignore_is_respected_and_reported(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            ".gitignore": "secret/\n",
            "secret/key.txt": "hunter2\n",
            "src/app.ts": "export const app = 1;\n",
        }
    )

    honoured = repo_builder.index()
    ignored = repo_builder.index(respect_gitignore=False)

    assert "secret/key.txt" not in {meta.path for meta in honoured.file_metadata}
    assert "secret/" in honoured.applied_ignore_patterns
    assert "secret/key.txt" in {meta.path for meta in ignored.file_metadata}
    assert "secret/" not in ignored.applied_ignore_patterns


def test_nested_gitignore_applies_to_its_own_subtree(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            ".gitignore": "*.csv\n",
            "generated/root.ts": "export const root = 1;\n",
            "packages/web/.gitignore": "generated/\n!keep.csv\n",
            "packages/web/generated/big.ts": "export const big = 1;\n",
            "packages/web/index.ts": "export const web = 1;\n",
            "packages/web/debug.csv": "noise\n",
            "packages/web/keep.csv": "kept\n",
        }
    )

    index = repo_builder.index()
    paths = {meta.path for meta in index.file_metadata}

    assert "packages/web/generated/big.ts" not in paths
    assert "packages/web/debug.csv" not in paths
    assert {"generated/root.ts", "packages/web/index.ts", "packages/web/keep.csv"} <= paths
    assert "/packages/web/**/generated/" in index.applied_ignore_patterns
    assert "!/packages/web/**/keep.csv" in index.applied_ignore_patterns


def test_missing_search_tool_yields_empty_insights(repo_builder: RepoBuilder) -> None:
    _write_web_app(repo_builder)
    assembler = IndexAssembler(
        pattern_search=PatternSearchAdapter(binary="repodigest-no-such-search-tool")
    )

    index = repo_builder.index(assembler)

    assert index.code_insights == CodeInsights.empty()
    assert index.to_dict()["codeInsights"] == {"entryPoints": [], "patterns": [], "configPatterns": []}


def test_invariants_hold_for_mixed_tree(repo_builder: RepoBuilder) -> None:
    _write_web_app(repo_builder)
    repo_builder.write(
        {
            "src/components/Button.tsx": "export const Button = () => null;\n",
            "src/components/Card.tsx": "export const Card = () => null;\n",
            "docs/intro.md": "# Intro\n",
            "docs/usage.md": "# Usage\n",
            "scripts/release.sh": "echo release\n",
        }
    )

    index = repo_builder.index(max_files=50)
    paths = {meta.path for meta in index.file_metadata}

    assert index.total_files == len(index.file_metadata) <= 50
    assert all(0.0 <= tech.confidence <= 1.0 for tech in index.detected_stack)
    assert all(0.0 <= meta.importance <= 1.0 for meta in index.file_metadata)
    assert all(0.0 <= module.importance <= 1.0 for module in index.modules)
    assert all(path in paths for module in index.modules for path in module.files)
    importances = [module.importance for module in index.modules]
    assert importances == sorted(importances, reverse=True)
    purposes = {module.path: module.purpose for module in index.modules}
    assert purposes["src/components"] == "UI components"
    assert purposes["docs"] == "Documentation"


def test_build_repository_index_rejects_bad_targets(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        build_repository_index(IndexerConfig(target_dir=str(tmp_path / "missing")))

    target = tmp_path / "file.txt"
    target.write_text("x", encoding="utf-8")
    with pytest.raises(NotADirectoryError):
        build_repository_index(IndexerConfig(target_dir=str(target)))
