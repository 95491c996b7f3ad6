"""Tests for repodigest.analyzers.special_files."""

from __future__ import annotations

from pathlib import Path

from repodigest.analyzers.special_files import SpecialFileScanner
from repodigest.content import InMemoryContentProvider


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_scan_reports_rules_files_and_readme(tmp_path: Path) -> None:
    _write(tmp_path / "CLAUDE.md", "Use pnpm.\n")
    _write(tmp_path / ".cursorrules", "Prefer small diffs.\n")
    _write(tmp_path / ".github" / "copilot-instructions.md", "Write tests.\n")
    _write(tmp_path / "README.md", "# Demo\n")
    _write(tmp_path / ".cursor" / "rules" / "style.mdc", "No default exports.\n")
    _write(tmp_path / ".cursor" / "rules" / "api.mdc", "REST only.\n")

    found = SpecialFileScanner().scan(tmp_path)

    assert [(item.path, item.type) for item in found] == [
        ("CLAUDE.md", "claude-rules"),
        (".cursorrules", "cursor-rules"),
        (".github/copilot-instructions.md", "copilot-instructions"),
        ("README.md", "readme"),
        (".cursor/rules/api.mdc", "cursor-rules"),
        (".cursor/rules/style.mdc", "cursor-rules"),
    ]
    assert found[3].content == "# Demo\n"


def test_single_readme_reported_once(tmp_path: Path) -> None:
    _write(tmp_path / "README.md", "# Only one\n")

    found = SpecialFileScanner().scan(tmp_path)

    assert [item.type for item in found].count("readme") == 1


def test_readme_spellings_with_same_content_are_deduplicated() -> None:
    provider = InMemoryContentProvider({"README.md": "# Same\n", "readme.md": "# Same\n"})

    found = SpecialFileScanner(content=provider).scan(".")

    assert [item.path for item in found] == ["README.md"]


def test_oversized_unreadable_and_empty_files_are_skipped() -> None:
    provider = InMemoryContentProvider(
        {"CLAUDE.md": "x" * 200, "README.md": "", ".cursorrules": "ok"},
        unreadable=(".github/copilot-instructions.md",),
    )

    found = SpecialFileScanner(content=provider, max_size=100).scan(".")

    assert [item.path for item in found] == [".cursorrules"]


def test_missing_files_yield_empty_result(tmp_path: Path) -> None:
    assert SpecialFileScanner().scan(tmp_path) == []
