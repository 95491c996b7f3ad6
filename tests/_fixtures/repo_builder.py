"""Helper utilities for constructing temporary repositories in tests."""

from __future__ import annotations

import subprocess
import textwrap
from pathlib import Path
from typing import Any, Mapping, Sequence

from repodigest.analyzers.patterns import PatternSearchAdapter
from repodigest.indexer import IndexAssembler
from repodigest.models import IndexerConfig, RepositoryIndex


def missing_tool_runner(args: Sequence[str], cwd: Path) -> subprocess.CompletedProcess:
    """Behave like a machine without ripgrep installed."""
    raise FileNotFoundError(args[0])


class RepoBuilder:
    """Utility for writing files into a throwaway repository and indexing it."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "repo"
        self.root.mkdir()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the repository."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def config(self, **overrides: Any) -> IndexerConfig:
        """Return an IndexerConfig targeting the repository."""
        return IndexerConfig(target_dir=str(self.root), **overrides)

    def index(
        self, assembler: IndexAssembler | None = None, **overrides: Any
    ) -> RepositoryIndex:
        """Build a fresh index; pattern search is offline unless an assembler is given."""
        if assembler is None:
            assembler = IndexAssembler(
                pattern_search=PatternSearchAdapter(runner=missing_tool_runner)
            )
        return assembler.build(self.config(**overrides))

    def path(self) -> Path:
        """Return the repository root path."""
        return self.root


__all__ = ["RepoBuilder", "missing_tool_runner"]
