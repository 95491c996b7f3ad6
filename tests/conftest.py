from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

import pytest

from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable repo builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def rg_match() -> Callable[..., str]:
    """Return a factory for one ``rg --json`` match record."""

    def _factory(path: str, line_number: int, line: str, match: str) -> str:
        payload = {
            "type": "match",
            "data": {
                "path": {"text": path},
                "lines": {"text": f"{line}\n"},
                "line_number": line_number,
                "absolute_offset": 0,
                "submatches": [{"match": {"text": match}, "start": 0, "end": len(match)}],
            },
        }
        return json.dumps(payload)

    return _factory
