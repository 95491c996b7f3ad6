"""Structural code pattern discovery backed by ripgrep."""

from __future__ import annotations

import json
import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from ..logging import get_logger
from ..models import CodeInsights, PatternMatch, PatternSearchResult

Runner = Callable[[Sequence[str], Path], subprocess.CompletedProcess]

logger = get_logger("patterns")


@dataclass(frozen=True)
class PatternSearch:
    """One scoped search: regex, human description, file globs and per-file cap."""

    pattern: str
    description: str
    globs: tuple[str, ...] = ()
    max_count: Optional[int] = None


def _search(pattern: str, description: str, globs: Sequence[str], max_count: int) -> PatternSearch:
    return PatternSearch(pattern=pattern, description=description, globs=tuple(globs), max_count=max_count)


_JS = ("*.ts", "*.js")

DEFAULT_PATTERN_SEARCHES: tuple[PatternSearch, ...] = (
    # CLI commands
    _search(r"\.(command|subcommand)\s*\(", "CLI command definitions", _JS, 50),
    _search(r"program\.(command|option)", "Commander.js CLI commands", _JS, 50),
    _search(r"@\w+\.(command|group)\s*\(", "Python CLI commands", ["*.py"], 50),
    # HTTP routes
    _search(r"\.(get|post|put|patch|delete)\s*\(['\"]", "HTTP route definitions", _JS, 100),
    _search(r"app\.(get|post|put|patch|delete|use)\s*\(", "Express.js routes", _JS, 100),
    _search(r"router\.(get|post|put|patch|delete)", "Router endpoints", _JS, 100),
    _search(r"@\w+\.(get|post|put|patch|delete|route)\s*\(", "Python route decorators", ["*.py"], 100),
    # UI components
    _search(
        r"export\s+(?:default\s+)?(?:function|const)\s+\w+.*(?:React\.FC|FunctionComponent|Component)",
        "React components",
        ["*.tsx", "*.jsx"],
        100,
    ),
    _search(r"export\s+default\s+defineComponent", "Vue components", ["*.vue"], 100),
    # Persistence models
    _search(r"@Entity|@Model|model\s*\(", "Database models/entities", _JS, 50),
    _search(r"Schema\s*\(|new\s+Schema", "Database schemas", _JS, 50),
    _search(
        r"class\s+\w+\((?:[\w.]*BaseModel|Base|db\.Model|models\.Model)\)",
        "Python data models",
        ["*.py"],
        50,
    ),
    # Top-level exports
    _search(
        r"export\s+(?:default\s+)?(?:class|function|const|interface|type)\s+\w+",
        "Main exports",
        _JS,
        200,
    ),
    # Configuration definitions
    _search(
        r"export\s+default\s+defineConfig",
        "Configuration definitions",
        ["*.config.ts", "*.config.js"],
        30,
    ),
    # Tests
    _search(
        r"(?:describe|test|it)\s*\(['\"]",
        "Test suites",
        ["*.test.ts", "*.test.js", "*.spec.ts", "*.spec.js"],
        50,
    ),
    _search(r"^\s*(?:async\s+)?def\s+test_\w+", "Python test functions", ["test_*.py", "*_test.py"], 50),
    # Schema definitions
    _search(
        r"type\s+(?:Query|Mutation|Subscription)\s*\{",
        "GraphQL schemas",
        ["*.graphql", "*.gql"],
        30,
    ),
    # Platform hooks
    _search(r"add_(?:action|filter)\s*\(['\"]", "WordPress hooks", ["*.php"], 50),
    # Error handling
    _search(r"class\s+\w+Error\s+extends", "Custom error classes", _JS, 30),
    _search(r"class\s+\w+(?:Error|Exception)\s*\(", "Python exception classes", ["*.py"], 30),
    # Middleware
    _search(r"(?:export\s+)?(?:const|function)\s+\w+Middleware", "Middleware functions", _JS, 50),
)

ENTRY_POINT_SEARCHES: tuple[PatternSearch, ...] = (
    _search(r"export\s+default\s+(?:class|function)", "Default exports", _JS, 20),
    _search(r"if\s*\(\s*import\.meta\.url\s*===", "ES module main guard", _JS, 20),
    _search(r"if\s*\(\s*require\.main\s*===\s*module", "CommonJS main guard", _JS, 20),
    _search(r"function\s+main\s*\(", "main functions", _JS, 20),
    _search(r"async\s+function\s+main\s*\(", "async main functions", _JS, 20),
    _search(r"if\s+__name__\s*==\s*['\"]__main__['\"]", "Python main guard", ["*.py"], 20),
)

CONFIG_PATTERN_SEARCHES: tuple[PatternSearch, ...] = (
    _search(
        r"DATABASE_URL|DB_HOST|DB_CONNECTION",
        "Database configuration",
        ["*.env*", "*.config.*"],
        10,
    ),
    _search(
        r"API_KEY|SECRET|TOKEN|AUTH",
        "Authentication/API configuration",
        ["*.env*", "*.config.*"],
        10,
    ),
    _search(r"PORT|HOST|BASE_URL", "Server configuration", ["*.env*", "*.config.*"], 10),
)

DEFAULT_EXCLUDE_GLOBS: tuple[str, ...] = (
    ".git",
    "node_modules",
    "dist",
    "build",
    "coverage",
    ".next",
)

DEFAULT_TIMEOUT = 60.0


def _default_runner(args: Sequence[str], cwd: Path) -> subprocess.CompletedProcess:
    return subprocess.run(
        list(args),
        cwd=str(cwd),
        check=False,
        text=True,
        capture_output=True,
        timeout=DEFAULT_TIMEOUT,
    )


def parse_matches(stdout: str) -> List[PatternMatch]:
    """Parse ``rg --json`` output, keeping only ``match`` records."""
    matches: List[PatternMatch] = []
    for raw in stdout.splitlines():
        if not raw.strip():
            continue
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            continue
        if not isinstance(payload, dict) or payload.get("type") != "match":
            continue
        data = payload.get("data") or {}
        path = (data.get("path") or {}).get("text")
        line_number = data.get("line_number")
        line = (data.get("lines") or {}).get("text")
        if not isinstance(path, str) or not isinstance(line, str):
            continue
        submatches = data.get("submatches") or []
        matched = ""
        if submatches and isinstance(submatches[0], dict):
            text = (submatches[0].get("match") or {}).get("text")
            matched = text if isinstance(text, str) else ""
        matches.append(
            PatternMatch(
                path=path,
                line_number=line_number if isinstance(line_number, int) else 0,
                line=line.strip(),
                match=matched,
            )
        )
    return matches


class PatternSearchAdapter:
    """Runs a fixed battery of ripgrep searches with per-search failure isolation."""

    def __init__(
        self,
        searches: Sequence[PatternSearch] = DEFAULT_PATTERN_SEARCHES,
        *,
        entry_point_searches: Sequence[PatternSearch] = ENTRY_POINT_SEARCHES,
        config_searches: Sequence[PatternSearch] = CONFIG_PATTERN_SEARCHES,
        binary: str = "rg",
        runner: Runner | None = None,
        max_workers: int = 8,
        exclude_globs: Sequence[str] = DEFAULT_EXCLUDE_GLOBS,
        case_sensitive: bool = False,
    ) -> None:
        self.searches = tuple(searches)
        self.entry_point_searches = tuple(entry_point_searches)
        self.config_searches = tuple(config_searches)
        self.binary = binary
        self._runner = runner or _default_runner
        self.max_workers = max(1, max_workers)
        self.exclude_globs = tuple(exclude_globs)
        self.case_sensitive = case_sensitive

    def build_command(
        self, search: PatternSearch, extra_excludes: Sequence[str] = ()
    ) -> List[str]:
        args = [self.binary, "--json", "--hidden"]
        for glob in (*self.exclude_globs, *extra_excludes):
            args.append(f"--glob=!{glob}")
        for glob in search.globs:
            args.append(f"--glob={glob}")
        if search.max_count:
            args.append(f"--max-count={search.max_count}")
        if not self.case_sensitive:
            args.append("-i")
        args.extend(["--", search.pattern])
        return args

    def search(
        self,
        root: Path | str,
        search: PatternSearch,
        extra_excludes: Sequence[str] = (),
    ) -> List[PatternMatch]:
        """Run one search; any failure is reported as no matches."""
        root_path = Path(root)
        if not root_path.is_dir():
            return []
        args = self.build_command(search, extra_excludes)
        try:
            completed = self._runner(args, root_path)
        except FileNotFoundError:
            logger.debug("%s is not installed; skipping '%s'", self.binary, search.description)
            return []
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug("Search '%s' failed: %s", search.description, exc)
            return []
        if completed.returncode != 0:
            return []
        return parse_matches(completed.stdout or "")

    def discover_patterns(
        self, root: Path | str, extra_excludes: Sequence[str] = ()
    ) -> List[PatternSearchResult]:
        return self._collect(self._run_all(root, self.searches, extra_excludes), self.searches)

    def find_entry_points(
        self, root: Path | str, extra_excludes: Sequence[str] = ()
    ) -> List[str]:
        outcomes = self._run_all(root, self.entry_point_searches, extra_excludes)
        return self._entry_paths(outcomes)

    def find_configuration_patterns(
        self, root: Path | str, extra_excludes: Sequence[str] = ()
    ) -> List[PatternSearchResult]:
        outcomes = self._run_all(root, self.config_searches, extra_excludes)
        return self._collect(outcomes, self.config_searches)

    def discover(self, root: Path | str, extra_excludes: Sequence[str] = ()) -> CodeInsights:
        """Fan out every search at once and fan the results back in by group."""
        everything = (*self.entry_point_searches, *self.searches, *self.config_searches)
        outcomes = self._run_all(root, everything, extra_excludes)

        first = len(self.entry_point_searches)
        second = first + len(self.searches)
        return CodeInsights(
            entry_points=tuple(self._entry_paths(outcomes[:first])),
            patterns=tuple(self._collect(outcomes[first:second], self.searches)),
            config_patterns=tuple(self._collect(outcomes[second:], self.config_searches)),
        )

    # ------------------------------------------------------------------
    # Internal helpers

    def _run_all(
        self,
        root: Path | str,
        searches: Sequence[PatternSearch],
        extra_excludes: Sequence[str],
    ) -> List[List[PatternMatch]]:
        if not searches:
            return []
        workers = min(self.max_workers, len(searches))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(self._isolated, root, search, extra_excludes)
                for search in searches
            ]
            return [future.result() for future in futures]

    def _isolated(
        self,
        root: Path | str,
        search: PatternSearch,
        extra_excludes: Sequence[str],
    ) -> List[PatternMatch]:
        try:
            return self.search(root, search, extra_excludes)
        except Exception as exc:  # pragma: no cover - defensive guard
            logger.debug("Search '%s' raised %s; treating as empty", search.description, exc)
            return []

    @staticmethod
    def _collect(
        outcomes: Sequence[List[PatternMatch]], searches: Sequence[PatternSearch]
    ) -> List[PatternSearchResult]:
        results: List[PatternSearchResult] = []
        for search, matches in zip(searches, outcomes):
            if not matches:
                continue
            results.append(
                PatternSearchResult(
                    pattern=search.pattern,
                    description=search.description,
                    matches=tuple(matches),
                )
            )
        return results

    @staticmethod
    def _entry_paths(outcomes: Sequence[List[PatternMatch]]) -> List[str]:
        seen: Dict[str, None] = {}
        for matches in outcomes:
            for match in matches:
                seen.setdefault(match.path, None)
        return list(seen)


__all__ = [
    "CONFIG_PATTERN_SEARCHES",
    "DEFAULT_EXCLUDE_GLOBS",
    "DEFAULT_PATTERN_SEARCHES",
    "ENTRY_POINT_SEARCHES",
    "PatternSearch",
    "PatternSearchAdapter",
    "parse_matches",
]
