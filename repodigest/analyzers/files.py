"""Ignore matching, categorisation and importance scoring for repository files."""

from __future__ import annotations

import re
from dataclasses import dataclass
from fnmatch import fnmatchcase
from functools import lru_cache
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Mapping, Optional, Sequence

from .constants import (
    CONFIG_MARKERS,
    DEFAULT_IGNORE_PATTERNS,
    DOCUMENTATION_EXTENSIONS,
    ENTRY_FILENAMES,
    README_FILENAMES,
    SOURCE_EXTENSIONS,
    TEST_MARKERS,
    THEME_BONUS_FILENAMES,
    THEME_IGNORE_DIRS,
    THEME_KEEP_PATTERNS,
    THEME_STACK_NAMES,
)

_GLOB_CHARS = frozenset("*?[")


@dataclass(frozen=True)
class FilterContext:
    """Repository-wide facts that influence per-file filtering."""

    is_theme: bool = False

    @classmethod
    def from_stack(cls, names: Iterable[str]) -> "FilterContext":
        return cls(is_theme=any(name in THEME_STACK_NAMES for name in names))


@lru_cache(maxsize=512)
def _glob_to_regex(pattern: str) -> re.Pattern[str]:
    parts: List[str] = []
    index = 0
    while index < len(pattern):
        char = pattern[index]
        if pattern.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
            continue
        if pattern.startswith("**", index):
            parts.append(".*")
            index += 2
            continue
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        elif char == "[":
            close = _class_end(pattern, index)
            if close < 0:
                parts.append(re.escape(char))
            else:
                parts.append(_class_to_regex(pattern[index + 1 : close]))
                index = close + 1
                continue
        else:
            parts.append(re.escape(char))
        index += 1
    return re.compile("^" + "".join(parts) + "$")


def _class_end(pattern: str, start: int) -> int:
    # Same bracket rules as fnmatch: a leading "!" negates, a leading "]" is literal.
    position = start + 1
    if position < len(pattern) and pattern[position] == "!":
        position += 1
    if position < len(pattern) and pattern[position] == "]":
        position += 1
    return pattern.find("]", position)


def _class_to_regex(body: str) -> str:
    negate = body.startswith("!")
    if negate:
        body = body[1:]
    body = re.sub(r"([\\&~|\[^])", r"\\\1", body)
    return f"[^/{body}]" if negate else f"[{body}]"


def match_glob(rel_path: str, pattern: str) -> bool:
    """Return True when ``rel_path`` fully matches a ``*``/``**`` glob."""
    return _glob_to_regex(pattern).match(rel_path) is not None


def path_matches(rel_path: str, pattern: str) -> bool:
    """Match a repo-relative path against an ignore pattern.

    Plain patterns match the path itself or anything below it; slash-free
    patterns also match any path segment. Glob patterns containing a slash are
    matched against the whole path, slash-free globs against each segment.
    """
    pattern = pattern.strip().strip("/")
    if not pattern:
        return False
    segments = rel_path.split("/")
    if not _GLOB_CHARS.intersection(pattern):
        if rel_path == pattern or rel_path.startswith(f"{pattern}/"):
            return True
        if "/" not in pattern:
            return pattern in segments
        return f"/{pattern}/" in f"/{rel_path}/"
    if "/" in pattern:
        if match_glob(rel_path, pattern):
            return True
        # A directory glob also hides everything below it.
        return any(
            match_glob("/".join(segments[:depth]), pattern)
            for depth in range(1, len(segments))
        )
    return any(fnmatchcase(segment, pattern) for segment in segments)


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if match_glob(rel_path, self.pattern):
                return True
            if self.directory_only and rel_path.startswith(f"{self.pattern}/"):
                return True
            return False

        for part in rel_path.split("/"):
            if fnmatchcase(part, self.pattern):
                return True
        return False

    def to_pattern(self, base: str = "") -> str:
        """Render the rule back into ``.gitignore`` syntax.

        ``base`` is the repo-relative directory holding the ``.gitignore``;
        rules from nested files are rendered anchored at the repository root.
        """
        if base:
            joiner = "/" if self.anchored or self.has_slash else "/**/"
            text = f"/{base}{joiner}{self.pattern}"
        else:
            text = f"/{self.pattern}" if self.anchored else self.pattern
        if self.directory_only:
            text += "/"
        return f"!{text}" if self.negate else text


def build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    has_slash = "/" in pattern
    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash=has_slash,
    )


def parse_gitignore(path: Path) -> List[IgnoreRule]:
    """Parse ``.gitignore`` into rules; unreadable files yield no rules."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return []

    rules: List[IgnoreRule] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def gitignore_excludes(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    """Apply gitignore rules in order so later negations win."""
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def scoped_gitignore_excludes(
    rel_path: str, is_dir: bool, scopes: Mapping[str, Sequence[IgnoreRule]]
) -> bool:
    """Apply every ``.gitignore`` above ``rel_path``, outermost first.

    ``scopes`` maps a repo-relative directory (``""`` for the root) to the
    rules of the ``.gitignore`` it contains. Each file's rules see paths
    relative to its own directory, and deeper files override shallower ones.
    """
    ignored = False
    parts = rel_path.split("/")
    for depth in range(len(parts)):
        rules = scopes.get("/".join(parts[:depth]))
        if not rules:
            continue
        local_path = "/".join(parts[depth:])
        for rule in rules:
            if rule.matches(local_path, is_dir):
                ignored = not rule.negate
    return ignored


class FileClassifier:
    """Decides which files are indexed, what they are and how much they matter."""

    def __init__(
        self,
        ignore_patterns: Sequence[str] = DEFAULT_IGNORE_PATTERNS,
        *,
        theme_keep_patterns: Sequence[str] = THEME_KEEP_PATTERNS,
        theme_ignore_dirs: Sequence[str] = THEME_IGNORE_DIRS,
    ) -> None:
        self.ignore_patterns = tuple(ignore_patterns)
        self.theme_keep_patterns = tuple(theme_keep_patterns)
        self.theme_ignore_dirs = tuple(theme_ignore_dirs)

    # ------------------------------------------------------------------
    # Ignore handling

    def should_ignore(
        self,
        rel_path: str,
        context: FilterContext,
        custom_patterns: Sequence[str] = (),
        *,
        is_dir: bool = False,
    ) -> bool:
        if context.is_theme:
            if not is_dir and self.is_theme_file(rel_path):
                return False
            if any(path_matches(rel_path, name) for name in self.theme_ignore_dirs):
                return True

        for pattern in (*self.ignore_patterns, *custom_patterns):
            if path_matches(rel_path, pattern):
                return True
        return False

    def is_theme_file(self, rel_path: str) -> bool:
        return any(match_glob(rel_path, pattern) for pattern in self.theme_keep_patterns)

    def applied_patterns(
        self, context: FilterContext, custom_patterns: Sequence[str] = ()
    ) -> List[str]:
        patterns = list(self.ignore_patterns)
        patterns.extend(custom_patterns)
        if context.is_theme:
            patterns.extend(
                name for name in self.theme_ignore_dirs if name not in patterns
            )
        return patterns

    # ------------------------------------------------------------------
    # Categorisation

    @staticmethod
    def is_test_file(rel_path: str) -> bool:
        lower = f"/{rel_path.lower()}"
        if any(marker in lower for marker in TEST_MARKERS):
            return True
        name = PurePosixPath(lower).name
        return name.endswith(".py") and (name.startswith("test_") or name.endswith("_test.py"))

    @staticmethod
    def is_config_file(rel_path: str) -> bool:
        basename = PurePosixPath(rel_path).name.lower()
        return any(marker in basename for marker in CONFIG_MARKERS)

    @staticmethod
    def is_documentation_file(rel_path: str) -> bool:
        return PurePosixPath(rel_path).suffix.lower() in DOCUMENTATION_EXTENSIONS

    @staticmethod
    def is_source_file(rel_path: str) -> bool:
        return PurePosixPath(rel_path).suffix.lower() in SOURCE_EXTENSIONS

    def categorize(self, rel_path: str) -> str:
        if self.is_test_file(rel_path):
            return "test"
        if self.is_config_file(rel_path):
            return "config"
        if self.is_documentation_file(rel_path):
            return "documentation"
        if self.is_source_file(rel_path):
            return "source"
        return "asset"

    # ------------------------------------------------------------------
    # Importance

    def importance(self, rel_path: str, context: Optional[FilterContext] = None) -> float:
        context = context or FilterContext()
        score = 0.5

        depth = rel_path.count("/")
        score += max(0, (5 - depth) * 0.1)

        basename = PurePosixPath(rel_path).name.lower()
        if basename in ENTRY_FILENAMES:
            score += 0.3
        if basename in README_FILENAMES:
            score += 0.4
        if context.is_theme and basename in THEME_BONUS_FILENAMES:
            score += 0.4

        return max(0.0, min(1.0, score))


__all__ = [
    "FileClassifier",
    "FilterContext",
    "IgnoreRule",
    "build_ignore_rule",
    "gitignore_excludes",
    "match_glob",
    "parse_gitignore",
    "path_matches",
    "scoped_gitignore_excludes",
]
