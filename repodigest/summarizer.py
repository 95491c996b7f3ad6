"""Render a RepositoryIndex into a bounded markdown digest."""

from __future__ import annotations

from typing import Dict, List

from .models import PatternMatch, PatternSearchResult, RepositoryIndex


class ContextSummarizer:
    """Deterministic markdown renderer for repository indexes.

    Limits are heuristic character and item caps, not a measured token budget.
    Special file contents are inlined verbatim and are the one unbounded
    section; callers that need a hard size limit should filter them first.
    """

    MAX_ENTRY_POINTS = 10
    MAX_PATTERN_FILES = 5
    MAX_MATCHES_PER_FILE = 3
    MAX_LINE_CHARS = 80
    MAX_MODULES = 10
    MAX_MODULE_KEYWORDS = 5
    MAX_IMPORTANT_PATHS = 15

    def summarize(self, index: RepositoryIndex) -> str:
        lines: List[str] = ["# Repository Index Summary\n"]
        self._render_stack(index, lines)
        self._render_workspaces(index, lines)
        self._render_special_files(index, lines)
        self._render_entry_points(index, lines)
        self._render_patterns(index, lines)
        self._render_config_patterns(index, lines)
        self._render_modules(index, lines)
        self._render_important_paths(index, lines)
        lines.append(f"Total indexed files: {index.total_files}")
        lines.append(f"Indexed at: {index.indexed_at}")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Sections

    def _render_stack(self, index: RepositoryIndex, lines: List[str]) -> None:
        if not index.detected_stack:
            return
        lines.append("## Detected Stack")
        for tech in index.detected_stack:
            version = f" {tech.version}" if tech.version else ""
            confidence = ""
            if tech.confidence < 1:
                confidence = f" ({int(tech.confidence * 100 + 0.5)}% confidence)"
            lines.append(f"- {tech.name}{version} [{tech.category}]{confidence}")
        lines.append("")

    def _render_workspaces(self, index: RepositoryIndex, lines: List[str]) -> None:
        if not index.workspace_packages:
            return
        lines.append("## Workspace Packages")
        for package in index.workspace_packages:
            description = f" - {package.description}" if package.description else ""
            lines.append(f"- {package.name} ({package.relative_dir}){description}")
        lines.append("")

    def _render_special_files(self, index: RepositoryIndex, lines: List[str]) -> None:
        if not index.special_files:
            return
        lines.append("## Special Documentation Files")
        for special in index.special_files:
            lines.append(f"### {special.path} ({special.type})")
            lines.append("```")
            lines.append(special.content)
            lines.append("```")
            lines.append("")

    def _render_entry_points(self, index: RepositoryIndex, lines: List[str]) -> None:
        entry_points = index.code_insights.entry_points
        if not entry_points:
            return
        lines.append("## Entry Points")
        lines.extend(f"- {path}" for path in entry_points[: self.MAX_ENTRY_POINTS])
        lines.append("")

    def _render_patterns(self, index: RepositoryIndex, lines: List[str]) -> None:
        patterns = index.code_insights.patterns
        if not patterns:
            return
        lines.append("## Key Code Patterns")
        for result in patterns:
            lines.append(f"### {result.description} ({len(result.matches)} matches)")
            for path, matches in self._top_files(result):
                lines.append(f"  - {path} ({len(matches)} occurrences)")
                for match in matches[: self.MAX_MATCHES_PER_FILE]:
                    lines.append(f"    L{match.line_number}: {self._clip(match.line)}")
            lines.append("")

    def _render_config_patterns(self, index: RepositoryIndex, lines: List[str]) -> None:
        config_patterns = index.code_insights.config_patterns
        if not config_patterns:
            return
        lines.append("## Configuration Patterns")
        for result in config_patterns:
            # File names only: matched lines may hold credentials.
            lines.append(f"### {result.description}")
            seen: Dict[str, None] = {}
            for match in result.matches:
                seen.setdefault(match.path, None)
            lines.extend(f"  - {path}" for path in seen)
            lines.append("")

    def _render_modules(self, index: RepositoryIndex, lines: List[str]) -> None:
        modules = index.modules[: self.MAX_MODULES]
        if not modules:
            return
        lines.append("## Key Modules")
        for module in modules:
            keywords = ", ".join(module.keywords[: self.MAX_MODULE_KEYWORDS])
            lines.append(f"- {module.path}: {module.purpose} | Keywords: {keywords}")
        lines.append("")

    def _render_important_paths(self, index: RepositoryIndex, lines: List[str]) -> None:
        if not index.important_paths:
            return
        lines.append("## Important Files")
        lines.extend(f"- {path}" for path in index.important_paths[: self.MAX_IMPORTANT_PATHS])
        lines.append("")

    # ------------------------------------------------------------------
    # Helpers

    def _top_files(self, result: PatternSearchResult) -> List[tuple[str, List[PatternMatch]]]:
        grouped: Dict[str, List[PatternMatch]] = {}
        for match in result.matches:
            grouped.setdefault(match.path, []).append(match)
        ranked = sorted(grouped.items(), key=lambda item: len(item[1]), reverse=True)
        return ranked[: self.MAX_PATTERN_FILES]

    def _clip(self, line: str) -> str:
        text = line.strip()
        if len(text) > self.MAX_LINE_CHARS:
            return f"{text[: self.MAX_LINE_CHARS]}..."
        return text


def summarize_index(index: RepositoryIndex) -> str:
    """Render ``index`` with the default limits."""
    return ContextSummarizer().summarize(index)


__all__ = ["ContextSummarizer", "summarize_index"]
