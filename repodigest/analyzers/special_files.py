"""Locate agent rules files and readmes at well-known locations."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from ..content import ContentProvider, FileSystemContentProvider
from ..logging import get_logger
from ..models import SpecialFile

SPECIAL_FILE_PATTERNS: tuple[tuple[str, str], ...] = (
    ("CLAUDE.md", "claude-rules"),
    (".cursorrules", "cursor-rules"),
    (".github/copilot-instructions.md", "copilot-instructions"),
    ("README.md", "readme"),
    ("readme.md", "readme"),
)

RULES_DIRECTORIES: tuple[tuple[str, str], ...] = ((".cursor/rules", "cursor-rules"),)

MAX_SPECIAL_FILE_SIZE = 100 * 1024

logger = get_logger("special_files")


class SpecialFileScanner:
    """Reads small documentation and rules files that describe the repository."""

    def __init__(
        self,
        patterns: Sequence[tuple[str, str]] = SPECIAL_FILE_PATTERNS,
        *,
        rules_directories: Sequence[tuple[str, str]] = RULES_DIRECTORIES,
        max_size: int = MAX_SPECIAL_FILE_SIZE,
        content: ContentProvider | None = None,
    ) -> None:
        self.patterns = tuple(patterns)
        self.rules_directories = tuple(rules_directories)
        self.max_size = max_size
        self._content = content

    def scan(self, root: Path | str) -> List[SpecialFile]:
        content = self._content or FileSystemContentProvider(root)
        found: List[SpecialFile] = []
        seen_texts: set[tuple[str, str]] = set()

        for rel_path, file_type in self.patterns:
            if not content.exists(rel_path):
                continue
            text = self._read(content, rel_path)
            if text is None:
                continue
            # Case-insensitive filesystems report README.md and readme.md as the same file.
            key = (file_type, text)
            if file_type == "readme" and key in seen_texts:
                continue
            seen_texts.add(key)
            found.append(SpecialFile(path=rel_path, type=file_type, content=text))

        for directory, file_type in self.rules_directories:
            for name in content.list_dir(directory):
                rel_path = f"{directory}/{name}"
                text = self._read(content, rel_path)
                if text is None:
                    continue
                found.append(SpecialFile(path=rel_path, type=file_type, content=text))

        return found

    def _read(self, content: ContentProvider, rel_path: str) -> str | None:
        size = content.size(rel_path)
        if size is None or size > self.max_size:
            logger.debug("Skipping special file %s (size=%s)", rel_path, size)
            return None
        text = content.read_text(rel_path)
        return text or None


__all__ = [
    "MAX_SPECIAL_FILE_SIZE",
    "RULES_DIRECTORIES",
    "SPECIAL_FILE_PATTERNS",
    "SpecialFileScanner",
]
