"""Content providers that isolate analyzers from the filesystem."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Dict, List, Mapping, Optional, Protocol


class ContentProvider(Protocol):
    """Read-only view of repository files addressed by POSIX relative paths."""

    def exists(self, rel_path: str) -> bool:
        ...

    def size(self, rel_path: str) -> Optional[int]:
        ...

    def read_text(self, rel_path: str) -> Optional[str]:
        ...

    def list_dir(self, rel_dir: str) -> List[str]:
        ...


class FileSystemContentProvider:
    """Serves file content from a directory on disk."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def exists(self, rel_path: str) -> bool:
        return (self.root / rel_path).exists()

    def size(self, rel_path: str) -> Optional[int]:
        try:
            return (self.root / rel_path).stat().st_size
        except OSError:
            return None

    def read_text(self, rel_path: str) -> Optional[str]:
        try:
            return (self.root / rel_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None

    def list_dir(self, rel_dir: str) -> List[str]:
        directory = self.root / rel_dir
        try:
            return sorted(entry.name for entry in directory.iterdir() if entry.is_file())
        except OSError:
            return []


class InMemoryContentProvider:
    """Serves fixture content from a mapping, mostly for tests."""

    def __init__(self, files: Mapping[str, str], *, unreadable: tuple[str, ...] = ()) -> None:
        self._files: Dict[str, str] = {
            PurePosixPath(path).as_posix(): text for path, text in files.items()
        }
        self._unreadable = set(unreadable)

    def exists(self, rel_path: str) -> bool:
        return rel_path in self._files or rel_path in self._unreadable

    def size(self, rel_path: str) -> Optional[int]:
        text = self._files.get(rel_path)
        if text is None:
            return None
        return len(text.encode("utf-8"))

    def read_text(self, rel_path: str) -> Optional[str]:
        if rel_path in self._unreadable:
            return None
        return self._files.get(rel_path)

    def list_dir(self, rel_dir: str) -> List[str]:
        prefix = f"{rel_dir.rstrip('/')}/" if rel_dir not in {"", "."} else ""
        names = []
        for path in self._files:
            if not path.startswith(prefix):
                continue
            remainder = path[len(prefix):]
            if remainder and "/" not in remainder:
                names.append(remainder)
        return sorted(names)


__all__ = ["ContentProvider", "FileSystemContentProvider", "InMemoryContentProvider"]
