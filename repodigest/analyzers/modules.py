"""Directory-based grouping of indexed files into purpose-tagged modules."""

from __future__ import annotations

import posixpath
from typing import Dict, Iterable, List, Mapping, Sequence

from ..models import MAX_MODULE_KEYWORDS, FileMetadata, ModuleMap
from .constants import DIRECTORY_PURPOSES

ROOT_MODULE = "."


def _directory_of(rel_path: str) -> str:
    return posixpath.dirname(rel_path) or ROOT_MODULE


class ModuleGrouper:
    """Aggregates finalized file metadata by containing directory."""

    def __init__(
        self,
        purposes: Mapping[str, str] = DIRECTORY_PURPOSES,
        *,
        min_files: int = 2,
        max_keywords: int = MAX_MODULE_KEYWORDS,
    ) -> None:
        self.purposes = {name.lower(): label for name, label in purposes.items()}
        self.min_files = min_files
        self.max_keywords = max_keywords

    def group(self, file_metadata: Iterable[FileMetadata]) -> List[ModuleMap]:
        buckets: Dict[str, List[FileMetadata]] = {}
        for meta in file_metadata:
            buckets.setdefault(_directory_of(meta.path), []).append(meta)

        modules: List[ModuleMap] = []
        for directory, members in buckets.items():
            if len(members) < self.min_files and directory != ROOT_MODULE:
                continue
            modules.append(
                ModuleMap(
                    path=directory,
                    purpose=self.infer_purpose(directory, members),
                    keywords=tuple(self._merge_keywords(members)),
                    files=tuple(meta.path for meta in members),
                    importance=sum(meta.importance for meta in members) / len(members),
                )
            )

        # sorted() is stable, so equal importances keep first-seen order.
        return sorted(modules, key=lambda module: module.importance, reverse=True)

    def infer_purpose(self, directory: str, members: Sequence[FileMetadata]) -> str:
        name = posixpath.basename(directory).lower()
        if name in self.purposes:
            return self.purposes[name]
        if members and all(meta.type == "test" for meta in members):
            return "Test suite"
        if members and all(meta.type == "config" for meta in members):
            return "Configuration files"
        if any(
            "component" in keyword.lower() for meta in members for keyword in meta.keywords
        ):
            return "Component library"
        return "Module"

    def _merge_keywords(self, members: Sequence[FileMetadata]) -> List[str]:
        merged: Dict[str, None] = {}
        for meta in members:
            for keyword in meta.keywords:
                merged.setdefault(keyword, None)
        return list(merged)[: self.max_keywords]


__all__ = ["ModuleGrouper", "ROOT_MODULE"]
