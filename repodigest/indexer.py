"""Assemble a RepositoryIndex from the analyzer components."""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from .analyzers.files import (
    FileClassifier,
    FilterContext,
    IgnoreRule,
    parse_gitignore,
    scoped_gitignore_excludes,
)
from .analyzers.keywords import KeywordExtractor
from .analyzers.modules import ModuleGrouper
from .analyzers.patterns import PatternSearchAdapter
from .analyzers.special_files import SpecialFileScanner
from .analyzers.stack import StackDetector
from .analyzers.workspaces import WorkspaceDiscovery
from .content import FileSystemContentProvider
from .logging import get_logger
from .models import FileMetadata, IndexerConfig, RepositoryIndex

MAX_FILE_SIZE = 500 * 1024
MAX_EXTRACTION_SIZE = 50 * 1024
EXTRACTION_THRESHOLD = 0.4
IMPORTANT_THRESHOLD = 0.7

logger = get_logger("indexer")


@dataclass(frozen=True)
class _Candidate:
    rel_path: str
    size: int


@dataclass
class _Enumeration:
    candidates: List[_Candidate]
    truncated: bool = False
    # Repo-relative directory ("" for the root) -> rules of its .gitignore.
    gitignores: Dict[str, List[IgnoreRule]] = field(default_factory=dict)


def _timestamp(moment: datetime) -> str:
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class IndexAssembler:
    """Runs every analyzer over a repository and freezes the result."""

    def __init__(
        self,
        stack_detector: StackDetector | None = None,
        classifier: FileClassifier | None = None,
        extractor: KeywordExtractor | None = None,
        special_files: SpecialFileScanner | None = None,
        pattern_search: PatternSearchAdapter | None = None,
        grouper: ModuleGrouper | None = None,
        workspaces: WorkspaceDiscovery | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.stack_detector = stack_detector or StackDetector()
        self.classifier = classifier or FileClassifier()
        self.extractor = extractor or KeywordExtractor()
        self.special_files = special_files or SpecialFileScanner()
        self.pattern_search = pattern_search or PatternSearchAdapter()
        self.grouper = grouper or ModuleGrouper()
        self.workspaces = workspaces or WorkspaceDiscovery()
        self._clock = clock or (lambda: datetime.now(UTC))

    def build(self, config: IndexerConfig) -> RepositoryIndex:
        root = self._resolve_root(config.target_dir)

        logger.info("Detecting stack...")
        detected_stack = self.stack_detector.detect(root, config.custom_stack_detectors)
        context = FilterContext.from_stack(tech.name for tech in detected_stack)

        logger.info("Scanning workspace packages...")
        workspace_packages = self.workspaces.discover(root)

        logger.info("Scanning for special documentation files...")
        special_files = self.special_files.scan(root)

        logger.info("Scanning files...")
        enumeration = self._enumerate(root, config, context)
        warnings: List[str] = []
        if enumeration.truncated:
            message = f"Reached max files limit ({config.max_files}), stopping scan"
            logger.warning(message)
            warnings.append(message)

        file_metadata = self._analyze(root, enumeration.candidates, context, config.max_workers)
        logger.info("Indexed %d files", len(file_metadata))
        important_paths = [
            meta.path
            for meta in file_metadata
            if meta.importance > IMPORTANT_THRESHOLD or meta.type == "config"
        ]

        logger.info("Grouping files into modules...")
        modules = self.grouper.group(file_metadata)

        logger.info("Discovering code patterns...")
        code_insights = self.pattern_search.discover(root, config.ignore_patterns)

        applied = self.classifier.applied_patterns(context, config.ignore_patterns)
        for base, rules in enumeration.gitignores.items():
            for rule in rules:
                pattern = rule.to_pattern(base)
                if pattern not in applied:
                    applied.append(pattern)

        return RepositoryIndex(
            detected_stack=tuple(detected_stack),
            workspace_packages=tuple(workspace_packages),
            important_paths=tuple(important_paths),
            modules=tuple(modules),
            file_metadata=tuple(file_metadata),
            special_files=tuple(special_files),
            code_insights=code_insights,
            applied_ignore_patterns=tuple(applied),
            total_files=len(file_metadata),
            indexed_at=_timestamp(self._clock()),
            warnings=tuple(warnings),
        )

    # ------------------------------------------------------------------
    # Enumeration

    @staticmethod
    def _resolve_root(target_dir: str) -> Path:
        root = Path(target_dir).expanduser().resolve()
        if not root.exists():
            raise FileNotFoundError(f"Repository path not found: {target_dir}")
        if not root.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {target_dir}")
        return root

    def _enumerate(
        self,
        root: Path,
        config: IndexerConfig,
        context: FilterContext,
    ) -> _Enumeration:
        enumeration = _Enumeration(candidates=[])
        files = self._iter_files(root, config, context, enumeration.gitignores)
        for rel_path, size in files:
            if len(enumeration.candidates) >= config.max_files:
                enumeration.truncated = True
                break
            enumeration.candidates.append(_Candidate(rel_path=rel_path, size=size))
        return enumeration

    def _iter_files(
        self,
        root: Path,
        config: IndexerConfig,
        context: FilterContext,
        gitignores: Dict[str, List[IgnoreRule]],
    ) -> Iterator[tuple[str, int]]:
        custom = config.ignore_patterns
        for dirpath, dirnames, filenames in os.walk(root):
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""
            if config.respect_gitignore and ".gitignore" in filenames:
                rules = parse_gitignore(current_dir / ".gitignore")
                if rules:
                    gitignores[rel_dir] = rules

            kept_dirs = []
            for name in sorted(dirnames):
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if (current_dir / name).is_symlink():
                    continue
                if self.classifier.should_ignore(rel_path, context, custom, is_dir=True):
                    continue
                if scoped_gitignore_excludes(rel_path, True, gitignores):
                    continue
                kept_dirs.append(name)
            dirnames[:] = kept_dirs

            for filename in sorted(filenames):
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                path = current_dir / filename
                if path.is_symlink():
                    continue
                if self.classifier.should_ignore(rel_path, context, custom):
                    continue
                if scoped_gitignore_excludes(rel_path, False, gitignores):
                    continue
                if not config.include_tests and self.classifier.categorize(rel_path) == "test":
                    continue
                try:
                    size = path.stat().st_size
                except OSError as exc:
                    logger.debug("Skipping %s: %s", rel_path, exc)
                    continue
                if size > MAX_FILE_SIZE:
                    logger.debug("Skipping %s: %d bytes exceeds size ceiling", rel_path, size)
                    continue
                yield rel_path, size

    # ------------------------------------------------------------------
    # Per-file analysis

    def _analyze(
        self,
        root: Path,
        candidates: Sequence[_Candidate],
        context: FilterContext,
        max_workers: int,
    ) -> List[FileMetadata]:
        if not candidates:
            return []
        content = FileSystemContentProvider(root)

        def _describe(candidate: _Candidate) -> FileMetadata:
            return self._describe(content, candidate, context)

        with ThreadPoolExecutor(max_workers=min(max_workers, len(candidates))) as pool:
            return list(pool.map(_describe, candidates))

    def _describe(
        self,
        content: FileSystemContentProvider,
        candidate: _Candidate,
        context: FilterContext,
    ) -> FileMetadata:
        rel_path = candidate.rel_path
        category = self.classifier.categorize(rel_path)
        importance = self.classifier.importance(rel_path, context)

        keywords: List[str] = []
        exports: List[str] = []
        dependencies: List[str] = []
        if importance > EXTRACTION_THRESHOLD or category == "config":
            text: Optional[str] = None
            if candidate.size < MAX_EXTRACTION_SIZE:
                text = content.read_text(rel_path)
            if text:
                keywords = self.extractor.extract_keywords(rel_path, text)
                exports = self.extractor.extract_exports(rel_path, text)
                dependencies = self.extractor.extract_dependencies(rel_path, text)

        return FileMetadata(
            path=rel_path,
            type=category,
            keywords=tuple(keywords),
            importance=importance,
            exports=tuple(exports) or None,
            dependencies=tuple(dependencies) or None,
        )


def build_repository_index(
    config: IndexerConfig, assembler: IndexAssembler | None = None
) -> RepositoryIndex:
    """Index ``config.target_dir`` with the default analyzer set."""
    return (assembler or IndexAssembler()).build(config)


__all__ = [
    "EXTRACTION_THRESHOLD",
    "IMPORTANT_THRESHOLD",
    "IndexAssembler",
    "MAX_EXTRACTION_SIZE",
    "MAX_FILE_SIZE",
    "build_repository_index",
]
