"""Core data models shared across repodigest components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

STACK_CATEGORIES = frozenset(
    {"framework", "language", "tool", "platform", "database", "runtime"}
)
FILE_TYPES = frozenset({"source", "config", "documentation", "test", "asset"})
SPECIAL_FILE_TYPES = frozenset(
    {"claude-rules", "cursor-rules", "copilot-instructions", "readme"}
)

MAX_FILE_KEYWORDS = 20
MAX_MODULE_KEYWORDS = 30


def _check_unit_interval(field_name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{field_name} must lie in [0, 1], got {value!r}")


@dataclass(frozen=True)
class StackTechnology:
    """A detected language, framework, tool or platform."""

    name: str
    category: str
    confidence: float = 1.0
    version: Optional[str] = None

    def __post_init__(self) -> None:
        if self.category not in STACK_CATEGORIES:
            raise ValueError(f"Unknown stack category: {self.category!r}")
        _check_unit_interval("confidence", self.confidence)


@dataclass(frozen=True)
class FileMetadata:
    """Classification and extracted identifiers for one indexed file."""

    path: str
    type: str
    keywords: Tuple[str, ...]
    importance: float
    exports: Optional[Tuple[str, ...]] = None
    dependencies: Optional[Tuple[str, ...]] = None

    def __post_init__(self) -> None:
        if self.type not in FILE_TYPES:
            raise ValueError(f"Unknown file type: {self.type!r}")
        if len(self.keywords) > MAX_FILE_KEYWORDS:
            raise ValueError(f"At most {MAX_FILE_KEYWORDS} keywords per file")
        _check_unit_interval("importance", self.importance)


@dataclass(frozen=True)
class ModuleMap:
    """Directory-scoped grouping of indexed files."""

    path: str
    purpose: str
    keywords: Tuple[str, ...]
    files: Tuple[str, ...]
    importance: float

    def __post_init__(self) -> None:
        if len(self.keywords) > MAX_MODULE_KEYWORDS:
            raise ValueError(f"At most {MAX_MODULE_KEYWORDS} keywords per module")
        _check_unit_interval("importance", self.importance)


@dataclass(frozen=True)
class WorkspacePackage:
    """A package declared in the root manifest or a workspace member."""

    name: str
    relative_dir: str
    version: Optional[str] = None
    description: Optional[str] = None
    is_workspace_root: bool = False


@dataclass(frozen=True)
class SpecialFile:
    """Agent rules or readme content found at well-known locations."""

    path: str
    type: str
    content: str

    def __post_init__(self) -> None:
        if self.type not in SPECIAL_FILE_TYPES:
            raise ValueError(f"Unknown special file type: {self.type!r}")


@dataclass(frozen=True)
class PatternMatch:
    """Single line reported by the pattern search tool."""

    path: str
    line_number: int
    line: str
    match: str


@dataclass(frozen=True)
class PatternSearchResult:
    """Matches for one architecturally meaningful search."""

    pattern: str
    description: str
    matches: Tuple[PatternMatch, ...]


@dataclass(frozen=True)
class CodeInsights:
    """Entry points and pattern hits discovered by text search."""

    entry_points: Tuple[str, ...] = ()
    patterns: Tuple[PatternSearchResult, ...] = ()
    config_patterns: Tuple[PatternSearchResult, ...] = ()

    @classmethod
    def empty(cls) -> "CodeInsights":
        return cls()


@dataclass(frozen=True)
class IndexerConfig:
    """Inputs for a single indexing run."""

    target_dir: str
    ignore_patterns: Tuple[str, ...] = ()
    max_files: int = 10000
    include_tests: bool = False
    custom_stack_detectors: Tuple[str, ...] = ()
    max_workers: int = 8
    respect_gitignore: bool = True

    def __post_init__(self) -> None:
        if self.max_files < 0:
            raise ValueError("max_files must not be negative")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")


@dataclass(frozen=True)
class RepositoryIndex:
    """Immutable snapshot produced by one indexing pass."""

    detected_stack: Tuple[StackTechnology, ...]
    workspace_packages: Tuple[WorkspacePackage, ...]
    important_paths: Tuple[str, ...]
    modules: Tuple[ModuleMap, ...]
    file_metadata: Tuple[FileMetadata, ...]
    special_files: Tuple[SpecialFile, ...]
    code_insights: CodeInsights
    applied_ignore_patterns: Tuple[str, ...]
    total_files: int
    indexed_at: str
    warnings: Tuple[str, ...] = field(default=())

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-ready mapping using the persisted artifact's keys."""
        return {
            "detectedStack": [_stack_to_dict(tech) for tech in self.detected_stack],
            "workspacePackages": [
                _drop_none(
                    {
                        "name": pkg.name,
                        "version": pkg.version,
                        "relativeDir": pkg.relative_dir,
                        "description": pkg.description,
                        "isWorkspaceRoot": pkg.is_workspace_root,
                    }
                )
                for pkg in self.workspace_packages
            ],
            "importantPaths": list(self.important_paths),
            "modules": [
                {
                    "path": module.path,
                    "purpose": module.purpose,
                    "keywords": list(module.keywords),
                    "files": list(module.files),
                    "importance": module.importance,
                }
                for module in self.modules
            ],
            "fileMetadata": [_file_to_dict(meta) for meta in self.file_metadata],
            "specialFiles": [
                {"path": special.path, "type": special.type, "content": special.content}
                for special in self.special_files
            ],
            "codeInsights": {
                "entryPoints": list(self.code_insights.entry_points),
                "patterns": [_result_to_dict(r) for r in self.code_insights.patterns],
                "configPatterns": [
                    _result_to_dict(r) for r in self.code_insights.config_patterns
                ],
            },
            "ignoredPatterns": list(self.applied_ignore_patterns),
            "totalFiles": self.total_files,
            "indexedAt": self.indexed_at,
        }


def _drop_none(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def _stack_to_dict(tech: StackTechnology) -> Dict[str, Any]:
    return _drop_none(
        {
            "name": tech.name,
            "version": tech.version,
            "category": tech.category,
            "confidence": tech.confidence,
        }
    )


def _file_to_dict(meta: FileMetadata) -> Dict[str, Any]:
    return _drop_none(
        {
            "path": meta.path,
            "type": meta.type,
            "keywords": list(meta.keywords),
            "importance": meta.importance,
            "exports": list(meta.exports) if meta.exports is not None else None,
            "dependencies": (
                list(meta.dependencies) if meta.dependencies is not None else None
            ),
        }
    )


def _result_to_dict(result: PatternSearchResult) -> Dict[str, Any]:
    matches: List[Dict[str, Any]] = [
        {
            "path": match.path,
            "lineNumber": match.line_number,
            "line": match.line,
            "match": match.match,
        }
        for match in result.matches
    ]
    return {
        "pattern": result.pattern,
        "description": result.description,
        "matches": matches,
    }
