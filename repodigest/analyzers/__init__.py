"""Analyzer components used by the repository indexer."""

from __future__ import annotations

from .files import FileClassifier, FilterContext
from .keywords import KeywordExtractor
from .modules import ModuleGrouper
from .patterns import PatternSearch, PatternSearchAdapter
from .special_files import SpecialFileScanner
from .stack import DetectionRule, StackDetector
from .workspaces import WorkspaceDiscovery

__all__ = [
    "DetectionRule",
    "FileClassifier",
    "FilterContext",
    "KeywordExtractor",
    "ModuleGrouper",
    "PatternSearch",
    "PatternSearchAdapter",
    "SpecialFileScanner",
    "StackDetector",
    "WorkspaceDiscovery",
]
