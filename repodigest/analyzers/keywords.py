"""Pattern-based keyword, export and dependency extraction."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from ..content import ContentProvider
from ..models import MAX_FILE_KEYWORDS
from .constants import SOURCE_EXTENSIONS, STOP_WORDS

# JavaScript / TypeScript
_JS_EXPORT = re.compile(
    r"export\s+(?:default\s+)?(?:async\s+)?"
    r"(?:const|let|var|function\*?|class|interface|type|enum)\s+(\w+)"
)
_JS_CLASS = re.compile(r"class\s+(\w+)")
_JS_BINDING = re.compile(r"(?:function|const|let|var)\s+(\w+)\s*[=:]")
_JS_IMPORT = re.compile(r"import\s+[^;]*?\s+from\s+['\"]([^'\"]+)['\"]")
_JS_REQUIRE = re.compile(r"require\s*\(\s*['\"]([^'\"]+)['\"]\s*\)")
_JS_TYPE = re.compile(r"(?:interface|type)\s+(\w+)")

# Python
_PY_CLASS = re.compile(r"class\s+(\w+)")
_PY_DEF = re.compile(r"def\s+(\w+)")
_PY_IMPORT = re.compile(r"from\s+(\w+)|import\s+(\w+)")
_PY_TOP_CLASS = re.compile(r"^class\s+(\w+)", re.MULTILINE)
_PY_TOP_DEF = re.compile(r"^(?:async\s+)?def\s+(\w+)", re.MULTILINE)
_PY_TOP_IMPORT = re.compile(r"^(?:from\s+(\w+)|import\s+(\w+))", re.MULTILINE)

# PHP / WordPress
_PHP_CLASS = re.compile(r"class\s+(\w+)")
_PHP_FUNCTION = re.compile(r"function\s+(\w+)")
_PHP_HOOK = re.compile(r"add_(?:action|filter)\s*\(\s*['\"]([^'\"]+)['\"]")
_PHP_WP_FUNCTION = re.compile(r"(wp_\w+|get_\w+|the_\w+)")

# Generic
_CAPITALISED_IDENTIFIER = re.compile(r"\b([A-Z][a-zA-Z0-9]*)\b")

_CAMEL_BOUNDARY = re.compile(r"([a-z])([A-Z])")
_ACRONYM_BOUNDARY = re.compile(r"([A-Z])([A-Z][a-z])")


class _OrderedKeywords:
    """Insertion-ordered set of keywords."""

    def __init__(self) -> None:
        self._items: Dict[str, None] = {}

    def add(self, word: str) -> None:
        if word:
            self._items.setdefault(word, None)

    def extend(self, words: Iterable[str]) -> None:
        for word in words:
            self.add(word)

    def as_list(self) -> List[str]:
        return list(self._items)


def _is_meaningful(word: str, *, min_length: int) -> bool:
    return len(word) > min_length and word.lower() not in STOP_WORDS


def normalize_package_name(specifier: str) -> Optional[str]:
    """Collapse an import target to its package name; relative targets yield None."""
    if not specifier or specifier.startswith("."):
        return None
    parts = specifier.split("/")
    if specifier.startswith("@"):
        return "/".join(parts[:2])
    return parts[0]


def split_identifier(name: str) -> List[str]:
    """Split on case transitions, hyphens and underscores."""
    spaced = _CAMEL_BOUNDARY.sub(r"\1 \2", name)
    spaced = _ACRONYM_BOUNDARY.sub(r"\1 \2", spaced)
    spaced = re.sub(r"[-_]", " ", spaced)
    return [part for part in spaced.split() if part]


@dataclass(frozen=True)
class ExtractionStrategy:
    """Language-specific extraction functions."""

    name: str
    keywords: Callable[[str], Iterable[str]]
    exports: Callable[[str], Iterable[str]]
    dependencies: Callable[[str], Iterable[str]]


def _nothing(_: str) -> Iterable[str]:
    return ()


# ----------------------------------------------------------------------
# JavaScript / TypeScript


def _js_dependencies(content: str) -> List[str]:
    deps = _OrderedKeywords()
    for regex in (_JS_IMPORT, _JS_REQUIRE):
        for match in regex.finditer(content):
            name = normalize_package_name(match.group(1))
            if name:
                deps.add(name)
    return deps.as_list()


def _js_exports(content: str) -> List[str]:
    return [match.group(1) for match in _JS_EXPORT.finditer(content)]


def _js_keywords(content: str) -> List[str]:
    words: List[str] = _js_exports(content)
    words.extend(match.group(1) for match in _JS_CLASS.finditer(content))
    words.extend(
        match.group(1)
        for match in _JS_BINDING.finditer(content)
        if _is_meaningful(match.group(1), min_length=3)
    )
    for regex in (_JS_IMPORT, _JS_REQUIRE):
        for match in regex.finditer(content):
            name = normalize_package_name(match.group(1))
            if name:
                words.append(name)
    words.extend(match.group(1) for match in _JS_TYPE.finditer(content))
    return words


# ----------------------------------------------------------------------
# Python


def _py_keywords(content: str) -> List[str]:
    words = [match.group(1) for match in _PY_CLASS.finditer(content)]
    words.extend(
        match.group(1)
        for match in _PY_DEF.finditer(content)
        if not match.group(1).startswith("_")
        and _is_meaningful(match.group(1), min_length=3)
    )
    for match in _PY_IMPORT.finditer(content):
        module = match.group(1) or match.group(2)
        if module and len(module) > 2:
            words.append(module)
    return words


def _py_exports(content: str) -> List[str]:
    exports = [match.group(1) for match in _PY_TOP_CLASS.finditer(content)]
    exports.extend(
        match.group(1)
        for match in _PY_TOP_DEF.finditer(content)
        if not match.group(1).startswith("_")
    )
    return exports


def _py_dependencies(content: str) -> List[str]:
    deps = _OrderedKeywords()
    for match in _PY_TOP_IMPORT.finditer(content):
        module = match.group(1) or match.group(2)
        if module and len(module) > 2:
            deps.add(module)
    return deps.as_list()


# ----------------------------------------------------------------------
# PHP


def _php_keywords(content: str) -> List[str]:
    words = [match.group(1) for match in _PHP_CLASS.finditer(content)]
    words.extend(
        match.group(1)
        for match in _PHP_FUNCTION.finditer(content)
        if not match.group(1).startswith("__")
        and _is_meaningful(match.group(1), min_length=3)
    )
    words.extend(match.group(1) for match in _PHP_HOOK.finditer(content))
    words.extend(
        match.group(1)
        for match in _PHP_WP_FUNCTION.finditer(content)
        if len(match.group(1)) > 4
    )
    return words


# ----------------------------------------------------------------------
# Generic


def _generic_keywords(content: str) -> List[str]:
    return [
        match.group(1)
        for match in _CAPITALISED_IDENTIFIER.finditer(content)
        if _is_meaningful(match.group(1), min_length=3)
    ]


JAVASCRIPT = ExtractionStrategy("javascript", _js_keywords, _js_exports, _js_dependencies)
PYTHON = ExtractionStrategy("python", _py_keywords, _py_exports, _py_dependencies)
PHP = ExtractionStrategy("php", _php_keywords, _nothing, _nothing)
GENERIC = ExtractionStrategy("generic", _generic_keywords, _nothing, _nothing)
NO_OP = ExtractionStrategy("none", _nothing, _nothing, _nothing)

DEFAULT_STRATEGIES: Mapping[str, ExtractionStrategy] = {
    ".ts": JAVASCRIPT,
    ".tsx": JAVASCRIPT,
    ".js": JAVASCRIPT,
    ".jsx": JAVASCRIPT,
    ".mjs": JAVASCRIPT,
    ".cjs": JAVASCRIPT,
    ".py": PYTHON,
    ".php": PHP,
    ".go": GENERIC,
    ".rs": GENERIC,
    ".java": GENERIC,
    ".kt": GENERIC,
    ".swift": GENERIC,
    ".rb": GENERIC,
}


class KeywordExtractor:
    """Dispatches extraction to a strategy chosen by file extension."""

    def __init__(
        self,
        strategies: Mapping[str, ExtractionStrategy] = DEFAULT_STRATEGIES,
        *,
        content: ContentProvider | None = None,
        max_keywords: int = MAX_FILE_KEYWORDS,
    ) -> None:
        self.strategies = {ext.lower(): strategy for ext, strategy in strategies.items()}
        self.content = content
        self.max_keywords = max_keywords

    def strategy_for(self, rel_path: str) -> ExtractionStrategy:
        suffix = PurePosixPath(rel_path).suffix.lower()
        strategy = self.strategies.get(suffix)
        if strategy is not None:
            return strategy
        if suffix in SOURCE_EXTENSIONS:
            return GENERIC
        return NO_OP

    def extract_keywords(self, rel_path: str, content: str | None = None) -> List[str]:
        text = self._resolve(rel_path, content)
        if not text:
            return []

        keywords = _OrderedKeywords()
        stem = PurePosixPath(rel_path).name
        suffix = PurePosixPath(rel_path).suffix
        if suffix:
            stem = stem[: -len(suffix)]
        keywords.extend(
            word for word in split_identifier(stem) if _is_meaningful(word, min_length=2)
        )
        keywords.extend(self.strategy_for(rel_path).keywords(text))
        return keywords.as_list()[: self.max_keywords]

    def extract_exports(self, rel_path: str, content: str | None = None) -> List[str]:
        text = self._resolve(rel_path, content)
        if not text:
            return []
        return list(self.strategy_for(rel_path).exports(text))

    def extract_dependencies(self, rel_path: str, content: str | None = None) -> List[str]:
        text = self._resolve(rel_path, content)
        if not text:
            return []
        return list(self.strategy_for(rel_path).dependencies(text))

    def _resolve(self, rel_path: str, content: str | None) -> str | None:
        if content:
            return content
        if self.content is None:
            return None
        return self.content.read_text(rel_path)


__all__ = [
    "DEFAULT_STRATEGIES",
    "ExtractionStrategy",
    "GENERIC",
    "JAVASCRIPT",
    "KeywordExtractor",
    "NO_OP",
    "PHP",
    "PYTHON",
    "normalize_package_name",
    "split_identifier",
]
