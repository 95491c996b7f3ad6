"""Rule-based technology stack detection."""

from __future__ import annotations

import json
import re
import tomllib
from dataclasses import dataclass, replace
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..content import ContentProvider, FileSystemContentProvider
from ..logging import get_logger
from ..models import StackTechnology

_ENTRY_POINT_GROUP = "repodigest.stack_detectors"
_VERSION_PREFIX = re.compile(r"^(?:[\^~=]|[<>]=?)+\s*")
_REQUIREMENT_SPLIT = re.compile(r"[\s\[<>=!~;@]")
_SPECIFIER_PREFIX = re.compile(r"^\s*(?:===|==|>=|<=|~=|!=|>|<)\s*")

logger = get_logger("stack")

StackDetectorPlugin = Callable[[Path], Iterable[StackTechnology]]


@dataclass(frozen=True)
class DetectionRule:
    """Technology reported when any of ``files`` exists at the repository root."""

    files: tuple[str, ...]
    name: str
    category: str
    keywords: tuple[str, ...] = ()


def _rule(files: Sequence[str], name: str, category: str, keywords: Sequence[str] = ()) -> DetectionRule:
    return DetectionRule(files=tuple(files), name=name, category=category, keywords=tuple(keywords))


DEFAULT_STACK_RULES: tuple[DetectionRule, ...] = (
    # JavaScript/TypeScript ecosystem
    _rule(["package.json"], "Node.js", "runtime"),
    _rule(["tsconfig.json"], "TypeScript", "language"),
    _rule(["bun.lockb"], "Bun", "runtime"),
    _rule(["deno.json", "deno.jsonc"], "Deno", "runtime"),
    # Package managers
    _rule(["pnpm-lock.yaml"], "pnpm", "tool"),
    _rule(["yarn.lock"], "Yarn", "tool"),
    _rule(["package-lock.json"], "npm", "tool"),
    _rule(["bun.lockb"], "Bun", "tool"),
    # Frontend frameworks
    _rule(["next.config.js", "next.config.mjs", "next.config.ts"], "Next.js", "framework"),
    _rule(["nuxt.config.js", "nuxt.config.ts"], "Nuxt", "framework"),
    _rule(["vite.config.js", "vite.config.ts"], "Vite", "tool"),
    _rule(["svelte.config.js"], "Svelte", "framework"),
    _rule(["astro.config.mjs"], "Astro", "framework"),
    _rule(["remix.config.js"], "Remix", "framework"),
    # Backend frameworks
    _rule(["nest-cli.json"], "NestJS", "framework"),
    _rule(["fastify.config.js"], "Fastify", "framework"),
    # Build tools
    _rule(["webpack.config.js", "webpack.config.ts"], "Webpack", "tool"),
    _rule(["rollup.config.js"], "Rollup", "tool"),
    _rule(["esbuild.config.js"], "esbuild", "tool"),
    _rule(["tsup.config.ts"], "tsup", "tool"),
    # Testing
    _rule(["jest.config.js", "jest.config.ts"], "Jest", "tool"),
    _rule(["vitest.config.ts"], "Vitest", "tool"),
    _rule(["playwright.config.ts"], "Playwright", "tool"),
    _rule(["cypress.config.js"], "Cypress", "tool"),
    # Python
    _rule(["requirements.txt", "pyproject.toml"], "Python", "language"),
    _rule(["setup.py"], "Python", "language"),
    _rule(["Pipfile"], "Pipenv", "tool"),
    _rule(["poetry.lock"], "Poetry", "tool"),
    _rule(["manage.py"], "Django", "framework"),
    _rule(["flask_app.py", "app.py"], "Flask", "framework", ["from flask import"]),
    # Go
    _rule(["go.mod"], "Go", "language"),
    _rule(["go.sum"], "Go", "language"),
    # Rust
    _rule(["Cargo.toml"], "Rust", "language"),
    _rule(["Cargo.lock"], "Cargo", "tool"),
    # Ruby
    _rule(["Gemfile"], "Ruby", "language"),
    _rule(["config/application.rb"], "Ruby on Rails", "framework"),
    # PHP
    _rule(["composer.json"], "PHP", "language"),
    _rule(["artisan"], "Laravel", "framework"),
    _rule(["wp-config.php", "wp-load.php"], "WordPress", "platform"),
    _rule(["style.css"], "WordPress Theme", "platform", ["Theme Name:", "Template:"]),
    # Java/JVM
    _rule(["pom.xml"], "Maven", "tool"),
    _rule(["build.gradle", "build.gradle.kts"], "Gradle", "tool"),
    # Databases
    _rule(["prisma/schema.prisma"], "Prisma", "database"),
    _rule(["drizzle.config.ts"], "Drizzle", "database"),
    # Docker
    _rule(["Dockerfile"], "Docker", "tool"),
    _rule(["docker-compose.yml", "docker-compose.yaml"], "Docker Compose", "tool"),
    # Monorepo tools
    _rule(["pnpm-workspace.yaml"], "pnpm Workspaces", "tool"),
    _rule(["lerna.json"], "Lerna", "tool"),
    _rule(["nx.json"], "Nx", "tool"),
    _rule(["turbo.json"], "Turborepo", "tool"),
)

NODE_FRAMEWORK_DEPENDENCIES: tuple[tuple[str, str], ...] = (
    ("react", "React"),
    ("vue", "Vue"),
    ("express", "Express"),
)

PYTHON_FRAMEWORK_DEPENDENCIES: tuple[tuple[str, str], ...] = (
    ("fastapi", "FastAPI"),
    ("django", "Django"),
    ("flask", "Flask"),
)


def strip_version_range(version: Any) -> Optional[str]:
    """Drop npm-style range prefixes (``^1.2.3`` -> ``1.2.3``)."""
    if not isinstance(version, str):
        return None
    stripped = _VERSION_PREFIX.sub("", version.strip())
    return stripped or None


class StackDetector:
    """Applies ordered detection rules and manifest heuristics to a repository root."""

    def __init__(
        self,
        rules: Sequence[DetectionRule] = DEFAULT_STACK_RULES,
        *,
        node_frameworks: Sequence[tuple[str, str]] = NODE_FRAMEWORK_DEPENDENCIES,
        python_frameworks: Sequence[tuple[str, str]] = PYTHON_FRAMEWORK_DEPENDENCIES,
        content: ContentProvider | None = None,
        plugins: Dict[str, StackDetectorPlugin] | None = None,
    ) -> None:
        self.rules = tuple(rules)
        self.node_frameworks = tuple(node_frameworks)
        self.python_frameworks = tuple(python_frameworks)
        self._content = content
        self._plugins = dict(plugins or {})

    def detect(
        self, root: Path | str, custom_detectors: Sequence[str] = ()
    ) -> List[StackTechnology]:
        root_path = Path(root)
        content = self._content or FileSystemContentProvider(root_path)

        detected = self._apply_rules(content)
        detected = self._apply_package_json(content, detected)
        detected = self._apply_pyproject(content, detected)
        detected.extend(self._run_custom_detectors(root_path, custom_detectors))
        return detected

    # ------------------------------------------------------------------
    # Rule evaluation

    def _apply_rules(self, content: ContentProvider) -> List[StackTechnology]:
        detected: List[StackTechnology] = []
        for rule in self.rules:
            confidence = self._match_rule(rule, content)
            if confidence is None:
                continue
            detected.append(
                StackTechnology(name=rule.name, category=rule.category, confidence=confidence)
            )
        return detected

    @staticmethod
    def _match_rule(rule: DetectionRule, content: ContentProvider) -> Optional[float]:
        for filename in rule.files:
            if not content.exists(filename):
                continue
            if not rule.keywords:
                return 1.0
            text = content.read_text(filename)
            if text is None:
                return 0.7
            if any(keyword in text for keyword in rule.keywords):
                return 1.0
            return 0.6
        return None

    # ------------------------------------------------------------------
    # Manifest heuristics

    def _apply_package_json(
        self, content: ContentProvider, detected: List[StackTechnology]
    ) -> List[StackTechnology]:
        text = content.read_text("package.json")
        if text is None:
            return detected
        try:
            package = json.loads(text)
        except json.JSONDecodeError:
            return detected
        if not isinstance(package, dict):
            return detected

        engines = package.get("engines")
        node_version = engines.get("node") if isinstance(engines, dict) else None
        if isinstance(node_version, str):
            detected = _set_version(detected, "Node.js", node_version)

        dependencies = _as_mapping(package.get("dependencies"))
        dev_dependencies = _as_mapping(package.get("devDependencies"))
        for dependency, label in self.node_frameworks:
            if dependency not in dependencies and dependency not in dev_dependencies:
                continue
            version = dependencies.get(dependency) or dev_dependencies.get(dependency)
            detected.append(
                StackTechnology(
                    name=label,
                    category="framework",
                    confidence=1.0,
                    version=strip_version_range(version),
                )
            )
        return detected

    def _apply_pyproject(
        self, content: ContentProvider, detected: List[StackTechnology]
    ) -> List[StackTechnology]:
        text = content.read_text("pyproject.toml")
        if text is None:
            return detected
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError:
            return detected

        project = data.get("project")
        if not isinstance(project, dict):
            return detected

        requires_python = project.get("requires-python")
        if isinstance(requires_python, str):
            detected = _set_version(detected, "Python", requires_python.strip())

        requirements = project.get("dependencies") or []
        if not isinstance(requirements, list):
            return detected
        declared: Dict[str, Optional[str]] = {}
        for requirement in requirements:
            if not isinstance(requirement, str):
                continue
            name, version = _split_requirement(requirement)
            if name:
                declared.setdefault(name.lower(), version)

        for dependency, label in self.python_frameworks:
            if dependency in declared:
                detected.append(
                    StackTechnology(
                        name=label,
                        category="framework",
                        confidence=1.0,
                        version=declared[dependency],
                    )
                )
        return detected

    # ------------------------------------------------------------------
    # Custom detectors

    def _run_custom_detectors(
        self, root: Path, names: Sequence[str]
    ) -> List[StackTechnology]:
        if not names:
            return []
        available = dict(_iter_entry_point_detectors())
        available.update(self._plugins)

        results: List[StackTechnology] = []
        for name in names:
            detector = available.get(name)
            if detector is None:
                logger.warning("Unknown stack detector '%s'; skipping", name)
                continue
            try:
                found = list(detector(root))
            except Exception as exc:
                logger.warning("Stack detector '%s' failed: %s", name, exc)
                continue
            results.extend(item for item in found if isinstance(item, StackTechnology))
        return results


def _as_mapping(value: object) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _set_version(
    detected: List[StackTechnology], name: str, version: str
) -> List[StackTechnology]:
    for index, tech in enumerate(detected):
        if tech.name == name:
            updated = list(detected)
            updated[index] = replace(tech, version=version)
            return updated
    return detected


def _split_requirement(requirement: str) -> tuple[str, Optional[str]]:
    name = _REQUIREMENT_SPLIT.split(requirement.strip(), 1)[0]
    remainder = requirement.strip()[len(name):]
    remainder = remainder.split(";", 1)[0]
    if remainder.lstrip().startswith("["):
        remainder = remainder.split("]", 1)[-1]
    first = remainder.split(",", 1)[0]
    version = _SPECIFIER_PREFIX.sub("", first).strip()
    return name, version or None


def _iter_entry_point_detectors() -> Iterable[tuple[str, StackDetectorPlugin]]:
    try:
        entry_points = metadata.entry_points()
    except Exception:  # pragma: no cover - defensive guard
        return []

    loaded: List[tuple[str, StackDetectorPlugin]] = []
    for entry in entry_points.select(group=_ENTRY_POINT_GROUP):
        try:
            loaded.append((entry.name, entry.load()))
        except Exception as exc:  # pragma: no cover - defensive guard
            logger.warning("Failed to load stack detector entry point '%s': %s", entry.name, exc)
    return loaded


__all__ = [
    "DEFAULT_STACK_RULES",
    "DetectionRule",
    "NODE_FRAMEWORK_DEPENDENCIES",
    "PYTHON_FRAMEWORK_DEPENDENCIES",
    "StackDetector",
    "strip_version_range",
]
