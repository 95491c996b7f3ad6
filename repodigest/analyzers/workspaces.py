"""Workspace package discovery from package.json and pnpm-workspace.yaml."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..logging import get_logger
from ..models import WorkspacePackage

logger = get_logger("workspaces")


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _load_json(path: Path) -> Dict[str, Any] | None:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.debug("Skipping manifest %s: %s", path, exc)
        return None
    return data if isinstance(data, dict) else None


class WorkspaceDiscovery:
    """Finds the root package and every package a workspace declaration matches."""

    def __init__(
        self,
        manifest: str = "package.json",
        pnpm_manifest: str = "pnpm-workspace.yaml",
    ) -> None:
        self.manifest = manifest
        self.pnpm_manifest = pnpm_manifest

    def discover(self, root: Path | str) -> List[WorkspacePackage]:
        root_path = Path(root)
        packages: List[WorkspacePackage] = []
        seen_dirs: set[str] = set()

        root_manifest = _load_json(root_path / self.manifest)
        if root_manifest is not None:
            packages.append(
                WorkspacePackage(
                    name=_as_str(root_manifest.get("name")) or "root",
                    relative_dir=".",
                    version=_as_str(root_manifest.get("version")),
                    description=_as_str(root_manifest.get("description")),
                    is_workspace_root=True,
                )
            )
            seen_dirs.add(".")
            for pattern in self._npm_globs(root_manifest):
                packages.extend(self._expand(root_path, pattern, seen_dirs))

        for pattern in self._pnpm_globs(root_path / self.pnpm_manifest):
            packages.extend(self._expand(root_path, pattern, seen_dirs))

        return packages

    # ------------------------------------------------------------------
    # Declarations

    @staticmethod
    def _npm_globs(manifest: Dict[str, Any]) -> List[str]:
        declared = manifest.get("workspaces")
        if isinstance(declared, dict):
            declared = declared.get("packages")
        if not isinstance(declared, list):
            return []
        return [item for item in declared if isinstance(item, str)]

    def _pnpm_globs(self, path: Path) -> List[str]:
        if not path.is_file():
            return []
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            logger.debug("Skipping %s: %s", path.name, exc)
            return []
        if not isinstance(data, dict):
            return []
        declared = data.get("packages")
        if not isinstance(declared, list):
            return []
        return [item for item in declared if isinstance(item, str)]

    # ------------------------------------------------------------------
    # Expansion

    def _expand(
        self, root: Path, pattern: str, seen_dirs: set[str]
    ) -> List[WorkspacePackage]:
        pattern = pattern.strip().strip("/")
        if not pattern or pattern.startswith("!"):
            return []
        if pattern.startswith("./"):
            pattern = pattern[2:]

        found: List[WorkspacePackage] = []
        try:
            candidates = sorted(root.glob(f"{pattern}/{self.manifest}"))
        except (OSError, ValueError) as exc:
            logger.debug("Invalid workspace glob %r: %s", pattern, exc)
            return []

        for manifest_path in candidates:
            relative = manifest_path.relative_to(root).parent.as_posix()
            if "node_modules" in relative.split("/") or relative in seen_dirs:
                continue
            data = _load_json(manifest_path)
            if data is None:
                continue
            seen_dirs.add(relative)
            found.append(
                WorkspacePackage(
                    name=_as_str(data.get("name")) or relative,
                    relative_dir=relative,
                    version=_as_str(data.get("version")),
                    description=_as_str(data.get("description")),
                )
            )
        return found


__all__ = ["WorkspaceDiscovery"]
