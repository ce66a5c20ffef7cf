"""Filesystem-backed project and workspace discovery.

A project is the directory tree rooted at the nearest ``package.json``
declaring ``workspaces``; its workspaces are the root itself plus every
directory matched by those globs that holds a ``package.json``::

    {
      "name": "acme",
      "private": true,
      "workspaces": ["packages/*", "tools/*", "!tools/legacy"]
    }

The object form ``{"workspaces": {"packages": [...]}}`` is accepted too.
When no ancestor declares workspaces, the nearest manifest forms a
single-workspace project.
"""

from __future__ import annotations

import re
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from upkeep.constants import MANIFEST_NAME
from upkeep.models import Workspace
from upkeep.exceptions import (
    FileOperationError,
    ManifestError,
    UnknownWorkspace,
)
from upkeep.utils.logger import get_logger
from upkeep.utils.version_utils import satisfies
from upkeep.utils.filesystem import (
    create_timestamped_backup,
    safe_read_file,
    safe_write_file,
)

logger = get_logger("core.project")

__all__ = ["Project", "load_workspace"]

_INDENT = re.compile(r"^[{\[][ \t]*\r?\n([ \t]+)\S")

WORKSPACE_PROTOCOL = "workspace:"


def _detect_indent(text: str) -> Union[int, str]:
    """Return the indentation unit of a JSON document (default: 2 spaces)."""
    match = _INDENT.match(text)
    if not match:
        return 2
    indent = match.group(1)
    return indent if "\t" in indent else len(indent)


def load_workspace(directory: Path) -> Workspace:
    """Read ``directory/package.json`` into a :class:`Workspace`.

    Raises:
        ManifestError: The manifest is missing, unreadable, or not a JSON
            object.
    """
    manifest_path = directory / MANIFEST_NAME
    try:
        text = safe_read_file(manifest_path, encoding="utf-8-sig")
    except FileOperationError as exc:
        raise ManifestError(exc.message, manifest_path=str(manifest_path)) from exc

    try:
        manifest = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestError(
            f"Invalid JSON in {MANIFEST_NAME}: {exc}",
            manifest_path=str(manifest_path),
        ) from exc

    if not isinstance(manifest, dict):
        raise ManifestError(
            f"Expected a JSON object in {MANIFEST_NAME}",
            manifest_path=str(manifest_path),
        )

    return Workspace(
        cwd=directory,
        manifest=manifest,
        manifest_path=manifest_path,
        indent=_detect_indent(text),
        trailing_newline=text.endswith("\n"),
    )


def _workspace_patterns(manifest: Dict[str, Any]) -> Optional[List[str]]:
    """Return the ``workspaces`` globs of a manifest, or ``None`` if unset."""
    declared = manifest.get("workspaces")
    if isinstance(declared, dict):
        declared = declared.get("packages")
    if not isinstance(declared, list):
        return None
    return [pattern for pattern in declared if isinstance(pattern, str)]


class Project:
    """A set of workspaces sharing one root.

    Args:
        cwd: Root directory of the project.
        workspaces: Every workspace, the root first.
    """

    def __init__(self, cwd: Path, workspaces: Sequence[Workspace]) -> None:
        self.cwd = cwd
        self.workspaces: List[Workspace] = list(workspaces)

    @classmethod
    def find(cls, start: Path) -> "Project":
        """Locate the project containing *start*.

        Raises:
            ManifestError: No ``package.json`` exists in *start* or any of
                its parents, or a manifest cannot be parsed.
        """
        start = start.resolve()
        nearest: Optional[Path] = None

        for directory in (start, *start.parents):
            if not (directory / MANIFEST_NAME).is_file():
                continue
            if nearest is None:
                nearest = directory
            root = load_workspace(directory)
            patterns = _workspace_patterns(root.manifest)
            if patterns is not None:
                logger.debug("Project root %s (workspaces: %s)", directory, patterns)
                return cls(directory, [root, *cls._expand(directory, patterns)])

        if nearest is None:
            raise ManifestError(
                f"No {MANIFEST_NAME} found in {start} or any parent directory",
                manifest_path=str(start / MANIFEST_NAME),
            )

        logger.debug("Single-workspace project at %s", nearest)
        return cls(nearest, [load_workspace(nearest)])

    @staticmethod
    def _expand(root: Path, patterns: Iterable[str]) -> List[Workspace]:
        included: List[Path] = []
        excluded = set()

        for pattern in patterns:
            negated = pattern.startswith("!")
            glob = pattern[1:] if negated else pattern
            glob = glob.strip().rstrip("/")
            if glob.startswith("./"):
                glob = glob[2:]
            if not glob:
                continue

            for match in sorted(root.glob(glob)):
                if "node_modules" in match.relative_to(root).parts:
                    continue
                if not (match / MANIFEST_NAME).is_file():
                    continue
                resolved = match.resolve()
                if negated:
                    excluded.add(resolved)
                elif resolved != root and resolved not in included:
                    included.append(resolved)

        return [load_workspace(path) for path in included if path not in excluded]

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def top_level_workspace(self) -> Workspace:
        return self.workspaces[0]

    def workspace_for(self, cwd: Path) -> Optional[Workspace]:
        """Return the deepest workspace containing *cwd*, if any."""
        target = cwd.resolve()
        best: Optional[Tuple[int, Workspace]] = None
        for workspace in self.workspaces:
            location = workspace.cwd.resolve()
            if target == location or location in target.parents:
                depth = len(location.parts)
                if best is None or depth > best[0]:
                    best = (depth, workspace)
        return best[1] if best else None

    def get_workspace_by_name(self, name: str) -> Workspace:
        """Return the workspace whose manifest is named *name*.

        Raises:
            UnknownWorkspace: No workspace has that name.
        """
        for workspace in self.workspaces:
            if workspace.name == name:
                return workspace
        raise UnknownWorkspace(name, project_cwd=str(self.cwd))

    def is_workspace_dependency(self, name: str, range_expr: str) -> bool:
        """Tell whether ``name@range`` points at a workspace of this project.

        ``workspace:`` ranges always do; other ranges do when a workspace
        carries that name and its version satisfies the range (or it has
        no version).
        """
        if range_expr.startswith(WORKSPACE_PROTOCOL):
            return True

        for workspace in self.workspaces:
            if workspace.name != name:
                continue
            if workspace.version is None or range_expr in ("*", ""):
                return True
            return satisfies(workspace.version, range_expr)
        return False

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def persist(self, *, backup: bool = False) -> List[Path]:
        """Write every modified manifest back to disk.

        Args:
            backup: Create a timestamped copy of each manifest first.

        Returns:
            Paths of the manifests that were written.
        """
        written: List[Path] = []
        for workspace in self.workspaces:
            if not workspace.modified or workspace.manifest_path is None:
                continue

            if backup:
                backup_path = create_timestamped_backup(workspace.manifest_path)
                logger.info("Created backup: %s", backup_path)

            safe_write_file(workspace.manifest_path, workspace.to_json())
            workspace.modified = False
            written.append(workspace.manifest_path)
            logger.debug("Wrote %s", workspace.manifest_path)

        return written
