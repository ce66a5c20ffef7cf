"""
Workspace data model for upkeep.

A :class:`Workspace` wraps one ``package.json`` manifest. Unlike the
candidate snapshots, it is live: upgrades chosen by the user are written
into its dependency maps in place and the workspace remembers that it
needs to be persisted.
"""

from __future__ import annotations

import json
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from upkeep.models.candidate import DependencyKind


@dataclass(eq=False)
class Workspace:
    """
    One workspace of a project.

    Attributes:
        cwd: Directory holding the manifest.
        manifest: Parsed ``package.json`` content (insertion ordered).
        manifest_path: Path to the manifest file.
        indent: Indentation detected in the original file, reused on write.
        trailing_newline: Whether the original file ended with a newline.
        modified: Set once any dependency range has been changed.
    """

    cwd: Path
    manifest: Dict[str, Any] = field(default_factory=dict)
    manifest_path: Optional[Path] = None
    indent: Union[int, str] = 2
    trailing_newline: bool = True
    modified: bool = False

    @property
    def name(self) -> Optional[str]:
        """Manifest name (``@scope/name`` or ``name``), if declared."""
        value = self.manifest.get("name")
        return value if isinstance(value, str) and value else None

    @property
    def scope(self) -> Optional[str]:
        """Scope without the leading ``@``, or ``None`` for bare names."""
        name = self.name
        if name and name.startswith("@") and "/" in name:
            return name[1:].split("/", 1)[0]
        return None

    @property
    def version(self) -> Optional[str]:
        value = self.manifest.get("version")
        return value if isinstance(value, str) else None

    def get_dependencies(self, kind: DependencyKind) -> Dict[str, str]:
        """Return the live dependency map for *kind* (empty when absent)."""
        section = self.manifest.get(kind.value)
        if not isinstance(section, dict):
            return {}
        return section

    def iter_dependencies(self) -> Iterator[Tuple[DependencyKind, str, str]]:
        """Yield ``(kind, name, range)`` for every upgradable entry.

        ``dependencies`` come before ``devDependencies``; within a section
        the manifest order is preserved. Non-string ranges are skipped.
        """
        for kind in DependencyKind:
            for name, range_expr in self.get_dependencies(kind).items():
                if isinstance(range_expr, str):
                    yield kind, name, range_expr

    def set_range(self, kind: DependencyKind, name: str, range_expr: str) -> bool:
        """Replace the declared range of an existing entry in place.

        Returns:
            ``True`` when the entry existed and its range changed.
        """
        section = self.get_dependencies(kind)
        if name not in section or section[name] == range_expr:
            return False

        section[name] = range_expr
        self.modified = True
        return True

    def to_json(self) -> str:
        """Serialize the manifest using the original file's formatting."""
        text = json.dumps(self.manifest, indent=self.indent, ensure_ascii=False)
        return text + "\n" if self.trailing_newline else text

    def __str__(self) -> str:
        return self.name or str(self.cwd)
