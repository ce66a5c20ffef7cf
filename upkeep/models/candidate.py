"""
Dependency candidate data model for upkeep.

A :class:`DependencyCandidate` is an immutable snapshot of one declared
dependency taken while scanning the workspaces. The live manifest entry
stays the source of truth; the snapshot only carries what the exclusion
matcher, the scheduler and the final merge need.
"""

from __future__ import annotations

import hashlib
from enum import Enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from upkeep.models.workspace import Workspace


class DependencyKind(str, Enum):
    """Manifest sections that hold upgradable dependencies."""

    DEPENDENCIES = "dependencies"
    DEV_DEPENDENCIES = "devDependencies"


def stringify_descriptor(name: str, range_expr: str) -> str:
    """Render a dependency descriptor as ``name@range``."""
    return f"{name}@{range_expr}"


def descriptor_hash(name: str, range_expr: str) -> str:
    """Return the stable identity of a ``name@range`` descriptor.

    Two entries declaring the same name with the same range share an
    identity, whichever workspace declares them.
    """
    descriptor = stringify_descriptor(name, range_expr)
    return hashlib.sha256(descriptor.encode("utf-8")).hexdigest()[:20]


@dataclass(frozen=True)
class DependencyCandidate:
    """
    One dependency entry under consideration for an upgrade.

    Attributes:
        name: Fully qualified package name (``@scope/name`` or ``name``).
        current_range: Range currently declared in the manifest.
        owning_workspace: Workspace that declared the entry (not owned).
        kind: Manifest section the entry was found in.
        identity_hash: Key correlating the candidate across filtering,
            scheduling and the final merge.
    """

    name: str
    current_range: str
    owning_workspace: "Workspace" = field(compare=False, repr=False)
    kind: DependencyKind = DependencyKind.DEPENDENCIES
    identity_hash: str = ""

    @classmethod
    def from_entry(
        cls,
        workspace: "Workspace",
        kind: DependencyKind,
        name: str,
        range_expr: str,
    ) -> "DependencyCandidate":
        """Snapshot a manifest entry, computing its identity hash."""
        return cls(
            name=name,
            current_range=range_expr,
            owning_workspace=workspace,
            kind=kind,
            identity_hash=descriptor_hash(name, range_expr),
        )

    @property
    def descriptor(self) -> str:
        """``name@range`` form, used for ordering and display."""
        return stringify_descriptor(self.name, self.current_range)
