"""
Exclusion rule data model for upkeep.

An :class:`ExclusionRule` is the structured form of one ``--exclude``
token such as ``@acme/web#react@^18.0.0``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ExclusionRule:
    """
    One parsed exclusion token.

    ``workspace_scope`` and ``directory_scope`` are mutually exclusive; a
    rule with neither applies everywhere, and a rule without
    ``version_constraint`` applies to every declared range.

    Attributes:
        name_pattern: Glob (``*``/``?``) matched against the fully qualified
            dependency name.
        workspace_scope: Exact workspace identifier (``@scope/name``).
        directory_scope: Exact directory the command must be run from.
        version_constraint: npm range, or a glob when not a valid range,
            matched against the declared range of the dependency.
    """

    name_pattern: str
    workspace_scope: Optional[str] = None
    directory_scope: Optional[str] = None
    version_constraint: Optional[str] = None

    @property
    def has_location(self) -> bool:
        """True when the rule is restricted to a workspace or directory."""
        return bool(self.workspace_scope or self.directory_scope)

    def __str__(self) -> str:
        location = self.workspace_scope or self.directory_scope
        text = f"{location}#{self.name_pattern}" if location else self.name_pattern
        if self.version_constraint:
            text += f"@{self.version_constraint}"
        return text
