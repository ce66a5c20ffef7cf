"""Fold the user's choices back into the workspace manifests.

Selections are keyed by candidate identity (the descriptor hash), so a
choice made for ``react@^18.0.0`` applies to every workspace that declares
exactly that descriptor.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from upkeep.models import Workspace, descriptor_hash
from upkeep.utils.logger import get_logger

logger = get_logger("core.aggregator")

__all__ = ["apply_selections"]


def apply_selections(
    workspaces: Iterable[Workspace],
    selections: Mapping[str, Optional[str]],
) -> bool:
    """Replace declared ranges with the chosen ones, in place.

    Args:
        workspaces: Every workspace of the project.
        selections: Candidate identity → chosen range. Missing entries and
            ``None`` values mean "leave unchanged".

    Returns:
        ``True`` when at least one manifest entry changed.

    Example::

        >>> apply_selections(project.workspaces, {})
        False
    """
    if not selections:
        return False

    changed = False
    for workspace in workspaces:
        # Snapshot first: set_range writes into the same maps
        entries = list(workspace.iter_dependencies())
        for kind, name, range_expr in entries:
            new_range = selections.get(descriptor_hash(name, range_expr))
            if new_range is None:
                continue

            if workspace.set_range(kind, name, new_range):
                logger.debug(
                    "%s: %s %s %s -> %s",
                    workspace,
                    kind.value,
                    name,
                    range_expr,
                    new_range,
                )
                changed = True

    return changed
