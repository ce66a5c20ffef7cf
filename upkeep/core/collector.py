"""Gather the dependency candidates offered for upgrade.

Every named workspace in scope contributes its ``dependencies`` and then
its ``devDependencies``. Entries pointing at workspaces of the same project
and entries matched by an exclusion rule are skipped; identical
descriptors declared by several workspaces collapse into one candidate
owned by the first workspace that declared it.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from upkeep.models import DependencyCandidate, Workspace
from upkeep.core.project import Project
from upkeep.core.exclusion import ExclusionMatcher
from upkeep.utils.logger import get_logger

logger = get_logger("core.collector")

__all__ = ["collect_candidates", "resolve_required_workspaces"]


def resolve_required_workspaces(
    project: Project, names: Iterable[str]
) -> Optional[List[Workspace]]:
    """Turn requested workspace names into workspaces.

    Returns:
        ``None`` when no names were requested (every workspace is in
        scope), the matching workspaces otherwise.

    Raises:
        UnknownWorkspace: A requested name is not a workspace of *project*.
    """
    requested = list(dict.fromkeys(names))
    if not requested:
        return None
    return [project.get_workspace_by_name(name) for name in requested]


def collect_candidates(
    project: Project,
    matcher: ExclusionMatcher,
    cwd: str,
    required: Optional[Sequence[Workspace]] = None,
) -> List[DependencyCandidate]:
    """Build the ordered, deduplicated candidate list.

    Args:
        project: Project whose workspaces are scanned.
        matcher: Exclusion rules to apply.
        cwd: Invocation directory, used by directory-scoped rules.
        required: Restrict the scan to these workspaces.

    Returns:
        Candidates sorted by their ``name@range`` descriptor.
    """
    scope = project.workspaces if required is None else required
    by_identity: Dict[str, DependencyCandidate] = {}
    skipped = excluded = 0

    for workspace in scope:
        if workspace.name is None:
            logger.debug("Skipping unnamed workspace at %s", workspace.cwd)
            continue

        for kind, name, range_expr in workspace.iter_dependencies():
            if project.is_workspace_dependency(name, range_expr):
                skipped += 1
                continue

            candidate = DependencyCandidate.from_entry(workspace, kind, name, range_expr)
            if matcher and matcher.is_excluded(candidate, cwd):
                excluded += 1
                continue

            by_identity.setdefault(candidate.identity_hash, candidate)

    logger.info(
        "Collected %d candidate(s) (%d workspace dependencies, %d excluded)",
        len(by_identity),
        skipped,
        excluded,
    )
    return sorted(by_identity.values(), key=lambda candidate: candidate.descriptor)
