"""
Core functionality exports for upkeep.

This module provides convenient access to the core subsystems of upkeep.
Importing from here keeps user-facing imports clean and stable:

    from upkeep.core import ExclusionMatcher, SuggestionScheduler
"""

from __future__ import annotations

from upkeep.core.project import Project, load_workspace
from upkeep.core.registry import RegistryOracle
from upkeep.core.resolver import SuggestionResolver, VersionOracle
from upkeep.core.aggregator import apply_selections
from upkeep.core.exclusion import ExclusionMatcher, ExclusionSpecParser, matches_glob
from upkeep.core.scheduler import SlotState, SuggestionBoard, SuggestionScheduler
from upkeep.core.collector import collect_candidates, resolve_required_workspaces

__all__ = [
    "Project",
    "load_workspace",
    "RegistryOracle",
    "SuggestionResolver",
    "VersionOracle",
    "apply_selections",
    "ExclusionMatcher",
    "ExclusionSpecParser",
    "matches_glob",
    "SlotState",
    "SuggestionBoard",
    "SuggestionScheduler",
    "collect_candidates",
    "resolve_required_workspaces",
]
