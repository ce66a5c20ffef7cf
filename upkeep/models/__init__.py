"""
Unified data model exports for upkeep.

This module re-exports all core data models to provide a stable and
convenient public API. Users can import models directly from
``upkeep.models`` instead of individual submodules.

Example:
    >>> from upkeep.models import DependencyCandidate, ExclusionRule
"""

from __future__ import annotations

from upkeep.models.exclusion import ExclusionRule
from upkeep.models.workspace import Workspace
from upkeep.models.candidate import (
    DependencyCandidate,
    DependencyKind,
    descriptor_hash,
    stringify_descriptor,
)
from upkeep.models.suggestion import (
    EMPTY_OPTION,
    OPTION_KEYS,
    SuggestionOption,
    SuggestionSet,
)

__all__ = [
    "ExclusionRule",
    "Workspace",
    "DependencyCandidate",
    "DependencyKind",
    "descriptor_hash",
    "stringify_descriptor",
    "SuggestionOption",
    "SuggestionSet",
    "EMPTY_OPTION",
    "OPTION_KEYS",
]
