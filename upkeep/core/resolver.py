"""Resolve upgrade suggestions for a single dependency candidate.

For every candidate two questions are put to the version oracle:

1. **compatible** — the newest range matching what is declared today
   (an exact pin ``1.2.3`` is widened to ``^1.2.3`` for this lookup);
2. **latest** — whatever the ``latest`` dist-tag points to.

Both lookups run concurrently and fail independently: an oracle error only
empties the affected slot. Labels are Rich markup that highlight the part
of the version that changes (gray modifier, red major, yellow minor, green
patch, magenta prerelease).
"""

from __future__ import annotations

import re
import asyncio
import difflib
from typing import List, Optional, Protocol

from rich.markup import escape

from upkeep.constants import LATEST_TAG
from upkeep.models import (
    EMPTY_OPTION,
    DependencyCandidate,
    SuggestionOption,
    SuggestionSet,
)
from upkeep.utils.logger import get_logger
from upkeep.utils.version_utils import is_concrete_version, match_simple_range

logger = get_logger("core.resolver")

__all__ = [
    "VersionOracle",
    "SuggestionResolver",
    "colorize_version_diff",
    "colorize_raw_diff",
]

#: Colors per SIMPLE_SEMVER group: modifier, major, minor, patch, prerelease.
SEMVER_COLORS = ("gray", "red", "yellow", "green", "magenta")

_WORD = re.compile(r"\w+|\s+|[^\w\s]+")


class VersionOracle(Protocol):
    """Anything able to resolve a range expression for a dependency."""

    async def fetch_range(
        self,
        candidate: DependencyCandidate,
        range_expr: str,
    ) -> Optional[str]:
        """Return the resolved range, or ``None`` when nothing matches."""
        ...


# ---------------------------------------------------------------------------
# Label formatting
# ---------------------------------------------------------------------------


def _paint(text: str, color: str) -> str:
    return f"[{color}]{escape(text)}[/{color}]"


def colorize_raw_diff(current: str, target: str) -> str:
    """Highlight the words of *target* that are not in *current*.

    Used when either side is not a simple ``[modifier]X.Y.Z`` range.
    """
    before = _WORD.findall(current)
    after = _WORD.findall(target)
    matcher = difflib.SequenceMatcher(a=before, b=after, autojunk=False)

    parts: List[str] = []
    for tag, _, _, start, end in matcher.get_opcodes():
        chunk = "".join(after[start:end])
        if not chunk:
            continue
        if tag == "equal":
            parts.append(escape(chunk))
        else:
            parts.append(_paint(chunk, "green"))
    return "".join(parts)


def colorize_version_diff(current: str, target: str) -> str:
    """Render *target* with everything from the first changed segment colored.

    Example::

        >>> colorize_version_diff("^1.2.3", "^1.4.0")
        '^1[yellow].4[/yellow][yellow].0[/yellow]'
    """
    if current == target:
        return escape(target)

    matched_current = match_simple_range(current)
    matched_target = match_simple_range(target)
    if matched_current is None or matched_target is None:
        return colorize_raw_diff(current, target)

    color: Optional[str] = None
    parts: List[str] = []
    for group, segment_color in enumerate(SEMVER_COLORS, start=1):
        segment = matched_target.group(group)
        if color is None and matched_current.group(group) != segment:
            color = segment_color
        if not segment:
            continue
        parts.append(_paint(segment, color) if color else escape(segment))
    return "".join(parts)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class SuggestionResolver:
    """Build the three-option :class:`SuggestionSet` for a candidate.

    Args:
        oracle: Version oracle queried for the compatible and latest ranges.

    Example::

        >>> resolver = SuggestionResolver(oracle)
        >>> suggestion = await resolver.resolve(candidate)
        >>> suggestion.latest.value if suggestion else None
        '^19.1.0'
    """

    def __init__(self, oracle: VersionOracle) -> None:
        self.oracle = oracle

    async def resolve(self, candidate: DependencyCandidate) -> Optional[SuggestionSet]:
        """Resolve suggestions for *candidate*.

        Returns:
            The suggestion set, or ``None`` when there is nothing to upgrade
            to (the candidate must then be left out of the list).
        """
        current = candidate.current_range
        reference = f"^{current}" if is_concrete_version(current) else current

        compatible, latest = await asyncio.gather(
            self._fetch(candidate, reference),
            self._fetch(candidate, LATEST_TAG),
        )

        options = [SuggestionOption(value=None, label=escape(current))]

        if compatible and compatible != current:
            options.append(
                SuggestionOption(
                    value=compatible,
                    label=colorize_version_diff(current, compatible),
                )
            )
        else:
            options.append(EMPTY_OPTION)

        if latest and latest != compatible and latest != current:
            options.append(
                SuggestionOption(
                    value=latest,
                    label=colorize_version_diff(current, latest),
                )
            )
        else:
            options.append(EMPTY_OPTION)

        suggestion = SuggestionSet(
            candidate=candidate,
            options=(options[0], options[1], options[2]),
        )
        if not suggestion.has_upgrade:
            logger.debug("No upgrade available for %s", candidate.descriptor)
            return None
        return suggestion

    async def _fetch(
        self,
        candidate: DependencyCandidate,
        range_expr: str,
    ) -> Optional[str]:
        """Query the oracle, degrading any failure to "no suggestion"."""
        try:
            return await self.oracle.fetch_range(candidate, range_expr)
        except Exception as exc:  # noqa: BLE001
            logger.debug(
                "Lookup of %s for %s failed: %s",
                range_expr,
                candidate.name,
                exc,
            )
            return None
