"""
Version helpers for upkeep.

npm-style semantics (node-semver) are provided by ``semantic_version``:
:class:`~semantic_version.Version` for concrete versions and
:class:`~semantic_version.NpmSpec` for range expressions. The helpers here
never raise on malformed input; they answer ``None``/``False`` instead,
which is how the exclusion matcher and the suggestion resolver consume them.
"""

from __future__ import annotations

import re
from typing import Match, Optional, Tuple

from semantic_version import NpmSpec, Version

from upkeep.constants import NPM_PROTOCOL

#: A single version with an optional range modifier, split into
#: (modifier, major, .minor, .patch, -prerelease).
SIMPLE_SEMVER = re.compile(
    r"^((?:[\^~]|>=?)?)([0-9]+)(\.[0-9]+)(\.[0-9]+)((?:-\S+)?)$"
)

#: SIMPLE_SEMVER groups compared by get_update_type, most significant first.
_SEGMENTS: Tuple[Tuple[int, str], ...] = (
    (2, "major"),
    (3, "minor"),
    (4, "patch"),
    (5, "prerelease"),
)


def parse_version(value: str) -> Optional[Version]:
    """Parse a concrete version, tolerating a leading ``v``.

    Returns:
        The parsed version, or ``None`` when *value* is not a single
        semantic version (ranges, tags, protocols...).

    Example::

        >>> parse_version("18.2.0")
        Version('18.2.0')
        >>> parse_version("^18.2.0") is None
        True
    """
    candidate = value.strip()
    if candidate.startswith("v"):
        candidate = candidate[1:]
    try:
        return Version(candidate)
    except ValueError:
        return None


def is_concrete_version(value: str) -> bool:
    """Return True when *value* is an exact version rather than a range."""
    return parse_version(value) is not None


def parse_range(value: str) -> Optional[NpmSpec]:
    """Parse an npm range expression, returning ``None`` when invalid."""
    try:
        return NpmSpec(value.strip())
    except ValueError:
        return None


def is_valid_range(value: str) -> bool:
    """Return True when *value* is a valid npm range expression."""
    return parse_range(value) is not None


def satisfies(version: str, range_expr: str) -> bool:
    """Check whether a concrete *version* falls within *range_expr*.

    Either side failing to parse yields ``False``.

    Example::

        >>> satisfies("18.2.0", "^18.0.0")
        True
        >>> satisfies("^18.2.0", "^18.0.0")
        False
    """
    parsed = parse_version(version)
    spec = parse_range(range_expr)
    if parsed is None or spec is None:
        return False
    return spec.match(parsed)


def strip_npm_protocol(range_expr: str) -> str:
    """Remove a leading ``npm:`` alias protocol from a range expression."""
    if range_expr.startswith(NPM_PROTOCOL):
        return range_expr[len(NPM_PROTOCOL):]
    return range_expr


def match_simple_range(range_expr: str) -> Optional[Match[str]]:
    """Match a ``[modifier]MAJOR.MINOR.PATCH[-pre]`` range.

    The protocol prefix (``npm:``) is ignored.
    """
    return SIMPLE_SEMVER.match(strip_npm_protocol(range_expr))


def extract_modifier(range_expr: str) -> Optional[str]:
    """Return the modifier of a simple declared range.

    Returns:
        ``"^"``, ``"~"``, ``">="``, ``">"`` or ``""`` for an exact pin;
        ``None`` when the range is not a single, optionally prefixed,
        version (``"1.x"``, ``">=1.0.0 <2.0.0"``, ``"latest"``...).

    Example::

        >>> extract_modifier("~1.2.3")
        '~'
        >>> extract_modifier("1.x") is None
        True
    """
    match = match_simple_range(range_expr.strip())
    if match is None:
        return None
    return match.group(1)


def get_update_type(current_range: str, target_range: str) -> str:
    """Classify the change between two simple ranges.

    Args:
        current_range: Range currently declared, e.g. ``"^1.2.3"``.
        target_range: Proposed range, e.g. ``"^1.4.0"``.

    Returns:
        One of ``"same"``, ``"major"``, ``"minor"``, ``"patch"``,
        ``"prerelease"``, ``"update"`` (modifier-only change) or
        ``"unknown"`` when either side is not a simple range.

    Examples:
        >>> get_update_type("^1.0.0", "^2.0.0")
        'major'
        >>> get_update_type("~1.2.3", "~1.2.4")
        'patch'
    """
    if current_range == target_range:
        return "same"

    current = match_simple_range(current_range)
    target = match_simple_range(target_range)
    if current is None or target is None:
        return "unknown"

    for index, label in _SEGMENTS:
        if current.group(index) != target.group(index):
            return label

    return "update"
