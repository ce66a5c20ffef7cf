"""
Suggestion data models for upkeep.

A :class:`SuggestionSet` holds the three options offered for one
candidate: keep the current range, move to the newest compatible range,
or jump to the ``latest`` tag.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from upkeep.models.candidate import DependencyCandidate

#: Option keys in slot order, as shown to the user.
OPTION_KEYS: Tuple[str, str, str] = ("current", "range", "latest")


@dataclass(frozen=True)
class SuggestionOption:
    """
    One upgrade option.

    Attributes:
        value: Range to write, or ``None`` for "no change".
        label: Presentation string (Rich markup); empty when the slot has
            nothing to offer.
    """

    value: Optional[str]
    label: str

    @property
    def is_empty(self) -> bool:
        return self.label == ""


#: Placeholder for a slot with no meaningful upgrade.
EMPTY_OPTION = SuggestionOption(value=None, label="")


@dataclass(frozen=True)
class SuggestionSet:
    """
    Upgrade options resolved for one candidate.

    Attributes:
        candidate: The dependency the options apply to.
        options: Exactly three options: current, compatible, latest.
    """

    candidate: DependencyCandidate
    options: Tuple[SuggestionOption, SuggestionOption, SuggestionOption]

    def __post_init__(self) -> None:
        if len(self.options) != len(OPTION_KEYS):
            raise ValueError(
                f"SuggestionSet needs exactly {len(OPTION_KEYS)} options, "
                f"got {len(self.options)}"
            )

    @property
    def current(self) -> SuggestionOption:
        return self.options[0]

    @property
    def compatible(self) -> SuggestionOption:
        return self.options[1]

    @property
    def latest(self) -> SuggestionOption:
        return self.options[2]

    @property
    def labeled_count(self) -> int:
        """Number of options with a non-empty label."""
        return sum(1 for option in self.options if not option.is_empty)

    @property
    def has_upgrade(self) -> bool:
        """True when there is something besides the current range to offer."""
        return self.labeled_count > 1

    def choices(self) -> Dict[str, SuggestionOption]:
        """Return the labeled options keyed by ``current``/``range``/``latest``."""
        return {
            key: option
            for key, option in zip(OPTION_KEYS, self.options)
            if not option.is_empty
        }
