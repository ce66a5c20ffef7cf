from __future__ import annotations

import pytest

from upkeep.models import EMPTY_OPTION, SuggestionOption, SuggestionSet


def _suggestion(candidate, compatible=EMPTY_OPTION, latest=EMPTY_OPTION) -> SuggestionSet:
    current = SuggestionOption(value=None, label=candidate.current_range)
    return SuggestionSet(candidate=candidate, options=(current, compatible, latest))


@pytest.mark.unit
class TestSuggestionOption:
    def test_empty_option(self) -> None:
        assert EMPTY_OPTION.is_empty
        assert EMPTY_OPTION.value is None

    def test_labeled_option(self) -> None:
        assert not SuggestionOption(value="^2.0.0", label="^2.0.0").is_empty


@pytest.mark.unit
class TestSuggestionSet:
    """Tests for SuggestionSet."""

    def test_requires_three_options(self, make_candidate) -> None:
        candidate = make_candidate("react", "^18.0.0")

        with pytest.raises(ValueError, match="exactly 3"):
            SuggestionSet(candidate=candidate, options=(EMPTY_OPTION,))  # type: ignore[arg-type]

    def test_only_current_has_no_upgrade(self, make_candidate) -> None:
        suggestion = _suggestion(make_candidate("react", "^18.0.0"))

        assert suggestion.labeled_count == 1
        assert suggestion.has_upgrade is False

    def test_accessors_and_choices(self, make_candidate) -> None:
        latest = SuggestionOption(value="^19.0.0", label="^19.0.0")
        suggestion = _suggestion(make_candidate("react", "^18.0.0"), latest=latest)

        assert suggestion.has_upgrade is True
        assert suggestion.compatible is EMPTY_OPTION
        assert suggestion.latest is latest
        assert list(suggestion.choices()) == ["current", "latest"]
        assert suggestion.choices()["latest"].value == "^19.0.0"

    def test_all_slots_filled(self, make_candidate) -> None:
        suggestion = _suggestion(
            make_candidate("react", "^18.0.0"),
            compatible=SuggestionOption(value="^18.3.1", label="^18.3.1"),
            latest=SuggestionOption(value="^19.0.0", label="^19.0.0"),
        )

        assert suggestion.labeled_count == 3
        assert list(suggestion.choices()) == ["current", "range", "latest"]
