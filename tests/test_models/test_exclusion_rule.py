from __future__ import annotations

import dataclasses

import pytest

from upkeep.models import ExclusionRule


@pytest.mark.unit
class TestExclusionRule:
    """Tests for the ExclusionRule model."""

    def test_defaults(self) -> None:
        rule = ExclusionRule("react")

        assert rule.workspace_scope is None
        assert rule.directory_scope is None
        assert rule.version_constraint is None
        assert rule.has_location is False

    def test_is_frozen(self) -> None:
        rule = ExclusionRule("react")

        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.name_pattern = "vue"  # type: ignore[misc]

    @pytest.mark.parametrize(
        "rule, expected",
        [
            (ExclusionRule("react"), "react"),
            (ExclusionRule("@types/*", version_constraint="^20"), "@types/*@^20"),
            (
                ExclusionRule("react", workspace_scope="@acme/web"),
                "@acme/web#react",
            ),
            (
                ExclusionRule("lodash", directory_scope="/repo", version_constraint="4.*"),
                "/repo#lodash@4.*",
            ),
        ],
    )
    def test_str_renders_token(self, rule: ExclusionRule, expected: str) -> None:
        assert str(rule) == expected

    def test_location_flag(self) -> None:
        assert ExclusionRule("a", workspace_scope="@acme/web").has_location
        assert ExclusionRule("a", directory_scope="/repo").has_location
