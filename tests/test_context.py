from __future__ import annotations

from pathlib import Path

import click
import pytest

from upkeep.config import UpkeepConfig
from upkeep.context import UpkeepContext, pass_context


@pytest.mark.unit
class TestUpkeepContext:
    """Tests for UpkeepContext."""

    def test_defaults(self) -> None:
        ctx = UpkeepContext()

        assert ctx.config_path is None
        assert ctx.verbose == 0
        assert ctx.color is True
        assert isinstance(ctx.config, UpkeepConfig)
        assert ctx.config.exclude == []

    def test_instances_do_not_share_config(self) -> None:
        first = UpkeepContext()
        second = UpkeepContext()

        first.config.exclude.append("react")

        assert second.config.exclude == []

    def test_attributes_can_be_set(self) -> None:
        ctx = UpkeepContext()
        config = UpkeepConfig(concurrent_limit=3)

        ctx.config_path = Path("/repo/upkeep.toml")
        ctx.verbose = 2
        ctx.color = False
        ctx.config = config

        assert ctx.config_path == Path("/repo/upkeep.toml")
        assert ctx.verbose == 2
        assert ctx.color is False
        assert ctx.config is config

    def test_slots_reject_unknown_attributes(self) -> None:
        ctx = UpkeepContext()

        with pytest.raises(AttributeError):
            ctx.workspace = "web"  # type: ignore[attr-defined]


@pytest.mark.unit
class TestPassContext:
    """Tests for the pass_context decorator."""

    def test_injects_existing_context(self) -> None:
        @click.command()
        @pass_context
        def command(ctx: UpkeepContext) -> UpkeepContext:
            return ctx

        click_ctx = click.Context(click.Command("test"))
        upkeep_ctx = UpkeepContext()
        click_ctx.obj = upkeep_ctx

        assert click_ctx.invoke(command) is upkeep_ctx

    def test_creates_context_when_missing(self) -> None:
        @click.command()
        @pass_context
        def command(ctx: UpkeepContext) -> UpkeepContext:
            return ctx

        click_ctx = click.Context(click.Command("test"))
        result = click_ctx.invoke(command)

        assert isinstance(result, UpkeepContext)
        assert result.verbose == 0
