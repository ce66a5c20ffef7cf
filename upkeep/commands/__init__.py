"""CLI subcommands for upkeep."""

from __future__ import annotations

from upkeep.commands.upgrade import upgrade_interactive

__all__ = ["upgrade_interactive"]
