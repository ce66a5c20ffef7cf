"""
Command-line interface for upkeep.

This module provides the main CLI entry point and handles global options,
configuration loading, and command registration.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from upkeep.config import load_config
from upkeep.__version__ import __version__
from upkeep.context import UpkeepContext
from upkeep.exceptions import ConfigError, UpkeepError
from upkeep.commands import upgrade_interactive
from upkeep.utils.console import print_error, print_warning, reconfigure_console
from upkeep.utils.logger import get_logger, level_for_verbosity, setup_logging

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar="UPKEEP_CONFIG",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Enable or disable colored output.",
    envvar="UPKEEP_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="upkeep",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """upkeep: interactive dependency upgrades for JavaScript monorepos.

    \b
    Available commands:
      upkeep upgrade-interactive   Pick upgrades for every workspace

    \b
    Examples:
      upkeep upgrade-interactive
      upkeep upgrade-interactive @acme/web --exclude "@types/*"
      upkeep -v upgrade-interactive --backup

    Use ``upkeep COMMAND --help`` for command-specific options.
    """
    _configure_logging(verbose)

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    upkeep_ctx = UpkeepContext()
    upkeep_ctx.config_path = config or loaded_config.source_path
    upkeep_ctx.color = color
    upkeep_ctx.verbose = verbose
    upkeep_ctx.config = loaded_config
    ctx.obj = upkeep_ctx

    # Respect NO_COLOR for downstream libraries
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    logger.debug("upkeep v%s", __version__)
    logger.debug("Config path: %s", upkeep_ctx.config_path)
    if loaded_config.source_path:
        logger.debug("Loaded configuration: %s", loaded_config.to_log_dict())
    logger.debug("Verbosity: %s | Color: %s", verbose, color)


def _configure_logging(verbose: int) -> None:
    """Configure logging level based on verbosity flags."""
    level = level_for_verbosity(verbose)
    setup_logging(level=level)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))


cli.add_command(upgrade_interactive)


def main() -> int:
    """Main entry point for the upkeep CLI.

    Returns:
        Exit code:
            0   Success
            1   Application error or cancelled selection
            2   Usage error (Click), including a non-interactive terminal
            130 Interrupted by user (Ctrl+C)
    """
    try:
        result = cli(standalone_mode=False)
        return result if isinstance(result, int) else 0

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except click.Abort:
        print_warning("Aborted")
        return 1

    except UpkeepError as exc:
        print_error(str(exc))
        logger.debug(
            "UpkeepError details: %s",
            exc.details or "<none>",
            exc_info=True,
        )
        return 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1


if __name__ == "__main__":
    sys.exit(main())
