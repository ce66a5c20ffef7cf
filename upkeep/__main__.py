"""
Executable module for upkeep.

Running:
    python -m upkeep

is equivalent to:
    upkeep

This module simply forwards execution to the CLI entrypoint defined in
`upkeep.cli`.
"""

from __future__ import annotations

import sys


def _print_startup_error(exc: BaseException) -> None:
    """Report a failure to import the CLI on stderr."""
    try:
        from upkeep.__version__ import __version__

        version = __version__
    except ImportError:
        version = "<unknown>"

    sys.stderr.write(f"Python version : {sys.version}\n")
    sys.stderr.write(f"upkeep version: {version}\n")
    sys.stderr.write("\n")
    sys.stderr.write(f"ImportError: {exc}\n")


def main() -> int:
    """
    Main entrypoint when executing `python -m upkeep`.

    Returns:
        Exit code returned by the CLI.
    """
    try:
        # Import lazily so dependencies are only loaded during CLI use
        from upkeep.cli import main as cli_main
    except ImportError as exc:
        _print_startup_error(exc)
        return 1

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
