"""
Utility helpers for upkeep.

This package provides reusable utilities used across upkeep, including:

- Console output helpers (Rich-based)
- Logging configuration and retrieval
- Filesystem safety helpers
- Async HTTP client utilities
- npm version and range helpers

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Filesystem utilities
# ---------------------------------------------------------------------------

from upkeep.utils.filesystem import (
    create_timestamped_backup,
    safe_read_file,
    safe_write_file,
)

# ---------------------------------------------------------------------------
# Logging utilities
# ---------------------------------------------------------------------------

from upkeep.utils.logger import (
    get_logger,
    level_for_verbosity,
    setup_logging,
)

# ---------------------------------------------------------------------------
# Console utilities
# ---------------------------------------------------------------------------

from upkeep.utils.console import (
    build_table,
    colorize_update_type,
    get_raw_console,
    live_display,
    print_error,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)

# ---------------------------------------------------------------------------
# HTTP utilities
# ---------------------------------------------------------------------------

from upkeep.utils.http import HTTPClient

# ---------------------------------------------------------------------------
# Version utilities
# ---------------------------------------------------------------------------

from upkeep.utils.version_utils import (
    extract_modifier,
    get_update_type,
    match_simple_range,
    parse_range,
    parse_version,
    satisfies,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    # Console
    "build_table",
    "print_error",
    "print_table",
    "print_success",
    "print_warning",
    "get_raw_console",
    "live_display",
    "reconfigure_console",
    "colorize_update_type",
    # Logging
    "get_logger",
    "setup_logging",
    "level_for_verbosity",
    # Filesystem
    "safe_read_file",
    "safe_write_file",
    "create_timestamped_backup",
    # HTTP
    "HTTPClient",
    # Version utilities
    "extract_modifier",
    "get_update_type",
    "match_simple_range",
    "parse_range",
    "parse_version",
    "satisfies",
]
