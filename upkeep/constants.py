"""
Centralized constants for upkeep.

This module defines immutable configuration values used across upkeep,
including registry endpoints, network settings, terminal layout, manifest
handling, and logging formats. All values are intended to be treated as
read-only.
"""

from typing import Final, Sequence

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "upkeep/{version}"

# ---------------------------------------------------------------------------
# Registry endpoints
# ---------------------------------------------------------------------------

#: Default npm-compatible registry.
DEFAULT_REGISTRY: Final[str] = "https://registry.npmjs.org"

#: Media type requesting the abbreviated packument (versions + dist-tags).
REGISTRY_ACCEPT_HEADER: Final[str] = (
    "application/vnd.npm.install-v1+json; q=1.0, application/json; q=0.8"
)

#: Dist-tag used for the "latest" suggestion column.
LATEST_TAG: Final[str] = "latest"

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

#: Maximum number of retries for failed HTTP requests.
DEFAULT_MAX_RETRIES: Final[int] = 3

#: Maximum number of registry fetches in flight at once.
DEFAULT_CONCURRENT_LIMIT: Final[int] = 10

#: Maximum number of consecutive 429 responses tolerated for one request.
MAX_RATE_LIMIT_RETRIES: Final[int] = 5

#: Delay (seconds) used when a 429 response carries no usable Retry-After.
DEFAULT_RETRY_AFTER: Final[int] = 1

#: Retries for registry lookups; a failed lookup degrades to "no suggestion".
REGISTRY_MAX_RETRIES: Final[int] = 0

# ---------------------------------------------------------------------------
# Version ranges
# ---------------------------------------------------------------------------

#: Modifier applied to resolved versions when the declared range has none.
DEFAULT_RANGE_PREFIX: Final[str] = "^"

#: Range modifiers accepted for ``default_range_prefix``.
ALLOWED_RANGE_PREFIXES: Final[Sequence[str]] = ("^", "~", "")

#: Protocol prefix that marks an npm alias range (``npm:^1.0.0``).
NPM_PROTOCOL: Final[str] = "npm:"

# ---------------------------------------------------------------------------
# Manifests
# ---------------------------------------------------------------------------

#: Workspace manifest file name.
MANIFEST_NAME: Final[str] = "package.json"

#: Maximum allowed manifest size (in bytes).
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Interactive list layout
# ---------------------------------------------------------------------------

#: Terminal lines used by everything except the package list: the command
#: line, the two-line prompt, a blank line, the header, a blank line and a
#: trailing empty line.
VIEWPORT_CHROME_LINES: Final[int] = 7

#: Rows resolved sequentially before switching to batched background loading,
#: as a multiple of the viewport size.
FOREGROUND_FACTOR: Final[float] = 1.75

#: Placeholder shown for a row whose suggestions are still loading.
LOADING_PLACEHOLDER: Final[str] = "Loading..."

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
