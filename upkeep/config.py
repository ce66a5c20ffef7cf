"""Configuration file loader for upkeep.

Handles discovery, loading, parsing, and validation of configuration files.
Supports two formats:

- ``upkeep.toml`` — settings under the ``[upkeep]`` table
- ``package.json`` — settings under the top-level ``"upkeep"`` object

Discovery order:

1. Explicit path from ``--config`` or ``UPKEEP_CONFIG``
2. ``upkeep.toml`` in current directory
3. ``package.json`` with an ``"upkeep"`` object in current directory

Configuration precedence: defaults < config file < CLI args.

Typical usage::

    config = load_config()  # Auto-discover
    config = load_config(Path("custom.toml"))  # Explicit path

Example (``upkeep.toml``)::

    [upkeep]
    exclude = ["@types/*", "@acme/web#react@^18"]
    registry = "https://registry.npmjs.org"
    default_range_prefix = "~"
    concurrent_limit = 8
"""

from __future__ import annotations

import json
import tomli as tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from upkeep.exceptions import ConfigError
from upkeep.utils.logger import get_logger
from upkeep.constants import (
    ALLOWED_RANGE_PREFIXES,
    DEFAULT_CONCURRENT_LIMIT,
    DEFAULT_RANGE_PREFIX,
    DEFAULT_REGISTRY,
    MANIFEST_NAME,
)

logger = get_logger("config")

CONFIG_FILE_NAME = "upkeep.toml"
SECTION_NAME = "upkeep"


@dataclass
class UpkeepConfig:
    """Parsed and validated upkeep configuration.

    All fields have defaults, so empty config files are valid.

    Attributes:
        exclude: Exclusion tokens applied on every run, before ``--exclude``.
        registry: Base URL of the npm-compatible registry.
        default_range_prefix: Modifier given to suggested versions when the
            declared range has none of its own.
        concurrent_limit: Maximum number of registry fetches in flight.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    exclude: List[str] = field(default_factory=list)
    registry: str = DEFAULT_REGISTRY
    default_range_prefix: str = DEFAULT_RANGE_PREFIX
    concurrent_limit: int = DEFAULT_CONCURRENT_LIMIT

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary for debug logging."""
        return {
            "exclude": list(self.exclude),
            "registry": self.registry,
            "default_range_prefix": self.default_range_prefix,
            "concurrent_limit": self.concurrent_limit,
        }


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    upkeep_toml = cwd / CONFIG_FILE_NAME
    if upkeep_toml.is_file():
        logger.debug("Found %s: %s", CONFIG_FILE_NAME, upkeep_toml)
        return upkeep_toml

    package_json = cwd / MANIFEST_NAME
    if package_json.is_file() and _package_json_has_upkeep_section(package_json):
        logger.debug("Found \"upkeep\" in %s: %s", MANIFEST_NAME, package_json)
        return package_json

    logger.debug("No configuration file found")
    return None


def _package_json_has_upkeep_section(path: Path) -> bool:
    """Check if a ``package.json`` carries an ``"upkeep"`` object.

    Parse errors are ignored here; the manifest itself is validated when
    the project is loaded.
    """
    try:
        return isinstance(_read_json(path).get(SECTION_NAME), dict)
    except ConfigError:
        return False


def load_config(config_path: Optional[Path] = None) -> UpkeepConfig:
    """Load and validate upkeep configuration.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`UpkeepConfig` with values from file or defaults.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return UpkeepConfig()

    logger.info("Loading configuration from %s", resolved)
    if resolved.suffix == ".json":
        section = _read_json(resolved).get(SECTION_NAME, {})
    else:
        section = _read_toml(resolved).get(SECTION_NAME, {})

    if not isinstance(section, dict):
        raise ConfigError(
            f"'{SECTION_NAME}' must be a table, got {type(section).__name__}",
            config_path=str(resolved),
        )

    if not section:
        logger.debug("Config file found but no upkeep section, using defaults")
        return UpkeepConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as exc:
        raise ConfigError(
            f"Invalid JSON in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc

    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a JSON object in {path.name}",
            config_path=str(path),
        )
    return data


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> UpkeepConfig:
    """Parse and validate the ``upkeep`` configuration section.

    Rejects unknown keys and type mismatches.

    Raises:
        ConfigError: Unknown keys or incorrect types.
    """
    config = UpkeepConfig()

    known_top = {
        "exclude",
        "registry",
        "default_range_prefix",
        "concurrent_limit",
    }

    unknown_top = set(section.keys()) - known_top
    if unknown_top:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown_top))}",
            config_path=config_path,
        )

    if "exclude" in section:
        val = section["exclude"]
        if not isinstance(val, list) or not all(isinstance(item, str) for item in val):
            raise ConfigError(
                "exclude must be a list of strings",
                config_path=config_path,
                option="exclude",
            )
        config.exclude = list(val)

    if "registry" in section:
        val = section["registry"]
        if not isinstance(val, str) or not val.startswith(("http://", "https://")):
            raise ConfigError(
                f"registry must be an http(s) URL, got {val!r}",
                config_path=config_path,
                option="registry",
            )
        config.registry = val

    if "default_range_prefix" in section:
        val = section["default_range_prefix"]
        if val not in ALLOWED_RANGE_PREFIXES:
            allowed = ", ".join(repr(prefix) for prefix in ALLOWED_RANGE_PREFIXES)
            raise ConfigError(
                f"default_range_prefix must be one of {allowed}, got {val!r}",
                config_path=config_path,
                option="default_range_prefix",
            )
        config.default_range_prefix = val

    if "concurrent_limit" in section:
        val = section["concurrent_limit"]
        # bool is a subclass of int
        if isinstance(val, bool) or not isinstance(val, int) or val < 1:
            raise ConfigError(
                f"concurrent_limit must be a positive integer, got {val!r}",
                config_path=config_path,
                option="concurrent_limit",
            )
        config.concurrent_limit = val

    return config
