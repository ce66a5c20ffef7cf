"""npm registry backed version resolution.

:class:`RegistryOracle` answers "which range would ``name@expr`` resolve
to?" for the suggestion resolver. It downloads each package's abbreviated
packument once per process and resolves locally from there.

Typical usage::

    from upkeep.utils.http import HTTPClient
    from upkeep.core.registry import RegistryOracle

    async with HTTPClient() as client:
        oracle = RegistryOracle(client)
        await oracle.fetch_range(candidate, "^18.0.0")   # e.g. "^18.3.1"
        await oracle.fetch_range(candidate, "latest")    # e.g. "^19.1.0"
"""

from __future__ import annotations

import re
import asyncio
from urllib.parse import quote
from typing import Any, Dict, Optional, Tuple

from upkeep.models import DependencyCandidate
from upkeep.exceptions import RegistryError
from upkeep.utils.http import HTTPClient
from upkeep.utils.logger import get_logger
from upkeep.utils.version_utils import (
    extract_modifier,
    parse_range,
    parse_version,
    strip_npm_protocol,
)
from upkeep.constants import (
    DEFAULT_CONCURRENT_LIMIT,
    DEFAULT_RANGE_PREFIX,
    DEFAULT_REGISTRY,
    NPM_PROTOCOL,
    REGISTRY_ACCEPT_HEADER,
)

logger = get_logger("registry")

__all__ = ["RegistryOracle", "is_registry_range", "split_alias"]

# Ranges the registry cannot answer for: other protocols, URLs, tarballs
# and GitHub shorthands.
_FOREIGN_RANGE = re.compile(
    r"^(?:[a-z][a-z0-9+.-]*:|[\w.-]+/[\w.-]+)", re.IGNORECASE
)

_PACKAGE_NAME = re.compile(r"^(?:@[a-z0-9~-][a-z0-9._~-]*/)?[a-z0-9~-][a-z0-9._~-]*$")

ANY_VERSION = "*"


def split_alias(range_expr: str) -> Tuple[Optional[str], str]:
    """Split an ``npm:`` range into ``(aliased package, range)``.

    An alias without a version (``npm:react``) stands for any version of
    the aliased package.

    Example::

        >>> split_alias("npm:@acme/react@^18.0.0")
        ('@acme/react', '^18.0.0')
        >>> split_alias("npm:react")
        ('react', '*')
        >>> split_alias("npm:^18.0.0")
        (None, '^18.0.0')
        >>> split_alias("^18.0.0")
        (None, '^18.0.0')
    """
    if not range_expr.startswith(NPM_PROTOCOL):
        return None, range_expr

    bare = strip_npm_protocol(range_expr)
    # A scope's leading "@" is not a version separator
    separator = bare.find("@", 1)
    if separator > 0:
        return bare[:separator], bare[separator + 1:]
    if _PACKAGE_NAME.match(bare) and parse_range(bare) is None:
        return bare, ANY_VERSION
    return None, bare


def is_registry_range(range_expr: str) -> bool:
    """Return True when *range_expr* can be answered by the registry."""
    _, selector = split_alias(range_expr.strip())
    return bool(selector) and not _FOREIGN_RANGE.match(selector)


class RegistryOracle:
    """Resolve ranges against an npm-compatible registry.

    Args:
        http_client: Client used for all registry requests.
        registry: Registry base URL.
        default_range_prefix: Modifier applied to resolved versions when
            the declared range does not carry one.
        concurrent_limit: Maximum number of packument fetches in flight.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        *,
        registry: str = DEFAULT_REGISTRY,
        default_range_prefix: str = DEFAULT_RANGE_PREFIX,
        concurrent_limit: int = DEFAULT_CONCURRENT_LIMIT,
    ) -> None:
        self.http_client = http_client
        self.registry = registry.rstrip("/")
        self.default_range_prefix = default_range_prefix
        self._semaphore = asyncio.Semaphore(concurrent_limit)
        self._packuments: Dict[str, Dict[str, Any]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def packument_url(self, name: str) -> str:
        # Scoped names keep their "@" but the slash must be encoded.
        return f"{self.registry}/{quote(name, safe='@')}"

    async def get_packument(self, name: str) -> Dict[str, Any]:
        """Fetch (or return cached) packument for *name*.

        Raises:
            RegistryError: The package does not exist on the registry.
            NetworkError: The registry could not be reached.
        """
        if name in self._packuments:
            return self._packuments[name]

        # One fetch per name; the semaphore bounds fetches across names
        lock = self._locks.setdefault(name, asyncio.Lock())
        async with lock, self._semaphore:
            if name in self._packuments:
                return self._packuments[name]

            url = self.packument_url(name)
            logger.debug("Fetching packument %s", url)
            try:
                data = await self.http_client.get_json(
                    url, headers={"Accept": REGISTRY_ACCEPT_HEADER}
                )
            except RegistryError as exc:
                raise RegistryError(
                    f"Package '{name}' not found on {self.registry}",
                    package_name=name,
                    url=url,
                    status_code=exc.status_code,
                ) from exc

            self._packuments[name] = data
            return data

    async def fetch_range(
        self, candidate: DependencyCandidate, range_expr: str
    ) -> Optional[str]:
        """Return the range *range_expr* resolves to for *candidate*.

        *range_expr* is either a dist-tag (``latest``, ``next``...) or an
        npm range. The returned range reuses the declared modifier of the
        candidate, so ``~1.2.3`` resolving to ``1.4.0`` yields ``~1.4.0``.

        Returns:
            The resolved range, or ``None`` when nothing satisfies it or the
            expression is not something the registry can answer.
        """
        alias, declared = split_alias(candidate.current_range.strip())
        _, selector = split_alias(range_expr.strip())

        if not is_registry_range(candidate.current_range) or not selector:
            logger.debug("Not a registry range: %s", candidate.descriptor)
            return None
        if _FOREIGN_RANGE.match(selector):
            return None

        package_name = alias or candidate.name
        packument = await self.get_packument(package_name)

        version = self._select(packument, selector)
        if version is None:
            logger.debug("No version of %s matches %s", package_name, selector)
            return None

        modifier = extract_modifier(declared)
        if modifier is None:
            modifier = self.default_range_prefix

        resolved = f"{modifier}{version}"
        if candidate.current_range.startswith(NPM_PROTOCOL):
            prefix = f"{alias}@" if alias else ""
            resolved = f"{NPM_PROTOCOL}{prefix}{resolved}"
        return resolved

    @staticmethod
    def _select(packument: Dict[str, Any], selector: str) -> Optional[str]:
        dist_tags = packument.get("dist-tags") or {}
        if selector in dist_tags:
            tagged = dist_tags[selector]
            return tagged if isinstance(tagged, str) else None

        spec = parse_range(selector)
        if spec is None:
            return None

        published = []
        for raw in packument.get("versions") or {}:
            parsed = parse_version(raw)
            if parsed is not None:
                published.append(parsed)

        best = spec.select(published)
        return str(best) if best is not None else None
