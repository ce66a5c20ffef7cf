"""Exclusion rules: parsing ``--exclude`` arguments and matching candidates.

The exclusion argument is a comma-separated list of tokens, each of the
form::

    [<location>#]<namePattern>[@<versionConstraint>]

- ``location`` is a workspace identifier when it contains ``@``
  (``@acme/web``), otherwise a directory (``/repo/packages/web``).
- ``namePattern`` is a glob where ``*`` matches any run of characters and
  ``?`` a single character. Scoped names keep their leading ``@``.
- ``versionConstraint`` is an npm range, or a glob when it is not a valid
  range. An ``npm:`` alias prefix is dropped.

A candidate is excluded when **any** rule matches it on name, location and
version at the same time.

Typical usage::

    from upkeep.core.exclusion import ExclusionMatcher, ExclusionSpecParser

    rules = ExclusionSpecParser().parse("react,@types/*,@acme/web#lodash@^4")
    matcher = ExclusionMatcher(rules)

    if matcher.is_excluded(candidate, cwd=os.getcwd()):
        ...
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple

from upkeep.models import DependencyCandidate, ExclusionRule
from upkeep.exceptions import InvalidExclusionFormat
from upkeep.utils.logger import get_logger
from upkeep.utils.version_utils import (
    is_valid_range,
    parse_version,
    satisfies,
    strip_npm_protocol,
)

logger = get_logger("core.exclusion")

__all__ = ["ExclusionSpecParser", "ExclusionMatcher", "matches_glob"]


# ---------------------------------------------------------------------------
# Glob matching
# ---------------------------------------------------------------------------


@lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> Pattern[str]:
    """Translate a ``*``/``?`` glob into an anchored regular expression."""
    parts: List[str] = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts))


def matches_glob(value: str, pattern: str) -> bool:
    """Return True when *value* fully matches the glob *pattern*.

    Example::

        >>> matches_glob("@types/node", "@types/*")
        True
        >>> matches_glob("reactjs", "react-*")
        False
    """
    return _compile_glob(pattern).fullmatch(value) is not None


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class ExclusionSpecParser:
    """Parse exclusion arguments into :class:`ExclusionRule` values.

    The parser is stateless; one instance can be reused for any number of
    arguments. Tokens are trimmed and empty tokens are ignored, so
    ``" react, ,@types/* "`` yields two rules.

    Example::

        >>> parser = ExclusionSpecParser()
        >>> parser.parse_token("@acme/web#@types/node@npm:^20")
        ExclusionRule(name_pattern='@types/node', workspace_scope='@acme/web',
                      directory_scope=None, version_constraint='^20')
    """

    def parse(self, argument: Optional[str]) -> List[ExclusionRule]:
        """Parse a comma-separated exclusion argument.

        Args:
            argument: Raw ``--exclude`` value; ``None`` or empty yields no rules.

        Returns:
            Rules in the order their tokens appear.

        Raises:
            InvalidExclusionFormat: A token has too many ``#`` or ``@``
                separators.
        """
        if not argument:
            return []

        tokens = (token.strip() for token in argument.split(","))
        return [self.parse_token(token) for token in tokens if token]

    def parse_many(self, arguments: Iterable[Optional[str]]) -> List[ExclusionRule]:
        """Parse several arguments (config entries, CLI option) in order."""
        rules: List[ExclusionRule] = []
        for argument in arguments:
            rules.extend(self.parse(argument))
        return rules

    def parse_token(self, token: str) -> ExclusionRule:
        """Parse a single, already trimmed, exclusion token."""
        sections = token.split("#")

        if len(sections) == 1:
            workspace, directory = None, None
            dependency = sections[0]
        elif len(sections) == 2:
            workspace, directory = self._parse_location(sections[0])
            dependency = sections[1]
        else:
            raise InvalidExclusionFormat(token)

        name_pattern, version_constraint = self._parse_dependency(dependency, token)

        rule = ExclusionRule(
            name_pattern=name_pattern,
            workspace_scope=workspace,
            directory_scope=directory,
            version_constraint=version_constraint,
        )
        logger.debug("Parsed exclusion %r -> %r", token, rule)
        return rule

    @staticmethod
    def _parse_location(location: str) -> Tuple[Optional[str], Optional[str]]:
        """Classify a location as ``(workspace, directory)``.

        Workspace identifiers always carry ``@`` (scoped names); plain
        directories never do.
        """
        if "@" in location:
            return location, None
        return None, location

    @staticmethod
    def _parse_dependency(
        dependency: str,
        token: str,
    ) -> Tuple[str, Optional[str]]:
        """Split ``name[@version]`` into pattern and constraint."""
        parts = dependency.split("@")

        if len(parts) == 1:
            return parts[0], None

        if len(parts) == 2:
            if not parts[0]:
                # "@scope/name": the leading "@" belongs to the name
                return f"@{parts[1]}", None
            return parts[0], _normalize_constraint(parts[1])

        if len(parts) == 3:
            return f"@{parts[1]}", _normalize_constraint(parts[2])

        raise InvalidExclusionFormat(token)


def _normalize_constraint(constraint: str) -> Optional[str]:
    """Drop the ``npm:`` alias prefix; an empty constraint means none."""
    return strip_npm_protocol(constraint) or None


# ---------------------------------------------------------------------------
# Matcher
# ---------------------------------------------------------------------------


class ExclusionMatcher:
    """Decide whether a candidate is excluded by a set of rules.

    Matching is pure: the result only depends on the rules, the candidate
    and the working directory, never on the order of the rules.

    Args:
        rules: Parsed exclusion rules.
    """

    def __init__(self, rules: Sequence[ExclusionRule]) -> None:
        self.rules: Tuple[ExclusionRule, ...] = tuple(rules)

    def __bool__(self) -> bool:
        return bool(self.rules)

    def is_excluded(self, candidate: DependencyCandidate, cwd: str) -> bool:
        """Return True when any rule matches *candidate*.

        Args:
            candidate: Dependency under consideration.
            cwd: Directory the command was invoked from; directory-scoped
                rules compare against it rather than against the
                candidate's workspace.
        """
        return any(self.rule_matches(rule, candidate, cwd) for rule in self.rules)

    def rule_matches(
        self,
        rule: ExclusionRule,
        candidate: DependencyCandidate,
        cwd: str,
    ) -> bool:
        """Evaluate the name, location and version predicates of one rule."""
        return (
            matches_glob(candidate.name, rule.name_pattern)
            and self._matches_location(rule, candidate, cwd)
            and self._matches_version(rule, candidate.current_range)
        )

    @staticmethod
    def _matches_location(
        rule: ExclusionRule,
        candidate: DependencyCandidate,
        cwd: str,
    ) -> bool:
        if not rule.has_location:
            return True

        workspace_name = candidate.owning_workspace.name
        if rule.workspace_scope and rule.workspace_scope == workspace_name:
            logger.debug("Workspace %s matches rule %s", workspace_name, rule)
            return True

        # Only the invocation directory is known here, not each workspace's path
        if rule.directory_scope and rule.directory_scope == cwd:
            logger.debug("Directory %s matches rule %s", cwd, rule)
            return True

        return False

    @staticmethod
    def _matches_version(rule: ExclusionRule, current_range: str) -> bool:
        constraint = rule.version_constraint
        if not constraint:
            return True

        if is_valid_range(constraint) and parse_version(current_range) is not None:
            result = satisfies(current_range, constraint)
            logger.debug(
                "Range check %s against %s: %s", current_range, constraint, result
            )
            return result

        result = matches_glob(current_range, constraint)
        logger.debug("Glob check %s against %s: %s", current_range, constraint, result)
        return result
