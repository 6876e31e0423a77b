"""
URL Exclusion Matchers for the CAS gate.

Decides whether a request URL is exempt from authentication. Three
built-in strategies are selected by short type name; any other type name
is treated as the dotted path of an externally supplied matcher class.

Resolution happens once, when the gate configuration is built.
"""

from __future__ import annotations

import importlib
import re
from typing import Callable, Protocol, runtime_checkable

from cas_authgate.core.errors import ConfigurationError


@runtime_checkable
class UrlPatternMatcher(Protocol):
    """
    Protocol for URL exclusion strategies.

    Implementations are built from a single pattern string and must be
    pure: ``matches`` has no side effects and is safe to call concurrently.
    """

    def matches(self, url: str) -> bool:
        """
        Check a request URL against the pattern.

        Args:
            url: Full request URL including the query string

        Returns:
            True if the URL is excluded from authentication
        """
        ...


class ExactUrlPatternMatcher:
    """Matches when the URL equals the pattern exactly."""

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern

    def matches(self, url: str) -> bool:
        return url == self.pattern


class ContainsUrlPatternMatcher:
    """Matches when the pattern occurs anywhere in the URL."""

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern

    def matches(self, url: str) -> bool:
        return self.pattern in url


class RegexUrlPatternMatcher:
    """
    Matches when the whole URL matches the regular expression.

    The pattern is compiled up front so that a bad expression fails the
    configuration rather than a request.
    """

    def __init__(self, pattern: str) -> None:
        try:
            self._regex = re.compile(pattern)
        except re.error as e:
            raise ConfigurationError(f"Invalid ignore pattern {pattern!r}: {e}") from e
        self.pattern = pattern

    def matches(self, url: str) -> bool:
        return self._regex.fullmatch(url) is not None


MatcherFactory = Callable[[str], UrlPatternMatcher]

PATTERN_MATCHER_TYPES: dict[str, MatcherFactory] = {
    "CONTAINS": ContainsUrlPatternMatcher,
    "REGEX": RegexUrlPatternMatcher,
    "EXACT": ExactUrlPatternMatcher,
}

DEFAULT_PATTERN_TYPE = "REGEX"


def load_class(dotted_path: str) -> type:
    """
    Import a class from ``package.module:Name`` or ``package.module.Name``.

    Raises:
        ConfigurationError: the module or attribute cannot be loaded
    """
    if ":" in dotted_path:
        module_name, _, attr = dotted_path.partition(":")
    else:
        module_name, _, attr = dotted_path.rpartition(".")
    if not module_name or not attr:
        raise ConfigurationError(f"{dotted_path!r} is not a qualified class name")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Could not import module for {dotted_path!r}: {e}") from e

    try:
        loaded = getattr(module, attr)
    except AttributeError as e:
        raise ConfigurationError(f"{module_name!r} has no attribute {attr!r}") from e

    if not isinstance(loaded, type):
        raise ConfigurationError(f"{dotted_path!r} is not a class")
    return loaded


def create_url_matcher(pattern_type: str | None, pattern: str) -> UrlPatternMatcher:
    """
    Build the matcher for one exclusion rule.

    Args:
        pattern_type: CONTAINS, REGEX or EXACT (any case), or the qualified
            name of a custom matcher class taking the pattern as its only
            argument. Defaults to REGEX.
        pattern: Pattern string

    Returns:
        Ready-to-use matcher

    Raises:
        ConfigurationError: unknown type, unloadable class or invalid pattern
    """
    type_name = (pattern_type or DEFAULT_PATTERN_TYPE).strip()
    factory = PATTERN_MATCHER_TYPES.get(type_name.upper())

    if factory is None:
        matcher_class = load_class(type_name)
        try:
            matcher = matcher_class(pattern)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Could not instantiate {type_name!r}: {e}") from e
    else:
        matcher = factory(pattern)

    if not isinstance(matcher, UrlPatternMatcher):
        raise ConfigurationError(f"{type_name!r} does not provide matches(url)")
    return matcher
