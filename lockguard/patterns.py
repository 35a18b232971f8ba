"""Package name patterns for trusted and ignored packages.

A pattern is either an exact package name or a namespace wildcard such as
``@scope/*`` that matches every package under that namespace. The same
matching is used for the database's trusted list and the caller's ignore
list.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Tuple

from .utils.exceptions import PatternError

logger = logging.getLogger(__name__)

WILDCARD_SUFFIX = "/*"


@dataclass(frozen=True)
class Pattern:
    """A compiled package name pattern."""
    raw: str
    namespace: str = ""

    @property
    def is_wildcard(self) -> bool:
        return bool(self.namespace)

    @classmethod
    def compile(cls, raw: Any) -> "Pattern":
        """Validate and compile a pattern.

        Raises:
            PatternError: for empty patterns or wildcards other than a
                trailing ``/*`` after a non-empty namespace
        """
        if not isinstance(raw, str) or not raw.strip():
            raise PatternError("Pattern must be a non-empty string", pattern=raw)
        if raw != raw.strip():
            raise PatternError("Pattern must not contain surrounding whitespace", pattern=raw)

        if raw.endswith(WILDCARD_SUFFIX):
            namespace = raw[: -len(WILDCARD_SUFFIX)]
            if not namespace or "*" in namespace or "/" in namespace:
                raise PatternError("Unsupported namespace wildcard", pattern=raw)
            return cls(raw=raw, namespace=namespace)

        if "*" in raw:
            raise PatternError("Wildcards are only supported as a trailing '/*'", pattern=raw)
        return cls(raw=raw)

    def matches(self, package_name: str) -> bool:
        if self.is_wildcard:
            return package_name.startswith(self.namespace + "/")
        return package_name == self.raw


def compile_patterns(raw_patterns: Iterable[Any], source: str = "patterns") -> Tuple[Pattern, ...]:
    """Compile patterns, skipping malformed ones with a warning."""
    compiled = []
    for raw in raw_patterns or ():
        try:
            compiled.append(Pattern.compile(raw))
        except PatternError as e:
            logger.warning(f"Skipping invalid pattern in {source}: {e}")
    return tuple(compiled)


def matches_any(package_name: str, patterns: Iterable[Pattern]) -> bool:
    """Return True if any pattern matches ``package_name``."""
    return any(pattern.matches(package_name) for pattern in patterns)
