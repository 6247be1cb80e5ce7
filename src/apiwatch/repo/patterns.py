from __future__ import annotations

import functools
import logging
import re
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

# "**/" and "/**" swallow their separator; any other run of stars is one wildcard.
_WILDCARD = re.compile(r"\*\*/|/\*\*|\*+")


def pattern_to_regex(pattern: str) -> str:
    """
    Translate an API path pattern into a regex fragment.

    The dialect is deliberately loose: "*" crosses "/" and "**" adjacent to a
    separator collapses into the same wildcard, so "**/api/**" becomes ".*api.*"
    and matches "src/apiary/foo.js". Service configs are written against this.
    Other characters pass through untouched.
    """
    return _WILDCARD.sub(".*", pattern)


@functools.lru_cache(maxsize=512)
def _compile(pattern: str) -> Optional[re.Pattern[str]]:
    if not pattern or not pattern.strip():
        logger.warning("Ignoring blank API path pattern")
        return None
    try:
        return re.compile(pattern_to_regex(pattern))
    except re.error as e:
        logger.warning(f"Ignoring invalid API path pattern {pattern!r}: {e}")
        return None


def matches(path: str, pattern: str) -> bool:
    """True when `path` contains a match for `pattern`. Bad patterns never match."""
    if not isinstance(pattern, str):
        logger.warning(f"Ignoring non-string API path pattern {pattern!r}")
        return False
    regex = _compile(pattern)
    if regex is None:
        return False
    return regex.search(path) is not None


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    return any(matches(path, p) for p in patterns)
