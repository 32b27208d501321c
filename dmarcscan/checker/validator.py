"""Domain name normalisation and syntax validation."""

from __future__ import annotations

import re

# Two or more dot-separated labels of 1-63 alphanumerics with internal
# hyphens; the final label is at least two characters long.
_DOMAIN_RE = re.compile(
    r"^(?:[a-z0-9](?:[a-z0-9\-]{0,61}[a-z0-9])?\.)+[a-z0-9][a-z0-9\-]{0,61}[a-z0-9]$",
    re.IGNORECASE,
)


def normalize_domain(value: str) -> str:
    """Return *value* trimmed and lowercased."""
    return value.strip().lower()


def is_valid_domain(value: str) -> bool:
    """Return True if *value* is a syntactically valid domain name.

    The check is purely syntactic; no DNS lookup is performed.
    """
    if not isinstance(value, str):
        return False
    return _DOMAIN_RE.fullmatch(value) is not None
