"""
MX record lookup.

Returns the mail exchanger hostnames exactly as the lookup port reports
them.  Any failure degrades to an empty list.
"""

from __future__ import annotations

import logging

from dmarcscan.checker.resolver import Lookup

logger = logging.getLogger(__name__)


def check_mx(domain: str, lookup: Lookup) -> list[str]:
    """Resolve MX hostnames for *domain*.

    Args:
        domain: The domain name to query.
        lookup: DNS lookup callable.

    Returns:
        The MX hostnames, or an empty list when none exist or the query
        failed.
    """
    try:
        records = lookup(domain, "MX")
    except Exception as exc:
        logger.error("Error getting MX records for %s: %s", domain, exc)
        return []

    return list(records or [])
