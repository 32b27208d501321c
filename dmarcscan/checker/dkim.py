"""
DKIM selector discovery.

Probes a fixed list of common selectors at
``{selector}._domainkey.{domain}`` and counts the ones that publish a
plausible DKIM key record.  Zero found is an error, one is a warning,
two or more is ok.
"""

from __future__ import annotations

import logging

from dmarcscan.checker.resolver import Lookup
from dmarcscan.models import STATUS_ERROR, STATUS_OK, STATUS_WARNING, DkimResult

logger = logging.getLogger(__name__)

COMMON_SELECTORS: tuple[str, ...] = (
    "default",
    "google",
    "selector1",
    "selector2",
    "k1",
    "dkim",
)

# Any of these substrings marks a TXT record as DKIM key material
_DKIM_MARKERS: tuple[str, ...] = ("v=DKIM1", "k=rsa", "p=")


def check_dkim(
    domain: str,
    lookup: Lookup,
    selectors: tuple[str, ...] = COMMON_SELECTORS,
) -> DkimResult:
    """Discover DKIM selectors for *domain*.

    A failed lookup for one selector only means that selector was not
    found; it never fails the whole check.

    Args:
        domain: The domain name to check.
        lookup: DNS lookup callable.
        selectors: Selectors to probe, in order.

    Returns:
        A DkimResult whose ``selectors`` lists the found selectors in
        probe order.
    """
    found: list[str] = []

    for selector in selectors:
        if _selector_published(domain, selector, lookup):
            found.append(selector)

    if not found:
        status = STATUS_ERROR
    elif len(found) == 1:
        status = STATUS_WARNING
    else:
        status = STATUS_OK

    return DkimResult(status=status, selectors=tuple(found))


def _selector_published(domain: str, selector: str, lookup: Lookup) -> bool:
    dkim_domain = f"{selector}._domainkey.{domain}"
    try:
        records = lookup(dkim_domain, "TXT")
    except Exception as exc:
        logger.debug("DKIM lookup failed for %s: %s", dkim_domain, exc)
        return False

    return any(marker in record for record in records for marker in _DKIM_MARKERS)
