"""
SPF record validation.

Finds the first ``v=spf1`` TXT record at the domain apex and grades its
terminal "all" qualifier, checked in this order:

- ``?all`` (neutral)                 -> warning
- ``+all`` (pass everything)         -> warning
- neither ``-all`` nor ``~all``      -> warning
- otherwise                          -> ok
"""

from __future__ import annotations

import logging

from dmarcscan.checker.resolver import Lookup
from dmarcscan.models import STATUS_ERROR, STATUS_OK, STATUS_WARNING, SpfResult

logger = logging.getLogger(__name__)

_SPF_TOKEN = "v=spf1"


def check_spf(domain: str, lookup: Lookup) -> SpfResult:
    """Validate the SPF record for *domain*.

    Args:
        domain: The domain name to check.
        lookup: DNS lookup callable.

    Returns:
        An SpfResult; lookup failures become ``error`` with the message
        attached.
    """
    try:
        records = lookup(domain, "TXT")
    except Exception as exc:
        logger.error("Error checking SPF for %s: %s", domain, exc)
        return SpfResult(status=STATUS_ERROR, error=str(exc))

    spf_record = next((r for r in records if _SPF_TOKEN in r), None)
    if spf_record is None:
        return SpfResult(status=STATUS_ERROR, warnings=("No SPF record found",))

    warning = _policy_warning(spf_record)
    if warning is None:
        return SpfResult(status=STATUS_OK, record=spf_record)
    return SpfResult(status=STATUS_WARNING, record=spf_record, warnings=(warning,))


def _policy_warning(spf_record: str) -> str | None:
    """Return a warning message for a weak "all" directive, or None."""
    if "?all" in spf_record:
        return "SPF uses ?all (neutral); this provides no protection"
    if "+all" in spf_record:
        return "SPF uses +all which allows any sender"
    if "-all" not in spf_record and "~all" not in spf_record:
        return "No -all or ~all mechanism found in SPF record"
    return None
