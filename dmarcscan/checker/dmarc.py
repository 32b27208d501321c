"""
DMARC record validation.

Queries ``_dmarc.{domain}`` TXT, picks the first ``v=DMARC1`` record and
grades it:

- no record at all                                  -> error
- missing p=, p=none, pct absent or < 100, no rua=  -> warning
- otherwise                                         -> ok

Warning conditions do not stack; they only collect messages.
"""

from __future__ import annotations

import logging
import re

from dmarcscan.checker.resolver import Lookup
from dmarcscan.models import STATUS_ERROR, STATUS_OK, STATUS_WARNING, DmarcResult

logger = logging.getLogger(__name__)

_DMARC_TOKEN = "v=DMARC1"


def check_dmarc(domain: str, lookup: Lookup) -> DmarcResult:
    """Validate the DMARC record for *domain*.

    Args:
        domain: The domain name to check.
        lookup: DNS lookup callable.

    Returns:
        A DmarcResult.  Lookup failures are reported as ``error`` with the
        failure message attached rather than raised.
    """
    dmarc_domain = f"_dmarc.{domain}"
    try:
        records = lookup(dmarc_domain, "TXT")
    except Exception as exc:
        logger.error("Error checking DMARC for %s: %s", domain, exc)
        return DmarcResult(status=STATUS_ERROR, error=str(exc))

    if not records:
        return DmarcResult(status=STATUS_ERROR, warnings=("No DMARC record found",))

    dmarc_record = next((r for r in records if _DMARC_TOKEN in r), None)
    if dmarc_record is None:
        return DmarcResult(
            status=STATUS_ERROR,
            warnings=(f"No v=DMARC1 record among {len(records)} TXT record(s)",),
        )

    tags = _parse_dmarc_tags(dmarc_record)
    policy = tags.get("p", "").lower()
    warnings = _evaluate_policy(
        policy,
        has_policy="p" in tags,
        pct=_parse_pct(tags.get("pct")),
        rua=_extract_uris(tags.get("rua", "")),
    )

    return DmarcResult(
        status=STATUS_WARNING if warnings else STATUS_OK,
        record=dmarc_record,
        policy=policy,
        warnings=tuple(warnings),
    )


def _parse_dmarc_tags(record: str) -> dict[str, str]:
    """Parse a DMARC record string into a dict of tag=value pairs.

    Tags are separated by semicolons. Whitespace around tags and values
    is stripped. Tag names are lowercased; the first occurrence wins.
    """
    tags: dict[str, str] = {}
    for part in record.split(";"):
        part = part.strip()
        if not part or "=" not in part:
            continue
        key, _, value = part.partition("=")
        tags.setdefault(key.strip().lower(), value.strip())
    return tags


def _extract_uris(value: str) -> list[str]:
    """Extract report URIs from a DMARC rua/ruf tag value.

    Values are comma-separated URIs, potentially with size limits
    (e.g., mailto:user@example.com!10m).
    """
    if not value:
        return []
    uris: list[str] = []
    for item in value.split(","):
        item = item.strip()
        if item:
            match = re.match(r"(mailto:[^\s!]+)", item, re.IGNORECASE)
            uris.append(match.group(1) if match else item)
    return uris


def _parse_pct(pct_str: str | None) -> int | None:
    """Parse the pct= tag value as an integer, returning None if invalid."""
    if pct_str is None:
        return None
    try:
        return int(pct_str)
    except ValueError:
        return None


def _evaluate_policy(
    policy: str,
    has_policy: bool,
    pct: int | None,
    rua: list[str],
) -> list[str]:
    """Return the warning messages for a parsed DMARC record.

    An empty list means the record is fully enforced.
    """
    warnings: list[str] = []

    if not has_policy or not policy:
        warnings.append("DMARC policy (p=) is missing; this is a required tag")
    elif policy == "none":
        warnings.append("DMARC policy is p=none (monitoring only); consider p=quarantine or p=reject")

    if pct is None:
        warnings.append("pct= is missing or not a number; policy coverage is not explicit")
    elif pct < 100:
        warnings.append(f"pct={pct} means only {pct}% of messages are subject to the DMARC policy")

    if not rua:
        warnings.append("No rua= aggregate report URI specified; you will not receive DMARC reports")

    return warnings
