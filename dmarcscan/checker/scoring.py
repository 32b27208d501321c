"""
Security scoring and batch statistics.

The score weights DMARC at 40 points and SPF and DKIM at 30 each; a
warning earns half of a protocol's weight and an error earns nothing.
"""

from __future__ import annotations

from typing import Any, Iterable

from dmarcscan.models import STATUS_ERROR, STATUS_OK, STATUS_WARNING, STATUSES, DomainCheckResult

# Points awarded per protocol for (ok, warning)
_DMARC_POINTS: dict[str, int] = {STATUS_OK: 40, STATUS_WARNING: 20}
_SPF_POINTS: dict[str, int] = {STATUS_OK: 30, STATUS_WARNING: 15}
_DKIM_POINTS: dict[str, int] = {STATUS_OK: 30, STATUS_WARNING: 15}

# Lower bounds of the security level buckets
HIGH_SCORE_THRESHOLD = 80
MEDIUM_SCORE_THRESHOLD = 50


def calculate_security_score(dmarc_status: str, spf_status: str, dkim_status: str) -> int:
    """Return the 0-100 security score for a status triple.

    Unknown status values earn no points.
    """
    return (
        _DMARC_POINTS.get(dmarc_status, 0)
        + _SPF_POINTS.get(spf_status, 0)
        + _DKIM_POINTS.get(dkim_status, 0)
    )


def security_level(score: int) -> str:
    """Bucket a score into ``high`` (80+), ``medium`` (50-79) or ``low``."""
    if score >= HIGH_SCORE_THRESHOLD:
        return "high"
    if score >= MEDIUM_SCORE_THRESHOLD:
        return "medium"
    return "low"


def summarize_results(results: Iterable[DomainCheckResult]) -> dict[str, Any]:
    """Aggregate per-protocol status counts and score distribution.

    Args:
        results: Check results, typically the output of one batch scan.

    Returns:
        A dict with keys: total, dmarc, spf, dkim (each a
        ``{ok, warning, error}`` count dict), average_score and
        security_levels (``{high, medium, low}`` counts).
    """
    stats: dict[str, Any] = {
        "total": 0,
        "dmarc": dict.fromkeys(STATUSES, 0),
        "spf": dict.fromkeys(STATUSES, 0),
        "dkim": dict.fromkeys(STATUSES, 0),
        "average_score": 0,
        "security_levels": {"high": 0, "medium": 0, "low": 0},
    }

    total_score = 0
    for result in results:
        stats["total"] += 1
        for protocol, status in zip(("dmarc", "spf", "dkim"), result.statuses):
            bucket = status if status in STATUSES else STATUS_ERROR
            stats[protocol][bucket] += 1

        total_score += result.security_score
        stats["security_levels"][security_level(result.security_score)] += 1

    if stats["total"]:
        # Round half up
        stats["average_score"] = int(total_score / stats["total"] + 0.5)

    return stats
