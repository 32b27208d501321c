"""
Result and scan-state models for the domain security scanner.

Check results are immutable value objects: a re-scan replaces a result, it
never mutates one.  ``to_dict()`` produces the JSON shape served by the API
and printed by the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final

# ---------------------------------------------------------------------------
# Status values
# ---------------------------------------------------------------------------

STATUS_OK: Final[str] = "ok"
STATUS_WARNING: Final[str] = "warning"
STATUS_ERROR: Final[str] = "error"

STATUSES: Final[tuple[str, ...]] = (STATUS_OK, STATUS_WARNING, STATUS_ERROR)

# Status severity ranking (higher = worse)
_STATUS_SEVERITY: dict[str, int] = {
    STATUS_OK: 0,
    STATUS_WARNING: 1,
    STATUS_ERROR: 2,
}

INVALID_DOMAIN_MESSAGE: Final[str] = "invalid domain format"


def worst_status(*statuses: str) -> str:
    """Return the most severe of *statuses*.

    Unknown values rank as ``error``.  Returns ``error`` for an empty call.
    """
    if not statuses:
        return STATUS_ERROR
    return max(statuses, key=lambda s: _STATUS_SEVERITY.get(s, 2))


# ---------------------------------------------------------------------------
# Per-protocol results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DmarcResult:
    status: str
    record: str = ""
    policy: str = ""
    warnings: tuple[str, ...] = ()
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "status": self.status,
            "record": self.record,
            "policy": self.policy,
            "warnings": list(self.warnings),
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class SpfResult:
    status: str
    record: str = ""
    warnings: tuple[str, ...] = ()
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "status": self.status,
            "record": self.record,
            "warnings": list(self.warnings),
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class DkimResult:
    status: str
    selectors: tuple[str, ...] = ()
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "status": self.status,
            "selectors": list(self.selectors),
        }
        if self.error:
            data["error"] = self.error
        return data


# ---------------------------------------------------------------------------
# Domain result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DomainCheckResult:
    """Outcome of checking one domain.

    When ``error`` is set the check failed as a whole: all three protocol
    statuses are ``error`` and ``security_score`` is 0.
    """

    domain: str
    dmarc: DmarcResult
    spf: SpfResult
    dkim: DkimResult
    mx: tuple[str, ...] = ()
    security_score: int = 0
    error: str | None = None

    @property
    def statuses(self) -> tuple[str, str, str]:
        """The (dmarc, spf, dkim) status triple."""
        return (self.dmarc.status, self.spf.status, self.dkim.status)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-compatible dict."""
        data: dict[str, Any] = {
            "domain": self.domain,
            "dmarc": self.dmarc.to_dict(),
            "spf": self.spf.to_dict(),
            "dkim": self.dkim.to_dict(),
            "mx": list(self.mx),
            "security_score": self.security_score,
        }
        if self.error:
            data["error"] = self.error
        return data


def error_result(domain: str, message: str) -> DomainCheckResult:
    """Build a fully failed result for *domain* carrying *message*."""
    return DomainCheckResult(
        domain=domain,
        dmarc=DmarcResult(status=STATUS_ERROR),
        spf=SpfResult(status=STATUS_ERROR),
        dkim=DkimResult(status=STATUS_ERROR),
        mx=(),
        security_score=0,
        error=message,
    )


# ---------------------------------------------------------------------------
# Scan state
# ---------------------------------------------------------------------------


@dataclass
class ScanState:
    """Mutable progress record for one batch scan.

    Owned by the scan client; callers only ever see ``to_dict()`` snapshots.
    """

    is_scanning: bool = False
    should_stop: bool = False
    processed: int = 0
    total: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_scanning": self.is_scanning,
            "should_stop": self.should_stop,
            "processed": self.processed,
            "total": self.total,
        }
