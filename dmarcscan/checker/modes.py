"""
Check modes: interchangeable mechanisms that answer a single-domain check.

- ``offline``    - direct DNS lookups analysed locally
- ``api``        - authenticated remote scanning service
- ``web``        - remote web-based checking tool
- ``simulation`` - randomised, structurally valid results for demos/tests

The remote modes only probe whether their service is reachable; the checks
themselves are answered by the simulation fallback.
"""

from __future__ import annotations

import logging
import random
import time
from abc import ABC, abstractmethod

import requests

from dmarcscan.checker.dkim import check_dkim
from dmarcscan.checker.dmarc import check_dmarc
from dmarcscan.checker.mx import check_mx
from dmarcscan.checker.resolver import Lookup
from dmarcscan.checker.scoring import calculate_security_score
from dmarcscan.checker.spf import check_spf
from dmarcscan.models import (
    STATUS_ERROR,
    STATUS_OK,
    STATUS_WARNING,
    STATUSES,
    DkimResult,
    DmarcResult,
    DomainCheckResult,
    SpfResult,
)

logger = logging.getLogger(__name__)

MODE_API = "api"
MODE_WEB = "web"
MODE_OFFLINE = "offline"
MODE_SIMULATION = "simulation"

AVAILABLE_MODES: tuple[str, ...] = (MODE_API, MODE_WEB, MODE_OFFLINE, MODE_SIMULATION)

# Order in which select_best_available_mode() probes the real modes
MODE_PREFERENCE: tuple[str, ...] = (MODE_API, MODE_WEB, MODE_OFFLINE)


class CheckMode(ABC):
    """Base class for all check modes."""

    name: str = ""

    @abstractmethod
    def check_domain(self, domain: str) -> DomainCheckResult:
        """Check an already normalised and validated *domain*."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return True if this mode can currently answer checks."""


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------


class SimulationMode(CheckMode):
    """Produce random but internally consistent results.

    Every record string, policy and selector list matches the status drawn
    for its protocol, so downstream consumers can treat simulated results
    exactly like real ones.
    """

    name = MODE_SIMULATION

    def __init__(self, delay_ms: int = 1000, rng: random.Random | None = None) -> None:
        self.delay_ms = delay_ms
        self._rng = rng or random.Random()

    def is_available(self) -> bool:
        return True

    def check_domain(self, domain: str) -> DomainCheckResult:
        logger.debug("Simulating check for %s", domain)
        if self.delay_ms > 0:
            time.sleep(self.delay_ms / 1000)

        dmarc = self._simulate_dmarc(domain, self._rng.choice(STATUSES))
        spf = self._simulate_spf(domain, self._rng.choice(STATUSES))
        dkim = self._simulate_dkim(self._rng.choice(STATUSES))

        return DomainCheckResult(
            domain=domain,
            dmarc=dmarc,
            spf=spf,
            dkim=dkim,
            mx=(f"mx1.{domain}", f"mx2.{domain}"),
            security_score=calculate_security_score(dmarc.status, spf.status, dkim.status),
        )

    def _simulate_dmarc(self, domain: str, status: str) -> DmarcResult:
        if status == STATUS_ERROR:
            return DmarcResult(status=STATUS_ERROR)
        if status == STATUS_OK:
            policy = self._rng.choice(("reject", "quarantine"))
            record = f"v=DMARC1; p={policy}; rua=mailto:dmarc@{domain}; pct=100"
            return DmarcResult(status=STATUS_OK, record=record, policy=policy)
        record = f"v=DMARC1; p=none; rua=mailto:dmarc@{domain}; pct=100"
        return DmarcResult(
            status=STATUS_WARNING,
            record=record,
            policy="none",
            warnings=("DMARC policy is p=none (monitoring only); consider p=quarantine or p=reject",),
        )

    @staticmethod
    def _simulate_spf(domain: str, status: str) -> SpfResult:
        if status == STATUS_ERROR:
            return SpfResult(status=STATUS_ERROR)
        if status == STATUS_OK:
            return SpfResult(status=STATUS_OK, record=f"v=spf1 include:_spf.{domain} -all")
        return SpfResult(
            status=STATUS_WARNING,
            record=f"v=spf1 include:_spf.{domain} ?all",
            warnings=("SPF uses ?all (neutral); this provides no protection",),
        )

    @staticmethod
    def _simulate_dkim(status: str) -> DkimResult:
        if status == STATUS_OK:
            return DkimResult(status=STATUS_OK, selectors=("default", "google"))
        if status == STATUS_WARNING:
            return DkimResult(status=STATUS_WARNING, selectors=("default",))
        return DkimResult(status=STATUS_ERROR)


# ---------------------------------------------------------------------------
# Offline (DNS)
# ---------------------------------------------------------------------------


class OfflineMode(CheckMode):
    """Check a domain by querying DNS through the lookup port."""

    name = MODE_OFFLINE

    def __init__(self, lookup: Lookup, probe_domain: str = "example.com") -> None:
        self.lookup = lookup
        self.probe_domain = probe_domain

    def is_available(self) -> bool:
        """Run a test TXT lookup; available iff it returns records."""
        try:
            records = self.lookup(self.probe_domain, "TXT")
        except Exception as exc:
            logger.error("Offline mode probe lookup for %s failed: %s", self.probe_domain, exc)
            return False
        return bool(records)

    def check_domain(self, domain: str) -> DomainCheckResult:
        logger.info("Checking domain offline (DNS): %s", domain)

        mx_records = check_mx(domain, self.lookup)
        dmarc = check_dmarc(domain, self.lookup)
        spf = check_spf(domain, self.lookup)
        dkim = check_dkim(domain, self.lookup)

        return DomainCheckResult(
            domain=domain,
            dmarc=dmarc,
            spf=spf,
            dkim=dkim,
            mx=tuple(mx_records),
            security_score=calculate_security_score(dmarc.status, spf.status, dkim.status),
        )


# ---------------------------------------------------------------------------
# Remote services
# ---------------------------------------------------------------------------


class RemoteMode(CheckMode):
    """Shared plumbing for modes backed by a remote HTTP service."""

    def __init__(
        self,
        fallback: CheckMode,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.fallback = fallback
        self.session = session or requests.Session()
        self.timeout = timeout

    def _probe(self, url: str, headers: dict[str, str] | None = None) -> bool:
        """GET *url* and report whether the service answered successfully."""
        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("%s mode probe of %s failed: %s", self.name, url, exc)
            return False
        if not response.ok:
            logger.info("%s mode probe of %s returned HTTP %d", self.name, url, response.status_code)
        return response.ok

    def check_domain(self, domain: str) -> DomainCheckResult:
        logger.info("Checking domain via %s: %s (answered by %s)", self.name, domain, self.fallback.name)
        return self.fallback.check_domain(domain)


class ApiMode(RemoteMode):
    """Authenticated scanning-service API."""

    name = MODE_API

    def __init__(
        self,
        api_key: str,
        base_url: str,
        fallback: CheckMode,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        super().__init__(fallback, session=session, timeout=timeout)
        self.api_key = api_key
        self.base_url = base_url

    def is_available(self) -> bool:
        """Validate the API key against the service's account endpoint."""
        if not self.api_key or not self.base_url:
            return False
        return self._probe(
            f"{self.base_url.rstrip('/')}/account",
            headers={"Authorization": f"Bearer {self.api_key}"},
        )


class WebMode(RemoteMode):
    """Public web-based checking tool."""

    name = MODE_WEB

    def __init__(
        self,
        tool_url: str,
        fallback: CheckMode,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        super().__init__(fallback, session=session, timeout=timeout)
        self.tool_url = tool_url

    def is_available(self) -> bool:
        """Check that the tool page can be fetched."""
        if not self.tool_url:
            return False
        return self._probe(self.tool_url)
