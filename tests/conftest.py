"""
Shared pytest fixtures for the domain security scanner test suite.

DNS is replaced by an in-memory FakeDns lookup so tests are fully
isolated and require no external services or real DNS lookups.
"""

from __future__ import annotations

import random
import threading

import pytest

from dmarcscan import create_app
from dmarcscan.checker.engine import ScanClient
from dmarcscan.checker.modes import MODE_OFFLINE, MODE_SIMULATION, OfflineMode, SimulationMode


# ---------------------------------------------------------------------------
# Fake DNS
# ---------------------------------------------------------------------------


class FakeDns:
    """Lookup-port stand-in backed by a ``(name, rdtype) -> records`` dict.

    Unknown names answer ``[]`` like NXDOMAIN.  Names registered in
    ``failures`` raise the given exception.  Every call is recorded.
    """

    def __init__(self) -> None:
        self.records: dict[tuple[str, str], list[str]] = {}
        self.failures: dict[tuple[str, str], Exception] = {}
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def add_secure_domain(self, domain: str) -> None:
        """Publish MX, strict SPF, enforced DMARC and two DKIM selectors."""
        self.records[(domain, "MX")] = [f"mx1.{domain}", f"mx2.{domain}"]
        self.records[(domain, "TXT")] = [f"v=spf1 include:_spf.{domain} -all"]
        self.records[(f"_dmarc.{domain}", "TXT")] = [
            f"v=DMARC1; p=reject; rua=mailto:dmarc@{domain}; pct=100"
        ]
        for selector in ("default", "google"):
            self.records[(f"{selector}._domainkey.{domain}", "TXT")] = [
                "v=DKIM1; k=rsa; p=MIGfMA0GCSqGSIb3DQEBAQUAA4GNADCBiQKBgQC"
            ]

    def calls_for(self, domain: str) -> list[tuple[str, str]]:
        """Return the recorded calls whose name is *domain* or below it."""
        with self._lock:
            return [c for c in self.calls if c[0] == domain or c[0].endswith("." + domain)]

    def __call__(self, name: str, rdtype: str) -> list[str]:
        key = (name, rdtype)
        with self._lock:
            self.calls.append(key)
        if key in self.failures:
            raise self.failures[key]
        return list(self.records.get(key, []))


# ---------------------------------------------------------------------------
# Test configuration
# ---------------------------------------------------------------------------


class TestConfig:
    """Minimal Flask config for automated testing."""

    TESTING = True
    SCAN_MODE = MODE_OFFLINE
    SCAN_AUTO_SELECT_MODE = False
    SCAN_DELAY_MS = 0
    SCAN_CONCURRENT_REQUESTS = 3
    SCAN_CACHE_ENABLED = True
    API_KEY = ""
    API_BASE_URL = ""
    WEB_TOOL_URL = ""


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="function")
def fake_dns():
    """Return a FakeDns with example.com and gmail.com fully secured."""
    dns = FakeDns()
    dns.add_secure_domain("example.com")
    dns.add_secure_domain("gmail.com")
    return dns


@pytest.fixture(scope="function")
def scan_client(fake_dns):
    """Return a ScanClient in offline mode wired to *fake_dns*, no delay."""
    modes = {
        MODE_OFFLINE: OfflineMode(fake_dns, probe_domain="example.com"),
        MODE_SIMULATION: SimulationMode(delay_ms=0, rng=random.Random(1234)),
    }
    return ScanClient(modes=modes, mode=MODE_OFFLINE, delay_ms=0, concurrent_requests=3)


@pytest.fixture(scope="function")
def app(scan_client):
    """Create a Flask application instance using the injected scan client."""
    flask_app = create_app(TestConfig, scan_client=scan_client)

    with flask_app.app_context():
        yield flask_app


@pytest.fixture(scope="function")
def client(app):
    """Return a Flask test client."""
    return app.test_client()
