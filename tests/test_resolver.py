"""
Unit tests for dmarcscan/checker/resolver.py

All dns.resolver calls are mocked so no real network activity occurs.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import dns.exception
import dns.resolver
import pytest

from dmarcscan.checker.resolver import (
    DnsLookupError,
    DnsResolverLookup,
    create_resolver,
    query_dns,
)
from dmarcscan.config import DnsSettings

# ---------------------------------------------------------------------------
# Helper: build fake dns.resolver answer objects
# ---------------------------------------------------------------------------


def _make_txt(*chunks: bytes) -> MagicMock:
    """Return a mock TXT rdata whose .strings holds *chunks*."""
    rdata = MagicMock()
    rdata.strings = list(chunks)
    return rdata


def _make_mx(exchange: str) -> MagicMock:
    rdata = MagicMock()
    rdata.exchange.to_text.return_value = exchange
    return rdata


_SETTINGS = DnsSettings(resolvers=["9.9.9.9"], timeout_seconds=2.0, retries=2)


# ---------------------------------------------------------------------------
# Tests - successful resolution
# ---------------------------------------------------------------------------


def test_txt_records_are_joined_strings():
    with patch("dns.resolver.Resolver") as MockResolver:
        instance = MockResolver.return_value
        instance.resolve.return_value = [
            _make_txt(b"v=spf1 include:a.example.com ", b"-all"),
            _make_txt(b"other"),
        ]
        records = query_dns("example.com", "TXT", _SETTINGS)

    assert records == ["v=spf1 include:a.example.com -all", "other"]
    instance.resolve.assert_called_once_with("example.com", "TXT")


def test_mx_records_drop_trailing_dot():
    with patch("dns.resolver.Resolver") as MockResolver:
        MockResolver.return_value.resolve.return_value = [
            _make_mx("mx1.example.com."),
            _make_mx("mx2.example.com."),
        ]
        records = query_dns("example.com", "mx", _SETTINGS)

    assert records == ["mx1.example.com", "mx2.example.com"]


# ---------------------------------------------------------------------------
# Tests - absence
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("exc", [dns.resolver.NXDOMAIN(), dns.resolver.NoAnswer()])
def test_absent_records_return_empty_list(exc):
    with patch("dns.resolver.Resolver") as MockResolver:
        MockResolver.return_value.resolve.side_effect = exc
        assert query_dns("missing.example.com", "TXT", _SETTINGS) == []


# ---------------------------------------------------------------------------
# Tests - failures
# ---------------------------------------------------------------------------


def test_timeout_raises_lookup_error():
    with patch("dns.resolver.Resolver") as MockResolver:
        MockResolver.return_value.resolve.side_effect = dns.resolver.Timeout()
        with pytest.raises(DnsLookupError) as excinfo:
            query_dns("slow.example.com", "TXT", _SETTINGS)

    assert excinfo.value.error_type == "TIMEOUT"
    assert "timed out" in str(excinfo.value)


def test_no_nameservers_raises_dns_error():
    with patch("dns.resolver.Resolver") as MockResolver:
        MockResolver.return_value.resolve.side_effect = dns.resolver.NoNameservers()
        with pytest.raises(DnsLookupError) as excinfo:
            query_dns("servfail.example.com", "TXT", _SETTINGS)

    assert excinfo.value.error_type == "DNS_ERROR"


def test_generic_dns_exception_raises_dns_error():
    with patch("dns.resolver.Resolver") as MockResolver:
        MockResolver.return_value.resolve.side_effect = dns.exception.DNSException("bad")
        with pytest.raises(DnsLookupError):
            query_dns("error.example.com", "TXT", _SETTINGS)


def test_unexpected_exception_raises_lookup_error():
    with patch("dns.resolver.Resolver") as MockResolver:
        MockResolver.return_value.resolve.side_effect = RuntimeError("boom")
        with pytest.raises(DnsLookupError) as excinfo:
            query_dns("example.com", "TXT", _SETTINGS)

    assert "boom" in str(excinfo.value)


# ---------------------------------------------------------------------------
# Tests - resolver configuration
# ---------------------------------------------------------------------------


def test_create_resolver_applies_settings():
    with patch("dns.resolver.Resolver") as MockResolver:
        resolver = create_resolver(_SETTINGS)

    MockResolver.assert_called_once_with(configure=False)
    assert resolver.nameservers == ["9.9.9.9"]
    assert resolver.timeout == 2.0
    assert resolver.lifetime == 4.0


def test_create_resolver_defaults_nameservers_when_empty():
    with patch("dns.resolver.Resolver"):
        resolver = create_resolver(DnsSettings(resolvers=[]))

    assert resolver.nameservers == ["8.8.8.8", "1.1.1.1"]


def test_create_resolver_returns_new_instance_each_call():
    assert create_resolver(_SETTINGS) is not create_resolver(_SETTINGS)


def test_settings_from_config():
    settings = DnsSettings.from_config(
        {"DNS_RESOLVERS": ["1.1.1.1"], "DNS_TIMEOUT_SECONDS": "3", "DNS_RETRIES": "1"}
    )

    assert settings.get_resolvers() == ["1.1.1.1"]
    assert settings.timeout_seconds == 3.0
    assert settings.retries == 1


def test_resolver_lookup_delegates_to_query_dns():
    with patch("dmarcscan.checker.resolver.query_dns", return_value=["rec"]) as mock_query:
        lookup = DnsResolverLookup(_SETTINGS)
        assert lookup("example.com", "TXT") == ["rec"]

    mock_query.assert_called_once_with("example.com", "TXT", _SETTINGS)
