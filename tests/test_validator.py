"""
Unit tests for dmarcscan/checker/validator.py
"""

from __future__ import annotations

import pytest

from dmarcscan.checker.validator import is_valid_domain, normalize_domain


@pytest.mark.parametrize(
    "domain",
    [
        "example.com",
        "gmail.com",
        "sub.example.co.uk",
        "a-b.example.org",
        "123.com",
        "xn--bcher-kva.example",
        "EXAMPLE.COM",
        "a" * 63 + ".com",
    ],
)
def test_valid_domains(domain):
    assert is_valid_domain(domain) is True


@pytest.mark.parametrize(
    "domain",
    [
        "",
        "not a domain",
        "localhost",
        "example.c",
        "-example.com",
        "example-.com",
        "exa_mple.com",
        "example..com",
        ".example.com",
        "example.com.",
        "example.-com",
        "a" * 64 + ".com",
    ],
)
def test_invalid_domains(domain):
    assert is_valid_domain(domain) is False


def test_non_string_is_invalid():
    assert is_valid_domain(None) is False
    assert is_valid_domain(42) is False


def test_validation_is_deterministic():
    """Repeated validation of the same input gives the same answer."""
    for value in ("example.com", "not a domain", "a.b.c.d.e.io"):
        assert is_valid_domain(value) == is_valid_domain(value)


def test_normalize_trims_and_lowercases():
    assert normalize_domain("  Example.COM \n") == "example.com"
    assert normalize_domain("gmail.com") == "gmail.com"
    assert normalize_domain("   ") == ""
