"""
Unit tests for dmarcscan/checker/dmarc.py

The lookup port is replaced by a dict-backed function or a MagicMock, so
no real DNS resolution occurs during the test run.
"""

from __future__ import annotations

from unittest.mock import MagicMock

from dmarcscan.checker.dmarc import check_dmarc
from dmarcscan.checker.resolver import DnsLookupError

# ---------------------------------------------------------------------------
# Helper: build a fake lookup answering only _dmarc.example.com
# ---------------------------------------------------------------------------


def _lookup_with(*records: str):
    """Return a lookup that serves *records* as the DMARC TXT set."""

    def lookup(name, rdtype):
        if (name, rdtype) == ("_dmarc.example.com", "TXT"):
            return list(records)
        return []

    return lookup


_STRICT = "v=DMARC1; p=reject; rua=mailto:a@b.com; pct=100"


# ---------------------------------------------------------------------------
# Tests - policy grading
# ---------------------------------------------------------------------------


def test_enforced_policy_is_ok():
    result = check_dmarc("example.com", _lookup_with(_STRICT))

    assert result.status == "ok"
    assert result.policy == "reject"
    assert result.record == _STRICT
    assert result.warnings == ()
    assert result.error is None


def test_quarantine_policy_is_ok():
    record = "v=DMARC1; p=quarantine; rua=mailto:dmarc@example.com; pct=100"
    result = check_dmarc("example.com", _lookup_with(record))

    assert result.status == "ok"
    assert result.policy == "quarantine"


def test_partial_pct_is_warning_and_keeps_policy():
    record = "v=DMARC1; p=reject; rua=mailto:a@b.com; pct=50"
    result = check_dmarc("example.com", _lookup_with(record))

    assert result.status == "warning"
    assert result.policy == "reject"
    assert any("pct=50" in w for w in result.warnings)


def test_missing_rua_is_warning_and_keeps_policy():
    record = "v=DMARC1; p=reject; pct=100"
    result = check_dmarc("example.com", _lookup_with(record))

    assert result.status == "warning"
    assert result.policy == "reject"
    assert any("rua" in w for w in result.warnings)


def test_empty_rua_is_warning():
    record = "v=DMARC1; p=reject; rua=; pct=100"
    result = check_dmarc("example.com", _lookup_with(record))

    assert result.status == "warning"


def test_missing_pct_is_warning():
    record = "v=DMARC1; p=reject; rua=mailto:a@b.com"
    result = check_dmarc("example.com", _lookup_with(record))

    assert result.status == "warning"
    assert result.policy == "reject"


def test_non_numeric_pct_is_warning():
    record = "v=DMARC1; p=reject; rua=mailto:a@b.com; pct=all"
    result = check_dmarc("example.com", _lookup_with(record))

    assert result.status == "warning"


def test_policy_none_is_warning():
    record = "v=DMARC1; p=none; rua=mailto:a@b.com; pct=100"
    result = check_dmarc("example.com", _lookup_with(record))

    assert result.status == "warning"
    assert result.policy == "none"


def test_missing_policy_is_warning_with_empty_policy():
    record = "v=DMARC1; rua=mailto:a@b.com; pct=100"
    result = check_dmarc("example.com", _lookup_with(record))

    assert result.status == "warning"
    assert result.policy == ""


def test_subdomain_policy_is_not_taken_as_policy():
    """sp= must not be read as p=."""
    record = "v=DMARC1; sp=none; p=reject; rua=mailto:a@b.com; pct=100"
    result = check_dmarc("example.com", _lookup_with(record))

    assert result.status == "ok"
    assert result.policy == "reject"


def test_tag_names_are_case_insensitive():
    record = "v=DMARC1; P=Reject; RUA=mailto:a@b.com; PCT=100"
    result = check_dmarc("example.com", _lookup_with(record))

    assert result.status == "ok"
    assert result.policy == "reject"


def test_multiple_weaknesses_collapse_into_one_warning():
    record = "v=DMARC1; p=none; pct=10"
    result = check_dmarc("example.com", _lookup_with(record))

    assert result.status == "warning"
    assert len(result.warnings) == 3


# ---------------------------------------------------------------------------
# Tests - record selection and failures
# ---------------------------------------------------------------------------


def test_no_records_is_error():
    result = check_dmarc("example.com", _lookup_with())

    assert result.status == "error"
    assert result.record == ""
    assert result.policy == ""


def test_no_dmarc_record_among_txt_is_error():
    result = check_dmarc("example.com", _lookup_with("some-verification=abc"))

    assert result.status == "error"
    assert result.record == ""


def test_first_dmarc_record_wins():
    second = "v=DMARC1; p=none"
    result = check_dmarc("example.com", _lookup_with("unrelated", _STRICT, second))

    assert result.record == _STRICT
    assert result.status == "ok"


def test_queries_dmarc_subdomain():
    lookup = MagicMock(return_value=[_STRICT])

    check_dmarc("example.com", lookup)

    lookup.assert_called_once_with("_dmarc.example.com", "TXT")


def test_lookup_failure_is_error_with_message():
    lookup = MagicMock(side_effect=DnsLookupError("DNS query timed out", "TIMEOUT"))

    result = check_dmarc("example.com", lookup)

    assert result.status == "error"
    assert result.error == "DNS query timed out"
    assert result.to_dict()["error"] == "DNS query timed out"
