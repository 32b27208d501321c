"""
DNS lookup port and its dnspython adapter.

The checker modules depend only on a *lookup* callable::

    lookup(name: str, rdtype: str) -> list[str]

An absent name or record set (NXDOMAIN, NoAnswer) yields an empty list.
Any other failure (timeout, SERVFAIL, unexpected errors) raises
DnsLookupError so callers can tell "nothing published" from "could not ask".
"""

from __future__ import annotations

import logging
from typing import Callable

import dns.exception
import dns.resolver

from dmarcscan.config import DnsSettings

logger = logging.getLogger(__name__)

Lookup = Callable[[str, str], list[str]]


class DnsLookupError(Exception):
    """A DNS query failed for a reason other than the record being absent."""

    def __init__(self, message: str, error_type: str = "DNS_ERROR") -> None:
        super().__init__(message)
        self.error_type = error_type


def create_resolver(settings: DnsSettings) -> dns.resolver.Resolver:
    """Create a fresh dns.resolver.Resolver configured from *settings*.

    A new instance is created every time to ensure thread safety.

    Args:
        settings: DnsSettings instance containing resolver config.

    Returns:
        A configured dns.resolver.Resolver instance.
    """
    resolver = dns.resolver.Resolver(configure=False)

    nameservers = settings.get_resolvers()
    if nameservers:
        resolver.nameservers = nameservers
    else:
        resolver.nameservers = ["8.8.8.8", "1.1.1.1"]

    resolver.timeout = float(settings.timeout_seconds)
    resolver.lifetime = float(settings.timeout_seconds * settings.retries)
    resolver.retry_servfail = True

    return resolver


def query_dns(domain: str, rdtype: str, settings: DnsSettings | None = None) -> list[str]:
    """Resolve *rdtype* records for *domain*.

    Args:
        domain: The name to query.
        rdtype: DNS record type string ("TXT" or "MX"; other types are
            returned in presentation format).
        settings: Optional DnsSettings; defaults are used if not provided.

    Returns:
        TXT records as joined strings, MX records as exchange hostnames
        without the trailing dot.  Empty when the name or record set does
        not exist.

    Raises:
        DnsLookupError: On timeouts, SERVFAIL and any other resolver error.
    """
    resolver = create_resolver(settings or DnsSettings())
    rdtype = rdtype.upper()

    try:
        answer = resolver.resolve(domain, rdtype)
    except dns.resolver.NXDOMAIN:
        logger.debug("NXDOMAIN for %s/%s", domain, rdtype)
        return []
    except dns.resolver.NoAnswer:
        logger.debug("NoAnswer for %s/%s", domain, rdtype)
        return []
    except dns.resolver.NoNameservers as exc:
        logger.warning("NoNameservers for %s/%s", domain, rdtype)
        raise DnsLookupError(
            f"No nameservers available for {domain} (SERVFAIL or all failed)"
        ) from exc
    except dns.resolver.Timeout as exc:
        logger.warning("Timeout for %s/%s", domain, rdtype)
        raise DnsLookupError(f"DNS query timed out for {domain}/{rdtype}", "TIMEOUT") from exc
    except dns.exception.DNSException as exc:
        logger.error("DNSException for %s/%s: %s", domain, rdtype, exc)
        raise DnsLookupError(f"DNS error for {domain}/{rdtype}: {exc}") from exc
    except Exception as exc:
        logger.exception("Unexpected error querying %s/%s", domain, rdtype)
        raise DnsLookupError(f"Unexpected error for {domain}/{rdtype}: {exc}") from exc

    records: list[str] = []
    for rdata in answer:
        if rdtype == "TXT":
            # TXT records come as multiple byte strings that need joining
            records.append(b"".join(rdata.strings).decode("utf-8", errors="replace"))
        elif rdtype == "MX":
            records.append(rdata.exchange.to_text().rstrip("."))
        else:
            records.append(rdata.to_text())

    logger.debug("DNS query %s/%s returned %d records", domain, rdtype, len(records))
    return records


class DnsResolverLookup:
    """Lookup port implementation that performs real queries via dnspython."""

    def __init__(self, settings: DnsSettings | None = None) -> None:
        self.settings = settings or DnsSettings()

    def __call__(self, name: str, rdtype: str) -> list[str]:
        return query_dns(name, rdtype, self.settings)
