"""
Checker package for the domain email-security scanner.

Provides the DNS lookup port, DMARC/SPF/DKIM/MX record analysis, scoring,
the result cache, the check modes and the batch scan engine.
"""
