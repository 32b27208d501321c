"""
Configuration module for the domain email-security scanner.

Loads settings from environment variables with sensible defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes", "on")


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    """Base configuration shared by all environments."""

    # Scan engine
    SCAN_MODE: str = os.environ.get("SCAN_MODE", "simulation")
    SCAN_AUTO_SELECT_MODE: bool = _env_bool("SCAN_AUTO_SELECT_MODE", "False")
    SCAN_DELAY_MS: int = int(os.environ.get("SCAN_DELAY_MS", "1000"))
    SCAN_CONCURRENT_REQUESTS: int = int(os.environ.get("SCAN_CONCURRENT_REQUESTS", "3"))
    SCAN_CACHE_ENABLED: bool = _env_bool("SCAN_CACHE_ENABLED", "True")

    # DNS resolver (offline mode)
    DNS_RESOLVERS: list[str] = _split_csv(os.environ.get("DNS_RESOLVERS", "8.8.8.8,1.1.1.1"))
    DNS_TIMEOUT_SECONDS: float = float(os.environ.get("DNS_TIMEOUT_SECONDS", "5.0"))
    DNS_RETRIES: int = int(os.environ.get("DNS_RETRIES", "3"))
    OFFLINE_PROBE_DOMAIN: str = os.environ.get("OFFLINE_PROBE_DOMAIN", "example.com")

    # Remote check services (api / web modes)
    API_KEY: str = os.environ.get("API_KEY", "")
    API_BASE_URL: str = os.environ.get("API_BASE_URL", "")
    WEB_TOOL_URL: str = os.environ.get("WEB_TOOL_URL", "")
    REMOTE_TIMEOUT_SECONDS: float = float(os.environ.get("REMOTE_TIMEOUT_SECONDS", "10"))

    # Request payload limit
    MAX_CONTENT_LENGTH: int = 1 * 1024 * 1024  # 1 MB


@dataclass
class DnsSettings:
    """DNS resolver configuration used by the offline lookup adapter."""

    resolvers: list[str] = field(default_factory=lambda: ["8.8.8.8", "1.1.1.1"])
    timeout_seconds: float = 5.0
    retries: int = 3

    def get_resolvers(self) -> list[str]:
        """Return a copy of the configured nameserver list."""
        return list(self.resolvers)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> DnsSettings:
        """Build settings from a Flask-style config mapping."""
        return cls(
            resolvers=list(config.get("DNS_RESOLVERS") or []),
            timeout_seconds=float(config.get("DNS_TIMEOUT_SECONDS", 5.0)),
            retries=int(config.get("DNS_RETRIES", 3)),
        )
