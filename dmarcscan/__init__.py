"""
Flask application factory for the domain email-security scanner.

Creates and configures the Flask application, builds the scan client and
registers the JSON API blueprint.
"""

from __future__ import annotations

import logging
import sys

from flask import Flask, current_app

from dmarcscan.checker.engine import ScanClient, build_scan_client
from dmarcscan.config import Config

__version__ = "1.0.0"

logger = logging.getLogger(__name__)

_EXTENSION_KEY = "scan_client"


def _configure_logging(debug: bool) -> None:
    """Configure root logger for the application.

    Logging is sent to stdout so WSGI hosts and containers capture it
    without requiring file handlers.

    Format: timestamp  level  logger-name  message

    Args:
        debug: When True, sets the root level to DEBUG.  Otherwise INFO.
    """
    level = logging.DEBUG if debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)-8s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%SZ",
        )
    )

    root_logger = logging.getLogger()
    # Avoid adding duplicate handlers if create_app() is called multiple times
    # (e.g. in tests).
    if not root_logger.handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(level)


def create_app(config_object: object = Config, scan_client: ScanClient | None = None) -> Flask:
    """Application factory.

    Args:
        config_object: Configuration class or object to load settings from.
        scan_client: Pre-built client (tests inject one wired to a fake
            DNS lookup).  Built from the config when omitted.

    Returns:
        A fully configured Flask application instance.
    """
    app = Flask(__name__)
    app.config.from_object(config_object)

    _configure_logging(debug=app.debug)

    if scan_client is None:
        scan_client = build_scan_client(app.config)
    scan_client.add_mode_listener(
        lambda mode: logger.info("Scan mode is now %s", mode)
    )
    app.extensions[_EXTENSION_KEY] = scan_client

    from dmarcscan.api import bp as api_bp

    app.register_blueprint(api_bp)

    logger.info("Application created (scan mode=%s)", scan_client.get_mode())
    return app


def get_scan_client() -> ScanClient:
    """Return the scan client bound to the current application."""
    return current_app.extensions[_EXTENSION_KEY]
