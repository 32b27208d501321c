"""
API blueprint routes.

Provides JSON endpoints for single-domain checks, batch scans, scan
control, mode selection and runtime settings.  Every error response is a
JSON object with an ``error`` key.
"""

from __future__ import annotations

from datetime import datetime, timezone

from flask import jsonify, request

from dmarcscan import get_scan_client
from dmarcscan.api import bp
from dmarcscan.checker.engine import NoValidDomainsError, ScanInProgressError
from dmarcscan.checker.modes import AVAILABLE_MODES
from dmarcscan.checker.scoring import summarize_results


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _json_body() -> dict:
    """Return the request's JSON object body, or an empty dict."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _error(message: str, status: int):
    return jsonify({"error": message}), status


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@bp.route("/health")
def health():
    """Liveness endpoint."""
    return jsonify(
        {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": "dmarcscan",
            "mode": get_scan_client().get_mode(),
        }
    )


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


@bp.route("/domains/<path:domain>")
def check_domain(domain: str):
    """Check a single domain and return its result."""
    result = get_scan_client().check_domain(domain)
    return jsonify(result.to_dict())


@bp.route("/scan", methods=["POST"])
def scan():
    """Run a batch scan.

    Request body: ``{"domains": ["example.com", ...]}``

    Response: ``{"results": [...], "statistics": {...}}``.  Returns 409 when
    a scan is already running and 400 when no valid domain was supplied.
    """
    domains = _json_body().get("domains")
    if not isinstance(domains, list) or not all(isinstance(d, str) for d in domains):
        return _error("'domains' must be a list of strings", 400)

    try:
        results = get_scan_client().check_domains(domains)
    except ScanInProgressError as exc:
        return _error(str(exc), 409)
    except NoValidDomainsError as exc:
        return _error(str(exc), 400)

    return jsonify(
        {
            "results": [r.to_dict() for r in results],
            "statistics": summarize_results(results),
        }
    )


@bp.route("/scan/stop", methods=["POST"])
def stop_scan():
    """Request a cooperative stop of the running scan."""
    client = get_scan_client()
    client.stop_scan()
    return jsonify(client.get_scan_status())


@bp.route("/scan/status")
def scan_status():
    """Return the current scan state and active mode."""
    return jsonify(get_scan_client().get_scan_status())


# ---------------------------------------------------------------------------
# Mode
# ---------------------------------------------------------------------------


@bp.route("/mode", methods=["GET"])
def get_mode():
    return jsonify({"mode": get_scan_client().get_mode(), "available_modes": list(AVAILABLE_MODES)})


@bp.route("/mode", methods=["PUT"])
def set_mode():
    """Switch mode.  Body: ``{"mode": "offline"}``."""
    mode = _json_body().get("mode")
    if mode not in AVAILABLE_MODES:
        return _error(f"mode must be one of: {', '.join(AVAILABLE_MODES)}", 400)
    return jsonify({"mode": get_scan_client().set_mode(mode)})


@bp.route("/mode/auto", methods=["POST"])
def select_mode():
    """Select the best available mode."""
    return jsonify({"mode": get_scan_client().select_best_available_mode()})


# ---------------------------------------------------------------------------
# Cache and settings
# ---------------------------------------------------------------------------


@bp.route("/cache", methods=["DELETE"])
def clear_cache():
    get_scan_client().clear_cache()
    return jsonify({"status": "cleared"})


@bp.route("/settings", methods=["PUT"])
def update_settings():
    """Update runtime scan settings.

    Accepts any of ``delay_ms``, ``concurrent_requests`` and
    ``cache_enabled``; omitted keys are left unchanged.
    """
    data = _json_body()
    client = get_scan_client()

    if "delay_ms" in data:
        client.set_delay(data["delay_ms"])
    if "concurrent_requests" in data:
        client.set_concurrent_requests(data["concurrent_requests"])
    if "cache_enabled" in data:
        client.set_cache_enabled(data["cache_enabled"])

    return jsonify(
        {
            "delay_ms": client.delay_ms,
            "concurrent_requests": client.concurrent_requests,
            "cache_enabled": client.cache_enabled,
        }
    )
