"""
Command-line batch scanner for domain email security (DMARC/SPF/DKIM/MX).

Runs one batch scan through the same ScanClient the API uses, logging a
DONE line per domain as results arrive and a summary at the end.

USAGE
=====
  # Scan domains given on the command line
  python scan_domains.py example.com gmail.com

  # Scan a file of domains (one per line, '#' starts a comment)
  python scan_domains.py --file domains.txt

  # Query DNS directly instead of simulating
  python scan_domains.py --mode offline example.com

  # Pick the best reachable mode, print results as JSON
  python scan_domains.py --mode auto --json example.com

  # Faster scan with more workers and no inter-request delay
  python scan_domains.py --concurrency 5 --delay-ms 0 --file domains.txt

Settings not given on the command line come from the environment
(SCAN_MODE, SCAN_DELAY_MS, DNS_RESOLVERS, ...), see dmarcscan/config.py.

EXIT CODES
==========
  0 - The scan ran (even if individual domains reported errors)
  1 - Fatal error (no input, no valid domains, unreadable file, ...)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone


# ---------------------------------------------------------------------------
# Argument parsing (done before package import so --help stays fast)
# ---------------------------------------------------------------------------


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Check DMARC, SPF and DKIM for a list of domains.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "domains",
        nargs="*",
        metavar="DOMAIN",
        help="Domain names to scan.",
    )
    parser.add_argument(
        "--file",
        metavar="PATH",
        default=None,
        help="Read additional domains from PATH, one per line.",
    )
    parser.add_argument(
        "--mode",
        default=None,
        help="Check mode: api, web, offline, simulation, or 'auto' to pick the best available.",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        metavar="N",
        help="Number of concurrent worker threads.",
    )
    parser.add_argument(
        "--delay-ms",
        type=int,
        default=None,
        metavar="MS",
        help="Pause in milliseconds between checks on each worker.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print results and statistics as JSON on stdout.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Enable DEBUG-level logging output.",
    )
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _configure_logging(verbose: bool) -> logging.Logger:
    """Configure root logger for the script.

    Args:
        verbose: If True, set level to DEBUG; otherwise INFO.

    Returns:
        A logger instance named after this module.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        stream=sys.stderr,
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    return logging.getLogger("scan_domains")


def _read_domain_file(path: str) -> list[str]:
    """Return the non-blank, non-comment lines of *path*."""
    with open(path, encoding="utf-8") as fh:
        lines = [line.split("#", 1)[0].strip() for line in fh]
    return [line for line in lines if line]


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Execute one batch scan.

    Returns:
        Integer exit code: 0 if the scan ran, 1 for fatal error.
    """
    args = _parse_args(argv)
    logger = _configure_logging(args.verbose)

    from dmarcscan.checker.engine import ScanError, build_scan_client
    from dmarcscan.checker.scoring import summarize_results
    from dmarcscan.config import Config
    from dmarcscan.models import worst_status

    domains = list(args.domains)
    if args.file:
        try:
            domains.extend(_read_domain_file(args.file))
        except OSError:
            logger.exception("FATAL: Could not read domain file %s", args.file)
            return 1

    if not domains:
        logger.error("No domains given. Pass domains as arguments or use --file.")
        return 1

    run_start = datetime.now(timezone.utc)
    logger.info("=== scan_domains.py started at %s ===", run_start.isoformat())

    try:
        client = build_scan_client(vars(Config))
    except Exception:
        logger.exception("FATAL: Failed to build scan client.")
        return 1

    if args.mode == "auto":
        client.select_best_available_mode()
    elif args.mode:
        client.set_mode(args.mode)
    if args.concurrency is not None:
        client.set_concurrent_requests(args.concurrency)
    if args.delay_ms is not None:
        client.set_delay(args.delay_ms)

    def _on_progress(processed, total, result):
        logger.info(
            "DONE  %-50s  overall=%-8s  dmarc=%-8s  spf=%-8s  dkim=%-8s  score=%3d  [%d/%d]",
            result.domain,
            worst_status(*result.statuses),
            result.dmarc.status,
            result.spf.status,
            result.dkim.status,
            result.security_score,
            processed,
            total,
        )

    try:
        results = client.check_domains(domains, on_progress=_on_progress)
    except ScanError as exc:
        logger.error("FATAL: %s", exc)
        return 1
    except Exception:
        logger.exception("FATAL: Scan failed.")
        return 1

    statistics = summarize_results(results)
    _log_summary(logger, run_start, client.get_mode(), statistics)

    if args.json:
        payload = {
            "mode": client.get_mode(),
            "results": [r.to_dict() for r in results],
            "statistics": statistics,
        }
        json.dump(payload, sys.stdout, indent=2)
        sys.stdout.write("\n")

    return 0


def _log_summary(
    logger: logging.Logger,
    run_start: datetime,
    mode: str,
    statistics: dict,
) -> None:
    """Emit a summary log line at the end of a run.

    Args:
        logger: Logger instance to write to.
        run_start: UTC datetime when the run began.
        mode: Check mode the scan ran in.
        statistics: Output of summarize_results().
    """
    run_end = datetime.now(timezone.utc)
    elapsed_total = (run_end - run_start).total_seconds()
    levels = statistics["security_levels"]
    logger.info(
        "=== Scan complete: mode=%s  checked=%d  avg_score=%d  high=%d  medium=%d  low=%d  "
        "total_elapsed=%.1fs ===",
        mode,
        statistics["total"],
        statistics["average_score"],
        levels["high"],
        levels["medium"],
        levels["low"],
        elapsed_total,
    )


# ---------------------------------------------------------------------------
# Script entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
