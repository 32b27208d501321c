"""
Check orchestration engine.

ScanClient coordinates single-domain checks and bounded-concurrency batch
scans.  It handles:
- Normalising, de-duplicating and validating the input list
- Serving repeat checks from the result cache
- Dispatching cache misses to the active check mode
- A fixed pool of worker threads draining one shared queue
- Cooperative cancellation between queue pops
- Progress callbacks and input-order reassembly of results
- Mode selection and mode-change notification
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Iterable, Mapping

import requests

from dmarcscan.checker.cache import ResultCache
from dmarcscan.checker.modes import (
    AVAILABLE_MODES,
    MODE_API,
    MODE_OFFLINE,
    MODE_PREFERENCE,
    MODE_SIMULATION,
    MODE_WEB,
    ApiMode,
    CheckMode,
    OfflineMode,
    SimulationMode,
    WebMode,
)
from dmarcscan.checker.resolver import DnsResolverLookup, Lookup
from dmarcscan.checker.validator import is_valid_domain, normalize_domain
from dmarcscan.config import DnsSettings
from dmarcscan.models import (
    INVALID_DOMAIN_MESSAGE,
    DomainCheckResult,
    ScanState,
    error_result,
)

logger = logging.getLogger(__name__)

DEFAULT_DELAY_MS = 1000
DEFAULT_CONCURRENT_REQUESTS = 3

ProgressCallback = Callable[[int, int, DomainCheckResult], None]
ModeListener = Callable[[str], None]


class ScanError(Exception):
    """A batch scan could not be started."""


class ScanInProgressError(ScanError):
    """Another batch scan is already running on this client."""


class NoValidDomainsError(ScanError):
    """The input list contains no valid domain to scan."""


class ScanClient:
    """Multi-mode domain security checker.

    Args:
        modes: Mapping of mode name to CheckMode.  A ``simulation`` entry is
            created if missing.
        mode: Initial active mode name.
        cache: Result cache; a private one is created if not given.
        delay_ms: Pause each worker takes after a non-cached check.
        concurrent_requests: Maximum number of worker threads per scan.
        cache_enabled: Whether results are read from and stored in the cache.
    """

    def __init__(
        self,
        modes: dict[str, CheckMode] | None = None,
        mode: str = MODE_SIMULATION,
        cache: ResultCache | None = None,
        delay_ms: int = DEFAULT_DELAY_MS,
        concurrent_requests: int = DEFAULT_CONCURRENT_REQUESTS,
        cache_enabled: bool = True,
    ) -> None:
        self._modes: dict[str, CheckMode] = dict(modes or {})
        self._modes.setdefault(MODE_SIMULATION, SimulationMode(delay_ms=delay_ms))

        self.cache = cache if cache is not None else ResultCache()
        self.cache_enabled = cache_enabled
        self.delay_ms = delay_ms
        self.concurrent_requests = concurrent_requests

        self._mode = MODE_SIMULATION
        self._mode_listeners: list[ModeListener] = []

        self._state = ScanState()
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._active_workers = 0

        if mode != MODE_SIMULATION:
            self.set_mode(mode)

        logger.info(
            "ScanClient initialized: mode=%s delay=%dms concurrency=%d cache=%s",
            self._mode,
            self.delay_ms,
            self.concurrent_requests,
            self.cache_enabled,
        )

    # ------------------------------------------------------------------
    # Mode management
    # ------------------------------------------------------------------

    def get_mode(self) -> str:
        return self._mode

    def set_mode(self, mode: str) -> str:
        """Switch the active check mode.

        Unknown or unconfigured modes fall back to ``simulation``.  Listeners
        are notified of every switch; the cache is left untouched.

        Returns:
            The mode that is now active.
        """
        if not isinstance(mode, str) or mode not in AVAILABLE_MODES or mode not in self._modes:
            logger.warning("Invalid mode: %s. Using simulation mode.", mode)
            mode = MODE_SIMULATION

        previous = self._mode
        self._mode = mode
        logger.info("Client mode changed from %s to %s", previous, mode)

        for listener in list(self._mode_listeners):
            try:
                listener(mode)
            except Exception:
                logger.exception("Mode change listener %r failed", listener)

        return mode

    def add_mode_listener(self, listener: ModeListener) -> None:
        """Register *listener* to be called with the new mode name on switch."""
        self._mode_listeners.append(listener)

    def select_best_available_mode(self) -> str:
        """Activate the first available mode in preference order.

        Probes api, web, then offline; falls back to simulation when none
        is available.
        """
        try:
            for name in MODE_PREFERENCE:
                mode = self._modes.get(name)
                if mode is not None and self._probe_mode(mode):
                    return self.set_mode(name)
        except Exception:
            logger.exception("Error selecting best mode")
        return self.set_mode(MODE_SIMULATION)

    @staticmethod
    def _probe_mode(mode: CheckMode) -> bool:
        try:
            return mode.is_available()
        except Exception:
            logger.exception("Error checking %s mode availability", mode.name)
            return False

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def clear_cache(self) -> None:
        self.cache.clear()

    def set_cache_enabled(self, enabled: bool) -> None:
        self.cache_enabled = bool(enabled)
        logger.info("Result cache %s", "enabled" if self.cache_enabled else "disabled")

    def set_delay(self, delay_ms: Any) -> None:
        """Set the inter-request delay in milliseconds.

        Non-integer input restores the default; negatives clamp to 0.  The
        simulation mode's artificial delay follows this setting.
        """
        try:
            value = max(0, int(delay_ms))
        except (TypeError, ValueError):
            value = DEFAULT_DELAY_MS
        self.delay_ms = value

        simulation = self._modes.get(MODE_SIMULATION)
        if isinstance(simulation, SimulationMode):
            simulation.delay_ms = value
        logger.info("Request delay set to %dms", value)

    def set_concurrent_requests(self, count: Any) -> None:
        """Set the worker pool size for subsequent scans (minimum 1)."""
        try:
            value = int(count)
        except (TypeError, ValueError):
            value = DEFAULT_CONCURRENT_REQUESTS
        if value < 1:
            value = DEFAULT_CONCURRENT_REQUESTS
        self.concurrent_requests = value
        logger.info("Concurrent requests set to %d", value)

    # ------------------------------------------------------------------
    # Single-domain check
    # ------------------------------------------------------------------

    def check_domain(self, domain: str) -> DomainCheckResult:
        """Check one domain through the cache and the active mode.

        Never raises for per-domain problems: invalid input and mode
        failures are returned as error results.
        """
        if not domain or not isinstance(domain, str):
            return error_result("unknown", "no domain specified")

        domain = normalize_domain(domain)
        if not is_valid_domain(domain):
            return error_result(domain, INVALID_DOMAIN_MESSAGE)

        result, _ = self._check_valid_domain(domain)
        return result

    def _check_valid_domain(self, domain: str) -> tuple[DomainCheckResult, bool]:
        """Return ``(result, cache_hit)`` for a normalised, valid *domain*."""
        if self.cache_enabled:
            cached = self.cache.get(domain)
            if cached is not None:
                logger.debug("Using cached result for %s", domain)
                return cached, True

        mode = self._modes[self._mode]
        try:
            result = mode.check_domain(domain)
        except Exception as exc:
            logger.exception("Error checking domain %s", domain)
            return error_result(domain, str(exc) or exc.__class__.__name__), False

        if self.cache_enabled:
            self.cache.set(domain, result)
        return result, False

    # ------------------------------------------------------------------
    # Batch scan
    # ------------------------------------------------------------------

    def check_domains(
        self,
        domains: Iterable[str],
        on_progress: ProgressCallback | None = None,
    ) -> list[DomainCheckResult]:
        """Check many domains with a bounded pool of worker threads.

        Args:
            domains: Raw domain strings.  Entries are trimmed and lowercased;
                blanks and repeats are dropped.
            on_progress: Optional ``(processed, total, result)`` callback,
                invoked once per finished domain in completion order.  It
                runs on worker threads; exceptions it raises are logged and
                ignored.

        Returns:
            Results in input order.  After a stop, domains that were never
            checked are absent.

        Raises:
            ScanInProgressError: A scan is already running on this client.
            NoValidDomainsError: No entry passed validation.
        """
        ordered, valid, invalid = self._partition(domains)

        with self._state_lock:
            if self._state.is_scanning:
                logger.error("Scan rejected: a scan is already in progress")
                raise ScanInProgressError("a scan is already in progress")
            if not valid:
                logger.error("Scan rejected: the list contains no valid domains to scan")
                raise NoValidDomainsError("the domain list contains no valid domains to scan")

            self._stop_event.clear()
            self._state = ScanState(
                is_scanning=True,
                should_stop=False,
                processed=0,
                total=len(valid) + len(invalid),
            )

        if invalid:
            logger.warning("Skipping %d invalid domain(s): %s", len(invalid), ", ".join(invalid))

        worker_count = max(1, min(self.concurrent_requests, len(valid)))
        logger.info(
            "Starting scan of %d domains (%d invalid, mode=%s, concurrency=%d)",
            len(valid),
            len(invalid),
            self._mode,
            worker_count,
        )
        start_time = time.monotonic()

        results: dict[str, DomainCheckResult] = {}
        results_lock = threading.Lock()

        try:
            for domain in invalid:
                invalid_result = error_result(domain, INVALID_DOMAIN_MESSAGE)
                self._record(domain, invalid_result, results, results_lock, on_progress)

            domain_queue: queue.Queue[str] = queue.Queue()
            for domain in valid:
                domain_queue.put(domain)

            with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="scan-worker") as executor:
                futures = [
                    executor.submit(self._scan_worker, domain_queue, results, results_lock, on_progress)
                    for _ in range(worker_count)
                ]
                for future in futures:
                    future.result()
        except Exception:
            logger.exception("Scan failed")
            raise
        finally:
            with self._state_lock:
                stopped = self._state.should_stop
                self._state.is_scanning = False

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            "Scan %s: %d/%d domains processed, elapsed=%dms",
            "stopped" if stopped else "complete",
            len(results),
            len(ordered),
            elapsed_ms,
        )

        return [results[domain] for domain in ordered if domain in results]

    def stop_scan(self) -> None:
        """Ask running workers to stop after their current domain."""
        with self._state_lock:
            if not self._state.is_scanning:
                logger.debug("stop_scan() called with no scan in progress")
                return
            self._state.should_stop = True
            self._stop_event.set()
        logger.info("Stopping scan")

    def get_scan_status(self) -> dict[str, Any]:
        """Return a snapshot of the scan state plus the active mode."""
        with self._state_lock:
            status = self._state.to_dict()
            status["active_workers"] = self._active_workers
        status["mode"] = self._mode
        return status

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _partition(domains: Iterable[str]) -> tuple[list[str], list[str], list[str]]:
        """Split raw input into ``(ordered, valid, invalid)`` normalised lists."""
        ordered: list[str] = []
        valid: list[str] = []
        invalid: list[str] = []
        seen: set[str] = set()

        for raw in domains:
            if not isinstance(raw, str):
                continue
            domain = normalize_domain(raw)
            if not domain or domain in seen:
                continue
            seen.add(domain)
            ordered.append(domain)
            (valid if is_valid_domain(domain) else invalid).append(domain)

        return ordered, valid, invalid

    def _scan_worker(
        self,
        domain_queue: queue.Queue[str],
        results: dict[str, DomainCheckResult],
        results_lock: threading.Lock,
        on_progress: ProgressCallback | None,
    ) -> None:
        """Drain *domain_queue* until it is empty or a stop is requested."""
        with self._state_lock:
            self._active_workers += 1
        try:
            while not self._stop_event.is_set():
                try:
                    domain = domain_queue.get_nowait()
                except queue.Empty:
                    return

                logger.debug("Checking domain: %s", domain)
                result, cache_hit = self._check_valid_domain(domain)
                self._record(domain, result, results, results_lock, on_progress)

                if not cache_hit:
                    time.sleep(self.delay_ms / 1000)
        finally:
            with self._state_lock:
                self._active_workers -= 1
            if self._stop_event.is_set():
                logger.debug("Worker exiting on stop request")

    def _record(
        self,
        domain: str,
        result: DomainCheckResult,
        results: dict[str, DomainCheckResult],
        results_lock: threading.Lock,
        on_progress: ProgressCallback | None,
    ) -> None:
        """Store *result*, bump the processed counter and report progress."""
        with results_lock:
            results[domain] = result
        with self._state_lock:
            self._state.processed += 1
            processed = self._state.processed
            total = self._state.total

        if on_progress is not None:
            try:
                on_progress(processed, total, result)
            except Exception:
                logger.exception("Error in progress callback for %s", result.domain)


def build_scan_client(config: Mapping[str, Any], lookup: Lookup | None = None) -> ScanClient:
    """Create a ScanClient with all four modes wired from *config*.

    Args:
        config: Flask-style config mapping (see dmarcscan.config.Config).
        lookup: DNS lookup callable for offline mode; a dnspython-backed
            lookup built from the DNS_* settings is used if not given.

    Returns:
        A configured ScanClient.  When SCAN_AUTO_SELECT_MODE is set the
        best available mode has already been selected.
    """
    delay_ms = int(config.get("SCAN_DELAY_MS", DEFAULT_DELAY_MS))
    timeout = float(config.get("REMOTE_TIMEOUT_SECONDS", 10.0))

    if lookup is None:
        lookup = DnsResolverLookup(DnsSettings.from_config(config))

    simulation = SimulationMode(delay_ms=delay_ms)
    session = requests.Session()
    modes: dict[str, CheckMode] = {
        MODE_SIMULATION: simulation,
        MODE_OFFLINE: OfflineMode(lookup, probe_domain=config.get("OFFLINE_PROBE_DOMAIN", "example.com")),
        MODE_API: ApiMode(
            config.get("API_KEY", ""),
            config.get("API_BASE_URL", ""),
            fallback=simulation,
            session=session,
            timeout=timeout,
        ),
        MODE_WEB: WebMode(
            config.get("WEB_TOOL_URL", ""),
            fallback=simulation,
            session=session,
            timeout=timeout,
        ),
    }

    client = ScanClient(
        modes=modes,
        mode=config.get("SCAN_MODE", MODE_SIMULATION),
        delay_ms=delay_ms,
        concurrent_requests=int(config.get("SCAN_CONCURRENT_REQUESTS", DEFAULT_CONCURRENT_REQUESTS)),
        cache_enabled=bool(config.get("SCAN_CACHE_ENABLED", True)),
    )

    if config.get("SCAN_AUTO_SELECT_MODE"):
        client.select_best_available_mode()

    return client
