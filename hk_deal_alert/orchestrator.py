"""
Scheduler for the HealthKart Deal Alert system.

Runs an alert cycle immediately and then on a fixed interval until shut
down. A cycle either runs the alert service in-process or triggers a
deployed API over HTTP.
"""

import asyncio
import signal
import sys
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .utils.logging import get_logger

AlertCycle = Callable[[], Awaitable[Dict[str, Any]]]

MAX_CONSECUTIVE_FAILURES = 10


class RemoteAlertTrigger:
    """Triggers alert runs on a deployed API using requests."""

    def __init__(self, api_url: str, timeout: float = 120.0, max_retries: int = 3):
        """
        Initialize trigger.

        Args:
            api_url: Base URL of the deployed API
            timeout: Request timeout in seconds
            max_retries: Retries for connection errors and 5xx responses
        """
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = self._create_session(max_retries)
        self.logger = get_logger("scheduler")

    @staticmethod
    def _create_session(max_retries: int) -> requests.Session:
        session = requests.Session()
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=1,
            status_forcelist=[429, 502, 503, 504],
            allowed_methods=["GET", "POST"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.headers.update({"User-Agent": "HealthKart-Deal-Alert-Scheduler/1.0"})
        return session

    def check_health(self) -> bool:
        try:
            response = self.session.get(f"{self.api_url}/health", timeout=10)
            return response.status_code == 200
        except requests.RequestException as e:
            self.logger.warning("API health check failed", extra={"error": str(e)})
            return False

    def trigger(self) -> Dict[str, Any]:
        """
        POST to the send-alert endpoint.

        Raises:
            requests.HTTPError: When the API reports a failure
        """
        response = self.session.post(f"{self.api_url}/api/send-alert", json={}, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    async def __call__(self) -> Dict[str, Any]:
        return await asyncio.to_thread(self.trigger)

    def close(self) -> None:
        self.session.close()


class AlertScheduler:
    """
    Timer loop running alert cycles.

    The first cycle runs immediately. Cycle failures are logged and the
    loop continues until too many consecutive failures occur.
    """

    def __init__(self, cycle: AlertCycle, interval_minutes: float = 30):
        """
        Initialize the scheduler.

        Args:
            cycle: Coroutine function running one alert cycle
            interval_minutes: Minutes between cycle starts
        """
        self.cycle = cycle
        self.interval_seconds = interval_minutes * 60
        self.logger = get_logger("scheduler")

        self._running = False
        self._shutdown_event = asyncio.Event()
        self._startup_time: Optional[datetime] = None
        self._last_run: Optional[datetime] = None
        self._last_result: Optional[Dict[str, Any]] = None
        self._runs = 0
        self._failures = 0
        self._consecutive_failures = 0

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        if sys.platform == "win32":
            return
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._signal_handler, sig)

    def _signal_handler(self, signum: int) -> None:
        self.logger.info(
            "Received shutdown signal, initiating graceful shutdown",
            extra={"signal": signum},
        )
        self.shutdown()

    async def run_once(self) -> Optional[Dict[str, Any]]:
        """Run a single cycle, recording its outcome."""
        self._runs += 1
        self._last_run = datetime.now()

        try:
            result = await self.cycle()
        except Exception as e:
            self._failures += 1
            self._consecutive_failures += 1
            self.logger.error(
                f"Alert cycle failed: {e}",
                extra={"run": self._runs, "consecutive_failures": self._consecutive_failures},
            )
            return None

        self._consecutive_failures = 0
        self._last_result = result
        self.logger.info("Alert cycle completed", extra={"run": self._runs, "result": result})
        return result

    async def start(self, handle_signals: bool = True) -> None:
        """Run cycles until shutdown."""
        if self._running:
            self.logger.warning("Scheduler is already running")
            return

        if handle_signals:
            self._setup_signal_handlers()

        self._running = True
        self._startup_time = datetime.now()
        self.logger.info(
            "Starting scheduler",
            extra={"interval_minutes": self.interval_seconds / 60},
        )

        try:
            while self._running and not self._shutdown_event.is_set():
                await self.run_once()

                if self._consecutive_failures >= MAX_CONSECUTIVE_FAILURES:
                    self.logger.critical("Too many consecutive failures, stopping scheduler")
                    break

                try:
                    await asyncio.wait_for(self._shutdown_event.wait(), timeout=self.interval_seconds)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._running = False
            self.logger.info("Scheduler stopped", extra=self.get_status())

    def shutdown(self) -> None:
        self._running = False
        self._shutdown_event.set()

    def get_status(self) -> Dict[str, Any]:
        return {
            "running": self._running,
            "startup_time": self._startup_time.isoformat() if self._startup_time else None,
            "last_run": self._last_run.isoformat() if self._last_run else None,
            "runs": self._runs,
            "failures": self._failures,
            "consecutive_failures": self._consecutive_failures,
        }
