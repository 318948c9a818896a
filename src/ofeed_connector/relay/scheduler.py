"""
Repeating relay cycle: fetch, transform, upload.

The next cycle is scheduled from the end of the current one, so the poll
interval is measured from cycle completion and cycles never overlap.
Failures are absorbed; the next attempt happens at the next interval.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Optional

from ofeed_connector.diagnostics import BoundedLog, StatusTracker
from ofeed_connector.relay.fetcher import Fetcher
from ofeed_connector.relay.outcomes import MSG_CYCLE_ERROR, MSG_TRANSFORM_ERROR
from ofeed_connector.relay.uploader import Uploader
from ofeed_connector.transform import TransformError, update_or_insert_ids

logger = logging.getLogger(__name__)

# Give the results source time to finish its own startup
STARTUP_DELAY_MS = 3000


class SchedulerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class RelayScheduler:
    """
    Drives relay cycles on a restart-based timer.

    States: IDLE -> RUNNING -> STOPPED. A stopped scheduler cannot be
    restarted; create a new one instead.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        uploader: Uploader,
        log: BoundedLog,
        status: StatusTracker,
        poll_interval_ms: int,
        startup_delay_ms: int = STARTUP_DELAY_MS,
        transform: Callable[[str], str] = update_or_insert_ids,
        timer_factory: Optional[Callable] = None,
    ):
        """
        Initialize scheduler.

        Args:
            fetcher: Source poller
            uploader: OFeed uploader
            log: Application log
            status: Status tracker
            poll_interval_ms: Delay between end of one cycle and start of the next
            startup_delay_ms: Delay before the first cycle
            transform: Payload rewriter applied before upload
            timer_factory: Callable(seconds, function) returning a timer with
                start() and cancel(); defaults to threading.Timer
        """
        if poll_interval_ms <= 0:
            raise ValueError("poll_interval_ms must be > 0")

        self._fetcher = fetcher
        self._uploader = uploader
        self._log = log
        self._status = status
        self._transform = transform
        self._interval_ms = poll_interval_ms
        self._startup_delay_ms = startup_delay_ms
        self._timer_factory = timer_factory or threading.Timer

        self._state = SchedulerState.IDLE
        self._timer = None
        self._lock = threading.Lock()
        self._idle = threading.Event()
        self._idle.set()
        self._cycles_completed = 0

    @property
    def state(self) -> SchedulerState:
        with self._lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state is SchedulerState.RUNNING

    @property
    def cycles_completed(self) -> int:
        with self._lock:
            return self._cycles_completed

    @property
    def cycle_in_progress(self) -> bool:
        return not self._idle.is_set()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Start relaying; the first cycle runs after the startup delay."""
        with self._lock:
            if self._state is not SchedulerState.IDLE:
                raise RuntimeError(f"Cannot start scheduler in state {self._state.value}")
            self._state = SchedulerState.RUNNING

        logger.info(
            f"Relay started, first cycle in {self._startup_delay_ms} ms, "
            f"then every {self._interval_ms} ms"
        )
        self._schedule(self._startup_delay_ms)

    def stop(self) -> None:
        """
        Stop relaying.

        Cancels the pending cycle. A cycle already in progress is allowed
        to finish but will not schedule another one.
        """
        with self._lock:
            if self._state is SchedulerState.STOPPED:
                return
            self._state = SchedulerState.STOPPED
            timer, self._timer = self._timer, None

        if timer is not None:
            timer.cancel()

        logger.info("Relay stopped")

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until no cycle is in progress.

        Returns:
            True if idle, False on timeout
        """
        return self._idle.wait(timeout)

    # =========================================================================
    # Cycle
    # =========================================================================

    def _schedule(self, delay_ms: int) -> None:
        # State check and timer replacement are atomic with respect to stop()
        with self._lock:
            if self._state is not SchedulerState.RUNNING:
                return
            timer = self._timer_factory(delay_ms / 1000.0, self._on_timer)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _on_timer(self) -> None:
        with self._lock:
            if self._state is not SchedulerState.RUNNING:
                return
            self._timer = None
            self._idle.clear()

        try:
            self.run_cycle()
        except Exception as e:
            logger.exception("Relay cycle failed")
            self._status.record_failure(MSG_CYCLE_ERROR)
            self._log.add(f"{MSG_CYCLE_ERROR} {e}")
        finally:
            with self._lock:
                self._cycles_completed += 1
            self._idle.set()
            self._schedule(self._interval_ms)

    def run_cycle(self) -> None:
        """
        Run one fetch -> transform -> upload cycle.

        Fetch and upload handle their own outcomes; a transform failure
        is logged and reported here and the upload is skipped.
        """
        outcome = self._fetcher.fetch()
        if not outcome.has_results:
            return

        try:
            payload = self._transform(outcome.body)
        except TransformError as e:
            self._status.record_failure(MSG_TRANSFORM_ERROR)
            self._log.add(f"{MSG_TRANSFORM_ERROR} {e}")
            logger.warning(f"Transform failed, upload skipped: {e}")
            return

        self._uploader.upload(payload)
