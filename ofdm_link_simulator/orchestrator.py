"""
Job orchestration around the transmission pipeline.

Jobs run on a single background worker so heavy computation never blocks the
caller. Every request is tagged with a monotonically increasing identifier and
only results of the most recent request are delivered: superseded jobs run to
completion and are then ignored. New transmissions are refused while one is in
flight or within the cooldown window of the previous start.
"""

import logging
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Callable, Optional, Sequence

from .error_handling import SchedulingError
from .models import Agent, ChannelParameters, QualitySummary, TransmissionJob, TransmissionOutcome
from .pipeline import TransmissionPipeline

logger = logging.getLogger(__name__)

ResultCallback = Callable[[TransmissionOutcome], None]
AnalysisCallback = Callable[[QualitySummary], None]
ProgressListener = Callable[[int, str, float], None]


@dataclass
class JobTicket:
    """Handle of a submitted request.

    Attributes:
        request_id: Identifier assigned at submission
        kind: ``"transmission"`` or ``"analysis"``
        future: Future of the outcome
        submitted_at: Clock reading at submission
        delivered: Set once the outcome has been handed to the callbacks (or discarded)
    """

    request_id: int
    kind: str
    future: Future
    submitted_at: float
    delivered: threading.Event = field(default_factory=threading.Event, repr=False)

    def done(self) -> bool:
        return self.future.done()


class JobOrchestrator:
    """Schedules transmissions and channel analyses on a single worker.

    Example:
        >>> with JobOrchestrator(pipeline, on_result=print) as orchestrator:
        ...     ticket = orchestrator.submit_transmission(job)
        ...     outcome = orchestrator.wait(ticket)
    """

    def __init__(
        self,
        pipeline: Optional[TransmissionPipeline] = None,
        cooldown_s: float = 2.0,
        on_result: Optional[ResultCallback] = None,
        on_analysis: Optional[AnalysisCallback] = None,
        on_progress: Optional[ProgressListener] = None,
        max_analysis_agents: int = 10,
        analysis_interval_s: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        executor: Optional[Executor] = None,
    ):
        """Initialize the orchestrator.

        Args:
            pipeline: Pipeline running the jobs (creates default if None)
            cooldown_s: Minimum time between two transmission starts
            on_result: Receives outcomes of current transmission requests
            on_analysis: Receives summaries of current analysis requests
            on_progress: Receives (request_id, stage, fraction) of the current request
            max_analysis_agents: Agents considered by a channel analysis
            analysis_interval_s: Period after which ``analysis_due`` turns true again
            clock: Monotonic clock in seconds
            executor: Executor running the jobs (single-thread pool if None)
        """
        self.pipeline = pipeline or TransmissionPipeline()
        self.cooldown_s = cooldown_s
        self.on_result = on_result
        self.on_analysis = on_analysis
        self.on_progress = on_progress
        self.max_analysis_agents = max_analysis_agents
        self.analysis_interval_s = analysis_interval_s
        self._clock = clock
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="ofdm-sim"
        )
        self._lock = threading.RLock()
        self._latest_request_id = 0
        self._last_start: Optional[float] = None
        self._last_analysis: Optional[float] = None
        self._in_flight: Optional[JobTicket] = None
        self._closed = False

        logger.info(f"JobOrchestrator initialized: cooldown={cooldown_s}s")

    @property
    def latest_request_id(self) -> int:
        """Identifier of the most recently issued request (0 before any)."""
        return self._latest_request_id

    @property
    def is_busy(self) -> bool:
        """True from submission of a transmission until its outcome has been delivered."""
        return self._in_flight is not None

    @property
    def analysis_due(self) -> bool:
        """True when no analysis ran within the last ``analysis_interval_s``."""
        if self._last_analysis is None:
            return True
        return self._clock() - self._last_analysis >= self.analysis_interval_s

    def is_current(self, request_id: int) -> bool:
        return request_id == self._latest_request_id

    def _next_request_id(self) -> int:
        self._latest_request_id += 1
        return self._latest_request_id

    def _check_open(self) -> None:
        if self._closed:
            raise SchedulingError("Orchestrator has been shut down")

    def submit_transmission(self, job: TransmissionJob) -> Optional[JobTicket]:
        """Start a transmission unless one is running or the cooldown has not elapsed.

        Args:
            job: Transmission job; it is re-tagged with the new request id

        Returns:
            JobTicket, or None if the request was refused

        Raises:
            SchedulingError: If the orchestrator has been shut down
        """
        with self._lock:
            self._check_open()

            if self.is_busy:
                logger.debug("Transmission refused: another transmission is in flight")
                return None

            now = self._clock()
            if self._last_start is not None and now - self._last_start < self.cooldown_s:
                logger.debug(
                    f"Transmission refused: {now - self._last_start:.2f}s since last start, "
                    f"cooldown is {self.cooldown_s}s"
                )
                return None

            request_id = self._next_request_id()
            self._last_start = now
            tagged = replace(job, request_id=request_id)
            future = self._executor.submit(self._run_transmission, tagged)
            ticket = JobTicket(request_id, "transmission", future, now)
            self._in_flight = ticket

        logger.info(f"Submitted transmission request {request_id} ({len(job.bits)} bits)")
        future.add_done_callback(lambda f: self._deliver(ticket, f))
        return ticket

    def request_analysis(
        self, channel: ChannelParameters, agents: Sequence[Agent] = ()
    ) -> Optional[JobTicket]:
        """Queue a channel-quality analysis unless a transmission is running.

        Returns:
            JobTicket, or None if skipped

        Raises:
            SchedulingError: If the orchestrator has been shut down
        """
        with self._lock:
            self._check_open()

            if self.is_busy:
                return None

            now = self._clock()
            request_id = self._next_request_id()
            self._last_analysis = now
            limited = tuple(agents)[: self.max_analysis_agents]
            future = self._executor.submit(self.pipeline.analyze_channel_quality, channel, limited)
            ticket = JobTicket(request_id, "analysis", future, now)

        future.add_done_callback(lambda f: self._deliver(ticket, f))
        return ticket

    def _run_transmission(self, job: TransmissionJob) -> TransmissionOutcome:
        def progress(stage: str, fraction: float) -> None:
            if self.on_progress is not None and self.is_current(job.request_id):
                self.on_progress(job.request_id, stage, fraction)

        return self.pipeline.run_transmission(job, progress_callback=progress)

    def _deliver(self, ticket: JobTicket, future: Future) -> None:
        try:
            # Staleness is decided in the same step that frees the worker
            with self._lock:
                if self._in_flight is ticket:
                    self._in_flight = None
                current = self.is_current(ticket.request_id)

            if future.cancelled():
                logger.debug(f"Request {ticket.request_id} was cancelled")
                return

            if not current:
                logger.debug(
                    f"Discarding stale {ticket.kind} result {ticket.request_id} "
                    f"(latest is {self._latest_request_id})"
                )
                return

            outcome = future.result()
            callback = self.on_result if ticket.kind == "transmission" else self.on_analysis
            if callback is not None:
                callback(outcome)
        finally:
            ticket.delivered.set()

    def wait(self, ticket: JobTicket, timeout: Optional[float] = None):
        """Block until ``ticket`` has been delivered and return its outcome.

        Raises:
            SchedulingError: If delivery does not finish within ``timeout``
        """
        outcome = ticket.future.result(timeout=timeout)
        if not ticket.delivered.wait(timeout):
            raise SchedulingError(
                f"Request {ticket.request_id} was not delivered in time", ticket.request_id
            )
        return outcome

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting requests and release the worker."""
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait)
        logger.info("JobOrchestrator shut down")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()

    def __repr__(self) -> str:
        return (
            f"JobOrchestrator(cooldown={self.cooldown_s}s, "
            f"latest_request={self._latest_request_id}, busy={self.is_busy})"
        )
