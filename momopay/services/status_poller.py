"""
Request-to-pay status polling.

The poller is a small state machine driven by repeated get_status calls:

    PENDING --(SUCCESSFUL)--> SUCCESSFUL
            --(FAILED)------> FAILED
            --(deadline)----> TIMED_OUT
            --(N transient failures in a row, or cancel)--> ABORTED

PENDING and UNKNOWN statuses keep the machine in PENDING. Waits between
attempts are Event.wait() suspensions, so a cancel request is seen before
every attempt and while a wait is in progress.
"""

import logging
import threading
import time
from concurrent.futures import Executor, Future
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Mapping, Optional

from momopay.errors import TokenAcquisitionFailed, TransientError
from momopay.models import CollectionStatus

logger = logging.getLogger(__name__)

CANCELLED = 'cancelled'


class PollState(str, Enum):
    PENDING = 'PENDING'
    SUCCESSFUL = 'SUCCESSFUL'
    FAILED = 'FAILED'
    TIMED_OUT = 'TIMED_OUT'
    ABORTED = 'ABORTED'

    @property
    def is_terminal(self) -> bool:
        return self is not PollState.PENDING


@dataclass(frozen=True)
class PollPolicy:
    """Polling schedule. A backoff_multiplier of 1.0 polls at a fixed interval."""
    interval: float = 5.0
    timeout: float = 120.0
    max_consecutive_transient_failures: int = 3
    backoff_multiplier: float = 1.0
    max_interval: float = 30.0

    def __post_init__(self):
        if self.interval <= 0:
            raise ValueError("PollPolicy: 'interval' must be positive")
        if self.timeout <= 0:
            raise ValueError("PollPolicy: 'timeout' must be positive")
        if self.max_consecutive_transient_failures < 1:
            raise ValueError("PollPolicy: 'max_consecutive_transient_failures' must be at least 1")
        if self.backoff_multiplier < 1:
            raise ValueError("PollPolicy: 'backoff_multiplier' must be at least 1.0")

    def delay(self, attempt: int) -> float:
        """Wait after the given (1-based) attempt."""
        delay = self.interval * self.backoff_multiplier ** (attempt - 1)
        return min(delay, max(self.max_interval, self.interval))

    @classmethod
    def from_config(cls, config: Mapping) -> 'PollPolicy':
        defaults = cls()
        return cls(
            interval=config.get('MOMO_POLL_INTERVAL', defaults.interval),
            timeout=config.get('MOMO_POLL_TIMEOUT', defaults.timeout),
            max_consecutive_transient_failures=config.get(
                'MOMO_POLL_MAX_TRANSIENT_FAILURES', defaults.max_consecutive_transient_failures
            ),
            backoff_multiplier=config.get('MOMO_POLL_BACKOFF_MULTIPLIER', defaults.backoff_multiplier),
            max_interval=config.get('MOMO_POLL_MAX_INTERVAL', defaults.max_interval),
        )


@dataclass(frozen=True)
class PollResult:
    reference_id: str
    state: PollState
    attempts: int
    elapsed: float
    last_status: Optional[CollectionStatus] = None
    last_error: Optional[Exception] = None
    reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self.state is PollState.ABORTED and self.reason == CANCELLED

    def to_dict(self):
        return {
            'reference_id': self.reference_id,
            'state': self.state.value,
            'attempts': self.attempts,
            'elapsed': round(self.elapsed, 3),
            'last_status': self.last_status.value if self.last_status else None,
            'last_error': str(self.last_error) if self.last_error else None,
            'reason': self.reason,
        }


class PollHandle:
    """A poll running in the background."""

    def __init__(self, reference_id: str, future: Future, cancel_event: threading.Event):
        self.reference_id = reference_id
        self._future = future
        self._cancel_event = cancel_event

    def cancel(self) -> None:
        """Request cancellation; the poll ends ABORTED within one interval."""
        self._cancel_event.set()

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: Optional[float] = None) -> PollResult:
        return self._future.result(timeout)


def _event_wait(event: threading.Event, delay: float) -> bool:
    return event.wait(delay)


class StatusPoller:
    """Drives CollectionClient.get_status to a terminal PollResult."""

    # Failures worth another attempt; anything else propagates
    RETRYABLE_ERRORS = (TransientError, TokenAcquisitionFailed)

    def __init__(
            self,
            client,
            policy: Optional[PollPolicy] = None,
            clock: Callable[[], float] = time.monotonic,
            wait: Callable[[threading.Event, float], bool] = _event_wait
    ):
        self._client = client
        self.policy = policy or PollPolicy()
        self._clock = clock
        self._wait = wait

    def poll(
            self,
            reference_id: str,
            interval: Optional[float] = None,
            timeout: Optional[float] = None,
            max_consecutive_transient_failures: Optional[int] = None,
            cancel_event: Optional[threading.Event] = None
    ) -> PollResult:
        """
        Poll until the request-to-pay reaches a terminal outcome.

        Args:
            reference_id: Reference id returned by request_to_pay
            interval: Base wait between attempts (policy default if None)
            timeout: Budget measured from the first attempt
            max_consecutive_transient_failures: Abort threshold
            cancel_event: Set it to stop polling

        Returns:
            PollResult in a terminal state

        Raises:
            RequestRejected, InvalidInput: from get_status, not retried
        """
        policy = self._resolve_policy(interval, timeout, max_consecutive_transient_failures)
        cancel_event = cancel_event or threading.Event()

        started = self._clock()
        attempts = 0
        failures = 0
        last_status = None
        last_error = None

        def finish(state, reason=None):
            result = PollResult(
                reference_id=reference_id,
                state=state,
                attempts=attempts,
                elapsed=self._clock() - started,
                last_status=last_status,
                last_error=last_error,
                reason=reason,
            )
            logger.info(
                "MoMo poll ref=%s finished %s after %d attempt(s)%s",
                reference_id, state.value, attempts, f" ({reason})" if reason else ""
            )
            return result

        while True:
            if cancel_event.is_set():
                return finish(PollState.ABORTED, CANCELLED)

            attempts += 1
            try:
                status = self._client.get_status(reference_id)
            except self.RETRYABLE_ERRORS as exc:
                failures += 1
                last_error = exc
                logger.warning(
                    "MoMo poll ref=%s attempt %d failed (%d/%d): %s",
                    reference_id, attempts, failures, policy.max_consecutive_transient_failures, exc
                )
                if failures >= policy.max_consecutive_transient_failures:
                    return finish(PollState.ABORTED, f"{failures} consecutive transient failures")
            else:
                failures = 0
                last_status = status
                if status.is_terminal:
                    return finish(PollState(status.value))
                if status is CollectionStatus.UNKNOWN:
                    logger.debug("MoMo poll ref=%s status unknown, continuing", reference_id)

            elapsed = self._clock() - started
            if elapsed >= policy.timeout:
                return finish(PollState.TIMED_OUT)

            delay = min(policy.delay(attempts), policy.timeout - elapsed)
            if self._wait(cancel_event, delay):
                return finish(PollState.ABORTED, CANCELLED)

    def start(
            self,
            reference_id: str,
            executor: Optional[Executor] = None,
            **overrides
    ) -> PollHandle:
        """
        Run poll() in the background.

        Args:
            reference_id: Reference id returned by request_to_pay
            executor: Optional executor; a daemon thread is used otherwise
            **overrides: interval / timeout / max_consecutive_transient_failures

        Returns:
            PollHandle for cancellation and the eventual PollResult
        """
        cancel_event = threading.Event()

        if executor is not None:
            future = executor.submit(self.poll, reference_id, cancel_event=cancel_event, **overrides)
            return PollHandle(reference_id, future, cancel_event)

        future = Future()
        future.set_running_or_notify_cancel()

        def run():
            try:
                result = self.poll(reference_id, cancel_event=cancel_event, **overrides)
            except Exception as exc:
                future.set_exception(exc)
            else:
                future.set_result(result)

        thread = threading.Thread(target=run, name=f"momo-poll-{reference_id[:8]}", daemon=True)
        thread.start()
        return PollHandle(reference_id, future, cancel_event)

    def _resolve_policy(self, interval, timeout, max_failures) -> PollPolicy:
        overrides = {}
        if interval is not None:
            overrides['interval'] = interval
        if timeout is not None:
            overrides['timeout'] = timeout
        if max_failures is not None:
            overrides['max_consecutive_transient_failures'] = max_failures
        return replace(self.policy, **overrides) if overrides else self.policy
