"""
OperationRunner - Submit/poll state machine for long-running provider calls.

QUEUED -> POLLING -> DONE | FAILED

The runner sleeps through an injectable coroutine so poll cadence and
termination can be driven by tests without real timers.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from node_lab.services.base import PollResult, PollStatus
from node_lab.util.errors import OperationFailed

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]
ProgressReporter = Callable[[int, str], None]


class OperationState(Enum):
    QUEUED = "queued"    # submitted, no poll answered yet
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"


class OperationRunner:
    """
    Drives one asynchronous provider operation to a terminal state.

    Args:
        interval: Seconds between polls
        report: Called with (progress, status message) after every non-terminal poll
        sleep: Coroutine used to wait between polls
        max_attempts: Poll cap; None polls until the provider answers
        label: Used in log lines
    """

    def __init__(
        self,
        interval: float,
        report: Optional[ProgressReporter] = None,
        sleep: Sleep = asyncio.sleep,
        max_attempts: Optional[int] = None,
        label: str = "operation",
    ):
        self.interval = interval
        self.report = report
        self.sleep = sleep
        self.max_attempts = max_attempts
        self.label = label
        self.state = OperationState.QUEUED
        self.task_id: Optional[str] = None
        self.attempts = 0

    async def run(
        self,
        submit: Callable[[], Awaitable[str]],
        poll: Callable[[str], Awaitable[PollResult]],
    ) -> PollResult:
        """
        Submit the operation, then poll until it completes or fails.

        Returns:
            The terminal PollResult; ``result_url`` may be None when the
            provider reported success without a reference

        Raises:
            OperationFailed: On a failure status or when ``max_attempts`` is exceeded
        """
        self.state = OperationState.QUEUED
        self.task_id = await submit()
        logger.info("%s: submitted task %s", self.label, self.task_id)
        self.state = OperationState.POLLING

        while True:
            self.attempts += 1
            result = await poll(self.task_id)
            logger.debug(
                "%s: poll #%d task=%s status=%s progress=%s",
                self.label, self.attempts, self.task_id, result.status.value, result.progress
            )

            if result.status == PollStatus.FAILED:
                self.state = OperationState.FAILED
                reason = result.failure_reason or "Generation Failed"
                logger.warning("%s: task %s failed: %s", self.label, self.task_id, reason)
                raise OperationFailed(reason, task_id=self.task_id)

            if result.status == PollStatus.SUCCEEDED or result.result_url:
                self.state = OperationState.DONE
                logger.info("%s: task %s done after %d poll(s)", self.label, self.task_id, self.attempts)
                return result

            if self.report is not None:
                self.report(result.progress, result.status_text or f"{result.progress}%")

            if self.max_attempts is not None and self.attempts >= self.max_attempts:
                self.state = OperationState.FAILED
                raise OperationFailed(
                    f"Gave up after {self.attempts} polls without a terminal status",
                    task_id=self.task_id,
                )

            await self.sleep(self.interval)
