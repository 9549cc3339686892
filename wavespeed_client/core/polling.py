"""Poll a submitted task until it reaches a terminal status.

Two bounds apply at once:
- a wall-clock ceiling measured from the first poll, which is fatal;
- a retry budget for consecutive failed fetches, reset by any successful
  non-terminal poll.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from wavespeed_client.client import WavespeedClient
from wavespeed_client.core.config import Settings, get_settings
from wavespeed_client.exceptions import APIError, PollTimeoutError
from wavespeed_client.schemas.task import TaskRecord

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class PollPolicy:
    """Timing limits for ``poll_until_done``. All values are seconds.

    Attributes:
        interval: Wait between successful non-terminal polls.
        max_duration: Wall-clock ceiling for the whole poll loop.
        max_retries: Consecutive failed fetches tolerated before re-raising.
        retry_delay: Base wait after a failed fetch, multiplied by the retry count.
        max_retry_delay: Cap on the wait after a failed fetch.
    """

    interval: float = 2.0
    max_duration: float = 600.0
    max_retries: int = 3
    retry_delay: float = 2.0
    max_retry_delay: float = 10.0

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ValueError("interval must be positive")
        if self.max_duration <= 0:
            raise ValueError("max_duration must be positive")
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> PollPolicy:
        settings = settings or get_settings()
        return cls(
            interval=settings.poll_interval,
            max_duration=settings.poll_timeout,
            max_retries=settings.poll_max_retries,
            retry_delay=settings.poll_retry_delay,
            max_retry_delay=settings.poll_max_retry_delay,
        )

    def backoff(self, retries: int) -> float:
        """Linear, capped wait after the ``retries``-th consecutive failure."""
        return min(self.retry_delay * retries, self.max_retry_delay)


async def poll_until_done(
    client: WavespeedClient,
    task_id: str,
    policy: PollPolicy | None = None,
    *,
    clock: Clock = time.monotonic,
    sleep: Sleep = asyncio.sleep,
) -> TaskRecord:
    """Fetch the task result until its status is terminal.

    Args:
        client: Client bound to the model the task was submitted with.
        task_id: Id returned by the submission.
        policy: Timing limits. Defaults to the process settings.
        clock: Monotonic clock in seconds.
        sleep: Coroutine used to wait between polls.

    Returns:
        The first fetched record whose status is completed, succeeded or failed.

    Raises:
        PollTimeoutError: The wall-clock ceiling was exceeded.
        APIError: More than ``max_retries`` consecutive fetches failed.
        UnexpectedResponseError: A fetched payload did not match the task
            schema. Never retried.
    """
    policy = policy or PollPolicy.from_settings()
    start = clock()
    retries = 0

    while True:
        if clock() - start > policy.max_duration:
            logger.error("Polling task %s timed out after %ss", task_id, policy.max_duration)
            raise PollTimeoutError(task_id, policy.max_duration)

        try:
            record = await client.get_result(task_id)
        except APIError as e:
            retries += 1
            if retries > policy.max_retries:
                logger.error(
                    "Polling task %s failed after %d retries: %s",
                    task_id,
                    policy.max_retries,
                    e,
                )
                raise

            delay = policy.backoff(retries)
            logger.warning(
                "Poll %d/%d for task %s failed: %s. Retrying in %ss...",
                retries,
                policy.max_retries,
                task_id,
                e,
                delay,
            )
            await sleep(delay)
            continue

        if record.is_terminal:
            logger.debug("Task %s reached status %s", task_id, record.status.value)
            return record

        retries = 0
        await sleep(policy.interval)
