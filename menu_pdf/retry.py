"""
Bounded retry with forced browser recovery between attempts.

MIT License - Copyright (c) 2025 Menu PDF Renderer
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple

from .errors import ErrorKind, RenderError, Result, classify_exception
from .log import ConsoleLogger, get_logger


class RetryState(Enum):
    ATTEMPTING = "attempting"
    DONE = "done"
    EXHAUSTED = "exhausted"


AttemptFn = Callable[[int], Awaitable[Result]]


class RetryOrchestrator:
    """Runs an attempt function until it succeeds or the attempt ceiling is hit.

    Every failed attempt that will be retried is followed by `teardown()` and an
    exponential backoff delay, so a retry never runs on the browser process that
    just failed. Invalid input is never retried; invalid output is retried once.
    """

    def __init__(self, teardown: Callable[[], Awaitable[None]], max_attempts: int = 3,
                 backoff_base: float = 1.0, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                 logger: Optional[ConsoleLogger] = None):
        self.teardown = teardown
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self._sleep = sleep
        self.log = logger or get_logger()

    def backoff_delay(self, attempt: int) -> float:
        """Delay after failed attempt `attempt` (1-based): 2s, 4s, 8s... for a 1s base."""
        return self.backoff_base * (2 ** attempt)

    async def with_retry(self, attempt: AttemptFn, max_attempts: Optional[int] = None,
                         transitions: Optional[List[Tuple[RetryState, int]]] = None) -> Result:
        limit = max_attempts or self.max_attempts
        invalid_outputs = 0
        n = 1

        while True:
            if transitions is not None:
                transitions.append((RetryState.ATTEMPTING, n))
            self.log.debug(f"Render attempt {n}/{limit}")
            result = await self._run(attempt, n)

            if result.is_ok:
                if transitions is not None:
                    transitions.append((RetryState.DONE, n))
                return result

            error = result.error
            if not error.retryable:
                return result

            self.log.warning(f"Attempt {n} failed: {error}")
            if error.kind is ErrorKind.INVALID_OUTPUT:
                invalid_outputs += 1

            # A second malformed PDF after a full reset points at a deeper problem
            if n >= limit or invalid_outputs > 1:
                if transitions is not None:
                    transitions.append((RetryState.EXHAUSTED, n))
                return Result.fail(RenderError(
                    ErrorKind.EXHAUSTED,
                    f"all {n} attempt(s) failed; last error: {error}",
                    stage=error.stage,
                    cause=error.cause,
                    attempts=n,
                    last_error=error,
                ))

            await self.teardown()
            delay = self.backoff_delay(n)
            if delay > 0:
                self.log.info(f"Retrying in {delay:g}s...")
                await self._sleep(delay)
            n += 1

    async def _run(self, attempt: AttemptFn, n: int) -> Result:
        try:
            return await attempt(n)
        except RenderError as e:
            return Result.fail(e)
        except Exception as e:
            return Result.fail(classify_exception(e, 'render'))
