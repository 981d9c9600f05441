import asyncio
from datetime import timedelta
from typing import Any, Awaitable, Callable, Optional

from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_fixed

from dbretry.core.config import RetryPolicy
from dbretry.core.exceptions import RetryConfigurationError
from dbretry.core.interfaces.retry import FailureCallback
from dbretry.core.models.attempt import Attempt
from dbretry.core.settings import logger


class TenacityRetryExecutor:
    """Tenacity-based retry executor implementing RetryPort.

    Runs a repeatable async operation with a fixed delay between attempts.
    Every ``Exception`` is retried until the attempt limit is reached, then the
    last error is raised unchanged. ``asyncio.CancelledError`` is never retried.

    Call-time arguments override the policy (max_attempts, delay). An optional
    ``retry_if`` predicate marks errors as fatal; a fatal error is still
    reported to ``on_failure`` and then raised without further attempts.
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        retry_if: Optional[Callable[[BaseException], bool]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self._retry_if = retry_if
        self._sleep = sleep

    def _should_retry(self, exc: BaseException) -> bool:
        if not isinstance(exc, Exception):
            return False
        if self._retry_if is None:
            return True
        return self._retry_if(exc)

    def _resolve(self, max_attempts: Optional[int], delay: Optional[float | timedelta]) -> tuple[int, float]:
        attempts = self.policy.max_attempts if max_attempts is None else max_attempts
        wait = self.policy.delay if delay is None else delay
        if isinstance(wait, timedelta):
            wait = wait.total_seconds()
        if attempts < 1:
            raise RetryConfigurationError(
                f"max_attempts must be >= 1, got {attempts}", parameter="max_attempts"
            )
        if wait < 0:
            raise RetryConfigurationError(
                f"delay must be >= 0, got {wait}", parameter="delay"
            )
        return attempts, wait

    def _observe(self, attempt: Attempt, on_failure: Optional[FailureCallback]) -> None:
        logger.debug(
            f"[retry] attempt {attempt.number}/{attempt.max_attempts} failed: "
            f"{type(attempt.error).__name__}: {attempt.error}"
        )
        if on_failure is None:
            return
        try:
            on_failure(attempt.error, attempt.index, attempt.max_attempts)
        except Exception as exc:
            logger.error(
                f"[retry:observer] on_failure raised, ignoring "
                f"attempt={attempt.number} error={exc}"
            )

    async def run_with_retry(
        self,
        operation: Callable[[], Awaitable[Any]],
        max_attempts: Optional[int] = None,
        delay: Optional[float | timedelta] = None,
        on_failure: Optional[FailureCallback] = None,
    ) -> Any:
        attempts, wait = self._resolve(max_attempts, delay)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_fixed(wait),
            retry=retry_if_exception(self._should_retry),
            sleep=self._sleep,
            reraise=True,
        )
        async for attempt in retrying:  # pragma: no cover - control flow instrumentation
            with attempt:
                index = attempt.retry_state.attempt_number - 1
                try:
                    return await operation()
                except Exception as exc:
                    failed = Attempt(index=index, max_attempts=attempts, error=exc)
                    self._observe(failed, on_failure)
                    if failed.is_last or not self._should_retry(exc):
                        logger.warning(
                            f"[retry] giving up after {failed.number} attempt(s): "
                            f"{type(exc).__name__}: {exc}"
                        )
                    raise
