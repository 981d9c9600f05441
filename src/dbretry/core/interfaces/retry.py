from datetime import timedelta
from typing import Any, Awaitable, Callable, Optional, Protocol

FailureCallback = Callable[[BaseException, int, int], None]


class RetryPort(Protocol):
    """Abstract retry interface for async operations.

    Implementations retry a repeatable async operation with a fixed delay until
    it succeeds or the attempt limit is reached. The contract keeps the core
    decoupled from a specific library (tenacity/backoff).
    """
    async def run_with_retry(
        self,
        operation: Callable[[], Awaitable[Any]],
        max_attempts: Optional[int] = None,
        delay: Optional[float | timedelta] = None,
        on_failure: Optional[FailureCallback] = None,
    ) -> Any:  # pragma: no cover - protocol
        """Run a zero-argument async callable with retry semantics.

        Args:
            operation: Called once per attempt; each call must re-issue the work.
            max_attempts: Attempt limit, defaults to the configured policy.
            delay: Seconds (or a timedelta) between attempts, defaults to the policy.
            on_failure: Observer called as (error, attempt_index, max_attempts).
        Returns:
            Result of the successful invocation.
        Raises:
            Propagates last exception after exhausting attempts.
        """
        ...
