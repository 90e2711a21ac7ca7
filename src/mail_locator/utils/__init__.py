"""Utility functions for Mail Variable Locator."""

import time
from functools import wraps
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable[..., Any])


def retry_on_failure(
    max_retries: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
) -> Callable[[F], F]:
    """Decorator to retry a function on failure with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts.
        delay: Initial delay between retries in seconds.
        backoff: Multiplier for delay after each retry.
        exceptions: Exception types that trigger a retry; others propagate at once.

    Returns:
        Decorated function with retry logic.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            current_delay = delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_retries:
                        logger.error(
                            "function_retry_exhausted",
                            function=func.__name__,
                            attempts=max_retries + 1,
                            error=str(e),
                        )
                        raise

                    logger.warning(
                        "function_retry",
                        function=func.__name__,
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        delay=current_delay,
                        error=str(e),
                    )
                    time.sleep(current_delay)
                    current_delay *= backoff

        return wrapper  # type: ignore

    return decorator


class ProgressLogger:
    """Logs coarse progress of a task with a known number of steps.

    A progress event is logged whenever another tenth of the work is done, and
    once more when the task is closed.
    """

    def __init__(self, task: str, total: int) -> None:
        self.task = task
        self.total = total
        self.processed = 0
        self._last_reported_decile = 0
        logger.info("progress_started", task=task, total=total)

    def processed_one(self) -> None:
        self.processed += 1
        if self.total <= 0:
            return

        decile = min(10, self.processed * 10 // self.total)
        if decile > self._last_reported_decile:
            self._last_reported_decile = decile
            logger.info(
                "progress",
                task=self.task,
                processed=self.processed,
                total=self.total,
                percent=decile * 10,
            )

    def close(self) -> None:
        logger.info("progress_finished", task=self.task, processed=self.processed, total=self.total)
