import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


class StorageTimeoutError(TimeoutError):
    """A storage read or write exceeded its deadline."""

    def __init__(self, backend: str, operation_name: str, timeout_seconds: Optional[float]) -> None:
        self.backend = backend
        self.operation_name = operation_name
        self.timeout_seconds = timeout_seconds
        shown = f"{float(timeout_seconds):g}" if timeout_seconds is not None else "unknown"
        super().__init__(f"{backend} {operation_name} timed out after {shown}s.")


async def _run_cleanup(cleanup: Callable[[], object], backend: str, operation_name: str) -> None:
    try:
        outcome = cleanup()
        if inspect.isawaitable(outcome):
            await outcome
    except Exception as exc:
        logger.warning(
            "storage_timeout_cleanup_failed",
            extra={
                "event": "storage_timeout_cleanup_failed",
                "backend": backend,
                "operation": operation_name,
                "error": str(exc),
            },
        )


async def run_with_timeout(
    operation: Callable[[], Awaitable[T]],
    timeout_seconds: Optional[float],
    cancel: Optional[Callable[[], object]] = None,
    *,
    backend: str = "unknown",
    operation_name: str = "operation",
) -> T:
    """Await `operation()` under a deadline.

    A missing or non-positive timeout disables the deadline. On expiry the
    optional `cancel` callback runs (sync or async) before
    `StorageTimeoutError` is raised.
    """
    if not timeout_seconds or timeout_seconds <= 0:
        return await operation()

    try:
        return await asyncio.wait_for(operation(), timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        logger.warning(
            "storage_timeout",
            extra={
                "event": "storage_timeout",
                "backend": backend,
                "operation": operation_name,
                "timeout_seconds": timeout_seconds,
            },
        )
        if cancel is not None:
            await _run_cleanup(cancel, backend, operation_name)
        raise StorageTimeoutError(backend, operation_name, timeout_seconds) from exc
