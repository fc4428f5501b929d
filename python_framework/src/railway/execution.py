"""
Execution contexts — separate WHAT (a Result-returning computation) from HOW
it runs (logging, timing, transactions).

    ctx = LoggingExecutionContext(operation="CheckAuthorization")
    result = ctx.execute(lambda: check(access_key))
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Protocol, TypeVar, runtime_checkable

from railway.failure import ErrorCode, FailureDescription
from railway.result import Failure, Result

T = TypeVar("T")
logger = logging.getLogger("railway.execution")


@runtime_checkable
class ExecutionContext(Protocol):
    """Anything with execute(computation) -> Result is an execution context."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]: ...


class NoOpExecutionContext:
    """Runs the computation as-is. Useful in unit tests."""

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        return computation()


class LoggingExecutionContext:
    """
    Logs start, duration and final track of a computation.

    An exception escaping the computation is converted into a
    TECHNICAL_ERROR failure instead of propagating.
    """

    def __init__(
        self,
        inner: ExecutionContext | None = None,
        operation: str = "unknown",
        log_level: int = logging.INFO,
    ) -> None:
        self._inner = inner or NoOpExecutionContext()
        self._operation = operation
        self._log_level = log_level

    def execute(self, computation: Callable[[], Result[T]]) -> Result[T]:
        logger.log(self._log_level, "[%s] Starting execution", self._operation)
        start = time.monotonic()

        try:
            result = self._inner.execute(computation)
        except Exception as e:
            logger.error(
                "[%s] Execution failed after %.3fs: %s",
                self._operation,
                time.monotonic() - start,
                e,
            )
            return Failure(FailureDescription(ErrorCode.TECHNICAL_ERROR, f"Execution failed: {e}", e))

        logger.log(
            self._log_level,
            "[%s] Completed in %.3fs: %s",
            self._operation,
            time.monotonic() - start,
            "SUCCESS" if result.is_success() else "FAILURE",
        )
        return result
