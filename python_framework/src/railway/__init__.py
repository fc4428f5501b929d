"""
Railway-Oriented Programming (ROP) helpers.

Fallible operations return a Result instead of raising:

    from railway import Result, ErrorCode

    def parse_port(raw: str) -> Result[int]:
        if not raw.isdigit():
            return Result.failure(ErrorCode.VALIDATION_ERROR, "Port must be numeric")
        return Result.success(int(raw))

    parse_port("8080").map(lambda port: port + 1)
"""

from railway.result import Result, Success, Failure
from railway.failure import ErrorCode, FailureDescription
from railway.execution import (
    ExecutionContext,
    NoOpExecutionContext,
    LoggingExecutionContext,
)
from railway.assertions import ResultAssertions

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ExecutionContext",
    "NoOpExecutionContext",
    "LoggingExecutionContext",
    "ResultAssertions",
]

__version__ = "1.1.0"
