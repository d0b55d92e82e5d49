"""Structured logging for store failures that have no caller to raise into.

A debounced write flushed from a timer callback (or the second and later
failures of one flush()) can only be reported through the log. Each such
record carries a ``store_failure`` dict built from the ShoeboxError:
error_code, backend, operation, key and the stack trace.
"""

from __future__ import annotations

import logging
import traceback
from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class StoreFailure:
    """One failed backend operation, ready for JSON logging."""

    error_code: str
    message: str
    operation: str
    key: str | None = None
    backend: str | None = None
    stack_trace: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def describe_failure(exc: BaseException, *, operation: str, key: str | None = None) -> StoreFailure:
    """Build a StoreFailure from an exception.

    ``error_code`` and ``backend`` come from ShoeboxError attributes when
    present; other exceptions report their class name and no backend.
    """
    stack = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return StoreFailure(
        error_code=getattr(exc, "code", type(exc).__name__),
        message=str(exc),
        operation=operation,
        key=key,
        backend=getattr(exc, "backend", None),
        stack_trace="".join(stack),
    )


def log_store_failure(
    logger: logging.Logger,
    exc: BaseException,
    *,
    operation: str,
    key: str | None = None,
    level: int = logging.ERROR,
) -> StoreFailure:
    """Log a failed operation with its StoreFailure attached as ``store_failure``."""
    failure = describe_failure(exc, operation=operation, key=key)
    logger.log(
        level,
        "Store %s of key %s failed: [%s] %s",
        operation,
        key,
        failure.error_code,
        failure.message,
        extra={"store_failure": failure.to_dict()},
    )
    return failure
