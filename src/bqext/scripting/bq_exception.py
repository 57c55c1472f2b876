"""Optional scripting helpers to log exceptions and convert them to exit codes."""

from __future__ import annotations

from ..errors import BQExtError
from .bq_logging import log


class Interceptor:
    """
    Context manager to intercept exceptions.

    Reuse the same interceptor for a sequence of operations:

        interceptor = bq_exception.Interceptor()
        for request in requests:
            with interceptor:
                dedup(dataset, request)
        sys.exit(interceptor.exitcode())

    Exceptions are logged and suppressed, so the sequence continues
    after a failure. Errors raised by bqext are logged with their message
    only, while unexpected exceptions also include the traceback.
    `KeyboardInterrupt` is never suppressed.

    Attributes:
        failed: whether any operation failed.
        failures: the intercepted exceptions, in order.
    """

    def __init__(self):
        self.failed = False
        self.failures: list[BaseException] = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        if exc_type is None:
            return False
        if issubclass(exc_type, KeyboardInterrupt):
            return False
        if issubclass(exc_type, BQExtError):
            log.error("operation failed: %s", exc_value)
        else:
            log.error(
                "operation failed: %s",
                exc_value,
                exc_info=(exc_type, exc_value, traceback),
            )
        self.failed = True
        self.failures.append(exc_value)
        return True  # suppress the exception

    def exitcode(self) -> int:
        """
        Return the exitcode to pass to sys.exit.

        Zero on success, 1 on failure.
        """
        return int(self.failed)
