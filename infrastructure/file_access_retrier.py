import errno
import logging
import time
from typing import Callable, TypeVar

from domain.errors import MoveContentionError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures raised while another process (antivirus, indexer) holds a handle.
TRANSIENT_ERRNOS = {errno.EACCES, errno.EBUSY, errno.EPERM, errno.ETXTBSY}


def is_transient_access_failure(error: OSError) -> bool:
    if isinstance(error, PermissionError):
        return True
    return error.errno in TRANSIENT_ERRNOS


class FileAccessRetrier:
    """Retries file system moves that fail because something holds a lock."""

    def __init__(
        self,
        max_retries: int = 10,
        initial_delay: float = 0.01,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.sleep = sleep

    def retry_on_move_access_failure(self, action: Callable[[], T]) -> T:
        """
        Run action, retrying transient access failures with doubling delays.

        Raises:
            MoveContentionError: If every attempt failed on a transient error
            OSError: Any non-transient failure, unchanged
        """
        delay = self.initial_delay
        attempt = 0
        while True:
            try:
                return action()
            except OSError as e:
                if not is_transient_access_failure(e):
                    raise
                attempt += 1
                if attempt > self.max_retries:
                    raise MoveContentionError(
                        f"Moving content failed after {self.max_retries} retries: {e}"
                    ) from e
                logger.warning("Move failed (attempt %s of %s), retrying in %.3fs: %s",
                               attempt, self.max_retries, delay, e)
                self.sleep(delay)
                delay *= 2
