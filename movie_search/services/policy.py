import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CallPolicy:
    """Timeout and retry settings applied to one external dependency.

    attempts=1 means a single try with no retries. Only exceptions listed in
    retry_on are retried; the last one is re-raised once attempts run out.
    """

    timeout: Optional[float] = None
    attempts: int = 1
    backoff: float = 0.0
    retry_on: Tuple[Type[BaseException], ...] = (Exception,)
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def call(self, fn: Callable[[], T], label: str = "call") -> T:
        attempt = 1
        while True:
            try:
                return fn()
            except self.retry_on as e:
                if attempt >= self.attempts:
                    raise
                delay = self.backoff * attempt
                logger.warning(f"{label} failed (attempt {attempt}/{self.attempts}): {e}; retrying in {delay:.2f}s")
                self.sleep(delay)
                attempt += 1
