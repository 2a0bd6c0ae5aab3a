"""RetryPolicy — exponential visibility backoff for messages that failed."""

from __future__ import annotations

import math
import random

SQS_MAX_VISIBILITY_TIMEOUT = 43_200


class RetryPolicy:
    """Computes how long a failed message stays hidden before redelivery.

    The queue service redelivers a message once its visibility timeout
    expires. Extending that timeout per failed delivery gives exponential
    backoff without holding the message in the consumer.
    """

    def __init__(
        self,
        *,
        base_delay: float = 5.0,
        max_delay: float = 900.0,
        jitter: bool = False,
    ) -> None:
        """Configure backoff.

        Args:
            base_delay: Hidden time in seconds after the first failed delivery.
            max_delay: Cap on hidden time; never above the SQS maximum (12h).
            jitter: If True, scale each delay by a random factor in [0.5, 1.5].
        """
        if base_delay < 0 or max_delay < 0:
            raise ValueError("base_delay and max_delay must be >= 0")
        if base_delay > max_delay:
            raise ValueError("base_delay must be <= max_delay")
        if max_delay > SQS_MAX_VISIBILITY_TIMEOUT:
            raise ValueError(f"max_delay must be <= {SQS_MAX_VISIBILITY_TIMEOUT}")
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter

    def delay_for_attempt(self, attempt: int) -> float:
        """Return delay in seconds for the given 1-based delivery attempt.

        Uses exponential backoff: base_delay * 2^(attempt-1), capped by max_delay.
        """
        if attempt < 1:
            return 0.0
        # 2 ** attempt overflows float for very large receive counts
        exponent = min(attempt - 1, 64)
        delay = min(self.base_delay * (2**exponent), self.max_delay)
        if self.jitter:
            delay = min(delay * (0.5 + random.random()), self.max_delay)  # noqa: S311
        return float(max(0.0, delay))

    def visibility_timeout_for(self, receive_count: int) -> int:
        """Whole-second visibility timeout to apply after a failed delivery."""
        return min(
            math.ceil(self.delay_for_attempt(receive_count)),
            SQS_MAX_VISIBILITY_TIMEOUT,
        )

    def __repr__(self) -> str:
        return (
            f"RetryPolicy(base_delay={self.base_delay}, max_delay={self.max_delay}, "
            f"jitter={self.jitter})"
        )
