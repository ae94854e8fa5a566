"""
Retry helpers shared by the sync service.
"""

import random


def calculate_exponential_backoff(
    retry_count: int,
    base_delay: int = 1,
    max_delay: int = 300,
    multiplier: float = 2.0,
    jitter: bool = True,
) -> int:
    """
    Calculate exponential backoff delay with jitter.

    Args:
        retry_count: Current retry attempt (0-based)
        base_delay: Base delay in seconds (default: 1)
        max_delay: Maximum delay in seconds (default: 300 = 5 minutes)
        multiplier: Exponential multiplier (default: 2.0)
        jitter: Whether to add randomization to prevent thundering herd (default: True)

    Returns:
        Delay in seconds before next retry

    Example:
        retry_count=0: ~1s
        retry_count=1: ~2s
        retry_count=2: ~4s
        retry_count=3: ~8s
    """
    if retry_count < 0:
        return base_delay

    delay = base_delay * (multiplier**retry_count)
    delay = min(delay, max_delay)

    # Jitter adds +/-25% randomization
    if jitter:
        jitter_range = delay * 0.25
        delay = delay + random.uniform(-jitter_range, jitter_range)

    # Never drop below base_delay so the progression stays monotonic
    return max(int(delay), base_delay)
