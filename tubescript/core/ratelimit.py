"""
Token-bucket rate limiter for generation requests.

- In-memory, keyed by identity + scope (e.g. "generate:user_123").
- Disabled unless RATE_LIMIT_ENABLED is set; a disabled limiter allows everything.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional


@dataclass
class RateLimitConfig:
    enabled: bool = False
    per_minute_default: int = 120
    burst_default: int = 30


class TokenBucket:
    def __init__(self, capacity: int, refill_rate_per_sec: float, time_fn: Callable[[], float] = time.monotonic):
        self.capacity = max(1, capacity)
        self.tokens = float(self.capacity)
        self.refill_rate = max(0.0, refill_rate_per_sec)
        self.time_fn = time_fn
        self.last_refill = self.time_fn()

    def _refill(self) -> None:
        now = self.time_fn()
        elapsed = now - self.last_refill
        if elapsed <= 0:
            return
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

    def allow(self, cost: float = 1.0) -> bool:
        self._refill()
        if self.tokens >= cost:
            self.tokens -= cost
            return True
        return False


class InMemoryRateLimiter:
    def __init__(self, config: RateLimitConfig, time_fn: Callable[[], float] = time.monotonic):
        self.config = config
        self.time_fn = time_fn
        self.buckets: Dict[str, TokenBucket] = {}
        self._lock = threading.Lock()

    def allow(self, key: str, *, per_minute: Optional[int] = None, burst: Optional[int] = None) -> bool:
        if not self.config.enabled:
            return True
        per_minute = per_minute or self.config.per_minute_default
        burst = burst or self.config.burst_default
        with self._lock:
            bucket = self.buckets.get(key)
            if bucket is None:
                bucket = TokenBucket(capacity=burst, refill_rate_per_sec=per_minute / 60.0, time_fn=self.time_fn)
                self.buckets[key] = bucket
            return bucket.allow()

    def reset(self) -> None:
        with self._lock:
            self.buckets.clear()


def build_rate_limit_config(settings_obj) -> RateLimitConfig:
    """Build limiter config from Settings, falling back to safe defaults on bad values."""
    per_minute = getattr(settings_obj, "RATE_LIMIT_PER_MINUTE_DEFAULT", 120)
    burst = getattr(settings_obj, "RATE_LIMIT_BURST_DEFAULT", 30)
    return RateLimitConfig(
        enabled=bool(getattr(settings_obj, "RATE_LIMIT_ENABLED", False)),
        per_minute_default=per_minute if per_minute and per_minute > 0 else 120,
        burst_default=burst if burst and burst > 0 else 30,
    )
