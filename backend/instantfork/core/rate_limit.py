"""Per-host throttling for outbound calls to third-party services."""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Dict


@dataclass
class _Budget:
    rate: float  # tokens per second
    burst: float
    tokens: float
    updated: float = field(default_factory=time.monotonic)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class HostRateLimiter:
    """Spreads requests to each host over a requests-per-minute budget.

    Every host gets its own allowance that starts full, allows a short burst
    (a tenth of the per-minute budget, at least two calls) and then refills
    at ``rpm / 60`` calls per second. Hosts never wait on each other.
    """

    def __init__(self, default_rpm: int = 60):
        self.default_rpm = default_rpm
        self._budgets: Dict[str, _Budget] = {}

    def _budget_for(self, host: str) -> _Budget:
        budget = self._budgets.get(host)
        if budget is None:
            burst = max(2.0, self.default_rpm / 10.0)
            budget = self._budgets[host] = _Budget(
                rate=self.default_rpm / 60.0, burst=burst, tokens=burst
            )
        return budget

    async def acquire(self, host: str) -> None:
        """Wait until a request to ``host`` is allowed, then spend it."""
        budget = self._budget_for(host)
        async with budget.lock:
            while True:
                now = time.monotonic()
                budget.tokens = min(budget.burst, budget.tokens + (now - budget.updated) * budget.rate)
                budget.updated = now
                if budget.tokens >= 1.0:
                    budget.tokens -= 1.0
                    return
                await asyncio.sleep((1.0 - budget.tokens) / budget.rate)
