"""Per-IP checkout throttling backed by Redis counters"""

from redis.asyncio import Redis

from storefront.config import settings
from storefront.exceptions import RateLimitExceeded


class CheckoutRateLimiter:
    """Fixed-window counter: at most ``limit`` successful checkouts per window.

    ``acquire`` takes a slot with a single INCR before the checkout
    transaction, so concurrent requests from one client cannot all slip
    under the limit. ``release`` hands the slot back when the checkout
    fails, so only successful checkouts are counted.
    """

    def __init__(self, redis: Redis, limit: int = None, window_seconds: int = None):
        self.redis = redis
        self.limit = settings.checkout_rate_limit if limit is None else limit
        self.window_seconds = settings.checkout_rate_window_seconds if window_seconds is None else window_seconds

    @staticmethod
    def key(client_ip: str) -> str:
        return f"rate:checkout:{client_ip}"

    async def attempts(self, client_ip: str) -> int:
        value = await self.redis.get(self.key(client_ip))
        return int(value or 0)

    async def acquire(self, client_ip: str) -> int:
        key = self.key(client_ip)
        current = await self.redis.incr(key)
        if current == 1:
            await self.redis.expire(key, self.window_seconds)
        if current > self.limit:
            await self.redis.decr(key)
            raise RateLimitExceeded()
        return current

    async def release(self, client_ip: str) -> None:
        key = self.key(client_ip)
        if await self.redis.decr(key) < 0:
            await self.redis.delete(key)
