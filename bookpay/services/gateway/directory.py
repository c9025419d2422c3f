"""Account Directory: company id -> connected account id.

Records live in Redis under `<prefix>/<company_id>/stripeAccountId`. Every
read goes to the store; nothing is cached in process.
"""

from contextlib import asynccontextmanager

from redis.asyncio import Redis
from redis.exceptions import LockError, RedisError

from bookpay.common.errors import DirectoryError
from bookpay.common.logging import logger
from bookpay.common.tracing import external_call_span


class AccountDirectory:
    """Redis-backed lookup of connected accounts by company."""

    def __init__(
        self,
        redis_client: Redis,
        key_prefix: str = "companies",
        lock_timeout: float = 30.0,
        lock_wait: float = 10.0,
    ) -> None:
        self._redis = redis_client
        self.key_prefix = key_prefix.rstrip("/")
        self.lock_timeout = lock_timeout
        self.lock_wait = lock_wait

    def account_key(self, company_id: str) -> str:
        return f"{self.key_prefix}/{company_id}/stripeAccountId"

    def lock_key(self, company_id: str) -> str:
        return f"{self.key_prefix}/{company_id}/onboardingLock"

    async def get(self, company_id: str) -> str | None:
        """Return the stored connected account id, or None when absent."""

        try:
            with external_call_span("redis", "get", company_id=company_id):
                value = await self._redis.get(self.account_key(company_id))
        except RedisError as exc:
            raise DirectoryError(f"account directory read failed: {exc}") from exc
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value or None

    async def set(self, company_id: str, account_id: str) -> bool:
        """Upsert the mapping unconditionally."""

        try:
            with external_call_span("redis", "set", company_id=company_id):
                return bool(await self._redis.set(self.account_key(company_id), account_id))
        except RedisError as exc:
            raise DirectoryError(f"account directory write failed: {exc}") from exc

    async def set_if_absent(self, company_id: str, account_id: str) -> bool:
        """Write the mapping only if none exists. Returns False when one already did."""

        try:
            with external_call_span("redis", "set_nx", company_id=company_id):
                stored = await self._redis.set(self.account_key(company_id), account_id, nx=True)
        except RedisError as exc:
            raise DirectoryError(f"account directory write failed: {exc}") from exc
        return bool(stored)

    @asynccontextmanager
    async def lock(self, company_id: str):
        """Serialize onboarding for one company across gateway processes."""

        lock = self._redis.lock(
            self.lock_key(company_id),
            timeout=self.lock_timeout,
            blocking_timeout=self.lock_wait,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as exc:
            raise DirectoryError(f"onboarding lock failed: {exc}") from exc
        if not acquired:
            raise DirectoryError(f"timed out waiting for onboarding lock for {company_id}")
        try:
            yield
        except BaseException:
            await self._release(lock, company_id, body_failed=True)
            raise
        await self._release(lock, company_id, body_failed=False)

    async def _release(self, lock, company_id: str, body_failed: bool) -> None:
        """Release the onboarding lock; a failing body keeps its own exception."""

        try:
            await lock.release()
        except LockError as exc:
            # Expired locks are already gone; the NX write still guards the record.
            logger.warning("onboarding lock released late company_id=%s: %s", company_id, exc)
        except RedisError as exc:
            if body_failed:
                logger.warning("onboarding lock release failed company_id=%s: %s", company_id, exc)
                return
            raise DirectoryError(f"onboarding lock release failed: {exc}") from exc
