"""Unit of Work Interface

Transaction boundary for ledger use cases, with a bounded retry of the whole
unit when the store reports a transient failure.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, TypeVar
from bursary.app.errors import TransientStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UnitOfWork(ABC):
    """
    Abstract unit of work

    run_transaction() executes ``work`` and commits. Any failure rolls the
    transaction back; transient failures (deadlock, lock timeout, dropped
    connection) re-run ``work`` from the start up to ``max_attempts`` times.
    Everything else propagates after the rollback.
    """

    max_attempts: int = 3
    retry_backoff_seconds: float = 0.05

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass

    def is_transient(self, exc: BaseException) -> bool:
        return isinstance(exc, TransientStoreError)

    async def run_transaction(
        self,
        work: Callable[[], Awaitable[T]],
        max_attempts: Optional[int] = None,
    ) -> T:
        attempts = max_attempts or self.max_attempts
        attempt = 1

        while True:
            try:
                result = await work()
                await self.commit()
                return result
            except Exception as exc:
                await self.rollback()

                if not self.is_transient(exc):
                    raise

                if attempt >= attempts:
                    logger.error(
                        f"Transaction failed after {attempt} attempts: {exc}"
                    )
                    if isinstance(exc, TransientStoreError):
                        raise
                    raise TransientStoreError(
                        "The ledger store is temporarily unavailable, please retry",
                        reason=str(exc),
                    ) from exc

                logger.warning(
                    f"Transient store failure on attempt {attempt}/{attempts}, retrying: {exc}"
                )
                await asyncio.sleep(self.retry_backoff_seconds * attempt)
                attempt += 1
