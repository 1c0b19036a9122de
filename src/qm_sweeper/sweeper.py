"""ExpirySweeper — moves overdue OPEN requests to EXPIRED.

Each expired request is closed in its own transaction under the same
per-request lock the acceptance coordinator takes, through the same
compare-and-swap close. A request that acceptance closed first is skipped;
a request whose transaction fails is left OPEN and retried on the next tick
(at-least-once). Quotes whose own validity window lapsed on a still-open
request are expired in bulk at the end of each tick.
"""
import asyncio
import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config.settings import settings
from src.qm_acceptance.application.service import get_request_locks
from src.qm_acceptance.engine.locks import RequestLockRegistry
from src.qm_common.database import async_session_factory
from src.qm_common.datetime_utils import Clock, utc_now
from src.qm_common.enums import CloseReason, NotifyEvent
from src.qm_notify.notifier import NotifierProtocol, get_notifier
from src.qm_quote.domain.repository import QuoteRepositoryProtocol
from src.qm_quote.infrastructure.persistence import QuoteRepository
from src.qm_request.application.service import QuoteRequestRegistry
from src.qm_request.domain.repository import QuoteRequestRepositoryProtocol
from src.qm_request.infrastructure.persistence import QuoteRequestRepository

logger = logging.getLogger(__name__)

SWEEP_BATCH_SIZE = 200

# Driver-level connection failures (asyncpg raises OSError subclasses such as
# ConnectionRefusedError) are not wrapped by SQLAlchemy
_TRANSIENT_ERRORS = (SQLAlchemyError, OSError)


@dataclass
class SweepResult:
    expired_requests: list[str] = field(default_factory=list)
    expired_quotes: int = 0
    skipped: int = 0  # already closed by acceptance
    failed: list[str] = field(default_factory=list)


class ExpirySweeper:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        locks: RequestLockRegistry,
        request_repo: QuoteRequestRepositoryProtocol | None = None,
        quote_repo: QuoteRepositoryProtocol | None = None,
        notifier: NotifierProtocol | None = None,
        clock: Clock = utc_now,
        batch_size: int = SWEEP_BATCH_SIZE,
    ) -> None:
        self._session_factory = session_factory
        self._locks = locks
        self._requests: QuoteRequestRepositoryProtocol = request_repo or QuoteRequestRepository()
        self._quotes: QuoteRepositoryProtocol = quote_repo or QuoteRepository()
        self._registry = QuoteRequestRegistry(self._requests, clock)
        self._notifier = notifier
        self._clock = clock
        self._batch_size = batch_size

    @property
    def notifier(self) -> NotifierProtocol:
        return self._notifier or get_notifier()

    async def sweep_expired(self) -> SweepResult:
        """One pass. Safe to run repeatedly and concurrently with acceptance."""
        result = SweepResult()
        now = self._clock()
        async with self._session_factory() as db:
            candidates = await self._requests.list_expired_open_ids(now, self._batch_size, db)

        for request_id in candidates:
            try:
                buyer_id, quote_count = await self._expire_one(request_id)
            except _TRANSIENT_ERRORS:
                logger.warning("sweep: request %s failed, will retry", request_id, exc_info=True)
                result.failed.append(request_id)
                continue
            if buyer_id is None:
                result.skipped += 1
                continue
            result.expired_requests.append(request_id)
            result.expired_quotes += quote_count
            await self.notifier.send(
                buyer_id,
                NotifyEvent.REQUEST_EXPIRED,
                {"request_id": request_id, "expired_quotes": quote_count},
            )

        async with self._session_factory() as db:
            try:
                result.expired_quotes += await self._quotes.expire_stale(self._clock(), db)
                await db.commit()
            except _TRANSIENT_ERRORS:
                logger.warning("sweep: stale quote expiry failed, will retry", exc_info=True)

        if result.expired_requests or result.expired_quotes or result.failed:
            logger.info(
                "sweep: expired_requests=%d expired_quotes=%d skipped=%d failed=%d",
                len(result.expired_requests), result.expired_quotes,
                result.skipped, len(result.failed),
            )
        return result

    async def _expire_one(self, request_id: str) -> tuple[str | None, int]:
        """Returns (buyer_id, expired quote count); buyer_id None if nothing to do."""
        async with self._locks.lock_for(request_id):
            async with self._session_factory() as db:
                try:
                    now = self._clock()
                    request = await self._requests.get_by_id(request_id, db, lock="update")
                    if request is None or not request.is_open or request.expires_at > now:
                        await db.rollback()
                        return None, 0
                    if not await self._registry.close(request_id, CloseReason.EXPIRED, db):
                        await db.rollback()
                        return None, 0
                    expired = await self._quotes.expire_pending_for_request(request_id, now, db)
                    await db.commit()
                except Exception:
                    await db.rollback()
                    raise
        logger.info("request %s expired with %d pending quotes", request_id, len(expired))
        return request.buyer_id, len(expired)

    async def run_forever(self, interval_seconds: float | None = None) -> None:
        interval = interval_seconds or settings.SWEEP_INTERVAL_SECONDS
        logger.info("expiry sweeper started, interval=%ss", interval)
        while True:
            try:
                await self.sweep_expired()
            except Exception:
                # The loop outlives any single tick; the next one retries
                logger.exception("sweep tick failed")
            await asyncio.sleep(interval)


_sweeper: ExpirySweeper | None = None


def get_sweeper() -> ExpirySweeper:
    global _sweeper  # noqa: PLW0603
    if _sweeper is None:
        _sweeper = ExpirySweeper(async_session_factory, get_request_locks())
    return _sweeper
