# ltp_service/jobs/audit_writer.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Optional

from ltp_service.db.models import RequestLog
from ltp_service.utils import metrics


logger = logging.getLogger("ltp_service.audit")


@dataclass(frozen=True)
class AuditRecord:
    request_id: str
    method: str
    endpoint: str
    pairs_requested: str
    user_ip: str
    status_code: int
    response_time_ms: int
    cache_hit: bool
    kraken_calls: int
    resolved_count: int
    success_count: int
    error_count: int
    error_occurred: bool
    error_message: str


class AuditWriter:
    """
    Fire-and-forget persistence of one audit row per batch request.

    ``submit`` never awaits: records go onto a bounded queue and are dropped
    (and counted) when the queue is full.  A single worker task drains the
    queue, writing each record in its own session.  Write failures are
    logged and the record is discarded.
    """

    def __init__(
        self,
        session_factory: Callable[[], Any],
        *,
        maxsize: int = 1000,
        drain_timeout: float = 5.0,
    ) -> None:
        if maxsize <= 0:
            raise ValueError("maxsize must be > 0")
        self._session_factory = session_factory
        self._queue: asyncio.Queue[AuditRecord] = asyncio.Queue(maxsize=maxsize)
        self._drain_timeout = drain_timeout
        self._task: Optional[asyncio.Task] = None
        self.written = 0
        self.dropped = 0
        self.failed = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self.running:
            logger.warning("audit writer already started")
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("audit writer started | maxsize=%s", self._queue.maxsize)

    def submit(self, record: AuditRecord) -> bool:
        try:
            self._queue.put_nowait(record)
        except asyncio.QueueFull:
            self.dropped += 1
            metrics.AUDIT_DROPPED.inc()
            logger.warning("audit queue full, record dropped | request_id=%s", record.request_id)
            return False
        return True

    async def _write(self, record: AuditRecord) -> None:
        try:
            async with self._session_factory() as session:
                session.add(RequestLog(**asdict(record)))
                await session.commit()
            self.written += 1
        except Exception:
            self.failed += 1
            logger.exception("audit write failed | request_id=%s", record.request_id)

    async def _run(self) -> None:
        while True:
            record = await self._queue.get()
            try:
                await self._write(record)
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        """Wait until every queued record has been handled."""
        await self._queue.join()

    async def stop(self) -> None:
        if self._task is None:
            return

        if self.running:
            try:
                await asyncio.wait_for(self.drain(), timeout=self._drain_timeout)
            except asyncio.TimeoutError:
                logger.warning("audit writer stop timed out | pending=%s", self.pending)

        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
        logger.info("audit writer stopped | written=%s | dropped=%s", self.written, self.dropped)


class NullAuditWriter:
    """Stand-in used when auditing is disabled or the database is unreachable."""

    running = False
    pending = 0

    def start(self) -> None:
        return None

    def submit(self, record: AuditRecord) -> bool:
        return False

    async def stop(self) -> None:
        return None
