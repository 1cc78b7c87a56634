"""
Scanner service: one operator's collection desk session.

A session holds the current student (with their fee snapshot), the queue used in
queue mode and the last recorded payment. Sessions are process-local and keyed by
(tenant_id, operator_id); they are not persisted.
"""

import logging
from typing import Dict, Optional, Sequence, Tuple
from uuid import UUID

from fastapi import Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.api.v1.fees import service as fee_service
from feedesk.api.v1.fees.schemas import PaymentCreate, PaymentResult
from feedesk.auth.dependencies import get_current_user
from feedesk.auth.schemas import CurrentUser
from feedesk.core.enums import QueueEntryStatus
from feedesk.core.exceptions import ServiceError

from .queue import PaymentQueue
from .resolver import load_student, resolve_student
from .schemas import QueueEntry, ResolvedStudent, ScannerState

logger = logging.getLogger(__name__)

STUDENT_NOT_FOUND = "Student not found"


class ScannerSession:
    def __init__(self, tenant_id: UUID, operator_id: UUID) -> None:
        self.tenant_id = tenant_id
        self.operator_id = operator_id
        self.queue_mode = False
        self.queue = PaymentQueue()
        self.current: Optional[ResolvedStudent] = None
        self.last_payment: Optional[PaymentResult] = None

    def state(self, notice: Optional[str] = None) -> ScannerState:
        return ScannerState(
            queue_mode=self.queue_mode,
            current=self.current,
            queue=self.queue.entries,
            waiting_count=self.queue.count(QueueEntryStatus.waiting),
            completed_count=self.queue.count(QueueEntryStatus.completed),
            last_payment=self.last_payment,
            notice=notice,
        )

    def _require_current(self) -> ResolvedStudent:
        if self.current is None:
            raise ServiceError("No student selected", status.HTTP_400_BAD_REQUEST)
        return self.current

    async def _refresh_current(self, db: AsyncSession) -> None:
        if self.current is None:
            return
        self.current = await load_student(db, self.tenant_id, self.current.student.id)
        if self.current is not None:
            entry = self.queue.get(self.current.student.id)
            if entry is not None and self.current.fee is not None:
                entry.balance = self.current.fee.balance

    async def _load_entry(self, db: AsyncSession, entry: QueueEntry) -> Optional[ResolvedStudent]:
        """Load a fresh snapshot for a processing entry; an unavailable student's entry is closed."""
        snapshot = await load_student(db, self.tenant_id, entry.student_id)
        if snapshot is None:
            # Student deactivated or deleted since the scan.
            self.queue.complete(entry.student_id)
            self.current = None
            logger.warning(
                "Operator %s skipped %s: student is no longer available", self.operator_id, entry.admission_number
            )
            return None
        if snapshot.fee is not None:
            entry.balance = snapshot.fee.balance
        self.current = snapshot
        self.last_payment = None
        logger.info("Operator %s now serving %s", self.operator_id, snapshot.student.admission_number)
        return snapshot

    async def _take_up(self, db: AsyncSession, student_id: UUID) -> ResolvedStudent:
        """Mark a waiting entry processing and load a fresh snapshot for it."""
        entry = self.queue.select(student_id)
        snapshot = await self._load_entry(db, entry)
        if snapshot is None:
            raise ServiceError(STUDENT_NOT_FOUND, status.HTTP_404_NOT_FOUND)
        return snapshot

    async def _serve_next(self, db: AsyncSession) -> int:
        """
        Promote the first waiting entry whose student can still be loaded.
        Unavailable entries are closed on the way; returns how many were skipped.
        """
        skipped = 0
        nxt = self.queue.advance()
        while nxt is not None:
            if await self._load_entry(db, nxt) is not None:
                return skipped
            skipped += 1
            nxt = self.queue.advance()
        self.current = None
        return skipped

    async def scan(self, db: AsyncSession, code: str) -> ScannerState:
        resolved = await resolve_student(db, self.tenant_id, code)
        if resolved is None:
            raise ServiceError(STUDENT_NOT_FOUND, status.HTTP_404_NOT_FOUND)

        if not self.queue_mode:
            self.current = resolved
            self.last_payment = None
            return self.state(None if resolved.fee else "no_fee_record")

        student = resolved.student
        _, added = self.queue.enqueue(
            student.id,
            student.full_name,
            student.admission_number,
            resolved.fee.balance if resolved.fee else 0,
            class_name=student.class_name,
        )
        if added:
            logger.info("Operator %s queued %s", self.operator_id, student.admission_number)
        skipped = 0
        if self.queue.processing is None:
            skipped = await self._serve_next(db)
        if skipped:
            return self.state("skipped_unavailable")
        return self.state("queued" if added else "already_queued")

    async def select(self, db: AsyncSession, student_id: UUID) -> ScannerState:
        await self._take_up(db, student_id)
        return self.state(None if self.current and self.current.fee else "no_fee_record")

    def remove(self, student_id: UUID) -> ScannerState:
        if self.queue.remove(student_id):
            logger.info("Operator %s removed %s from the queue", self.operator_id, student_id)
        return self.state()

    def clear_completed(self) -> ScannerState:
        dropped = self.queue.clear_completed()
        logger.debug("Cleared %d completed queue entries", dropped)
        return self.state()

    def clear_queue(self) -> ScannerState:
        self.queue.clear()
        if self.queue_mode:
            self.current = None
        return self.state()

    async def advance(self, db: AsyncSession) -> ScannerState:
        self.last_payment = None
        skipped = await self._serve_next(db)
        if skipped:
            return self.state("skipped_unavailable")
        if self.current is None:
            return self.state("queue_empty")
        return self.state(None if self.current.fee else "no_fee_record")

    async def assign_fees(
        self,
        db: AsyncSession,
        fee_structure_ids: Sequence[UUID],
        changed_by: Optional[UUID] = None,
    ) -> ScannerState:
        current = self._require_current()
        await fee_service.assign_fees(
            db, self.tenant_id, current.student.id, fee_structure_ids, changed_by=changed_by
        )
        await self._refresh_current(db)
        return self.state()

    async def pay(
        self,
        db: AsyncSession,
        payload: PaymentCreate,
        received_by: Optional[UUID] = None,
    ) -> ScannerState:
        current = self._require_current()
        if current.fee is None:
            raise ServiceError("Assign fees before recording a payment", status.HTTP_400_BAD_REQUEST)

        result = await fee_service.record_payment(
            db, self.tenant_id, current.fee.id, payload, received_by=received_by
        )
        self.last_payment = result
        if self.queue_mode:
            self.queue.complete(current.student.id)
        await self._refresh_current(db)
        return self.state()

    def set_mode(self, queue_mode: bool) -> ScannerState:
        if self.queue_mode and not queue_mode:
            self.queue.release()
        self.queue_mode = queue_mode
        logger.info("Operator %s queue mode %s", self.operator_id, "on" if queue_mode else "off")
        return self.state()

    def reset(self) -> ScannerState:
        self.current = None
        self.last_payment = None
        if self.queue_mode:
            self.queue.release()
        return self.state()


class ScannerSessionRegistry:
    def __init__(self) -> None:
        self._sessions: Dict[Tuple[UUID, UUID], ScannerSession] = {}

    def get(self, tenant_id: UUID, operator_id: UUID) -> ScannerSession:
        key = (tenant_id, operator_id)
        session = self._sessions.get(key)
        if session is None:
            session = ScannerSession(tenant_id, operator_id)
            self._sessions[key] = session
        return session

    def clear(self) -> None:
        self._sessions.clear()


sessions = ScannerSessionRegistry()


async def get_scanner_session(
    current_user: CurrentUser = Depends(get_current_user),
) -> ScannerSession:
    return sessions.get(current_user.tenant_id, current_user.id)
