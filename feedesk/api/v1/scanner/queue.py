"""
In-memory payment queue for one operator session.

Entries are keyed by student id and kept in enqueue order. At most one entry is
processing at a time and a completed entry never changes status again.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from feedesk.core.enums import QueueEntryStatus
from feedesk.core.exceptions import QueueStateError

from .schemas import QueueEntry

logger = logging.getLogger(__name__)


class PaymentQueue:
    def __init__(self) -> None:
        self._entries: Dict[UUID, QueueEntry] = {}

    @property
    def entries(self) -> List[QueueEntry]:
        return list(self._entries.values())

    def get(self, student_id: UUID) -> Optional[QueueEntry]:
        return self._entries.get(student_id)

    @property
    def processing(self) -> Optional[QueueEntry]:
        for entry in self._entries.values():
            if entry.status == QueueEntryStatus.processing:
                return entry
        return None

    def next_waiting(self) -> Optional[QueueEntry]:
        for entry in self._entries.values():
            if entry.status == QueueEntryStatus.waiting:
                return entry
        return None

    def count(self, status: QueueEntryStatus) -> int:
        return sum(1 for entry in self._entries.values() if entry.status == status)

    def enqueue(
        self,
        student_id: UUID,
        full_name: str,
        admission_number: str,
        balance: Decimal,
        class_name: Optional[str] = None,
        scanned_at: Optional[datetime] = None,
    ) -> Tuple[QueueEntry, bool]:
        """Append a waiting entry. Returns (entry, added); added is False for a duplicate scan."""
        existing = self._entries.get(student_id)
        if existing is not None and existing.status != QueueEntryStatus.completed:
            return existing, False
        if existing is not None:
            # A served student scanned again joins the back of the queue.
            del self._entries[student_id]

        entry = QueueEntry(
            student_id=student_id,
            full_name=full_name,
            admission_number=admission_number,
            class_name=class_name,
            balance=balance,
            scanned_at=scanned_at or datetime.now(timezone.utc),
            status=QueueEntryStatus.waiting,
        )
        self._entries[student_id] = entry
        logger.debug("Queued student %s (%s)", student_id, admission_number)
        return entry, True

    def select(self, student_id: UUID) -> QueueEntry:
        """Start processing a waiting entry; whoever was being processed goes back to waiting."""
        entry = self._entries.get(student_id)
        if entry is None:
            raise QueueStateError("Student is not in the queue")
        if entry.status != QueueEntryStatus.waiting:
            raise QueueStateError(f"Only waiting students can be selected (status: {entry.status.value})")

        current = self.processing
        if current is not None:
            current.status = QueueEntryStatus.waiting
        entry.status = QueueEntryStatus.processing
        return entry

    def remove(self, student_id: UUID) -> bool:
        entry = self._entries.get(student_id)
        if entry is None:
            return False
        if entry.status != QueueEntryStatus.waiting:
            raise QueueStateError(f"Only waiting students can be removed (status: {entry.status.value})")
        del self._entries[student_id]
        return True

    def complete(self, student_id: UUID) -> Optional[QueueEntry]:
        entry = self._entries.get(student_id)
        if entry is not None:
            entry.status = QueueEntryStatus.completed
        return entry

    def release(self) -> None:
        """Put the processing entry back to waiting without serving it."""
        current = self.processing
        if current is not None:
            current.status = QueueEntryStatus.waiting

    def clear_completed(self) -> int:
        done = [sid for sid, e in self._entries.items() if e.status == QueueEntryStatus.completed]
        for sid in done:
            del self._entries[sid]
        return len(done)

    def clear(self) -> None:
        self._entries.clear()

    def advance(self) -> Optional[QueueEntry]:
        """
        Move on to the next waiting entry in enqueue order and mark it processing.
        An entry still processing (skipped without payment) is closed as completed.
        Returns the new processing entry, or None when nobody is waiting.
        """
        skipped = self.processing
        if skipped is not None:
            skipped.status = QueueEntryStatus.completed
            logger.debug("Skipped queued student %s", skipped.student_id)

        nxt = self.next_waiting()
        if nxt is not None:
            nxt.status = QueueEntryStatus.processing
        return nxt
