"""
Document numbering: PREFIX-YYYYMM-NNN, restarting at 001 every month.

Each (prefix, period) pair owns a counter row in ``document_sequences`` that is
locked for the duration of the caller's transaction, so two concurrent
creations in the same month can never be handed the same number.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from erp.models.document_sequence import DocumentSequence

logger = logging.getLogger(__name__)


class NumberingService:
    """Allocates gap-tolerant, month-scoped sequential document numbers"""

    def next_number(self, db: Session, prefix: str, number_column, now: Optional[datetime] = None) -> str:
        """
        Reserve the next number for `prefix` in the month of `now`.

        Args:
            db: Database session (caller commits)
            prefix: DEV, CMD or FAC
            number_column: mapped column holding existing numbers, scanned the
                first time a period is used so counters pick up legacy rows
            now: clock override

        Returns:
            Formatted number, e.g. DEV-202403-007
        """
        now = now or datetime.now()
        period = now.strftime("%Y%m")
        stem = f"{prefix}-{period}-"

        counter = self._locked_counter(db, prefix, period)
        if counter is None:
            try:
                with db.begin_nested():
                    counter = DocumentSequence(
                        prefix=prefix,
                        period=period,
                        last_value=self._highest_existing(db, number_column, stem),
                    )
                    db.add(counter)
            except IntegrityError:
                # another transaction opened the period first
                logger.info(f"Counter for {prefix} {period} created concurrently, reusing it")
                counter = self._locked_counter(db, prefix, period)

        counter.last_value = (counter.last_value or 0) + 1
        db.flush()

        number = f"{stem}{counter.last_value:03d}"
        logger.debug(f"Allocated document number {number}")
        return number

    def _locked_counter(self, db: Session, prefix: str, period: str) -> Optional[DocumentSequence]:
        return db.query(DocumentSequence).filter(
            DocumentSequence.prefix == prefix,
            DocumentSequence.period == period,
        ).with_for_update().populate_existing().first()

    def _highest_existing(self, db: Session, number_column, stem: str) -> int:
        highest = 0
        for (number,) in db.query(number_column).filter(number_column.like(f"{stem}%")).all():
            suffix = number[len(stem):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return highest


numbering_service = NumberingService()
