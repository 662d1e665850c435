"""
Sequence allocation for document numbers.

- One counter per (series, scope_key), created lazily at 0
- Increment is a single UPDATE ... RETURNING on the counter row, so two
  concurrent allocations for the same scope can never read the same value
- The increment runs inside the caller's transaction: if the document insert
  that follows fails and the transaction rolls back, the counter does too

USAGE:
    from billbook.services.document_sequence_service import SequenceAllocator

    async def create_invoice(db: AsyncSession):
        allocator = SequenceAllocator(db, DocumentSeries.INVOICE)
        seq = await allocator.allocate("24-25")
        # Returns: 1, 2, 3 ... for successive committed calls
"""

import logging
from typing import Union

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from billbook.core.exceptions import TransientContention, ValidationError
from billbook.models.document_sequence import SequenceCounter, DocumentSeries


logger = logging.getLogger(__name__)


class SequenceAllocator:
    """
    Allocates monotonically increasing integers per scope.

    The allocator never commits. Commit or rollback belongs to the caller's
    unit of work so the increment lives or dies with the document insert.
    """

    def __init__(self, db: AsyncSession, series: Union[DocumentSeries, str]):
        self.db = db
        self.series = DocumentSeries(series).value

    async def allocate(self, scope_key: str) -> int:
        """
        Atomically increment the counter for ``scope_key`` and return the new value.

        Raises:
            TransientContention: if the database reports a lock/serialization
                conflict. Retry the whole operation from scratch.
        """
        if not scope_key:
            raise ValidationError("Sequence scope key is required")

        try:
            await self._ensure_counter(scope_key)
            result = await self.db.execute(
                update(SequenceCounter)
                .where(
                    SequenceCounter.series == self.series,
                    SequenceCounter.scope_key == scope_key,
                )
                .values(last_count=SequenceCounter.last_count + 1)
                .returning(SequenceCounter.last_count)
                .execution_options(synchronize_session=False)
            )
            value = result.scalar_one()
        except OperationalError as e:
            logger.warning(f"Sequence contention on {self.series}/{scope_key}: {e}")
            raise TransientContention(
                f"Could not allocate {self.series.lower()} sequence for {scope_key}, please retry",
                {"series": self.series, "scope_key": scope_key},
            ) from e

        logger.debug(f"Allocated {self.series}/{scope_key} → {value}")
        return value

    async def peek(self, scope_key: str) -> int:
        """Current (last allocated) value, 0 if the scope has never been used."""
        result = await self.db.execute(
            select(SequenceCounter.last_count).where(
                SequenceCounter.series == self.series,
                SequenceCounter.scope_key == scope_key,
            )
        )
        current = result.scalar_one_or_none()
        return current or 0

    async def set_next(self, scope_key: str, next_number: int) -> SequenceCounter:
        """
        Make ``next_number`` the value the next allocation returns.

        Use this to continue numbering carried over from another system.
        """
        if next_number < 1:
            raise ValidationError(f"Next number must be at least 1, got {next_number}")

        await self._ensure_counter(scope_key)
        result = await self.db.execute(
            select(SequenceCounter)
            .where(
                SequenceCounter.series == self.series,
                SequenceCounter.scope_key == scope_key,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        counter = result.scalar_one()
        old_number = counter.last_count
        counter.last_count = next_number - 1
        await self.db.flush()

        logger.info(
            f"Sequence {self.series}/{scope_key} moved from {old_number} to {counter.last_count} "
            f"(next: {next_number})"
        )
        return counter

    async def _ensure_counter(self, scope_key: str) -> None:
        """Create the counter row at 0 if missing. Concurrent creators do not conflict."""
        dialect = self.db.get_bind().dialect.name
        values = {"series": self.series, "scope_key": scope_key, "last_count": 0}

        if dialect == "postgresql":
            stmt = postgresql.insert(SequenceCounter).values(**values).on_conflict_do_nothing(
                index_elements=["series", "scope_key"]
            )
        elif dialect == "sqlite":
            stmt = sqlite.insert(SequenceCounter).values(**values).on_conflict_do_nothing(
                index_elements=["series", "scope_key"]
            )
        else:
            # Other backends: plain get-or-create, relying on the unique constraint
            existing = await self.db.execute(
                select(SequenceCounter.id).where(
                    SequenceCounter.series == self.series,
                    SequenceCounter.scope_key == scope_key,
                )
            )
            if existing.scalar_one_or_none() is None:
                self.db.add(SequenceCounter(**values))
                await self.db.flush()
            return

        await self.db.execute(stmt)
