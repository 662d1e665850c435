import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from billbook.core.exceptions import TransientContention, ValidationError
from billbook.models import DocumentSeries
from billbook.services.document_sequence_service import SequenceAllocator


async def test_allocations_start_at_one_and_increase(db):
    allocator = SequenceAllocator(db, DocumentSeries.INVOICE)
    assert [await allocator.allocate("24-25") for _ in range(3)] == [1, 2, 3]
    assert await allocator.peek("24-25") == 3


async def test_scopes_are_independent(db):
    allocator = SequenceAllocator(db, DocumentSeries.INVOICE)
    assert await allocator.allocate("24-25") == 1
    assert await allocator.allocate("24-25") == 2
    assert await allocator.allocate("25-26") == 1


async def test_series_are_independent(db):
    invoices = SequenceAllocator(db, DocumentSeries.INVOICE)
    quotations = SequenceAllocator(db, "QUOTATION")
    assert await invoices.allocate("GLOBAL_SEQ") == 1
    assert await quotations.allocate("GLOBAL_SEQ") == 1
    assert await invoices.allocate("GLOBAL_SEQ") == 2


async def test_peek_on_unused_scope(db):
    assert await SequenceAllocator(db, DocumentSeries.INVOICE).peek("30-31") == 0


async def test_empty_scope_key_is_rejected(db):
    with pytest.raises(ValidationError):
        await SequenceAllocator(db, DocumentSeries.INVOICE).allocate("")


async def test_concurrent_allocations_have_no_duplicates_or_gaps(session_factory):
    async def allocate_and_commit():
        async with session_factory() as session:
            value = await SequenceAllocator(session, DocumentSeries.INVOICE).allocate("24-25")
            await session.commit()
            return value

    results = await asyncio.gather(*(allocate_and_commit() for _ in range(12)))
    assert sorted(results) == list(range(1, 13))


async def test_rolled_back_allocation_is_not_consumed(session_factory):
    async with session_factory() as session:
        assert await SequenceAllocator(session, DocumentSeries.INVOICE).allocate("24-25") == 1
        await session.commit()

    async with session_factory() as session:
        assert await SequenceAllocator(session, DocumentSeries.INVOICE).allocate("24-25") == 2
        await session.rollback()

    async with session_factory() as session:
        allocator = SequenceAllocator(session, DocumentSeries.INVOICE)
        assert await allocator.allocate("24-25") == 2
        assert await allocator.allocate("24-25") == 3
        await session.commit()


async def test_set_next(db):
    allocator = SequenceAllocator(db, DocumentSeries.INVOICE)
    await allocator.allocate("24-25")

    counter = await allocator.set_next("24-25", 100)
    assert counter.last_count == 99
    assert await allocator.allocate("24-25") == 100


async def test_set_next_creates_missing_counter(db):
    counter = await SequenceAllocator(db, DocumentSeries.QUOTATION).set_next("GLOBAL_SEQ", 1)
    assert counter.last_count == 0


async def test_set_next_below_one_is_rejected(db):
    with pytest.raises(ValidationError):
        await SequenceAllocator(db, DocumentSeries.INVOICE).set_next("24-25", 0)


async def test_set_next_reads_current_counter(db):
    allocator = SequenceAllocator(db, DocumentSeries.INVOICE)
    await allocator.set_next("24-25", 10)
    assert await allocator.allocate("24-25") == 10

    # The counter row is already in the session while the increment bypassed it
    counter = await allocator.set_next("24-25", 10)
    assert counter.last_count == 9
    assert await allocator.allocate("24-25") == 10


async def test_lock_failure_is_retryable(db, monkeypatch):
    allocator = SequenceAllocator(db, DocumentSeries.INVOICE)

    async def locked(*args, **kwargs):
        raise OperationalError("UPDATE sequence_counters", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "execute", locked)
    with pytest.raises(TransientContention) as exc_info:
        await allocator.allocate("24-25")
    assert exc_info.value.retryable
    assert exc_info.value.details == {"series": "INVOICE", "scope_key": "24-25"}
