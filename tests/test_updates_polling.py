from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
from uuid import uuid4

import pytest

from app.core.enums import BookingStatusEnum, RescheduleStatusEnum
from app.modules.updates.service import UpdatesService
from app.shared.utils import format_slot_date, format_slot_time
from tests.fakes import (
    FakeBookingRepository,
    FakeRescheduleRepository,
    FakeSchedulingRepository,
    make_booking,
    make_customer,
    make_slot,
)

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


def _service(slots, bookings) -> tuple[UpdatesService, FakeRescheduleRepository]:
    reschedule_repo = FakeRescheduleRepository()
    service = UpdatesService(
        booking_repository=FakeBookingRepository({booking.id: booking for booking in bookings}),
        reschedule_repository=reschedule_repo,
        scheduling_repository=FakeSchedulingRepository({slot.id: slot for slot in slots}),
        now_provider=lambda: NOW,
    )
    return service, reschedule_repo


def test_slot_formatting() -> None:
    assert format_slot_date(date(2026, 1, 20)) == "Tuesday, 20 January 2026"
    assert format_slot_time(time(9, 5)) == "09:05"


@pytest.mark.asyncio
async def test_has_changed_compares_last_status_change_with_since() -> None:
    customer = make_customer()
    slot_old, slot_new = make_slot(day=20), make_slot(day=21)
    old = make_booking(customer.id, slot_old, last_status_change=NOW - timedelta(days=2))
    new = make_booking(customer.id, slot_new, last_status_change=NOW - timedelta(hours=1))
    service, _ = _service([slot_old, slot_new], [old, new])

    result = await service.poll_updates(customer, since=NOW - timedelta(days=1))

    changed = {update.booking_id: update.has_changed for update in result.updates}
    assert changed == {old.id: False, new.id: True}
    assert result.summary.total_bookings_checked == 2
    assert result.summary.bookings_with_updates == 1
    assert result.summary.since == NOW - timedelta(days=1)


@pytest.mark.asyncio
async def test_polling_is_read_only_and_repeatable() -> None:
    customer = make_customer()
    slot = make_slot()
    booking = make_booking(customer.id, slot, last_status_change=NOW - timedelta(minutes=5))
    service, _ = _service([slot], [booking])
    since = NOW - timedelta(hours=1)

    first = await service.poll_updates(customer, since=since)
    second = await service.poll_updates(customer, since=since)

    assert first == second
    assert booking.last_status_change == NOW - timedelta(minutes=5)


@pytest.mark.asyncio
async def test_without_since_nothing_counts_as_changed() -> None:
    customer = make_customer()
    slot = make_slot()
    service, _ = _service([slot], [make_booking(customer.id, slot)])

    result = await service.poll_updates(customer, since=None)

    assert [update.has_changed for update in result.updates] == [False]
    assert result.summary.since is None


@pytest.mark.asyncio
async def test_only_own_bookings_and_requested_subset_are_reported() -> None:
    customer = make_customer()
    slot_a, slot_b, slot_c = make_slot(day=20), make_slot(day=21), make_slot(day=22)
    mine_a = make_booking(customer.id, slot_a)
    mine_b = make_booking(customer.id, slot_b)
    foreign = make_booking(uuid4(), slot_c)
    service, _ = _service([slot_a, slot_b, slot_c], [mine_a, mine_b, foreign])

    everything = await service.poll_updates(customer, since=None)
    subset = await service.poll_updates(customer, since=None, booking_ids=[mine_b.id, foreign.id])

    assert {update.booking_id for update in everything.updates} == {mine_a.id, mine_b.id}
    assert [update.booking_id for update in subset.updates] == [mine_b.id]


@pytest.mark.asyncio
async def test_snapshot_includes_slot_and_latest_request_with_expiry_applied() -> None:
    customer = make_customer()
    current, requested = make_slot(day=20, hour=9), make_slot(day=23, hour=14)
    booking = make_booking(customer.id, current)
    service, reschedule_repo = _service([current, requested], [booking])
    expired = await reschedule_repo.create_request(
        booking_id=booking.id,
        customer_id=customer.id,
        original_slot_id=current.id,
        requested_slot_id=requested.id,
        reason=None,
        requested_at=NOW - timedelta(days=9),
        expires_at=NOW - timedelta(days=2),
    )

    result = await service.poll_updates(customer, since=None)

    update = result.updates[0]
    assert update.status == BookingStatusEnum.CONFIRMED
    assert update.current_slot.formatted_date == "Tuesday, 20 January 2026"
    assert update.current_slot.formatted_time == "09:00"
    assert update.reschedule_request.id == expired.id
    assert update.reschedule_request.status == RescheduleStatusEnum.EXPIRED
    assert update.reschedule_request.requested_slot.formatted_time == "14:00"
    assert expired.status == RescheduleStatusEnum.PENDING
    assert result.summary.pending_reschedule_requests == 0


@pytest.mark.asyncio
async def test_pending_requests_are_counted() -> None:
    customer = make_customer()
    current, requested = make_slot(day=20), make_slot(day=24)
    booking = make_booking(customer.id, current)
    service, reschedule_repo = _service([current, requested], [booking])
    await reschedule_repo.create_request(
        booking_id=booking.id,
        customer_id=customer.id,
        original_slot_id=current.id,
        requested_slot_id=requested.id,
        reason="Holiday",
        requested_at=NOW - timedelta(days=1),
        expires_at=NOW + timedelta(days=6),
    )

    result = await service.poll_updates(customer, since=None)

    assert result.summary.pending_reschedule_requests == 1
    assert result.updates[0].reschedule_request.status == RescheduleStatusEnum.PENDING
