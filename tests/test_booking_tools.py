"""
Tests for the booking lifecycle: creation, modification, transitions,
notifications and the audit trail.
"""
import re
import uuid
from datetime import datetime

import pytest

from lrdesk.errors import NotFound, PreconditionFailed, ValidationError
from lrdesk.models.branch import Customer
from lrdesk.schemas import BookingModify, ProofOfDelivery
from lrdesk.tools import article_tools, booking_tools
from lrdesk.tools.aggregation_tools import status_distribution
from lrdesk.tools.audit_tools import get_audit_trail, record_audit
from lrdesk.tools.filter_tools import BookingCriteria
from lrdesk.tools.sort_tools import SortState

POD = ProofOfDelivery(receiver_name="Rekha Iyer", receiver_phone="9876543212", signature_image="data:image/png;base64,AAAA")


class TestCreateBooking:
    """Test booking creation"""

    async def test_freight_defaults_to_article_base_rate(self, make_booking):
        booking = await make_booking()
        assert booking.freight_per_qty == 200
        assert booking.total_amount == 400
        assert booking.status == "booked"
        assert booking.description == "Garments"

    async def test_freight_prefers_customer_rate(self, db, ctx, seed, make_booking):
        """A negotiated sender rate beats the article base rate"""
        await article_tools.set_customer_rate(db, ctx, seed.garments.id, seed.sender.id, 150)
        await db.commit()
        booking = await make_booking(quantity=3)
        assert booking.freight_per_qty == 150
        assert booking.total_amount == 450

    async def test_explicit_freight_and_charges(self, make_booking):
        booking = await make_booking(quantity=3, freight_per_qty=100, loading_charges=50, insurance_charge=20)
        assert booking.total_amount == 370

    async def test_system_lr_numbers_follow_branch_and_month(self, make_booking):
        first = await make_booking()
        second = await make_booking()
        assert re.fullmatch(r"MU\d{4}-0001", first.lr_number)
        assert second.lr_number == first.lr_number[:-4] + "0002"
        assert first.lr_type == "system"

    async def test_manual_lr_number_is_normalized(self, make_booking):
        booking = await make_booking(lr_number=" mu-manual-7 ")
        assert booking.lr_number == "MU-MANUAL-7"
        assert booking.lr_type == "manual"

    async def test_duplicate_manual_lr_number_rejected(self, make_booking):
        await make_booking(lr_number="MU-MANUAL-7")
        with pytest.raises(ValidationError) as exc:
            await make_booking(lr_number="mu-manual-7")
        assert exc.value.field == "lr_number"

    async def test_unknown_branch(self, make_booking):
        with pytest.raises(NotFound) as exc:
            await make_booking(to_branch="nowhere")
        assert exc.value.field == "to_branch"

    async def test_sms_sent_after_commit(self, make_booking, monkeypatch):
        sent = []

        async def fake_send(booking):
            sent.append(booking.lr_number)

        monkeypatch.setattr(booking_tools, "send_booking_sms", fake_send)
        booking = await make_booking()
        assert sent == [booking.lr_number]

    async def test_missing_mobile_does_not_roll_back(self, db, ctx, seed, make_booking):
        """SMS failure is logged; the booking stays saved"""
        silent = Customer(id=str(uuid.uuid4()), organization_id=ctx.organization_id, name="No Phone", mobile="")
        db.add(silent)
        await db.commit()

        booking = await make_booking(receiver_id=silent.id)
        stored = await booking_tools.get_booking(db, ctx, booking.id)
        assert stored.status == "booked"


class TestModifyBooking:
    """Test edits to active bookings"""

    async def test_recomputes_total(self, db, ctx, make_booking):
        booking = await make_booking()
        modified = await booking_tools.modify_booking(
            db, ctx, booking.id, BookingModify(quantity=5, loading_charges=30),
        )
        assert modified.total_amount == 5 * 200 + 30
        assert modified.lr_number == booking.lr_number

    async def test_rejects_delivered_booking(self, db, ctx, make_booking):
        booking = await make_booking()
        await booking_tools.dispatch_booking(db, ctx, booking.id, notify=False)
        await booking_tools.mark_delivered(db, ctx, booking.id, POD, notify=False)
        with pytest.raises(PreconditionFailed):
            await booking_tools.modify_booking(db, ctx, booking.id, BookingModify(quantity=9))


class TestTransitions:
    """Test the forward-only status lifecycle"""

    async def test_dispatch_then_deliver(self, db, ctx, make_booking):
        booking = await make_booking()
        dispatched = await booking_tools.dispatch_booking(db, ctx, booking.id, notify=False)
        assert dispatched.status == "in_transit"

        delivered = await booking_tools.mark_delivered(db, ctx, booking.id, POD, notify=False)
        assert delivered.status == "delivered"
        assert delivered.delivery_date is not None
        assert delivered.proof_of_delivery["receiver_name"] == "Rekha Iyer"

    async def test_cannot_deliver_booked(self, db, ctx, make_booking):
        booking = await make_booking()
        with pytest.raises(PreconditionFailed):
            await booking_tools.mark_delivered(db, ctx, booking.id, POD, notify=False)

    @pytest.mark.parametrize("field", ["receiver_name", "receiver_phone", "signature_image"])
    async def test_proof_of_delivery_fields_required(self, db, ctx, make_booking, field):
        booking = await make_booking()
        await booking_tools.dispatch_booking(db, ctx, booking.id, notify=False)
        pod = POD.model_copy(update={field: ""})
        with pytest.raises(ValidationError) as exc:
            await booking_tools.mark_delivered(db, ctx, booking.id, pod, notify=False)
        assert exc.value.field == field

    async def test_cancel_requires_reason(self, db, ctx, make_booking):
        booking = await make_booking()
        with pytest.raises(ValidationError) as exc:
            await booking_tools.cancel_booking(db, ctx, booking.id, "   ")
        assert exc.value.field == "reason"

    async def test_cancel_booked(self, db, ctx, make_booking):
        booking = await make_booking()
        cancelled = await booking_tools.cancel_booking(db, ctx, booking.id, "Customer request", notify=False)
        assert cancelled.status == "cancelled"
        assert cancelled.cancellation_reason == "Customer request"

    async def test_cancel_delivered_leaves_booking_untouched(self, db, ctx, make_booking):
        """A rejected transition mutates nothing"""
        booking = await make_booking()
        await booking_tools.dispatch_booking(db, ctx, booking.id, notify=False)
        await booking_tools.mark_delivered(db, ctx, booking.id, POD, notify=False)

        with pytest.raises(PreconditionFailed):
            await booking_tools.cancel_booking(db, ctx, booking.id, "Too late", notify=False)

        stored = await booking_tools.get_booking(db, ctx, booking.id)
        assert stored.status == "delivered"
        assert stored.cancellation_reason is None

    async def test_cancelled_is_terminal(self, db, ctx, make_booking):
        booking = await make_booking()
        await booking_tools.cancel_booking(db, ctx, booking.id, "Duplicate", notify=False)
        with pytest.raises(PreconditionFailed):
            await booking_tools.dispatch_booking(db, ctx, booking.id, notify=False)


class TestLookupAndAudit:
    async def test_track_by_lr_is_case_insensitive(self, db, ctx, make_booking):
        booking = await make_booking()
        found = await booking_tools.get_booking_by_lr(db, ctx, booking.lr_number.lower())
        assert found.id == booking.id

    async def test_unknown_booking(self, db, ctx, seed):
        with pytest.raises(NotFound):
            await booking_tools.get_booking(db, ctx, "missing")

    async def test_audit_trail_records_each_change(self, db, ctx, make_booking):
        booking = await make_booking()
        await booking_tools.dispatch_booking(db, ctx, booking.id, notify=False)
        await booking_tools.cancel_booking(db, ctx, booking.id, "Vehicle breakdown", notify=False)

        entries = await get_audit_trail(db, ctx, booking.id)
        assert sorted(e.action for e in entries) == ["CANCELLED", "CREATED", "DISPATCHED"]
        cancelled = next(e for e in entries if e.action == "CANCELLED")
        assert cancelled.before_state["status"] == "in_transit"
        assert cancelled.after_state["status"] == "cancelled"

    async def test_audit_trail_keeps_staging_order_on_equal_timestamps(self, db, ctx):
        at = datetime(2024, 3, 15, 12, 0, 0)
        for action in ("CREATED", "MODIFIED", "DISPATCHED", "DELIVERED"):
            entry = await record_audit(db, ctx, "BOOKING", "b-1", action)
            entry.timestamp = at
        await db.commit()

        entries = await get_audit_trail(db, ctx, "b-1")
        assert [e.action for e in entries] == ["CREATED", "MODIFIED", "DISPATCHED", "DELIVERED"]


class TestSearchAndReporting:
    async def test_search_filters_sorts_and_pages(self, db, ctx, make_booking):
        for quantity in (1, 4, 2):
            await make_booking(quantity=quantity)
        page = await booking_tools.search_bookings(
            db, ctx, BookingCriteria(search="sharma"), SortState("total_amount", "desc"), page=1, page_size=2,
        )
        assert page.total == 3
        assert page.total_pages == 2
        assert [b.total_amount for b in page.items] == [800, 400]

    async def test_status_distribution_end_to_end(self, db, ctx, make_booking):
        """5 booked, 3 in transit, 2 delivered"""
        bookings = []
        for _ in range(10):
            bookings.append(await make_booking())
        for booking in bookings[5:]:
            await booking_tools.dispatch_booking(db, ctx, booking.id, notify=False)
        for booking in bookings[8:]:
            await booking_tools.mark_delivered(db, ctx, booking.id, POD, notify=False)

        counts = status_distribution(await booking_tools.list_bookings(db, ctx))
        assert counts == {"booked": 5, "in_transit": 3, "delivered": 2, "cancelled": 0}
