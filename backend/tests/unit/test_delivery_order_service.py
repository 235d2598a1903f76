"""
Tests for delivery order creation, deletion and status transitions
"""
import pytest
from datetime import date, datetime
from types import SimpleNamespace

from orderflow.db.session import transaction
from orderflow.exceptions import (
    DeliveryQuantityError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from orderflow.models.delivery_order import DeliveryOrder, DeliveryOrderItem
from orderflow.services import delivery_order_service
from orderflow.services.delivery_fulfillment import delivered_quantities
from tests.factories import create_confirmed_order, create_test_delivery_order


def line(product, quantity):
    return SimpleNamespace(product_id=product.id, quantity=quantity)


@pytest.fixture
def work_order(db_session, products):
    """Confirmed order for 10 cabinets; its pending work order."""
    return create_confirmed_order(db_session, items=[(products["cabinet"], 10)]).work_order


class TestGenerateOrderCode:

    def test_first_code_of_the_day(self, db_session):
        code = delivery_order_service.generate_order_code(db_session, now=datetime(2025, 3, 9))
        assert code == "DO-20250309-001"

    def test_continues_from_highest(self, db_session, work_order, products):
        create_test_delivery_order(
            db_session, work_order, [(products["cabinet"], 1)], order_code="DO-20250309-004"
        )

        code = delivery_order_service.generate_order_code(db_session, now=datetime(2025, 3, 9))

        assert code == "DO-20250309-005"


class TestCreateDeliveryOrder:

    def test_partial_delivery(self, db_session, work_order, products):
        with transaction(db_session):
            outcome = delivery_order_service.create_delivery_order(
                db_session,
                work_order.id,
                [line(products["cabinet"], 4)],
                planned_delivery_date=date(2025, 6, 1),
                description="First batch",
                created_by="3",
            )

        do = outcome.delivery_order
        assert do.status == "pending"
        assert do.order_id == work_order.order_id
        assert do.order_code.startswith("DO-")
        assert do.planned_delivery_date == date(2025, 6, 1)
        assert do.created_by == "3"
        assert [(i.product_name, i.unit, i.quantity) for i in do.items] == [("Cabinet", "pcs", 4)]
        assert outcome.work_order_status == "pending"
        assert outcome.work_order_status_changed is False

    def test_full_delivery_completes_work_order(self, db_session, work_order, products):
        delivery_order_service.create_delivery_order(db_session, work_order.id, [line(products["cabinet"], 6)])

        outcome = delivery_order_service.create_delivery_order(
            db_session, work_order.id, [line(products["cabinet"], 4)]
        )

        assert outcome.work_order_status == "completed"
        assert outcome.work_order_status_changed is True
        assert work_order.completed_at is not None

    def test_over_delivery_rejected_and_nothing_written(self, db_session, work_order, products):
        delivery_order_service.create_delivery_order(db_session, work_order.id, [line(products["cabinet"], 6)])
        db_session.commit()

        with pytest.raises(DeliveryQuantityError):
            with transaction(db_session):
                delivery_order_service.create_delivery_order(
                    db_session, work_order.id, [line(products["cabinet"], 5)]
                )

        assert db_session.query(DeliveryOrder).count() == 1
        assert delivered_quantities(db_session, work_order.id) == {products["cabinet"].id: 6}

    def test_delivered_never_exceeds_ordered(self, db_session, work_order, products):
        for quantity in (3, 3, 3, 2, 1):
            try:
                with transaction(db_session):
                    delivery_order_service.create_delivery_order(
                        db_session, work_order.id, [line(products["cabinet"], quantity)]
                    )
            except DeliveryQuantityError:
                pass

        assert delivered_quantities(db_session, work_order.id)[products["cabinet"].id] == 10

    def test_empty_items_rejected(self, db_session, work_order):
        with pytest.raises(ValidationError):
            delivery_order_service.create_delivery_order(db_session, work_order.id, [])

    def test_cancelled_work_order_rejected(self, db_session, work_order, products):
        work_order.status = "cancelled"
        db_session.flush()

        with pytest.raises(InvalidStateError):
            delivery_order_service.create_delivery_order(
                db_session, work_order.id, [line(products["cabinet"], 1)]
            )

    def test_missing_work_order(self, db_session, products):
        with pytest.raises(NotFoundError):
            delivery_order_service.create_delivery_order(db_session, 777, [line(products["cabinet"], 1)])


class TestUpdateDeliveryOrder:

    def test_edits_description_and_planned_date(self, db_session, work_order, products):
        created = delivery_order_service.create_delivery_order(
            db_session, work_order.id, [line(products["cabinet"], 2)], description="First run"
        ).delivery_order

        updated = delivery_order_service.update_delivery_order(
            db_session, created.id, description="Loading bay 3", planned_delivery_date=date(2025, 8, 1)
        )

        assert updated.description == "Loading bay 3"
        assert updated.planned_delivery_date == date(2025, 8, 1)
        assert updated.status == "pending"
        assert [(i.product_id, i.quantity) for i in updated.items] == [(products["cabinet"].id, 2)]

    def test_omitted_fields_unchanged(self, db_session, work_order, products):
        created = delivery_order_service.create_delivery_order(
            db_session, work_order.id, [line(products["cabinet"], 2)],
            planned_delivery_date=date(2025, 7, 1), description="Keep me",
        ).delivery_order

        updated = delivery_order_service.update_delivery_order(
            db_session, created.id, planned_delivery_date=date(2025, 7, 15)
        )

        assert updated.description == "Keep me"
        assert updated.planned_delivery_date == date(2025, 7, 15)

    @pytest.mark.parametrize("status", ["shipped", "delivered", "cancelled"])
    def test_only_pending_can_be_edited(self, db_session, work_order, products, status):
        existing = create_test_delivery_order(
            db_session, work_order, [(products["cabinet"], 2)], status=status, description="Original"
        )

        with pytest.raises(InvalidStateError):
            delivery_order_service.update_delivery_order(db_session, existing.id, description="Too late")

        db_session.refresh(existing)
        assert existing.description == "Original"

    def test_missing_delivery_order(self, db_session):
        with pytest.raises(NotFoundError):
            delivery_order_service.update_delivery_order(db_session, 4242, description="x")


class TestDeleteDeliveryOrder:

    def test_delete_reopens_completed_work_order(self, db_session, work_order, products):
        outcome = delivery_order_service.create_delivery_order(
            db_session, work_order.id, [line(products["cabinet"], 10)]
        )
        db_session.commit()
        assert work_order.status == "completed"

        status, changed = delivery_order_service.delete_delivery_order(db_session, outcome.delivery_order.id)

        assert (status, changed) == ("pending", True)
        assert db_session.query(DeliveryOrder).count() == 0
        assert db_session.query(DeliveryOrderItem).count() == 0

    def test_delete_locks_delivery_order_row(self, db_session, work_order, products, monkeypatch):
        pending = create_test_delivery_order(db_session, work_order, [(products["cabinet"], 2)])
        seen = []
        real_get = delivery_order_service.get_delivery_order

        def recording_get(db, delivery_order_id, lock=False):
            seen.append((delivery_order_id, lock))
            return real_get(db, delivery_order_id, lock=lock)

        monkeypatch.setattr(delivery_order_service, "get_delivery_order", recording_get)

        delivery_order_service.delete_delivery_order(db_session, pending.id)

        assert seen == [(pending.id, True)]

    def test_only_pending_can_be_deleted(self, db_session, work_order, products):
        shipped = create_test_delivery_order(db_session, work_order, [(products["cabinet"], 2)], status="shipped")

        with pytest.raises(InvalidStateError):
            delivery_order_service.delete_delivery_order(db_session, shipped.id)

    def test_missing_delivery_order(self, db_session):
        with pytest.raises(NotFoundError):
            delivery_order_service.delete_delivery_order(db_session, 4242)


class TestStatusTimestamps:

    @pytest.fixture
    def delivery_order(self, db_session, work_order, products):
        return delivery_order_service.create_delivery_order(
            db_session, work_order.id, [line(products["cabinet"], 2)]
        ).delivery_order

    def test_shipped_sets_shipped_at(self, db_session, delivery_order):
        outcome = delivery_order_service.update_delivery_order_status(db_session, delivery_order.id, "shipped")

        assert outcome.delivery_order.shipped_at is not None
        assert outcome.delivery_order.delivered_at is None

    def test_shipped_keeps_existing_shipped_at(self, db_session, delivery_order):
        first = datetime(2025, 1, 2, 8, 0)
        delivery_order.shipped_at = first

        delivery_order_service.update_delivery_order_status(db_session, delivery_order.id, "shipped")

        assert delivery_order.shipped_at == first

    def test_shipped_uses_supplied_time(self, db_session, delivery_order):
        when = datetime(2025, 2, 3, 10, 30)

        delivery_order_service.update_delivery_order_status(
            db_session, delivery_order.id, "shipped", shipped_at=when
        )

        assert delivery_order.shipped_at == when

    def test_delivered_backfills_shipped_at(self, db_session, delivery_order):
        when = datetime(2025, 2, 4, 16, 0)

        delivery_order_service.mark_delivered(db_session, delivery_order.id, delivered_at=when)

        assert delivery_order.status == "delivered"
        assert delivery_order.delivered_at == when
        assert delivery_order.shipped_at == when

    def test_delivered_keeps_earlier_shipped_at(self, db_session, delivery_order):
        shipped = datetime(2025, 2, 1, 9, 0)
        delivery_order_service.update_delivery_order_status(
            db_session, delivery_order.id, "shipped", shipped_at=shipped
        )

        delivery_order_service.mark_delivered(db_session, delivery_order.id)

        assert delivery_order.shipped_at == shipped
        assert delivery_order.delivered_at is not None

    def test_back_to_pending_clears_timestamps(self, db_session, delivery_order):
        delivery_order_service.mark_delivered(db_session, delivery_order.id)

        delivery_order_service.update_delivery_order_status(db_session, delivery_order.id, "pending")

        assert delivery_order.shipped_at is None
        assert delivery_order.delivered_at is None

    def test_cancel_keeps_timestamps(self, db_session, delivery_order):
        delivery_order_service.update_delivery_order_status(db_session, delivery_order.id, "shipped")
        shipped_at = delivery_order.shipped_at

        delivery_order_service.update_delivery_order_status(db_session, delivery_order.id, "cancelled")

        assert delivery_order.status == "cancelled"
        assert delivery_order.shipped_at == shipped_at

    def test_unknown_status_rejected(self, db_session, delivery_order):
        with pytest.raises(ValidationError):
            delivery_order_service.update_delivery_order_status(db_session, delivery_order.id, "lost")


class TestCancellationAndCompletion:

    def test_cancel_reopens_work_order_when_not_counted(
        self, db_session, work_order, products, settings_override
    ):
        settings_override(COUNT_CANCELLED_DELIVERIES=False)
        outcome = delivery_order_service.create_delivery_order(
            db_session, work_order.id, [line(products["cabinet"], 10)]
        )
        assert outcome.work_order_status == "completed"

        cancelled = delivery_order_service.update_delivery_order_status(
            db_session, outcome.delivery_order.id, "cancelled"
        )

        assert cancelled.work_order_status == "pending"
        assert cancelled.work_order_status_changed is True

    def test_cancel_keeps_completion_when_counted(self, db_session, work_order, products):
        outcome = delivery_order_service.create_delivery_order(
            db_session, work_order.id, [line(products["cabinet"], 10)]
        )

        cancelled = delivery_order_service.update_delivery_order_status(
            db_session, outcome.delivery_order.id, "cancelled"
        )

        assert cancelled.work_order_status == "completed"
        assert cancelled.work_order_status_changed is False


class TestListDeliveryOrders:

    def test_filters_and_newest_first(self, db_session, work_order, products):
        first = create_test_delivery_order(db_session, work_order, [(products["cabinet"], 1)])
        second = create_test_delivery_order(db_session, work_order, [(products["cabinet"], 1)], status="shipped")

        items, total = delivery_order_service.list_delivery_orders(db_session, work_order_id=work_order.id)
        shipped, shipped_total = delivery_order_service.list_delivery_orders(db_session, status="shipped")

        assert total == 2
        assert [do.id for do in items] == [second.id, first.id]
        assert shipped_total == 1
        assert shipped[0].id == second.id
