"""
Tests for the order aggregate: numbering, lines, editing and deletion
"""
import pytest
from datetime import datetime
from decimal import Decimal

from orderflow.exceptions import InvalidStateError, NotFoundError, ValidationError
from orderflow.schemas.order import OrderCreate, OrderItemInput, OrderUpdate
from orderflow.services import order_service
from orderflow.services.order_confirmation import confirm_order
from tests.factories import create_confirmed_order, create_test_delivery_order


def _create(db, items=(), **fields):
    data = OrderCreate(
        name=fields.pop("name", "Acme Fabrication"),
        email=fields.pop("email", "buyer@acme.test"),
        items=[OrderItemInput(product_id=p.id, quantity=q) for p, q in items],
        **fields,
    )
    return order_service.create_order(db, data, created_by="1")


class TestOrderNumber:

    def test_first_of_year(self, db_session):
        assert order_service.generate_order_number(db_session, now=datetime(2025, 1, 1)) == "ORD-2025-0001"

    def test_sequential(self, db_session):
        first = _create(db_session)
        second = _create(db_session)

        year = datetime.utcnow().year
        assert first.order_number == f"ORD-{year}-0001"
        assert second.order_number == f"ORD-{year}-0002"


class TestCreateOrder:

    def test_creates_draft_with_lines(self, db_session, products):
        order = _create(db_session, items=[(products["cabinet"], 2), (products["shelf"], 7)], po_number="PO-88")

        assert order.status == "draft"
        assert order.po_number == "PO-88"
        assert order.created_by == "1"
        assert [(i.product_id, i.quantity) for i in order.items] == [
            (products["cabinet"].id, 2),
            (products["shelf"].id, 7),
        ]

    def test_unknown_product_rejected(self, db_session, products):
        with pytest.raises(ValidationError) as exc_info:
            order_service.create_order(
                db_session,
                OrderCreate(name="X", email="x@x.test", items=[OrderItemInput(product_id=999, quantity=1)]),
            )
        assert exc_info.value.details["missing_product_ids"] == [999]

    def test_duplicate_products_rejected_by_schema(self, products):
        with pytest.raises(ValueError):
            OrderCreate(
                name="X",
                email="x@x.test",
                items=[
                    OrderItemInput(product_id=products["shelf"].id, quantity=1),
                    OrderItemInput(product_id=products["shelf"].id, quantity=2),
                ],
            )


class TestUpdateOrder:

    def test_replaces_lines_on_draft(self, db_session, products):
        order = _create(db_session, items=[(products["cabinet"], 2), (products["shelf"], 7)])

        order_service.update_order(
            db_session,
            order.id,
            OrderUpdate(items=[OrderItemInput(product_id=products["shelf"].id, quantity=3, remark="Blue")]),
        )

        assert [(i.product_id, i.quantity, i.remark) for i in order.items] == [
            (products["shelf"].id, 3, "Blue"),
        ]

    def test_customer_fields_only(self, db_session, products):
        order = _create(db_session, items=[(products["shelf"], 1)])

        order_service.update_order(db_session, order.id, OrderUpdate(phone="555-0100"))

        assert order.phone == "555-0100"
        assert len(order.items) == 1

    def test_lines_locked_after_confirm(self, db_session, products):
        order = _create(db_session, items=[(products["shelf"], 1)])
        confirm_order(db_session, order.id)

        with pytest.raises(InvalidStateError):
            order_service.update_order(
                db_session,
                order.id,
                OrderUpdate(items=[OrderItemInput(product_id=products["shelf"].id, quantity=5)]),
            )

        order_service.update_order(db_session, order.id, OrderUpdate(notes="Call before delivery"))
        assert order.notes == "Call before delivery"


class TestListAndDelete:

    def test_list_search_and_status(self, db_session, products):
        _create(db_session, name="Northwind")
        confirmed = _create(db_session, name="Contoso", items=[(products["shelf"], 1)])
        confirm_order(db_session, confirmed.id)

        by_name, total = order_service.list_orders(db_session, search="north")
        by_status, status_total = order_service.list_orders(db_session, status="confirm")

        assert total == 1 and by_name[0].name == "Northwind"
        assert status_total == 1 and by_status[0].id == confirmed.id

    def test_delete_draft(self, db_session):
        order = _create(db_session)

        order_service.delete_order(db_session, order.id)

        with pytest.raises(NotFoundError):
            order_service.get_order(db_session, order.id)

    def test_delete_confirmed_restores_stock(self, db_session, products, materials):
        result = create_confirmed_order(db_session, items=[(products["cabinet"], 5)])

        order_service.delete_order(db_session, result.order.id)

        assert materials["steel"].stock == Decimal("100")
        assert materials["paint"].stock == Decimal("50")
        assert result.work_order.deleted_at is not None

    def test_delete_refused_when_delivered(self, db_session, products):
        result = create_confirmed_order(db_session, items=[(products["shelf"], 5)])
        create_test_delivery_order(db_session, result.work_order, [(products["shelf"], 5)])
        db_session.commit()

        with pytest.raises(InvalidStateError):
            order_service.delete_order(db_session, result.order.id)
