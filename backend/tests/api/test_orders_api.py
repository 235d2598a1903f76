"""
API tests for /api/v1/orders
"""
from decimal import Decimal

from orderflow.models.raw_material_usage import RawMaterialUsage
from tests.factories import create_test_order

BASE = "/api/v1/orders"


def _order_payload(products, **overrides):
    payload = {
        "name": "Acme Fabrication",
        "email": "buyer@acme.test",
        "po_number": "PO-1001",
        "items": [
            {"product_id": products["cabinet"].id, "quantity": 5},
            {"product_id": products["shelf"].id, "quantity": 10, "remark": "Galvanised"},
        ],
    }
    payload.update(overrides)
    return payload


class TestCreateAndRead:

    def test_create_order(self, client, products):
        response = client.post(BASE, json=_order_payload(products), headers={"X-User-Id": "42"})

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        order = body["data"]
        assert order["status"] == "draft"
        assert order["order_number"].startswith("ORD-")
        assert order["created_by"] == "42"
        assert [i["product_name"] for i in order["items"]] == ["Cabinet", "Shelf"]
        assert order["work_order_id"] is None

    def test_create_rejects_unknown_product(self, client, products):
        payload = _order_payload(products, items=[{"product_id": 999, "quantity": 1}])

        response = client.post(BASE, json=payload)

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "VALIDATION_ERROR"
        assert body["data"]["missing_product_ids"] == [999]

    def test_create_rejects_zero_quantity(self, client, products):
        payload = _order_payload(products, items=[{"product_id": products["shelf"].id, "quantity": 0}])

        response = client.post(BASE, json=payload)

        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_get_missing_order(self, client):
        response = client.get(f"{BASE}/9999")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    def test_list_filters_by_status(self, client, db_session, products):
        create_test_order(db_session, items=[(products["shelf"], 1)])
        create_test_order(db_session, items=[(products["shelf"], 1)], status="confirm")
        db_session.commit()

        response = client.get(BASE, params={"status": "draft"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["pagination"]["total"] == 1
        assert data["items"][0]["status"] == "draft"


class TestConfirm:

    def test_confirm_deducts_stock_and_creates_work_order(self, client, db_session, products, materials):
        order_id = client.post(BASE, json=_order_payload(products)).json()["data"]["id"]

        response = client.post(f"{BASE}/{order_id}/confirm")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Order confirmed successfully"
        data = body["data"]
        assert data["order"]["status"] == "confirm"
        assert data["already_confirmed"] is False
        assert data["work_order_id"] is not None
        assert data["work_order_no_surat"].count("/") == 3
        assert sorted(data["used_raw_material_ids"]) == sorted([materials["steel"].id, materials["paint"].id])

        db_session.expire_all()
        # 5 cabinets * 4 + 10 shelves * 2 = 40 steel; 5 paint
        assert materials["steel"].stock == Decimal("60")
        assert materials["paint"].stock == Decimal("45")

    def test_confirm_twice_is_noop(self, client, db_session, products, materials):
        order_id = client.post(BASE, json=_order_payload(products)).json()["data"]["id"]
        client.post(f"{BASE}/{order_id}/confirm")

        response = client.post(f"{BASE}/{order_id}/confirm")

        assert response.status_code == 200
        assert response.json()["message"] == "Order already confirmed"
        assert response.json()["data"]["already_confirmed"] is True
        db_session.expire_all()
        assert materials["steel"].stock == Decimal("60")
        assert db_session.query(RawMaterialUsage).count() == 3

    def test_confirm_insufficient_returns_full_list(self, client, db_session, products, materials):
        payload = _order_payload(products, items=[{"product_id": products["cabinet"].id, "quantity": 60}])
        order_id = client.post(BASE, json=payload).json()["data"]["id"]

        response = client.post(f"{BASE}/{order_id}/confirm")

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "INSUFFICIENT_RAW_MATERIAL"
        short = {m["raw_material_name"]: m for m in body["data"]["insufficient_materials"]}
        assert short["Steel Sheet"] == {
            "raw_material_id": materials["steel"].id,
            "raw_material_name": "Steel Sheet",
            "required": 240.0,
            "available": 100.0,
            "shortage": 140.0,
        }
        assert short["Paint"]["shortage"] == 10.0

        order = client.get(f"{BASE}/{order_id}").json()["data"]
        assert order["status"] == "draft"
        db_session.expire_all()
        assert materials["steel"].stock == Decimal("100")

    def test_confirm_without_items(self, client):
        order_id = client.post(BASE, json={"name": "Empty", "email": "e@e.test"}).json()["data"]["id"]

        response = client.post(f"{BASE}/{order_id}/confirm")

        assert response.status_code == 422
        assert response.json()["message"] == "Cannot confirm order without order items"


class TestEditRevertDelete:

    def test_edit_items_only_while_draft(self, client, products):
        order_id = client.post(BASE, json=_order_payload(products)).json()["data"]["id"]
        edit = {"items": [{"product_id": products["shelf"].id, "quantity": 2}]}

        response = client.patch(f"{BASE}/{order_id}", json=edit)
        assert response.status_code == 200
        assert [(i["product_name"], i["quantity"]) for i in response.json()["data"]["items"]] == [("Shelf", 2)]

        client.post(f"{BASE}/{order_id}/confirm")
        response = client.patch(f"{BASE}/{order_id}", json=edit)
        assert response.status_code == 409
        assert response.json()["error"] == "INVALID_STATE"

    def test_revert_restores_stock(self, client, db_session, products, materials):
        order_id = client.post(BASE, json=_order_payload(products)).json()["data"]["id"]
        client.post(f"{BASE}/{order_id}/confirm")

        response = client.post(f"{BASE}/{order_id}/revert")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "draft"
        assert data["work_order_id"] is None
        db_session.expire_all()
        assert materials["steel"].stock == Decimal("100")
        assert materials["paint"].stock == Decimal("50")

    def test_delete_confirmed_order_restores_stock(self, client, db_session, products, materials):
        order_id = client.post(BASE, json=_order_payload(products)).json()["data"]["id"]
        client.post(f"{BASE}/{order_id}/confirm")

        response = client.delete(f"{BASE}/{order_id}")

        assert response.status_code == 200
        assert client.get(f"{BASE}/{order_id}").status_code == 404
        db_session.expire_all()
        assert materials["steel"].stock == Decimal("100")
