"""
API tests for /api/v1/work-orders
"""
import pytest

from tests.factories import create_confirmed_order, create_test_delivery_order, create_test_order

BASE = "/api/v1/work-orders"


@pytest.fixture
def work_order(db_session, products):
    return create_confirmed_order(
        db_session, items=[(products["cabinet"], 10), (products["shelf"], 5)]
    ).work_order


def test_get_work_order(client, work_order):
    response = client.get(f"{BASE}/{work_order.id}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["no_surat"] == work_order.no_surat
    assert data["status"] == "pending"
    assert data["allowed_transitions"] == ["cancelled", "completed", "in_progress"]
    assert data["customer_name"] == work_order.order.name


def test_create_for_draft_order_rejected(client, db_session, products):
    order = create_test_order(db_session, items=[(products["shelf"], 1)])
    db_session.commit()

    response = client.post(BASE, json={"order_id": order.id})

    assert response.status_code == 409
    assert response.json()["error"] == "INVALID_STATE"


def test_create_returns_existing(client, work_order):
    response = client.post(BASE, json={"order_id": work_order.order_id, "description": "Line 2"})

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["id"] == work_order.id
    assert data["description"] == "Line 2"


def test_status_transitions(client, work_order):
    response = client.patch(f"{BASE}/{work_order.id}/status", json={"status": "in_progress"})
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "in_progress"

    response = client.patch(f"{BASE}/{work_order.id}/status", json={"status": "cancelled"})
    assert response.status_code == 200

    response = client.patch(f"{BASE}/{work_order.id}/status", json={"status": "pending"})
    assert response.status_code == 409
    assert response.json()["data"]["allowed_states"] == []


def test_invalid_status_value(client, work_order):
    response = client.patch(f"{BASE}/{work_order.id}/status", json={"status": "archived"})

    assert response.status_code == 422
    assert response.json()["data"]["errors"][0]["field"] == "status"


def test_delivery_summary(client, db_session, work_order, products):
    create_test_delivery_order(db_session, work_order, [(products["cabinet"], 4)])
    create_test_delivery_order(db_session, work_order, [(products["cabinet"], 6)], status="cancelled")
    db_session.commit()

    counted = client.get(f"{BASE}/{work_order.id}/delivery-summary").json()["data"]
    excluded = client.get(
        f"{BASE}/{work_order.id}/delivery-summary", params={"include_cancelled": "false"}
    ).json()["data"]

    assert counted["lines"][0]["delivered"] == 10
    assert counted["lines"][0]["remaining"] == 0
    assert counted["fully_delivered"] is False
    assert excluded["lines"][0]["delivered"] == 4
    assert excluded["lines"][0]["remaining"] == 6


def test_delivery_orders_listed_under_work_order(client, db_session, work_order, products):
    create_test_delivery_order(db_session, work_order, [(products["shelf"], 2)])
    db_session.commit()

    response = client.get(f"{BASE}/{work_order.id}/delivery-orders")

    assert response.status_code == 200
    assert [do["items"][0]["quantity"] for do in response.json()["data"]] == [2]


def test_delete_refused_with_delivery_orders(client, db_session, work_order, products):
    create_test_delivery_order(db_session, work_order, [(products["shelf"], 2)])
    db_session.commit()

    response = client.delete(f"{BASE}/{work_order.id}")

    assert response.status_code == 409


def test_finished_goods_flow(client, work_order, products):
    response = client.post(
        f"{BASE}/{work_order.id}/finished-goods",
        json={"product_id": products["shelf"].id, "quantity": 5},
        headers={"X-User-Id": "9"},
    )
    assert response.status_code == 201
    finished_good_id = response.json()["data"]["id"]

    summary = client.get(f"{BASE}/{work_order.id}/production-summary").json()["data"]
    assert summary["fully_produced"] is False
    assert [line["outstanding"] for line in summary["lines"]] == [10, 0]

    listed = client.get(f"{BASE}/{work_order.id}/finished-goods").json()["data"]
    assert [fg["created_by"] for fg in listed] == ["9"]

    assert client.delete(f"/api/v1/finished-goods/{finished_good_id}").status_code == 200
    assert client.get(f"{BASE}/{work_order.id}/finished-goods").json()["data"] == []


def test_finished_good_for_foreign_product(client, db_session, work_order):
    from tests.factories import create_test_product

    stray = create_test_product(db_session, name="Stray")
    db_session.commit()

    response = client.post(
        f"{BASE}/{work_order.id}/finished-goods", json={"product_id": stray.id, "quantity": 1}
    )

    assert response.status_code == 422
    assert response.json()["message"] == "Product not found in work order"


def test_update_finished_good(client, work_order, products):
    finished_good_id = client.post(
        f"{BASE}/{work_order.id}/finished-goods",
        json={"product_id": products["shelf"].id, "quantity": 5},
    ).json()["data"]["id"]

    response = client.patch(
        f"/api/v1/finished-goods/{finished_good_id}",
        json={"quantity": 4, "notes": "Two scrapped, recounted"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert (data["quantity"], data["notes"]) == (4, "Two scrapped, recounted")
    summary = client.get(f"{BASE}/{work_order.id}/production-summary").json()["data"]
    assert [line["produced"] for line in summary["lines"]] == [0, 4]


def test_update_finished_good_rejects_zero(client, work_order, products):
    finished_good_id = client.post(
        f"{BASE}/{work_order.id}/finished-goods",
        json={"product_id": products["shelf"].id, "quantity": 5},
    ).json()["data"]["id"]

    response = client.patch(f"/api/v1/finished-goods/{finished_good_id}", json={"quantity": 0})

    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


def test_update_missing_finished_good(client):
    response = client.patch("/api/v1/finished-goods/999", json={"notes": "x"})

    assert response.status_code == 404
