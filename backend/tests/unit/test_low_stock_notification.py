"""
Tests for low stock notifications sent after stock is consumed
"""
from orderflow.services.low_stock_notification import LowStockNotificationService
from tests.factories import create_test_raw_material


class FakeEmailService:
    """Records calls instead of talking to SMTP."""

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    def send_low_stock_notification(self, to_email, materials, threshold):
        if to_email in self.fail_for:
            return False
        self.sent.append((to_email, [m["id"] for m in materials]))
        return True


class BrokenEmailService:
    def send_low_stock_notification(self, to_email, materials, threshold):
        raise ConnectionRefusedError("smtp down")


def test_no_low_stock_sends_nothing(db_session):
    material = create_test_raw_material(db_session, stock=1000)
    email = FakeEmailService()
    service = LowStockNotificationService(email_service=email, recipients=["ops@example.com"])

    result = service.check_and_notify(db_session, [material.id])

    assert result["notified"] is False
    assert result["reason"] == "No low stock materials found"
    assert email.sent == []


def test_notifies_every_recipient(db_session):
    low = create_test_raw_material(db_session, name="Bolts", stock=3, lower_limit=10)
    fine = create_test_raw_material(db_session, stock=50, lower_limit=10)
    email = FakeEmailService()
    service = LowStockNotificationService(email_service=email, recipients=["a@example.com", "b@example.com"])

    result = service.check_and_notify(db_session, [low.id, fine.id, low.id])

    assert result["notified"] is True
    assert result["success_count"] == 2
    assert result["failed_emails"] == []
    assert [m["name"] for m in result["low_stock_materials"]] == ["Bolts"]
    assert result["low_stock_materials"][0]["threshold"] == 10.0
    assert email.sent == [("a@example.com", [low.id]), ("b@example.com", [low.id])]


def test_failed_recipients_reported(db_session):
    low = create_test_raw_material(db_session, stock=1, lower_limit=5)
    email = FakeEmailService(fail_for=["b@example.com"])
    service = LowStockNotificationService(email_service=email, recipients=["a@example.com", "b@example.com"])

    result = service.check_and_notify(db_session, [low.id])

    assert result["success_count"] == 1
    assert result["failed_emails"] == ["b@example.com"]


def test_email_exception_does_not_escape(db_session):
    low = create_test_raw_material(db_session, stock=1, lower_limit=5)
    service = LowStockNotificationService(email_service=BrokenEmailService(), recipients=["a@example.com"])

    result = service.check_and_notify(db_session, [low.id])

    assert result["notified"] is False
    assert result["failed_emails"] == ["a@example.com"]


def test_no_recipients_configured(db_session):
    low = create_test_raw_material(db_session, stock=1, lower_limit=5)
    service = LowStockNotificationService(email_service=FakeEmailService(), recipients=[])

    result = service.check_and_notify(db_session, [low.id])

    assert result["notified"] is False
    assert result["low_stock_count"] == 1


def test_inactive_materials_ignored(db_session):
    retired = create_test_raw_material(db_session, stock=0, lower_limit=5, active=False)
    service = LowStockNotificationService(email_service=FakeEmailService(), recipients=["a@example.com"])

    result = service.check_and_notify(db_session, [retired.id])

    assert result["notified"] is False


def test_check_all_sweeps_every_active_material(db_session, materials, settings_override):
    settings_override(LOW_STOCK_THRESHOLD=500)
    bolts = create_test_raw_material(db_session, name="Bolts", stock=3, lower_limit=10)
    create_test_raw_material(db_session, name="Rivets", stock=0, lower_limit=5, active=False)
    create_test_raw_material(db_session, name="Nuts", stock=80, lower_limit=10)
    email = FakeEmailService()
    service = LowStockNotificationService(email_service=email, recipients=["stores@example.com"])

    result = service.check_all(db_session)

    # Steel (100) and Paint (50) have no lower limit and fall under the 500 fallback
    assert [m["name"] for m in result["low_stock_materials"]] == ["Steel Sheet", "Paint", "Bolts"]
    assert email.sent == [("stores@example.com", [materials["steel"].id, materials["paint"].id, bolts.id])]


def test_check_all_with_nothing_low(db_session, settings_override):
    settings_override(LOW_STOCK_THRESHOLD=10)
    create_test_raw_material(db_session, stock=50)
    email = FakeEmailService()

    result = LowStockNotificationService(email_service=email, recipients=["a@example.com"]).check_all(db_session)

    assert result == {"notified": False, "reason": "No low stock materials found", "materials_checked": 1}
    assert email.sent == []


def test_check_low_stock_script(db_session, settings_override, monkeypatch, capsys):
    from scripts.check_low_stock import check_low_stock

    monkeypatch.setattr(
        "orderflow.services.email_service.EmailService.send_low_stock_notification",
        lambda self, to_email, materials, threshold: True,
    )
    settings_override(LOW_STOCK_NOTIFY_EMAILS=["stores@example.com"])
    create_test_raw_material(db_session, name="Bolts", stock=3, lower_limit=10, unit="pcs")
    create_test_raw_material(db_session, name="Nuts", stock=80, lower_limit=10)

    result = check_low_stock(db_session)

    assert result["notified"] is True
    out = capsys.readouterr().out
    assert "Found 1 material(s) with low stock:" in out
    assert "Bolts: 3 pcs (threshold 10)" in out
    assert "Notifications sent: 1" in out
