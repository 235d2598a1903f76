"""
Low Stock Notification Service

Runs after stock-consuming work has been committed (order confirmation,
manual usage). Finds the used raw materials that fell below their
threshold and e-mails LOW_STOCK_NOTIFY_EMAILS. notify_all_low_stock()
sweeps every active material and is run from scripts/check_low_stock.py.

Never raises into the workflow: the stock change already happened, a
failed notification is logged and reported in the result dict.
"""
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from orderflow.core.config import settings
from orderflow.logging_config import get_logger
from orderflow.models.raw_material import RawMaterial
from orderflow.services.email_service import EmailService
from orderflow.services.inventory_ledger import low_stock_materials, low_stock_threshold

logger = get_logger(__name__)


class LowStockNotificationService:
    """Check used materials against their low-stock threshold and notify."""

    def __init__(
        self,
        email_service: Optional[EmailService] = None,
        recipients: Optional[List[str]] = None,
    ):
        self.email_service = email_service or EmailService()
        self.recipients = list(recipients if recipients is not None else settings.LOW_STOCK_NOTIFY_EMAILS)

    def check_all(self, db: Session) -> dict:
        """Check every active raw material, not only the ones just used."""
        ids = [
            material_id
            for (material_id,) in db.query(RawMaterial.id).filter(RawMaterial.active.is_(True)).all()
        ]
        logger.info(f"Checking {len(ids)} active raw material(s) for low stock")
        return self.check_and_notify(db, ids)

    def check_and_notify(self, db: Session, raw_material_ids: Iterable[int]) -> dict:
        ids = sorted(set(raw_material_ids))
        try:
            materials = low_stock_materials(db, ids)
        except Exception:
            logger.error(
                "Low stock check failed",
                exc_info=True,
                extra={"raw_material_ids": ids},
            )
            return {"notified": False, "reason": "Low stock check failed", "materials_checked": len(ids)}

        if not materials:
            return {
                "notified": False,
                "reason": "No low stock materials found",
                "materials_checked": len(ids),
            }

        materials_data = [
            {
                "id": m.id,
                "name": m.name,
                "stock": float(m.stock or 0),
                "unit": m.unit,
                "threshold": float(low_stock_threshold(m)),
            }
            for m in materials
        ]

        if not self.recipients:
            logger.warning(
                "Low stock detected but no recipients configured",
                extra={"low_stock_material_ids": [m["id"] for m in materials_data]},
            )
            return {
                "notified": False,
                "reason": "No recipients configured to receive notifications",
                "low_stock_count": len(materials_data),
                "low_stock_materials": materials_data,
            }

        success_count = 0
        failed_emails = []
        for recipient in self.recipients:
            try:
                sent = self.email_service.send_low_stock_notification(
                    recipient, materials_data, settings.LOW_STOCK_THRESHOLD
                )
            except Exception:
                logger.error(f"Failed to send low stock notification to {recipient}", exc_info=True)
                sent = False
            if sent:
                success_count += 1
            else:
                failed_emails.append(recipient)

        logger.info(
            "Low stock notification processed",
            extra={
                "materials_count": len(materials_data),
                "users_notified": success_count,
                "failed_emails": failed_emails,
            },
        )
        return {
            "notified": success_count > 0,
            "success_count": success_count,
            "failed_emails": failed_emails,
            "low_stock_materials": materials_data,
        }


def notify_low_stock(db: Session, raw_material_ids: Iterable[int]) -> dict:
    """Convenience wrapper used by the endpoints after commit."""
    return LowStockNotificationService().check_and_notify(db, raw_material_ids)


def notify_all_low_stock(db: Session) -> dict:
    return LowStockNotificationService().check_all(db)
