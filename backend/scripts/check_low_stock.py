"""
Check Low Stock

Sweeps every active raw material and e-mails LOW_STOCK_NOTIFY_EMAILS about
the ones below their threshold. Meant for cron, alongside the per-usage
checks the API already runs after each commit.

    python scripts/check_low_stock.py
    python scripts/check_low_stock.py --threshold 500 --json
"""
import json
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.orm import Session

from orderflow.core.config import settings
from orderflow.db.session import SessionLocal
from orderflow.logging_config import get_logger, setup_logging
from orderflow.services.low_stock_notification import notify_all_low_stock

logger = get_logger("orderflow.scripts.check_low_stock")


def check_low_stock(db: Session, as_json: bool = False) -> dict:
    result = notify_all_low_stock(db)
    if as_json:
        print(json.dumps(result, indent=2, default=str))
        return result

    materials = result.get("low_stock_materials", [])
    if not materials:
        print("No low stock materials found. No notifications sent.")
        return result

    print(f"Found {len(materials)} material(s) with low stock:")
    for m in materials:
        print(f"  - {m['name']}: {m['stock']:g} {m['unit'] or ''} (threshold {m['threshold']:g})")
    if result.get("notified"):
        print(f"Notifications sent: {result['success_count']}")
    else:
        print(f"No notifications sent: {result.get('reason', 'every recipient failed')}")
    if result.get("failed_emails"):
        print("Failed to send to: " + ", ".join(result["failed_emails"]))
    return result


def main(argv=None) -> int:
    """CLI entry point"""
    import argparse

    parser = argparse.ArgumentParser(description="Orderflow low stock check")
    parser.add_argument(
        "--threshold",
        type=float,
        help=f"Default threshold for materials without their own (default: {settings.LOW_STOCK_THRESHOLD})",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output the result as JSON",
    )
    args = parser.parse_args(argv)

    setup_logging()
    if args.threshold is not None:
        settings.LOW_STOCK_THRESHOLD = args.threshold

    db = SessionLocal()
    try:
        check_low_stock(db, as_json=args.json)
    except Exception:
        logger.error("Low stock check failed", exc_info=True)
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
