"""
Database session management
"""
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from orderflow.core.config import settings
from orderflow.exceptions import ConflictError
from orderflow.logging_config import get_logger

logger = get_logger(__name__)

engine = create_engine(
    settings.database_url,
    echo=False,  # Set to True for SQL query logging
    pool_pre_ping=True,  # Verify connections before using
    pool_recycle=3600,  # Recycle connections after 1 hour
)

# Log connection info (without password)
logger.info(f"Database connection: {engine.url.render_as_string(hide_password=True)}")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """
    Dependency for getting database session

    Usage in FastAPI endpoints:
        @router.get("/orders")
        def list_orders(db: Session = Depends(get_db)):
            return db.query(Order).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Run a unit of work: commit when the block finishes, roll back on any error.

    Services only flush; endpoints wrap each workflow call in this so that
    stock deductions, ledger rows and status changes land together or not
    at all.

        with transaction(db):
            result = confirm_order(db, order_id)
    """
    try:
        yield db
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error, transaction rolled back: {e.orig}")
        raise ConflictError(
            "The change conflicts with existing data (possibly a concurrent update), please retry"
        ) from e
    except Exception:
        db.rollback()
        raise
