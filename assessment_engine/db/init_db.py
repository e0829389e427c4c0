# assessment_engine/db/init_db.py
import logging

from assessment_engine.db.base import Base
from assessment_engine.db.session import engine

logger = logging.getLogger(__name__)


def init_db():
    """Create any missing tables. Migrations are handled by alembic."""
    Base.metadata.create_all(bind=engine)
    logger.info(f"Database tables ensured ({len(Base.metadata.tables)} tables)")
