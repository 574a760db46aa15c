"""Idempotent schema bootstrap for all tracker tables.

Tables are created in foreign-key order: toilets first, then the
ratings and cleaning_tasks tables that reference them.
"""

import logging

from src.storage.database import Database

logger = logging.getLogger(__name__)


async def create_all_tables(database: Database) -> None:
    """Create every table and index used by the service (idempotent)."""
    # Imported here so repository modules can import src.storage freely.
    from src.cleaning.repository import TaskRepository
    from src.ratings.repository import RatingRepository
    from src.toilets.repository import ToiletRepository

    await ToiletRepository(database).create_table()
    await RatingRepository(database).create_table()
    await TaskRepository(database).create_table()
    logger.info("All tables ensured")
