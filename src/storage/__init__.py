"""Storage layer: asyncpg pool management and schema bootstrap."""

from src.storage.database import Database
from src.storage.schema import create_all_tables

__all__ = ["Database", "create_all_tables"]
