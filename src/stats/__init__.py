"""Administrative statistics."""

from src.stats.service import CleaningStatsService

__all__ = ["CleaningStatsService"]
