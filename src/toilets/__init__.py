"""Toilet registry: the tracked facility units.

Components:
- Toilet: Dataclass mapping to the toilets table
- ToiletRepository: provisioning, lookup and soft-deactivation
"""

from src.toilets.repository import ToiletRepository
from src.toilets.schemas import Toilet

__all__ = ["Toilet", "ToiletRepository"]
