"""
FastAPI restroom tracker service.

Provides REST API for the cleaning workflow:
- GET /api/toilets/status - Derived status of every toilet
- POST /api/rating - Rating submission
- POST /api/cleaning/start - Claim a toilet for cleaning
- GET /health - Service health check
"""

from src.api.app import create_app

__all__ = ["create_app"]
