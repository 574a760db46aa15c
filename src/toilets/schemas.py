"""Schema definitions for toilet records.

Maps 1:1 to the ``toilets`` database table. Toilets are provisioned
administratively and only ever soft-deactivated.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class Toilet:
    """A tracked facility unit.

    Attributes:
        id: Database-assigned identifier (0 before insert).
        name: Display name, e.g. "Block A - Ground Floor".
        location: Free-form location description.
        is_active: False once the toilet has been soft-deactivated.
        created_at: When the toilet was provisioned.
    """

    name: str
    location: str = ""
    id: int = 0
    is_active: bool = True
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Toilet name must not be empty.")

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
        }
