"""
Database Models.

Model classes are re-exported here:
    from market.models import Alert
"""

from market.database import Base  # noqa: F401
from market.models.alerts import Alert

__all__ = [
    "Base",
    "Alert",
]
