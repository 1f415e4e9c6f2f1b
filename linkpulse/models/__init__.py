"""SQLAlchemy models.

All models should be imported here for Alembic to detect them.
"""

from linkpulse.core.database import Base
from linkpulse.models.click import Click
from linkpulse.models.link import Link
from linkpulse.models.stats import LinkStatsDaily
from linkpulse.models.user import User

__all__ = ["Base", "User", "Link", "Click", "LinkStatsDaily"]
