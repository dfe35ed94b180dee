"""Database models for dashboards and their public sharing configurations."""

from pubdash.models.dashboard import Dashboard
from pubdash.models.public_dashboard import PublicDashboard

__all__ = ["Dashboard", "PublicDashboard"]
