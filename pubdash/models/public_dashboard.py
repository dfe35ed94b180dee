"""
Public Dashboard model - anonymous sharing configuration for a dashboard.

One row exposes one dashboard through an opaque access token. Rows are
created and updated by PublicDashboardConfigService only.

SECURITY:
- access_token is assigned once at creation and never rewritten
- is_enabled = False must be treated as "does not exist" on every read path
- dashboard_uid + org_id are immutable after creation
"""

from typing import Any, Dict, Optional

from sqlalchemy import (
    Column, String, Boolean, DateTime, JSON,
    Index, UniqueConstraint,
)

from pubdash.db_base import Base
from pubdash.models.base import OrgScopedMixin


class PublicDashboard(Base, OrgScopedMixin):
    """
    Public sharing configuration.

    Timestamps are stamped by the service layer rather than the database,
    so created_at/created_by and updated_at/updated_by always come in pairs.
    """

    __tablename__ = "public_dashboards"

    uid = Column(
        String(40),
        primary_key=True,
        comment="Internal identifier, generated by storage on first save",
    )

    dashboard_uid = Column(
        String(40),
        nullable=False,
        comment="Uid of the shared dashboard. Immutable.",
    )

    is_enabled = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="Gate for anonymous access. Disabled rows are invisible to readers.",
    )

    time_settings = Column(
        JSON,
        nullable=True,
        comment='Optional {"from": ..., "to": ...} override of the dashboard time range',
    )

    access_token = Column(
        String(64),
        nullable=False,
        comment="Opaque bearer token. Unique, assigned once.",
    )

    created_by = Column(
        String(255),
        nullable=False,
        comment="User ID who created the share",
    )

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        comment="Creation time, stamped by the service layer",
    )

    updated_by = Column(
        String(255),
        nullable=True,
        comment="User ID of the last update",
    )

    updated_at = Column(
        DateTime(timezone=True),
        nullable=True,
        comment="Last update time, stamped by the service layer",
    )

    __table_args__ = (
        UniqueConstraint("access_token", name="uk_public_dashboards_access_token"),
        # One sharing config per dashboard
        UniqueConstraint(
            "org_id", "dashboard_uid",
            name="uk_public_dashboards_org_dashboard",
        ),
        Index("idx_public_dashboards_org", "org_id"),
    )

    @property
    def time_override(self) -> Optional[Dict[str, Any]]:
        """The stored time override, or None when it is missing or partial."""
        settings = self.time_settings or {}
        if settings.get("from") and settings.get("to"):
            return {"from": settings["from"], "to": settings["to"]}
        return None

    def __repr__(self) -> str:
        return (
            f"<PublicDashboard(uid={self.uid}, dashboard_uid={self.dashboard_uid}, "
            f"org_id={self.org_id}, is_enabled={self.is_enabled})>"
        )
