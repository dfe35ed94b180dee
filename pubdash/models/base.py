"""
Base mixins for database models.

Provides common functionality:
- TimestampMixin: created_at, updated_at timestamps
- OrgScopedMixin: org_id for organization isolation
- generate_uid: short unique identifiers for public-facing keys
"""

import uuid

from sqlalchemy import Column, Integer, DateTime, func
from sqlalchemy.orm import declared_attr


def generate_uid() -> str:
    """Generate a 14-character hex uid, the length used for dashboard uids."""
    return uuid.uuid4().hex[:14]


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns."""

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Timestamp when record was created"
    )

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
        comment="Timestamp when record was last updated"
    )


class OrgScopedMixin:
    """
    Mixin that adds org_id column for organization isolation.

    SECURITY: org_id comes from the signed-in user's context or from the
    resolved dashboard row. NEVER accept org_id from anonymous input.
    """

    @declared_attr
    def org_id(cls):
        return Column(
            Integer,
            nullable=False,
            index=True,
            comment="Owning organization. NEVER from anonymous client input."
        )
