"""
Storage for public dashboard configurations.

PublicDashboardStore is the contract the services depend on;
SqlPublicDashboardStore implements it with SQLAlchemy. Each method is one
atomic read or write. No retries or multi-step transactions live here.

Token lookups are NOT org-scoped: the token itself is the credential, and
the org comes from the row it resolves to.
"""

import logging
from typing import Optional, Protocol, Tuple

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from pubdash.models.base import generate_uid
from pubdash.models.dashboard import Dashboard
from pubdash.models.public_dashboard import PublicDashboard
from pubdash.services.access_token import mask_token, tokens_match
from pubdash.services.errors import (
    DuplicateTokenError,
    PublicDashboardConflictError,
    PublicDashboardError,
    PublicDashboardNotFoundError,
)

logger = logging.getLogger(__name__)

_UID_ATTEMPTS = 3


class PublicDashboardStore(Protocol):
    """Storage collaborator used by the public dashboard services."""

    def get_by_token(
        self, access_token: str
    ) -> Tuple[Optional[PublicDashboard], Optional[Dashboard]]: ...

    def get_config(self, org_id: int, dashboard_uid: str) -> Optional[PublicDashboard]: ...

    def generate_uid(self) -> str: ...

    def insert(self, config: PublicDashboard) -> PublicDashboard: ...

    def update(self, config: PublicDashboard) -> PublicDashboard: ...


class SqlPublicDashboardStore:
    """SQLAlchemy-backed PublicDashboardStore."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_token(
        self, access_token: str
    ) -> Tuple[Optional[PublicDashboard], Optional[Dashboard]]:
        """
        Look up a config and its dashboard by access token.

        Returns (None, None) for an unknown token and (config, None) when the
        dashboard behind the config no longer exists. Enablement is not
        checked here.
        """
        config = (
            self.db.query(PublicDashboard)
            .filter(PublicDashboard.access_token == access_token)
            .first()
        )
        if config is None or not tokens_match(config.access_token, access_token):
            return None, None

        dashboard = (
            self.db.query(Dashboard)
            .filter(
                Dashboard.org_id == config.org_id,
                Dashboard.uid == config.dashboard_uid,
            )
            .first()
        )
        return config, dashboard

    def get_config(self, org_id: int, dashboard_uid: str) -> Optional[PublicDashboard]:
        return (
            self.db.query(PublicDashboard)
            .filter(
                PublicDashboard.org_id == org_id,
                PublicDashboard.dashboard_uid == dashboard_uid,
            )
            .first()
        )

    def generate_uid(self) -> str:
        """Generate a config uid not yet used by any row."""
        for _ in range(_UID_ATTEMPTS):
            uid = generate_uid()
            if self.db.get(PublicDashboard, uid) is None:
                return uid
        raise PublicDashboardError("Could not generate a unique public dashboard uid")

    def insert(self, config: PublicDashboard) -> PublicDashboard:
        """
        Persist a new config.

        Raises:
            DuplicateTokenError: access_token already belongs to another row
            PublicDashboardConflictError: the dashboard already has a config
            IntegrityError: any other constraint violation
        """
        if self.get_config(config.org_id, config.dashboard_uid) is not None:
            raise PublicDashboardConflictError(
                f"Dashboard {config.dashboard_uid} already has a public config"
            )
        if self._token_exists(config.access_token):
            raise DuplicateTokenError("Access token already in use")

        self.db.add(config)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            if self._token_exists(config.access_token):
                raise DuplicateTokenError("Access token already in use")
            if self.get_config(config.org_id, config.dashboard_uid) is not None:
                raise PublicDashboardConflictError(
                    f"Dashboard {config.dashboard_uid} already has a public config"
                )
            raise

        self.db.commit()
        logger.info(
            "Public dashboard config created",
            extra={
                "uid": config.uid,
                "dashboard_uid": config.dashboard_uid,
                "org_id": config.org_id,
                "access_token": mask_token(config.access_token),
            },
        )
        return config

    def update(self, config: PublicDashboard) -> PublicDashboard:
        """
        Write the mutable fields of an existing config.

        Only is_enabled, time_settings, updated_by and updated_at are copied;
        the stored token and dashboard binding are left untouched.

        Raises:
            PublicDashboardNotFoundError: no config with this uid for this
                dashboard in this org
        """
        existing = (
            self.db.query(PublicDashboard)
            .filter(
                PublicDashboard.uid == config.uid,
                PublicDashboard.org_id == config.org_id,
                PublicDashboard.dashboard_uid == config.dashboard_uid,
            )
            .first()
        )
        if existing is None:
            raise PublicDashboardNotFoundError(f"Public dashboard config {config.uid} not found")

        existing.is_enabled = config.is_enabled
        existing.time_settings = config.time_settings
        existing.updated_by = config.updated_by
        existing.updated_at = config.updated_at

        self.db.commit()
        logger.info(
            "Public dashboard config updated",
            extra={
                "uid": existing.uid,
                "org_id": existing.org_id,
                "is_enabled": existing.is_enabled,
            },
        )
        return existing

    def _token_exists(self, access_token: str) -> bool:
        return (
            self.db.query(PublicDashboard.uid)
            .filter(PublicDashboard.access_token == access_token)
            .first()
        ) is not None
