"""
Public Dashboard Config Service - create or update a sharing configuration.

The create-vs-update decision is made on the presence of the config uid:
- No uid   -> create: storage assigns the uid, a fresh token is generated,
              created_by/created_at stamped. Caller-supplied uid, token and
              timestamps are never used.
- Known uid -> update: the uid must belong to the named dashboard in the
              caller's org. Only is_enabled and time_settings are carried
              over, updated_by/updated_at stamped. Token, dashboard_uid and
              org_id are never rewritten.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pubdash.models.public_dashboard import PublicDashboard
from pubdash.repositories.public_dashboard_repo import PublicDashboardStore
from pubdash.services.access_token import AccessTokenGenerator
from pubdash.services.errors import (
    DuplicateTokenError,
    MissingDashboardRefError,
    RandomnessUnavailableError,
)

logger = logging.getLogger(__name__)


@dataclass
class PublicDashboardInput:
    """Caller-editable fields of a sharing config."""
    uid: Optional[str] = None
    is_enabled: bool = False
    time_settings: Optional[Dict[str, Any]] = None


@dataclass
class SavePublicDashboardConfigDTO:
    """A save request from an authenticated dashboard editor."""
    dashboard_uid: str
    org_id: int
    user_id: str
    public_dashboard: PublicDashboardInput = field(default_factory=PublicDashboardInput)


class PublicDashboardConfigService:
    """Service for saving public dashboard configurations."""

    def __init__(
        self,
        store: PublicDashboardStore,
        token_generator: Optional[AccessTokenGenerator] = None,
        token_attempts: int = 2,
    ):
        if token_attempts < 1:
            raise ValueError("token_attempts must be at least 1")
        self.store = store
        self.token_generator = token_generator or AccessTokenGenerator()
        self.token_attempts = token_attempts

    def get_config(self, org_id: int, dashboard_uid: str) -> Optional[PublicDashboard]:
        """Return the dashboard's sharing config, or None if never shared."""
        return self.store.get_config(org_id, dashboard_uid)

    def save(self, dto: SavePublicDashboardConfigDTO) -> PublicDashboard:
        """
        Create or update a sharing config.

        Raises:
            MissingDashboardRefError: dto.dashboard_uid is empty
            DuplicateTokenError / RandomnessUnavailableError: token attempts exhausted
            PublicDashboardConflictError: create for a dashboard that is already shared
            PublicDashboardNotFoundError: update names a uid not bound to this dashboard
        """
        if not dto.dashboard_uid:
            raise MissingDashboardRefError()

        if not dto.public_dashboard.uid:
            return self._create(dto)
        return self._update(dto)

    def _create(self, dto: SavePublicDashboardConfigDTO) -> PublicDashboard:
        uid = self.store.generate_uid()
        now = datetime.now(timezone.utc)

        for attempt in range(1, self.token_attempts + 1):
            try:
                config = PublicDashboard(
                    uid=uid,
                    dashboard_uid=dto.dashboard_uid,
                    org_id=dto.org_id,
                    is_enabled=dto.public_dashboard.is_enabled,
                    time_settings=dto.public_dashboard.time_settings,
                    access_token=self.token_generator.generate(),
                    created_by=dto.user_id,
                    created_at=now,
                )
                return self.store.insert(config)
            except (DuplicateTokenError, RandomnessUnavailableError) as e:
                if attempt >= self.token_attempts:
                    raise
                logger.warning(
                    "Access token attempt failed, retrying",
                    extra={
                        "dashboard_uid": dto.dashboard_uid,
                        "org_id": dto.org_id,
                        "attempt": attempt,
                        "error": type(e).__name__,
                    },
                )

    def _update(self, dto: SavePublicDashboardConfigDTO) -> PublicDashboard:
        config = PublicDashboard(
            uid=dto.public_dashboard.uid,
            dashboard_uid=dto.dashboard_uid,
            org_id=dto.org_id,
            is_enabled=dto.public_dashboard.is_enabled,
            time_settings=dto.public_dashboard.time_settings,
            updated_by=dto.user_id,
            updated_at=datetime.now(timezone.utc),
        )
        return self.store.update(config)
