"""
Public Dashboard Resolver - the trust-establishing step for anonymous access.

Resolves an access token to exactly one enabled sharing config and its
dashboard. Every downstream component relies on this check.

Key edge cases:
- Unknown token, missing dashboard and disabled share raise the SAME error
  so callers cannot tell which one applies
- Operator logs do record which case it was
"""

import copy
import logging
from typing import Any, Dict, Optional, Tuple

from pubdash.models.dashboard import Dashboard
from pubdash.models.public_dashboard import PublicDashboard
from pubdash.repositories.public_dashboard_repo import PublicDashboardStore
from pubdash.services.access_token import mask_token
from pubdash.services.errors import PublicDashboardNotFoundError
from pubdash.services.time_window import TimeWindowResolver

logger = logging.getLogger(__name__)


class PublicDashboardResolver:
    """Resolves access tokens against the storage collaborator."""

    def __init__(
        self,
        store: PublicDashboardStore,
        time_window_resolver: Optional[TimeWindowResolver] = None,
    ):
        self.store = store
        self.time_window_resolver = time_window_resolver or TimeWindowResolver()

    def resolve(self, access_token: str) -> Tuple[PublicDashboard, Dashboard]:
        """
        Resolve a token to its (config, dashboard) pair.

        Raises:
            PublicDashboardNotFoundError: token unknown, dashboard gone, or share disabled
        """
        if not access_token:
            raise PublicDashboardNotFoundError()

        config, dashboard = self.store.get_by_token(access_token)

        if config is None:
            logger.info(
                "Public dashboard lookup failed: unknown token",
                extra={"access_token": mask_token(access_token)},
            )
            raise PublicDashboardNotFoundError()

        if dashboard is None:
            logger.info(
                "Public dashboard lookup failed: dashboard missing",
                extra={"uid": config.uid, "dashboard_uid": config.dashboard_uid},
            )
            raise PublicDashboardNotFoundError()

        if not config.is_enabled:
            logger.info(
                "Public dashboard lookup failed: share disabled",
                extra={"uid": config.uid, "dashboard_uid": config.dashboard_uid},
            )
            raise PublicDashboardNotFoundError()

        return config, dashboard

    def get_public_dashboard(self, access_token: str) -> Tuple[Dashboard, Dict[str, Any]]:
        """
        Resolve a token and return the dashboard with its document's time range
        replaced by the effective window.

        The returned document is a copy; the stored row is not modified.
        """
        config, dashboard = self.resolve(access_token)
        window = self.time_window_resolver.resolve(config, dashboard)

        data = copy.deepcopy(dashboard.data or {})
        data["time"] = dict(data.get("time") or {}, **window.to_dict())
        return dashboard, data
