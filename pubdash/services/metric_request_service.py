"""
Metric Request Service - builds the scoped query request for a public panel.

Sequence: resolve token -> extract panel queries -> effective time window ->
scoped identity -> MetricRequest. Any failure short-circuits; no partial
request is ever returned.

The resulting (MetricRequest, ScopedIdentity) pair is handed to a
QueryExecutor, which must check every query's datasource against the
identity before running it.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple

from pubdash.models.dashboard import PanelQuery
from pubdash.services.panel_queries import PanelQueryExtractor
from pubdash.services.public_dashboard_resolver import PublicDashboardResolver
from pubdash.services.scoped_identity import ScopedIdentity, ScopedIdentitySynthesizer
from pubdash.services.time_window import TimeWindow, TimeWindowResolver

logger = logging.getLogger(__name__)


class DatasourceRegistry(Protocol):
    """Read-only view of the datasource registry for one organization."""

    def get_default_uid(self, org_id: int) -> Optional[str]: ...


class QueryExecutor(Protocol):
    """Query execution backend. Enforces identity scope per query."""

    def execute(self, request: "MetricRequest", identity: ScopedIdentity) -> Any: ...


@dataclass
class MetricRequest:
    """Queries for one panel plus the window they run over."""
    time_window: TimeWindow
    queries: List[PanelQuery] = field(default_factory=list)

    @property
    def from_(self) -> str:
        return self.time_window.from_

    @property
    def to(self) -> str:
        return self.time_window.to

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_,
            "to": self.to,
            "queries": [q.to_dict() for q in self.queries],
        }


class MetricRequestService:
    """Entry point for anonymous panel data requests."""

    def __init__(
        self,
        resolver: PublicDashboardResolver,
        extractor: Optional[PanelQueryExtractor] = None,
        time_window_resolver: Optional[TimeWindowResolver] = None,
        synthesizer: Optional[ScopedIdentitySynthesizer] = None,
        datasource_registry: Optional[DatasourceRegistry] = None,
    ):
        self.resolver = resolver
        self.extractor = extractor or PanelQueryExtractor()
        self.time_window_resolver = time_window_resolver or resolver.time_window_resolver
        self.synthesizer = synthesizer or ScopedIdentitySynthesizer()
        self.datasource_registry = datasource_registry

    def build_request(
        self, access_token: str, panel_id: int
    ) -> Tuple[MetricRequest, ScopedIdentity]:
        """
        Build the request and identity for one panel of a public dashboard.

        Raises:
            PublicDashboardNotFoundError: token does not resolve to an enabled share
            PanelNotFoundError: panel_id is not on the dashboard
        """
        config, dashboard = self.resolver.resolve(access_token)
        queries = self.extractor.extract_queries(dashboard, panel_id)
        queries = self._bind_default_datasource(dashboard.org_id, queries)
        window = self.time_window_resolver.resolve(config, dashboard)
        identity = self.synthesizer.synthesize(dashboard.org_id, queries)

        logger.debug(
            "Built public metric request",
            extra={
                "dashboard_uid": dashboard.uid,
                "panel_id": panel_id,
                "query_count": len(queries),
                "datasource_count": len(identity.datasource_uids),
            },
        )
        return MetricRequest(time_window=window, queries=queries), identity

    def execute(self, executor: QueryExecutor, access_token: str, panel_id: int) -> Any:
        """Build the request and run it through the given executor."""
        request, identity = self.build_request(access_token, panel_id)
        return executor.execute(request, identity)

    def _bind_default_datasource(
        self, org_id: int, queries: List[PanelQuery]
    ) -> List[PanelQuery]:
        """Point queries that name no datasource at the org's default one."""
        if self.datasource_registry is None or all(q.datasource_uid for q in queries):
            return queries

        default_uid = self.datasource_registry.get_default_uid(org_id)
        if not default_uid:
            return queries
        return [q if q.datasource_uid else q.with_datasource(default_uid) for q in queries]
