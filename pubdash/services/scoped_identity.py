"""
Scoped anonymous identity for public dashboard queries.

The synthesized identity grants exactly two actions, query and read, on a
single combined datasource scope listing every datasource the panel's
queries reference, in one organization. Downstream authorization checks
datasource access as set membership against that one scope string.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Set

from pubdash.models.dashboard import PanelQuery

logger = logging.getLogger(__name__)

ACTION_DATASOURCES_QUERY = "datasources:query"
ACTION_DATASOURCES_READ = "datasources:read"
DATASOURCE_SCOPE_PREFIX = "datasources:uid:"

GRANTED_ACTIONS = (ACTION_DATASOURCES_QUERY, ACTION_DATASOURCES_READ)


def build_datasource_scope(datasource_uids: Iterable[str]) -> str:
    """Combine datasource uids into one scope. Sorted so equal sets give equal scopes."""
    return DATASOURCE_SCOPE_PREFIX + ",".join(sorted(set(datasource_uids)))


def parse_datasource_scope(scope: str) -> FrozenSet[str]:
    """Return the datasource uids covered by a combined scope."""
    if not scope.startswith(DATASOURCE_SCOPE_PREFIX):
        return frozenset()
    body = scope[len(DATASOURCE_SCOPE_PREFIX):]
    return frozenset(uid for uid in body.split(",") if uid)


@dataclass(frozen=True)
class ScopedIdentity:
    """
    Throwaway principal for one public query request.

    permissions maps action -> set of scopes, valid for org_id only.
    """
    org_id: int
    permissions: Dict[str, FrozenSet[str]] = field(default_factory=dict)

    @property
    def datasource_uids(self) -> FrozenSet[str]:
        uids: Set[str] = set()
        for scopes in self.permissions.values():
            for scope in scopes:
                uids |= parse_datasource_scope(scope)
        return frozenset(uids)

    def has_datasource_access(self, action: str, datasource_uid: str, org_id: int) -> bool:
        """Whether this identity may perform `action` on the datasource in `org_id`."""
        if org_id != self.org_id or not datasource_uid:
            return False
        return any(
            datasource_uid in parse_datasource_scope(scope)
            for scope in self.permissions.get(action, frozenset())
        )


class ScopedIdentitySynthesizer:
    """Builds minimal-privilege identities from a panel's queries."""

    def synthesize(self, org_id: int, queries: Iterable[PanelQuery]) -> ScopedIdentity:
        uids: Set[str] = set()
        for query in queries:
            if query.datasource_uid and "," not in query.datasource_uid:
                uids.add(query.datasource_uid)
            else:
                logger.warning(
                    "Query names no scopable datasource, not granted",
                    extra={"org_id": org_id, "ref_id": query.ref_id},
                )

        if not uids:
            return ScopedIdentity(org_id=org_id, permissions={})

        scope = build_datasource_scope(uids)
        return ScopedIdentity(
            org_id=org_id,
            permissions={action: frozenset([scope]) for action in GRANTED_ACTIONS},
        )
