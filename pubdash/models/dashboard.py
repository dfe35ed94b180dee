"""
Dashboard model - the stored dashboard document.

Read-only from the public sharing subsystem. The JSON document in `data`
is loosely structured; its query section is parsed once, here, into a
typed mapping of panel id -> ordered list of PanelQuery so no other layer
has to walk the raw document.
"""

import copy
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, String, JSON, Index, UniqueConstraint

from pubdash.db_base import Base
from pubdash.models.base import TimestampMixin, OrgScopedMixin


@dataclass(frozen=True)
class PanelQuery:
    """A single backend query issued by a dashboard panel."""
    ref_id: str
    datasource_uid: Optional[str]
    datasource_type: Optional[str] = None
    model: Dict[str, Any] = field(default_factory=dict)

    def with_datasource(self, datasource_uid: str) -> "PanelQuery":
        """Return a copy bound to the given datasource uid."""
        model = copy.deepcopy(self.model)
        datasource = dict(model.get("datasource") or {})
        datasource["uid"] = datasource_uid
        model["datasource"] = datasource
        return PanelQuery(
            ref_id=self.ref_id,
            datasource_uid=datasource_uid,
            datasource_type=self.datasource_type,
            model=model,
        )

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self.model)


def _valid_uid(uid: str) -> bool:
    # Commas delimit uids inside a combined datasource scope
    return bool(uid) and "," not in uid


def _declares_uid(raw: Any) -> bool:
    if isinstance(raw, dict):
        return bool(raw.get("uid"))
    return isinstance(raw, str) and bool(raw)


def _datasource_ref(raw: Any) -> Optional[Dict[str, Any]]:
    """
    Normalize a datasource reference (object or legacy name string).

    References whose uid cannot appear in a datasource scope resolve to None.
    """
    if isinstance(raw, dict) and raw.get("uid"):
        uid = str(raw["uid"])
        return {"uid": uid, "type": raw.get("type")} if _valid_uid(uid) else None
    if isinstance(raw, str) and _valid_uid(raw):
        return {"uid": raw, "type": None}
    return None


def _iter_panels(panels: List[Any]):
    for panel in panels or []:
        if not isinstance(panel, dict):
            continue
        yield panel
        # Collapsed rows carry their children inline
        if panel.get("type") == "row":
            yield from _iter_panels(panel.get("panels") or [])


def parse_panel_queries(data: Optional[Dict[str, Any]]) -> Dict[int, List[PanelQuery]]:
    """
    Build the panel id -> queries index for a dashboard document.

    A target without its own datasource inherits the panel's datasource; a
    target whose uid cannot be scoped (contains a comma) is left unbound.
    Panels without an integer id are not addressable and are skipped.
    Target order is preserved exactly as declared.
    """
    result: Dict[int, List[PanelQuery]] = {}
    if not data:
        return result

    for panel in _iter_panels(data.get("panels") or []):
        panel_id = panel.get("id")
        if isinstance(panel_id, bool) or not isinstance(panel_id, int):
            continue
        if panel.get("type") == "row":
            continue

        panel_datasource = _datasource_ref(panel.get("datasource"))
        queries: List[PanelQuery] = []
        for target in panel.get("targets") or []:
            if not isinstance(target, dict):
                continue
            model = copy.deepcopy(target)
            own = model.get("datasource")
            if _declares_uid(own):
                datasource = _datasource_ref(own)
            else:
                datasource = panel_datasource
            if datasource:
                model["datasource"] = dict(datasource)
            else:
                model.pop("datasource", None)
            queries.append(PanelQuery(
                ref_id=str(model.get("refId") or ""),
                datasource_uid=datasource["uid"] if datasource else None,
                datasource_type=datasource["type"] if datasource else None,
                model=model,
            ))
        result[panel_id] = queries

    return result


class Dashboard(Base, TimestampMixin, OrgScopedMixin):
    """
    Stored dashboard.

    `uid` is the stable identifier public configs refer to; `id` is internal.
    """

    __tablename__ = "dashboards"

    id = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        comment="Primary key (UUID)",
    )

    uid = Column(
        String(40),
        nullable=False,
        comment="Stable dashboard identifier, unique per organization",
    )

    title = Column(
        String(255),
        nullable=False,
        comment="User-facing dashboard title",
    )

    data = Column(
        JSON,
        nullable=False,
        default=dict,
        comment="Dashboard JSON document: panels, targets, time defaults",
    )

    __table_args__ = (
        UniqueConstraint("org_id", "uid", name="uk_dashboards_org_uid"),
        Index("idx_dashboards_org", "org_id"),
    )

    @property
    def queries_by_panel(self) -> Dict[int, List[PanelQuery]]:
        return parse_panel_queries(self.data)

    @property
    def time_defaults(self) -> Dict[str, Optional[str]]:
        time = (self.data or {}).get("time") or {}
        return {"from": time.get("from"), "to": time.get("to")}

    def __repr__(self) -> str:
        return (
            f"<Dashboard(uid={self.uid}, org_id={self.org_id}, "
            f"title={self.title!r})>"
        )
