"""Per-panel query extraction from a resolved dashboard."""

from typing import List

from pubdash.models.dashboard import Dashboard, PanelQuery
from pubdash.services.errors import PanelNotFoundError


class PanelQueryExtractor:
    """Looks up a panel's queries in the dashboard's parsed query index."""

    def extract_queries(self, dashboard: Dashboard, panel_id: int) -> List[PanelQuery]:
        """
        Return the panel's queries in declared order.

        Raises:
            PanelNotFoundError: panel_id is not in the dashboard
        """
        queries_by_panel = dashboard.queries_by_panel
        if panel_id not in queries_by_panel:
            raise PanelNotFoundError(panel_id)
        return list(queries_by_panel[panel_id])
