"""
Effective time window for public dashboard queries.

The anonymous caller's requested range is never an input here: the window
comes only from the sharing config and the dashboard itself.
"""

import logging
from dataclasses import dataclass
from typing import Dict

from pubdash.models.dashboard import Dashboard
from pubdash.models.public_dashboard import PublicDashboard

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeWindow:
    """Effective (from, to) pair for one request."""
    from_: str
    to: str

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.from_, "to": self.to}


class TimeWindowResolver:
    """
    Resolution order:
    1. Complete override on the sharing config -> used verbatim
    2. Dashboard's declared time.from / time.to
    3. Configured fallback range for dashboards that declare none
    """

    def __init__(self, default_from: str = "now-6h", default_to: str = "now"):
        self.default_from = default_from
        self.default_to = default_to

    def resolve(self, config: PublicDashboard, dashboard: Dashboard) -> TimeWindow:
        override = config.time_override
        if override:
            return TimeWindow(from_=override["from"], to=override["to"])

        defaults = dashboard.time_defaults
        if defaults["from"] and defaults["to"]:
            return TimeWindow(from_=defaults["from"], to=defaults["to"])

        logger.debug(
            "Dashboard declares no time range, using fallback",
            extra={"dashboard_uid": dashboard.uid},
        )
        return TimeWindow(from_=self.default_from, to=self.default_to)
