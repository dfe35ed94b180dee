"""
Error classes for public dashboard access.

PublicDashboardNotFoundError and PanelNotFoundError must both surface as the
same generic "not available" response at the HTTP boundary. Their messages
are for operators only.
"""


class PublicDashboardError(Exception):
    """Base exception for public dashboard errors."""
    pass


class PublicDashboardNotFoundError(PublicDashboardError):
    """Token unknown, dashboard missing, or share disabled. Deliberately indistinct."""

    def __init__(self, message: str = "Public dashboard not found"):
        super().__init__(message)


class PanelNotFoundError(PublicDashboardError):
    """The shared dashboard has no panel with the requested id."""

    def __init__(self, panel_id: int):
        self.panel_id = panel_id
        super().__init__(f"Panel {panel_id} not found on public dashboard")


class MissingDashboardRefError(PublicDashboardError):
    """Save request did not name a dashboard."""

    def __init__(self, message: str = "Dashboard identifier not set"):
        super().__init__(message)


class DuplicateTokenError(PublicDashboardError):
    """Storage rejected an access token that is already in use."""
    pass


class RandomnessUnavailableError(PublicDashboardError):
    """The OS randomness source could not produce a token."""
    pass


class PublicDashboardConflictError(PublicDashboardError):
    """The dashboard already has a sharing config."""
    pass
