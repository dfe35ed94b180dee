"""
Pydantic schemas for the public dashboards API.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TimeSettings(BaseModel):
    """Time range override stored on a sharing config."""

    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(..., alias="from", min_length=1, max_length=100)
    to: str = Field(..., min_length=1, max_length=100)

    def to_storage(self) -> Dict[str, str]:
        return {"from": self.from_, "to": self.to}


# =============================================================================
# Request Models
# =============================================================================

class SavePublicDashboardConfigRequest(BaseModel):
    """Body of a public config save. Token and timestamps are never accepted."""

    uid: Optional[str] = Field(None, max_length=40, description="Existing config uid; omit to create")
    is_enabled: bool = Field(False, alias="isEnabled")
    time_settings: Optional[TimeSettings] = Field(None, alias="timeSettings")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("uid")
    @classmethod
    def blank_uid_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class PanelQueryRequest(BaseModel):
    """
    Body of a public panel query.

    A caller-supplied range is accepted for client compatibility but never
    used: the effective window always comes from the share.
    """

    range_from: Optional[str] = Field(None, alias="from")
    range_to: Optional[str] = Field(None, alias="to")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# =============================================================================
# Response Models
# =============================================================================

class PublicDashboardConfigResponse(BaseModel):
    """Sharing config as returned to authenticated editors."""

    uid: str
    dashboard_uid: str = Field(..., serialization_alias="dashboardUid")
    org_id: int = Field(..., serialization_alias="orgId")
    is_enabled: bool = Field(..., serialization_alias="isEnabled")
    time_settings: Optional[Dict[str, Any]] = Field(None, serialization_alias="timeSettings")
    access_token: str = Field(..., serialization_alias="accessToken")
    created_by: str = Field(..., serialization_alias="createdBy")
    created_at: datetime = Field(..., serialization_alias="createdAt")
    updated_by: Optional[str] = Field(None, serialization_alias="updatedBy")
    updated_at: Optional[datetime] = Field(None, serialization_alias="updatedAt")

    model_config = ConfigDict(from_attributes=True)


class PublicDashboardResponse(BaseModel):
    """Dashboard document served to anonymous viewers."""

    uid: str
    title: str
    dashboard: Dict[str, Any]


class PanelQueryResponse(BaseModel):
    """Result of a public panel query."""

    panel_id: int = Field(..., serialization_alias="panelId")
    time_range: Dict[str, str] = Field(..., serialization_alias="timeRange")
    results: List[Any] = Field(default_factory=list)
