"""
Public Dashboards API.

Anonymous endpoints, authorized only by the access token in the path:
  GET  /api/public/dashboards/{access_token}
  POST /api/public/dashboards/{access_token}/panels/{panel_id}/query

Authenticated endpoints for dashboard editors:
  GET  /api/dashboards/uid/{dashboard_uid}/public-config
  POST /api/dashboards/uid/{dashboard_uid}/public-config

SECURITY: every "not found" on the anonymous side (unknown token, disabled
share, missing dashboard, missing panel) returns the same 404 body.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from pubdash.api.schemas.public_dashboards import (
    PanelQueryRequest,
    PanelQueryResponse,
    PublicDashboardConfigResponse,
    PublicDashboardResponse,
    SavePublicDashboardConfigRequest,
)
from pubdash.config.settings import PublicDashboardSettings, get_settings
from pubdash.database.session import get_db_session
from pubdash.platform.org_context import get_org_context
from pubdash.repositories.public_dashboard_repo import SqlPublicDashboardStore
from pubdash.services.access_token import AccessTokenGenerator
from pubdash.services.errors import (
    DuplicateTokenError,
    MissingDashboardRefError,
    PanelNotFoundError,
    PublicDashboardConflictError,
    PublicDashboardNotFoundError,
    RandomnessUnavailableError,
)
from pubdash.services.metric_request_service import MetricRequestService, QueryExecutor
from pubdash.services.public_dashboard_config_service import (
    PublicDashboardConfigService,
    PublicDashboardInput,
    SavePublicDashboardConfigDTO,
)
from pubdash.services.public_dashboard_resolver import PublicDashboardResolver
from pubdash.services.time_window import TimeWindowResolver

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "Public dashboard not available"

public_router = APIRouter(prefix="/api/public/dashboards", tags=["public-dashboards"])
config_router = APIRouter(prefix="/api/dashboards/uid/{dashboard_uid}", tags=["public-dashboards"])


def _not_available() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_AVAILABLE)


def require_public_dashboards_enabled(
    settings: PublicDashboardSettings = Depends(get_settings),
) -> PublicDashboardSettings:
    if not settings.enabled:
        raise _not_available()
    return settings


def _get_resolver(
    db: Session = Depends(get_db_session),
    settings: PublicDashboardSettings = Depends(require_public_dashboards_enabled),
) -> PublicDashboardResolver:
    return PublicDashboardResolver(
        SqlPublicDashboardStore(db),
        TimeWindowResolver(settings.default_time_from, settings.default_time_to),
    )


def _get_metric_request_service(
    request: Request,
    resolver: PublicDashboardResolver = Depends(_get_resolver),
) -> MetricRequestService:
    return MetricRequestService(
        resolver,
        datasource_registry=getattr(request.app.state, "datasource_registry", None),
    )


def _get_query_executor(request: Request) -> QueryExecutor:
    executor: Optional[QueryExecutor] = getattr(request.app.state, "query_executor", None)
    if executor is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Query backend not configured",
        )
    return executor


def _get_config_service(
    db: Session = Depends(get_db_session),
    settings: PublicDashboardSettings = Depends(get_settings),
) -> PublicDashboardConfigService:
    return PublicDashboardConfigService(
        SqlPublicDashboardStore(db),
        token_generator=AccessTokenGenerator(settings.token_bytes),
        token_attempts=settings.token_attempts,
    )


# =============================================================================
# Anonymous endpoints
# =============================================================================


@public_router.get("/{access_token}", response_model=PublicDashboardResponse)
def get_public_dashboard(
    access_token: str,
    resolver: PublicDashboardResolver = Depends(_get_resolver),
):
    """Dashboard document with the share's effective time range applied."""
    try:
        dashboard, data = resolver.get_public_dashboard(access_token)
    except PublicDashboardNotFoundError:
        raise _not_available()

    return PublicDashboardResponse(uid=dashboard.uid, title=dashboard.title, dashboard=data)


@public_router.post(
    "/{access_token}/panels/{panel_id}/query",
    response_model=PanelQueryResponse,
)
def query_public_panel(
    access_token: str,
    panel_id: int,
    body: Optional[PanelQueryRequest] = Body(None),
    service: MetricRequestService = Depends(_get_metric_request_service),
    executor: QueryExecutor = Depends(_get_query_executor),
):
    """Run one panel's queries under a scoped anonymous identity."""
    if body is not None and (body.range_from or body.range_to):
        logger.debug(
            "Ignoring caller-supplied time range on public query",
            extra={"panel_id": panel_id},
        )

    try:
        metric_request, identity = service.build_request(access_token, panel_id)
    except (PublicDashboardNotFoundError, PanelNotFoundError):
        raise _not_available()

    results = executor.execute(metric_request, identity)
    return PanelQueryResponse(
        panel_id=panel_id,
        time_range=metric_request.time_window.to_dict(),
        results=list(results or []),
    )


# =============================================================================
# Authenticated config endpoints
# =============================================================================


@config_router.get("/public-config", response_model=PublicDashboardConfigResponse)
def get_public_dashboard_config(
    dashboard_uid: str,
    request: Request,
    service: PublicDashboardConfigService = Depends(_get_config_service),
):
    """Sharing config of a dashboard in the caller's org."""
    ctx = get_org_context(request)
    config = service.get_config(ctx.org_id, dashboard_uid)
    if config is None:
        raise HTTPException(status_code=404, detail="Public dashboard config not found")
    return PublicDashboardConfigResponse.model_validate(config)


@config_router.post("/public-config", response_model=PublicDashboardConfigResponse)
def save_public_dashboard_config(
    dashboard_uid: str,
    body: SavePublicDashboardConfigRequest,
    request: Request,
    service: PublicDashboardConfigService = Depends(_get_config_service),
):
    """Create or update the sharing config of a dashboard."""
    ctx = get_org_context(request)
    dto = SavePublicDashboardConfigDTO(
        dashboard_uid=dashboard_uid,
        org_id=ctx.org_id,
        user_id=ctx.user_id,
        public_dashboard=PublicDashboardInput(
            uid=body.uid,
            is_enabled=body.is_enabled,
            time_settings=body.time_settings.to_storage() if body.time_settings else None,
        ),
    )

    try:
        config = service.save(dto)
    except MissingDashboardRefError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PublicDashboardNotFoundError:
        raise HTTPException(status_code=404, detail="Public dashboard config not found")
    except PublicDashboardConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (DuplicateTokenError, RandomnessUnavailableError):
        logger.error(
            "Could not assign access token",
            extra={"dashboard_uid": dashboard_uid, "org_id": ctx.org_id},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not create public dashboard",
        )

    return PublicDashboardConfigResponse.model_validate(config)
