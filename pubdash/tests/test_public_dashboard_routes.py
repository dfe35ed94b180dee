"""
Tests for the public dashboards API.

Covers:
- Anonymous dashboard and panel query endpoints
- Identical 404 body for every not-found cause
- Caller-supplied time range ignored
- Feature flag off -> 404
- Authenticated config endpoints
"""

import pytest
from fastapi.testclient import TestClient

from pubdash.api.routes.public_dashboards import NOT_AVAILABLE
from pubdash.config.settings import PublicDashboardSettings, get_settings
from pubdash.database.session import get_db_session
from pubdash.main import create_app
from pubdash.platform.org_context import OrgContext
from pubdash.tests.conftest import DASHBOARD_UID, ORG_ID, USER_ID, RecordingQueryExecutor

TOKEN = "7" * 32


@pytest.fixture
def settings():
    return PublicDashboardSettings()


@pytest.fixture
def app(db_session, settings):
    app = create_app()

    def override_get_db_session():
        yield db_session

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_settings] = lambda: settings
    app.state.query_executor = RecordingQueryExecutor()

    @app.middleware("http")
    async def attach_org_context(request, call_next):
        if request.headers.get("X-Test-User"):
            request.state.org_context = OrgContext(
                org_id=int(request.headers.get("X-Test-Org", ORG_ID)),
                user_id=request.headers["X-Test-User"],
            )
        return await call_next(request)

    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


AUTH_HEADERS = {"X-Test-User": USER_ID}


class TestPublicDashboardEndpoint:

    def test_get_public_dashboard(self, client, make_dashboard, make_public_config):
        make_dashboard()
        make_public_config(time_settings={"from": "now-6h", "to": "now"}, access_token=TOKEN)

        response = client.get(f"/api/public/dashboards/{TOKEN}")

        assert response.status_code == 200
        body = response.json()
        assert body["uid"] == DASHBOARD_UID
        assert body["dashboard"]["time"] == {"from": "now-6h", "to": "now"}

    @pytest.mark.security
    def test_not_found_bodies_are_identical(self, client, make_dashboard, make_public_config):
        make_dashboard()
        make_public_config(is_enabled=False, access_token=TOKEN)

        disabled = client.get(f"/api/public/dashboards/{TOKEN}")
        unknown = client.get(f"/api/public/dashboards/{'0' * 32}")

        assert disabled.status_code == unknown.status_code == 404
        assert disabled.json() == unknown.json() == {"detail": NOT_AVAILABLE}

    def test_feature_disabled(self, client, settings, make_dashboard, make_public_config):
        make_dashboard()
        make_public_config(access_token=TOKEN)
        settings.enabled = False

        response = client.get(f"/api/public/dashboards/{TOKEN}")

        assert response.status_code == 404
        assert response.json() == {"detail": NOT_AVAILABLE}


class TestPanelQueryEndpoint:

    def test_query_panel(self, client, app, make_dashboard, make_public_config):
        make_dashboard()
        make_public_config(time_settings={"from": "now-6h", "to": "now"}, access_token=TOKEN)

        response = client.post(f"/api/public/dashboards/{TOKEN}/panels/7/query")

        assert response.status_code == 200
        body = response.json()
        assert body["panelId"] == 7
        assert body["timeRange"] == {"from": "now-6h", "to": "now"}
        assert [r["datasource"] for r in body["results"]] == ["ds-A", "ds-B"]

    @pytest.mark.security
    def test_caller_time_range_ignored(self, client, app, make_dashboard, make_public_config):
        make_dashboard()
        make_public_config(access_token=TOKEN)

        response = client.post(
            f"/api/public/dashboards/{TOKEN}/panels/7/query",
            json={"from": "now-10y", "to": "now"},
        )

        assert response.status_code == 200
        assert response.json()["timeRange"] == {"from": "now-24h", "to": "now"}
        request, _ = app.state.query_executor.calls[0]
        assert request.from_ == "now-24h"

    @pytest.mark.security
    def test_unknown_panel_looks_like_unknown_token(
        self, client, make_dashboard, make_public_config
    ):
        make_dashboard()
        make_public_config(access_token=TOKEN)

        missing_panel = client.post(f"/api/public/dashboards/{TOKEN}/panels/99/query")
        missing_token = client.post(f"/api/public/dashboards/{'0' * 32}/panels/7/query")

        assert missing_panel.status_code == missing_token.status_code == 404
        assert missing_panel.json() == missing_token.json()

    def test_no_query_backend(self, client, app, make_dashboard, make_public_config):
        make_dashboard()
        make_public_config(access_token=TOKEN)
        app.state.query_executor = None

        response = client.post(f"/api/public/dashboards/{TOKEN}/panels/7/query")

        assert response.status_code == 503


class TestConfigEndpoints:

    def test_requires_org_context(self, client):
        response = client.get(f"/api/dashboards/uid/{DASHBOARD_UID}/public-config")

        assert response.status_code == 403

    def test_get_missing_config(self, client):
        response = client.get(
            f"/api/dashboards/uid/{DASHBOARD_UID}/public-config", headers=AUTH_HEADERS
        )

        assert response.status_code == 404

    def test_create_then_update(self, client):
        created = client.post(
            f"/api/dashboards/uid/{DASHBOARD_UID}/public-config",
            json={"isEnabled": True, "timeSettings": {"from": "now-6h", "to": "now"},
                  "accessToken": "chosen-by-caller"},
            headers=AUTH_HEADERS,
        )
        assert created.status_code == 200
        config = created.json()
        assert config["dashboardUid"] == DASHBOARD_UID
        assert config["orgId"] == ORG_ID
        assert config["isEnabled"] is True
        assert config["timeSettings"] == {"from": "now-6h", "to": "now"}
        assert len(config["accessToken"]) == 32

        updated = client.post(
            f"/api/dashboards/uid/{DASHBOARD_UID}/public-config",
            json={"uid": config["uid"], "isEnabled": False},
            headers={"X-Test-User": "test-user-002"},
        )
        assert updated.status_code == 200
        body = updated.json()
        assert body["accessToken"] == config["accessToken"]
        assert body["isEnabled"] is False
        assert body["timeSettings"] is None
        assert body["updatedBy"] == "test-user-002"

        fetched = client.get(
            f"/api/dashboards/uid/{DASHBOARD_UID}/public-config", headers=AUTH_HEADERS
        )
        assert fetched.json()["uid"] == config["uid"]

    def test_update_unknown_config(self, client):
        response = client.post(
            f"/api/dashboards/uid/{DASHBOARD_UID}/public-config",
            json={"uid": "nope", "isEnabled": True},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 404

    def test_invalid_time_settings(self, client):
        response = client.post(
            f"/api/dashboards/uid/{DASHBOARD_UID}/public-config",
            json={"isEnabled": True, "timeSettings": {"from": ""}},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 422

    @pytest.mark.security
    def test_update_through_other_dashboard_path(self, client):
        shared = client.post(
            "/api/dashboards/uid/dash-Y/public-config",
            json={"isEnabled": False},
            headers=AUTH_HEADERS,
        ).json()

        response = client.post(
            "/api/dashboards/uid/dash-X/public-config",
            json={"uid": shared["uid"], "isEnabled": True},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 404
        fetched = client.get("/api/dashboards/uid/dash-Y/public-config", headers=AUTH_HEADERS)
        assert fetched.json()["isEnabled"] is False

    def test_second_create_is_conflict(self, client):
        first = client.post(
            f"/api/dashboards/uid/{DASHBOARD_UID}/public-config",
            json={"isEnabled": True},
            headers=AUTH_HEADERS,
        )
        second = client.post(
            f"/api/dashboards/uid/{DASHBOARD_UID}/public-config",
            json={"isEnabled": True},
            headers=AUTH_HEADERS,
        )

        assert first.status_code == 200
        assert second.status_code == 409
        fetched = client.get(
            f"/api/dashboards/uid/{DASHBOARD_UID}/public-config", headers=AUTH_HEADERS
        )
        assert fetched.json()["accessToken"] == first.json()["accessToken"]
