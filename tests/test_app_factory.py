"""
Tests for viewer/app.py: create_app() factory

Verifies the FastAPI app is created with the right configuration, routers
are registered, middleware runs, and upstream errors map to 502.
"""
import json
import logging
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from viewer import deps
from viewer.app import _JsonFormatter, build_templates, create_app
from viewer.client import ApiError
from viewer.state import ViewerState


@pytest.fixture()
def app(fake_api, app_config):
    return create_app(client=fake_api, config=app_config)


@pytest.fixture()
def client(app):
    return TestClient(app, raise_server_exceptions=False)


class TestCreateApp:
    def test_creates_fastapi_instance(self, app):
        assert app.title == "Form Template Viewer"
        assert app.version == "1.0.0"

    def test_registers_routes(self, app):
        route_paths = {getattr(r, "path", "") for r in app.routes}
        for path in ("/", "/partials/inspector", "/health", "/actions/values",
                     "/actions/annotations", "/actions/delete/confirm",
                     "/actions/submissions"):
            assert path in route_paths
        assert app.url_path_for("static", path="css/viewer.css") == "/static/css/viewer.css"

    def test_installs_client(self, app, fake_api):
        assert deps.get_client() is fake_api
        assert deps.get_controller().client is fake_api


class TestHealth:
    def test_ok(self, client, fake_api):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["templates"] == 2
        assert body["api"] == fake_api.base_url

    def test_degraded(self, client, fake_api):
        fake_api.fail("GET", "/forms", "connection refused", None)
        resp = client.get("/health")
        assert resp.status_code == 503
        assert resp.json()["status"] == "degraded"
        assert resp.json()["error"] == "connection refused"


class TestMiddleware:
    def test_request_id_header(self, client):
        resp = client.get("/health")
        assert len(resp.headers["X-Request-ID"]) == 8

    def test_security_headers(self, client):
        resp = client.get("/health")
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Frame-Options"] == "DENY"
        assert "unpkg.com" in resp.headers["Content-Security-Policy"]

    def test_cors(self, client):
        resp = client.get("/health", headers={"Origin": "http://elsewhere.test"})
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_configuration_logged_at_startup(self, fake_api, app_config, caplog):
        app_config.api_base_url = "http://forms.test/api/v1"
        with caplog.at_level(logging.INFO, logger="form_viewer"):
            create_app(client=fake_api, config=app_config)
        logged = [r.getMessage() for r in caplog.records
                  if r.getMessage().startswith("app_configured ")]
        assert logged
        settings = json.loads(logged[-1].split(" ", 1)[1])
        assert settings["api_base_url"] == "http://forms.test/api/v1"
        assert settings["template_cache_ttl"] == 60.0

    def test_request_logged(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="form_viewer"):
            client.get("/health")
        assert any("path=/health" in r.getMessage() for r in caplog.records)

    def test_static_served(self, client):
        resp = client.get("/static/css/viewer.css")
        assert resp.status_code == 200
        assert "@media print" in resp.text


class TestErrorHandlers:
    @pytest.fixture()
    def failing_client(self, app):
        @app.get("/boom-upstream")
        def boom_upstream():
            raise ApiError("template store offline", status_code=503,
                           method="GET", path="/forms")

        @app.get("/boom-value")
        def boom_value():
            raise ValueError("bad scale")

        @app.get("/boom")
        def boom():
            raise RuntimeError("kaboom")

        return TestClient(app, raise_server_exceptions=False)

    def test_api_error_json(self, failing_client):
        resp = failing_client.get("/boom-upstream", headers={"Accept": "application/json"})
        assert resp.status_code == 502
        body = resp.json()
        assert body["detail"] == "template store offline"
        assert body["upstream_status"] == 503

    def test_api_error_html(self, failing_client):
        resp = failing_client.get("/boom-upstream", headers={"Accept": "text/html"})
        assert resp.status_code == 502
        assert "text/html" in resp.headers["content-type"]
        assert "template store offline" in resp.text

    def test_value_error_400(self, failing_client):
        resp = failing_client.get("/boom-value")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "bad scale"

    def test_unhandled_500(self, failing_client):
        resp = failing_client.get("/boom")
        assert resp.status_code == 500
        assert resp.json()["error"] == "Internal server error"

    def test_404_html_page(self, client):
        resp = client.get("/no-such-page", headers={"Accept": "text/html"})
        assert resp.status_code == 404
        assert "Page not found" in resp.text

    def test_404_json(self, client):
        resp = client.get("/no-such-page", headers={"Accept": "application/json"})
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Not Found"}


class TestJsonFormatter:
    def test_extra_fields(self):
        record = logging.LogRecord("form_viewer", logging.INFO, __file__, 1,
                                   "request", None, None)
        record.method = "GET"
        record.status = 200
        record.request_id = "abcd1234"
        data = json.loads(_JsonFormatter().format(record))
        assert data["message"] == "request"
        assert data["level"] == "INFO"
        assert data["method"] == "GET"
        assert data["status"] == 200
        assert data["request_id"] == "abcd1234"
        assert "path" not in data


class TestTemplateFilters:
    def test_filters_registered(self):
        env = build_templates().env
        assert env.filters["short_date"]("2025-03-07T00:00:00Z") == "3/7/2025"
        assert env.filters["type_icon"]("currency") == "$"
        assert env.filters["number"](40.0) == "40"
        assert env.filters["number"](123.456789) == "123.456789"
        assert env.globals["submission_label"]("draft", None) == "draft — -"
        assert env.globals["action_url"]("/values", ViewerState()) == "/actions/values"
