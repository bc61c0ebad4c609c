"""
Pytest fixtures for the form template viewer tests.

Provides an in-memory stand-in for the upstream forms API
(``FakeFormsApi``), pre-loaded with a two-page Form 1040 template, its
annotations and two submissions, plus a FastAPI ``TestClient`` wired to it.

``FakeFormsApi`` subclasses ``FormsApiClient`` and only replaces the
transport (``_request``), so response parsing, envelope handling and model
validation in the real client are exercised by every web test.
"""

import copy
import sys
from pathlib import Path
from typing import Any

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fastapi.testclient import TestClient  # noqa: E402

from utils.config import AppConfig  # noqa: E402
from viewer.client import ApiError, FormsApiClient  # noqa: E402
from viewer.controller import binding_path  # noqa: E402


# ── Seed data ─────────────────────────────────────────────────────────────────

TEMPLATES = [
    {
        "id": "t1", "form_code": "1040", "tax_year": 2025,
        "title": "U.S. Individual Income Tax Return",
        "page_count": 2, "page_width": 612, "page_height": 792,
        "version": "1", "is_active": True,
        "created_at": "2025-01-02T09:00:00Z", "updated_at": "2025-01-05T09:00:00Z",
    },
    {
        "id": "t2", "form_code": "W-2", "tax_year": 2025,
        "title": "Wage and Tax Statement",
        "page_count": 1, "page_width": 612, "page_height": 396,
    },
]

ANNOTATIONS = [
    {
        "id": "a1", "form_template_id": "t1", "field_key": "first_name",
        "page_number": 1, "x": 40, "y": 160, "width": 200, "height": 20,
        "field_type": "text", "data_binding": "$.taxpayer.first_name",
        "label": "First name", "group_name": "Your_Information", "sort_order": 1,
    },
    {
        "id": "a2", "form_template_id": "t1", "field_key": "ssn",
        "page_number": 1, "x": 400, "y": 160, "width": 180, "height": 20,
        "field_type": "ssn", "data_binding": "$.taxpayer.ssn",
        "label": "SSN", "group_name": "Your_Information", "sort_order": 2,
        "char_boxes": {"count": 9, "box_width": 16, "gap": 2},
    },
    {
        "id": "a3", "form_template_id": "t1", "field_key": "line_1_wages",
        "page_number": 1, "x": 460, "y": 350, "width": 110, "height": 18,
        "field_type": "currency", "data_binding": "$.income.wages",
        "label": "Wages", "group_name": "Income", "sort_order": 3,
        "format": {"text_align": "right", "font_weight": "bold", "decimal_places": 2},
    },
    {
        "id": "a4", "form_template_id": "t1", "field_key": "total_income",
        "page_number": 1, "x": 460, "y": 400, "width": 110, "height": 18,
        "field_type": "currency", "data_binding": "",
        "label": "Total income", "group_name": "Income", "sort_order": 4,
        "is_computed": True, "compute_expression": "line_1_wages + line_2",
    },
    {
        "id": "a5", "form_template_id": "t1", "field_key": "signature_date",
        "page_number": 2, "x": 300, "y": 620, "width": 100, "height": 18,
        "field_type": "date", "data_binding": "$.signature.date",
        "sort_order": 5,
    },
]

SUBMISSIONS = [
    {
        "id": "s1", "form_template_id": "t1", "status": "draft",
        "taxpayer_data": {
            "taxpayer": {"first_name": "Ada", "ssn": "123456789"},
            "income": {"wages": 50000},
        },
        "created_at": "2025-03-07T12:00:00Z",
    },
    {
        "id": "s2", "form_template_id": "t1", "status": "completed",
        "taxpayer_data": {}, "created_at": "2025-04-01T08:00:00Z",
    },
]

COMPUTED_VALUES = {"total_income": "50,000.00"}


def _lookup(data: dict, binding: str) -> Any:
    current: Any = data
    for key in binding_path(binding):
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


class FakeFormsApi(FormsApiClient):
    """In-memory forms API behind the real client's parsing layer."""

    def __init__(self) -> None:
        super().__init__()
        self.templates = {t["id"]: copy.deepcopy(t) for t in TEMPLATES}
        self.annotations = {a["id"]: copy.deepcopy(a) for a in ANNOTATIONS}
        self.submissions = {s["id"]: copy.deepcopy(s) for s in SUBMISSIONS}
        self.computed = dict(COMPUTED_VALUES)
        self.calls: list[tuple[str, str, Any, Any]] = []
        self.failures: dict[tuple[str, str], ApiError] = {}
        self._next_id = 100

    # ── test helpers ──────────────────────────────────────────────────────────

    def fail(self, method: str, path: str, message: str = "Boom",
             status: int = 500) -> None:
        """Make the next and every later ``method path`` call raise."""
        self.failures[(method, path)] = ApiError(message, status_code=status,
                                                 method=method, path=path)

    def writes(self) -> list[tuple[str, str, Any, Any]]:
        return [c for c in self.calls if c[0] != "GET"]

    def _new_id(self, prefix: str) -> str:
        self._next_id += 1
        return f"{prefix}{self._next_id}"

    # ── transport ─────────────────────────────────────────────────────────────

    def _request(self, method: str, path: str, *, params=None, json_body=None):
        self.calls.append((method, path, params, copy.deepcopy(json_body)))
        if (method, path) in self.failures:
            raise self.failures[(method, path)]
        parts = path.strip("/").split("/")
        handler = getattr(self, f"_{parts[0]}", None)
        if handler is None:
            raise ApiError("Not found", status_code=404, method=method, path=path)
        return handler(method, parts[1:], params or {}, json_body)

    def _not_found(self, what: str) -> ApiError:
        return ApiError(f"{what} not found", status_code=404)

    def _forms(self, method, rest, params, body):
        if not rest:
            if method == "POST":
                tid = self._new_id("t")
                self.templates[tid] = {"id": tid, **body}
                return {"data": self.templates[tid]}
            return {"data": list(self.templates.values())}
        tid = rest[0]
        if tid not in self.templates:
            raise self._not_found("Template")
        if len(rest) == 1:
            return self.templates[tid]
        if method == "POST":
            aid = self._new_id("a")
            self.annotations[aid] = {"id": aid, "form_template_id": tid, **body}
            return {"data": self.annotations[aid]}
        rows = [a for a in self.annotations.values() if a["form_template_id"] == tid]
        return {"data": sorted(rows, key=lambda a: a.get("sort_order", 0))}

    def _annotations(self, method, rest, params, body):
        aid = rest[0]
        if aid not in self.annotations:
            raise self._not_found("Annotation")
        if method == "DELETE":
            del self.annotations[aid]
            return None
        ann = self.annotations[aid]
        for key, value in body.items():
            if key == "format":
                ann["format"] = {**ann.get("format", {}), **value}
            else:
                ann[key] = value
        return {"data": ann}

    def _submissions(self, method, rest, params, body):
        if not rest:
            if method == "POST":
                sid = self._new_id("s")
                self.submissions[sid] = {"id": sid,
                                         "created_at": "2025-05-01T00:00:00Z", **body}
                return {"data": self.submissions[sid]}
            tid = params.get("form_template_id")
            return {"data": [s for s in self.submissions.values()
                             if tid is None or s["form_template_id"] == tid]}
        sid = rest[0]
        if sid not in self.submissions:
            raise self._not_found("Submission")
        sub = self.submissions[sid]
        if len(rest) == 2:
            return {"data": self._resolve(sub)}
        if method == "PATCH":
            sub.update(copy.deepcopy(body))
        return {"data": sub}

    def _resolve(self, sub: dict) -> list[dict]:
        anns = sorted(
            (a for a in self.annotations.values()
             if a["form_template_id"] == sub["form_template_id"]),
            key=lambda a: (a.get("page_number", 1), a.get("sort_order", 0)),
        )
        rows = []
        for a in anns:
            if a.get("is_computed"):
                raw = self.computed.get(a["field_key"])
            else:
                raw = _lookup(sub.get("taxpayer_data") or {},
                              a.get("data_binding") or a["field_key"])
            rows.append({
                "field_key": a["field_key"],
                "annotation_id": a["id"],
                "raw_value": raw,
                "display_value": "" if raw is None else str(raw),
                "page_number": a.get("page_number", 1),
                "x": a.get("x", 0), "y": a.get("y", 0),
                "width": a.get("width", 0), "height": a.get("height", 0),
                "format": a.get("format", {}),
                "char_boxes": a.get("char_boxes"),
            })
        return rows


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture()
def fake_api():
    """A fresh in-memory forms API for each test."""
    return FakeFormsApi()


@pytest.fixture()
def app_config(monkeypatch):
    """AppConfig with environment overrides cleared."""
    for var in ("FORMS_API_BASE_URL", "FORMS_API_TIMEOUT", "FORMS_API_RETRIES",
                "APP_PORT", "APP_HOST", "APP_LOG_FORMAT", "APP_CORS_ORIGINS",
                "TEMPLATE_CACHE_TTL"):
        monkeypatch.delenv(var, raising=False)
    return AppConfig()


@pytest.fixture()
def app_client(fake_api, app_config):
    """TestClient for an app whose upstream is ``fake_api``."""
    from viewer.app import create_app
    app = create_app(client=fake_api, config=app_config)
    return TestClient(app, raise_server_exceptions=False)
