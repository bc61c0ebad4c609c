"""
Thin JSON client for the upstream forms REST API.

Every call goes through ``FormsApiClient._request``:

    * JSON bodies with ``Content-Type: application/json``
    * non-2xx responses raise ``ApiError`` carrying the body's ``message``
      (or ``"Request failed: <status>"`` when there is none)
    * ``204 No Content`` yields ``None``

``_one`` and ``_many`` then unwrap the ``{"data": ...}`` envelope (when the
member is present and not null) and validate the result into models.

Idempotent reads are retried on 429/5xx by the session adapter; writes are
sent once.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, TypeVar, Union

import requests
from pydantic import BaseModel, ValidationError

from utils.config import ClientConfig
from utils.http import RetryStrategy, SessionManager, build_url
from viewer.models import (
    FieldAnnotation,
    FormSubmission,
    FormTemplate,
    ResolvedFieldValue,
)

logger = logging.getLogger(__name__)

Params = Union[str, Mapping[str, Any], None]
M = TypeVar("M", bound=BaseModel)


class ApiError(Exception):
    """Raised when the forms API rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None,
                 method: str = "", path: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.method = method
        self.path = path

    def __str__(self) -> str:
        return self.message


def _unwrap(payload: Any) -> Any:
    if isinstance(payload, dict) and payload.get("data") is not None:
        return payload["data"]
    return payload


class FormsApiClient:
    """Typed wrapper around the forms API endpoints used by the viewer."""

    def __init__(self, config: ClientConfig | None = None,
                 session_manager: SessionManager | None = None) -> None:
        self.config = config or ClientConfig()
        self._sessions = session_manager or SessionManager(
            retry_strategy=RetryStrategy(
                max_retries=self.config.max_retries,
                backoff_factor=self.config.backoff_factor,
            )
        )

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def close(self) -> None:
        self._sessions.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # ── transport ─────────────────────────────────────────────────────────────

    def _request(self, method: str, path: str, *, params: Params = None,
                 json_body: Any = None) -> Any:
        url = build_url(self.base_url, path, params)
        try:
            resp = self._sessions.session.request(
                method, url, json=json_body, timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            logger.error("forms_api_unreachable method=%s url=%s error=%s",
                         method, url, exc)
            raise ApiError(f"Forms API unreachable: {exc}",
                           method=method, path=path) from exc

        logger.debug("forms_api method=%s url=%s status=%d",
                     method, url, resp.status_code)

        if not resp.ok:
            try:
                body = resp.json()
            except ValueError:
                body = {}
            message = body.get("message") if isinstance(body, dict) else None
            raise ApiError(message or f"Request failed: {resp.status_code}",
                           status_code=resp.status_code, method=method, path=path)

        if resp.status_code == 204:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise ApiError(f"Invalid JSON from {method} {path}",
                           status_code=resp.status_code,
                           method=method, path=path) from exc

    def _parse(self, model: type[M], payload: Any, method: str, path: str) -> M:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise ApiError(f"Unexpected {model.__name__} from {method} {path}: "
                           f"{exc.error_count()} invalid member(s)",
                           method=method, path=path) from exc

    def _one(self, model: type[M], method: str, path: str, **kwargs) -> M:
        payload = _unwrap(self._request(method, path, **kwargs))
        return self._parse(model, payload, method, path)

    def _many(self, model: type[M], path: str, params: Params = None) -> list[M]:
        rows = _unwrap(self._request("GET", path, params=params)) or []
        if not isinstance(rows, list):
            raise ApiError(f"Expected a list from GET {path}", method="GET", path=path)
        return [self._parse(model, r, "GET", path) for r in rows]

    # ── templates ─────────────────────────────────────────────────────────────

    def get_forms(self, params: Params = None) -> list[FormTemplate]:
        return self._many(FormTemplate, "/forms", params)

    def get_form(self, template_id: str) -> FormTemplate:
        return self._one(FormTemplate, "GET", f"/forms/{template_id}")

    def create_form(self, data: Mapping[str, Any]) -> FormTemplate:
        return self._one(FormTemplate, "POST", "/forms", json_body=dict(data))

    # ── annotations ───────────────────────────────────────────────────────────

    def get_annotations(self, template_id: str,
                        params: Params = None) -> list[FieldAnnotation]:
        return self._many(FieldAnnotation, f"/forms/{template_id}/annotations", params)

    def create_annotation(self, template_id: str,
                          data: Mapping[str, Any]) -> FieldAnnotation:
        return self._one(FieldAnnotation, "POST", f"/forms/{template_id}/annotations",
                         json_body=dict(data))

    def update_annotation(self, annotation_id: str,
                          changes: Mapping[str, Any]) -> FieldAnnotation:
        return self._one(FieldAnnotation, "PATCH", f"/annotations/{annotation_id}",
                         json_body=dict(changes))

    def delete_annotation(self, annotation_id: str) -> None:
        self._request("DELETE", f"/annotations/{annotation_id}")

    # ── submissions ───────────────────────────────────────────────────────────

    def get_submissions(self, params: Params = None) -> list[FormSubmission]:
        return self._many(FormSubmission, "/submissions", params)

    def get_submission(self, submission_id: str) -> FormSubmission:
        return self._one(FormSubmission, "GET", f"/submissions/{submission_id}")

    def create_submission(self, data: Mapping[str, Any]) -> FormSubmission:
        return self._one(FormSubmission, "POST", "/submissions", json_body=dict(data))

    def update_submission(self, submission_id: str,
                          changes: Mapping[str, Any]) -> FormSubmission:
        return self._one(FormSubmission, "PATCH", f"/submissions/{submission_id}",
                         json_body=dict(changes))

    def resolve_fields(self, submission_id: str) -> list[ResolvedFieldValue]:
        return self._many(ResolvedFieldValue, f"/submissions/{submission_id}/resolve")
