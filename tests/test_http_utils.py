"""
Tests for HTTP utilities: utils/http.py

Tests RetryStrategy, SessionManager and build_url without requiring actual
network calls.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.http import JSON_HEADERS, RetryStrategy, SessionManager, build_url


# ── RetryStrategy tests ──────────────────────────────────────────────────────

class TestRetryStrategy:
    def test_defaults(self):
        rs = RetryStrategy()
        assert rs.max_retries == 3
        assert rs.backoff_factor == 0.5
        assert 429 in rs.status_forcelist
        assert 503 in rs.status_forcelist

    def test_custom_params(self):
        rs = RetryStrategy(max_retries=5, backoff_factor=1.0,
                           status_forcelist=[500, 502])
        assert rs.max_retries == 5
        assert rs.backoff_factor == 1.0
        assert rs.status_forcelist == [500, 502]

    def test_get_retry_object(self):
        rs = RetryStrategy(max_retries=4, backoff_factor=3.0)
        retry = rs.get_retry_object()
        assert retry.total == 4
        assert retry.backoff_factor == 3.0

    def test_only_reads_are_retried(self):
        allowed = RetryStrategy().get_retry_object().allowed_methods
        assert "GET" in allowed
        assert "HEAD" in allowed
        for method in ("POST", "PATCH", "DELETE", "PUT"):
            assert method not in allowed

    def test_final_response_is_returned_not_raised(self):
        retry = RetryStrategy().get_retry_object()
        assert retry.raise_on_status is False


# ── SessionManager tests ─────────────────────────────────────────────────────

class TestSessionManager:
    def test_creates_session(self):
        sm = SessionManager()
        session = sm.session
        assert session is not None
        sm.close()

    def test_session_cached(self):
        """Accessing .session twice returns the same object."""
        sm = SessionManager()
        s1 = sm.session
        s2 = sm.session
        assert s1 is s2
        sm.close()

    def test_json_headers_by_default(self):
        sm = SessionManager()
        assert sm.session.headers["Content-Type"] == "application/json"
        assert sm.session.headers["Accept"] == JSON_HEADERS["Accept"]
        sm.close()

    def test_custom_headers(self):
        sm = SessionManager(headers={"X-Trace": "1"})
        assert sm.session.headers["X-Trace"] == "1"
        sm.close()

    def test_adapters_mounted(self):
        sm = SessionManager(retry_strategy=RetryStrategy(max_retries=7))
        adapter = sm.session.get_adapter("http://example.invalid/")
        assert adapter.max_retries.total == 7
        sm.close()

    def test_close_resets_session(self):
        sm = SessionManager()
        _ = sm.session
        sm.close()
        assert sm._session is None

    def test_close_idempotent(self):
        sm = SessionManager()
        sm.close()  # no session yet
        sm.close()  # still fine

    def test_context_manager(self):
        with SessionManager() as sm:
            _ = sm.session
        assert sm._session is None


# ── build_url tests ──────────────────────────────────────────────────────────

class TestBuildUrl:
    def test_joins_slashes(self):
        assert build_url("http://h/api/v1/", "/forms") == "http://h/api/v1/forms"
        assert build_url("http://h/api/v1", "forms") == "http://h/api/v1/forms"

    def test_string_params(self):
        assert build_url("http://h/api", "/forms", "x=1") == "http://h/api/forms?x=1"
        assert build_url("http://h/api", "/forms", "?x=1") == "http://h/api/forms?x=1"

    def test_mapping_params(self):
        url = build_url("http://h", "/submissions", {"form_template_id": "t 1"})
        assert url == "http://h/submissions?form_template_id=t+1"

    def test_none_values_dropped(self):
        assert build_url("http://h", "/forms", {"a": None}) == "http://h/forms"
        assert build_url("http://h", "/forms", {"a": None, "b": 2}) == "http://h/forms?b=2"

    def test_empty_params(self):
        assert build_url("http://h", "/forms", "") == "http://h/forms"
        assert build_url("http://h", "/forms", {}) == "http://h/forms"
