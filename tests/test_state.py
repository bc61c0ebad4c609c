"""Tests for viewer/state.py: URL-carried viewer state and its transitions."""
import pytest

from viewer.state import ViewerState, clamp_scale


class TestClampScale:
    @pytest.mark.parametrize("raw, expected", [
        (1.0, 1.0), (0.1, 0.5), (3.0, 2.0), (1.25, 1.2), (0.55, 0.6), (1.9999, 2.0),
    ])
    def test_clamp_and_round(self, raw, expected):
        assert clamp_scale(raw) == pytest.approx(expected)


class TestFromQuery:
    def test_defaults(self):
        state = ViewerState.from_query({})
        assert state == ViewerState()
        assert state.mode == "view"
        assert state.scale == 1.0
        assert state.show_outlines is True
        assert state.adding is False

    def test_full(self):
        state = ViewerState.from_query({
            "template": "t1", "submission": "s1", "field": "line_1",
            "mode": "edit", "scale": "1.5", "outlines": "0", "adding": "1",
            "confirm_delete": "a9",
        })
        assert state.template_id == "t1"
        assert state.submission_id == "s1"
        assert state.field_key == "line_1"
        assert state.is_editing
        assert state.scale == 1.5
        assert state.show_outlines is False
        assert state.adding is True
        assert state.confirm_delete_id == "a9"

    def test_bad_values_fall_back(self):
        state = ViewerState.from_query({"mode": "admin", "scale": "huge"})
        assert state.mode == "view"
        assert state.scale == 1.0

    def test_scale_clamped(self):
        assert ViewerState.from_query({"scale": "9"}).scale == 2.0
        assert ViewerState.from_query({"scale": "0.01"}).scale == 0.5

    def test_adding_ignored_in_view_mode(self):
        assert ViewerState.from_query({"adding": "1"}).adding is False

    def test_empty_strings_are_none(self):
        state = ViewerState.from_query({"template": "", "field": ""})
        assert state.template_id is None
        assert state.field_key is None


class TestSerialisation:
    def test_defaults_omitted(self):
        assert ViewerState().to_params() == {}
        assert ViewerState().url() == "/"

    def test_roundtrip(self):
        state = ViewerState(template_id="t1", submission_id="s1", field_key="f",
                            mode="edit", scale=1.3, show_outlines=False,
                            adding=True, confirm_delete_id="a1")
        assert ViewerState.from_query(state.to_params()) == state

    def test_url(self):
        state = ViewerState(template_id="t1", scale=0.8)
        assert state.url() == "/?template=t1&scale=0.8"
        assert state.url("/partials/inspector") == "/partials/inspector?template=t1&scale=0.8"

    def test_query_string_encodes(self):
        assert ViewerState(field_key="a b&c").query_string() == "field=a+b%26c"


class TestTransitions:
    def test_template_clears_submission_and_field(self):
        state = ViewerState(template_id="t1", submission_id="s1", field_key="f",
                            confirm_delete_id="a1")
        new = state.with_template("t2")
        assert new.template_id == "t2"
        assert new.submission_id is None
        assert new.field_key is None
        assert new.confirm_delete_id is None

    def test_submission_clears_field(self):
        new = ViewerState(template_id="t1", submission_id="s1",
                          field_key="f").with_submission("s2")
        assert new.submission_id == "s2"
        assert new.field_key is None
        assert new.template_id == "t1"

    def test_view_mode_cancels_adding(self):
        state = ViewerState(mode="edit", adding=True)
        assert state.with_mode("view").adding is False
        assert state.with_mode("edit").adding is True

    def test_adding_switches_to_edit(self):
        state = ViewerState().with_adding(True)
        assert state.mode == "edit"
        assert state.adding is True

    def test_states_are_immutable(self):
        state = ViewerState(template_id="t1")
        state.with_field("f")
        assert state.field_key is None


class TestZoom:
    def test_steps(self):
        state = ViewerState()
        assert state.zoom_in().scale == 1.1
        assert state.zoom_out().scale == 0.9
        assert state.zoom_in().zoom_in().zoom_in().scale == 1.3

    def test_limits(self):
        top = ViewerState(scale=2.0)
        bottom = ViewerState(scale=0.5)
        assert top.zoom_in().scale == 2.0
        assert not top.can_zoom_in
        assert bottom.zoom_out().scale == 0.5
        assert not bottom.can_zoom_out

    def test_label(self):
        assert ViewerState().zoom_label == "100%"
        assert ViewerState(scale=1.2).zoom_label == "120%"
        assert ViewerState(scale=0.7).zoom_label == "70%"
