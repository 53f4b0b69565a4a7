"""Tests for cursor motion and click effects."""

import pytest

from framecompose.cursor import (
    cursor_position,
    cursor_state,
    cursor_waypoints,
    highlight_effect,
    press_scale,
    ripple_effect,
)


def _cursor(*keyframes, **extra):
    return {"id": "c", "type": "cursor", "keyframes": list(keyframes), **extra}


class TestWaypoints:
    def test_sorted_by_frame(self):
        item = _cursor({"frame": 20, "x": 1, "y": 1}, {"frame": 0, "x": 0, "y": 0})
        assert [w["frame"] for w in cursor_waypoints(item, 100, 100)] == [0, 20]

    def test_resolved_target_wins(self):
        item = _cursor({"frame": 10, "x": 1, "y": 2, "target": "#a"})
        resolved = {"c:10": {"x": 7, "y": 8, "found": True}}
        waypoint = cursor_waypoints(item, 100, 100, resolved)[0]
        assert (waypoint["x"], waypoint["y"]) == (7, 8)

    def test_manual_coordinates(self):
        item = _cursor({"frame": 0, "x": 12, "y": 34})
        waypoint = cursor_waypoints(item, 100, 100)[0]
        assert (waypoint["x"], waypoint["y"]) == (12, 34)

    def test_centre_fallback(self):
        item = _cursor({"frame": 0, "target": "#missing"})
        waypoint = cursor_waypoints(item, 640, 360)[0]
        assert (waypoint["x"], waypoint["y"]) == (320, 180)

    def test_missing_frame_uses_spacing(self):
        item = _cursor({"frame": 0, "x": 0, "y": 0}, {"x": 10, "y": 10})
        assert cursor_waypoints(item, 100, 100)[1]["frame"] == 30


class TestCursorPosition:
    def test_linear_between_keyframes(self):
        item = _cursor({"frame": 0, "x": 0, "y": 0}, {"frame": 10, "x": 100, "y": 50})
        assert cursor_position(item, 5, 640, 360) == pytest.approx({"x": 50, "y": 25})

    def test_holds_outside_keyframes(self):
        item = _cursor({"frame": 10, "x": 0, "y": 0}, {"frame": 20, "x": 100, "y": 50})
        assert cursor_position(item, 0, 640, 360) == {"x": 0, "y": 0}
        assert cursor_position(item, 99, 640, 360) == {"x": 100, "y": 50}

    def test_single_keyframe(self):
        item = _cursor({"frame": 10, "x": 3, "y": 4})
        assert cursor_position(item, 0, 640, 360) == {"x": 3, "y": 4}

    def test_no_keyframes(self):
        assert cursor_position(_cursor(), 0, 640, 360) is None
        assert cursor_state(_cursor(), 0, 640, 360) is None


class TestClickEffects:
    def test_ripple_shape(self):
        effect = ripple_effect(0)
        assert effect["rings"][0] == {"radius": 0, "opacity": 0.8}
        assert effect["rings"][1]["opacity"] == 0.0
        assert effect["dotOpacity"] == 1
        assert ripple_effect(18) is None
        assert ripple_effect(-1) is None

    def test_highlight_shape(self):
        effect = highlight_effect(6)
        assert effect["scale"] == pytest.approx(1.15)
        assert effect["opacity"] == pytest.approx(0.45)
        assert effect["coreOpacity"] == 0
        assert highlight_effect(13) is None

    def test_click_window(self):
        item = _cursor({"frame": 0, "x": 0, "y": 0}, {"frame": 10, "x": 5, "y": 5, "click": True})
        assert cursor_state(item, 9, 100, 100)["clicks"] == []
        assert cursor_state(item, 10, 100, 100)["clicks"][0]["type"] == "ripple"
        assert len(cursor_state(item, 14, 100, 100)["clicks"]) == 1
        assert cursor_state(item, 15, 100, 100)["clicks"] == []

    def test_highlight_effect_selected(self):
        item = _cursor({"frame": 0, "x": 0, "y": 0, "click": True}, clickEffect="highlight")
        assert cursor_state(item, 2, 100, 100)["clicks"][0]["type"] == "highlight"

    def test_effect_none(self):
        item = _cursor({"frame": 0, "x": 0, "y": 0, "click": True}, clickEffect="none")
        assert cursor_state(item, 2, 100, 100)["clicks"] == []


class TestPressScale:
    def test_dips_during_click(self):
        waypoints = [{"frame": 10, "x": 0, "y": 0, "click": True}]
        assert press_scale(10, waypoints) == 1
        assert press_scale(11, waypoints) == pytest.approx(0.925)
        assert press_scale(12, waypoints) == pytest.approx(0.85)
        assert press_scale(14, waypoints) == 1.0

    def test_state_combines_item_scale(self):
        item = _cursor({"frame": 10, "x": 0, "y": 0, "click": True}, scale=2, cursorStyle="pointer")
        state = cursor_state(item, 12, 100, 100)
        assert state["scale"] == pytest.approx(1.7)
        assert state["style"] == "pointer"
        assert state["id"] == "c"
