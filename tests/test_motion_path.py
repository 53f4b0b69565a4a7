"""Tests for bezier motion paths."""

import pytest

from framecompose.motion_path import (
    MOTION_PATH_PRESETS,
    get_motion_path_preset,
    path_length,
    path_to_keyframes,
    position_on_path,
    resolve_motion_path,
)


STRAIGHT = {"points": [{"x": 0, "y": 0}, {"x": 1, "y": 1}], "autoRotate": True}


class TestPresets:
    def test_all_presets_present(self):
        assert set(MOTION_PATH_PRESETS) == {
            "arc-left-to-right", "arc-right-to-left", "wave",
            "figure-8", "bounce-path", "spiral-in",
        }

    def test_preset_is_a_deep_copy(self):
        path = get_motion_path_preset("wave")
        path["points"][0]["x"] = 99
        assert MOTION_PATH_PRESETS["wave"]["points"][0]["x"] == 0

    def test_unknown_preset_raises(self):
        with pytest.raises(KeyError):
            get_motion_path_preset("zigzag")


class TestResolveMotionPath:
    def test_preset_reference(self):
        path = resolve_motion_path({"preset": "figure-8"})
        assert path["autoRotate"] is True
        assert len(path["points"]) == 6

    def test_preset_auto_rotate_override(self):
        path = resolve_motion_path({"preset": "figure-8", "autoRotate": False})
        assert path["autoRotate"] is False

    def test_inline_points(self):
        path = resolve_motion_path({"points": STRAIGHT["points"]})
        assert path == {"points": STRAIGHT["points"], "autoRotate": False}

    def test_unknown_preset_and_empty(self):
        assert resolve_motion_path({"preset": "zigzag"}) is None
        assert resolve_motion_path(None) is None


class TestPositionOnPath:
    def test_endpoints(self):
        wave = get_motion_path_preset("wave")
        start = position_on_path(wave, 0)
        end = position_on_path(wave, 1)
        assert (start["x"], start["y"]) == pytest.approx((0, 0.5))
        assert (end["x"], end["y"]) == pytest.approx((1, 0.5))

    def test_segments_share_progress_evenly(self):
        wave = get_motion_path_preset("wave")
        mid = position_on_path(wave, 0.5)
        assert (mid["x"], mid["y"]) == pytest.approx((0.5, 0.5))

    def test_missing_controls_give_straight_line(self):
        pos = position_on_path(STRAIGHT, 0.5)
        assert pos["x"] == pytest.approx(0.5)
        assert pos["y"] == pytest.approx(0.5)

    def test_auto_rotate_heading(self):
        assert position_on_path(STRAIGHT, 0.3)["rotation"] == pytest.approx(45)

    def test_no_rotation_without_auto_rotate(self):
        wave = get_motion_path_preset("wave")
        assert position_on_path(wave, 0.3)["rotation"] == 0.0

    def test_progress_is_clamped(self):
        assert position_on_path(STRAIGHT, 2)["x"] == pytest.approx(1)
        assert position_on_path(STRAIGHT, -1)["x"] == pytest.approx(0)

    def test_degenerate_paths(self):
        assert position_on_path({"points": []}, 0.5) == {"x": 0.5, "y": 0.5, "rotation": 0.0}
        single = {"points": [{"x": 0.2, "y": 0.7}]}
        assert position_on_path(single, 0.5) == {"x": 0.2, "y": 0.7, "rotation": 0.0}


class TestPathLength:
    def test_straight_segment(self):
        points = [{"x": 0, "y": 0}, {"x": 3, "y": 4}]
        assert path_length(points) == pytest.approx(5)

    def test_curve_is_longer_than_chord(self):
        points = get_motion_path_preset("arc-left-to-right")["points"]
        assert path_length(points) > 1.0

    def test_too_few_points(self):
        assert path_length([{"x": 0, "y": 0}]) == 0.0


class TestPathToKeyframes:
    def test_one_keyframe_per_point(self):
        keyframes = path_to_keyframes(get_motion_path_preset("wave"), 30)
        assert [kf["frame"] for kf in keyframes] == [0, 8, 15, 23, 30]
        assert keyframes[0]["easing"] is None
        assert all(kf["easing"] == "ease-out" for kf in keyframes[1:])

    def test_positions_match_path(self):
        keyframes = path_to_keyframes(get_motion_path_preset("wave"), 30)
        assert keyframes[2]["values"]["positionX"] == pytest.approx(0.5)
        assert keyframes[-1]["values"] == pytest.approx({"positionX": 1, "positionY": 0.5})

    def test_rotation_only_with_auto_rotate(self):
        figure8 = get_motion_path_preset("figure-8")
        assert "rotation" in path_to_keyframes(figure8, 60)[0]["values"]
        assert "rotation" not in path_to_keyframes(figure8, 60, include_rotation=False)[0]["values"]

        wave = get_motion_path_preset("wave")
        assert "rotation" not in path_to_keyframes(wave, 60, include_rotation=True)[0]["values"]

    def test_custom_easing(self):
        keyframes = path_to_keyframes(STRAIGHT, 10, easing="linear")
        assert keyframes[1]["easing"] == "linear"

    def test_too_few_points(self):
        assert path_to_keyframes({"points": [{"x": 0, "y": 0}]}, 30) == []
