"""Tests for scene transitions."""

import math

import pytest

from framecompose.transitions import (
    curtain_transition,
    fade_transition,
    flip_transition,
    item_transition,
    item_transition_duration,
    scene_transition,
    slide_transition,
    transition_progress,
    wheel_transition,
)


W, H = 1280, 720


class TestTransitionProgress:
    def test_delay_holds_at_zero(self):
        assert transition_progress(3, delay=5, duration=20) == 0.0
        assert transition_progress(5, delay=5, duration=20) == 0.0

    def test_reaches_one_after_delay_plus_duration(self):
        assert transition_progress(25, delay=5, duration=20) == 1.0


class TestFade:
    def test_in(self):
        assert fade_transition(0)["opacity"] == 0
        assert fade_transition(7.5, duration=15)["opacity"] == pytest.approx(0.5)
        assert fade_transition(15, duration=15)["opacity"] == 1

    def test_out(self):
        assert fade_transition(0, kind="out")["opacity"] == 1
        assert fade_transition(15, kind="out", duration=15)["opacity"] == 0

    def test_delay(self):
        assert fade_transition(5, delay=5, duration=10)["opacity"] == 0


class TestSlide:
    def test_in_from_left(self):
        assert slide_transition(0, direction="left") == {"axis": "X", "offsetPercent": -100}
        assert slide_transition(15, direction="left", duration=15)["offsetPercent"] == 0

    def test_directions(self):
        assert slide_transition(0, direction="right")["offsetPercent"] == 100
        assert slide_transition(0, direction="top") == {"axis": "Y", "offsetPercent": -100}
        assert slide_transition(0, direction="bottom")["offsetPercent"] == 100

    def test_out(self):
        assert slide_transition(0, kind="out", direction="left")["offsetPercent"] == 0
        assert slide_transition(15, kind="out", direction="left", duration=15)["offsetPercent"] == -100

    def test_linear_timing(self):
        assert slide_transition(5, direction="left", duration=10, timing="linear") == {
            "axis": "X", "offsetPercent": -50,
        }


class TestCurtain:
    def test_panels_start_closed(self):
        state = curtain_transition(0, W)
        assert state["leftPanelX"] == 0
        assert state["rightPanelX"] == 0
        assert state["color"] == "#4290f5"

    def test_fully_retracted_at_duration(self):
        state = curtain_transition(20, W, duration=20)
        assert state["leftPanelX"] == -W / 2
        assert state["rightPanelX"] == W / 2

    def test_retraction_is_monotone(self):
        lefts = [curtain_transition(f, W, duration=20)["leftPanelX"] for f in range(21)]
        assert lefts == sorted(lefts, reverse=True)

    def test_out_closes(self):
        assert curtain_transition(20, W, kind="out", duration=20)["leftPanelX"] == 0

    def test_custom_color(self):
        assert curtain_transition(0, W, color="#000000")["color"] == "#000000"


class TestWheel:
    def test_in_starts_rotated(self):
        state = wheel_transition(0, W, H)
        assert state["rotation"] == pytest.approx(-36)
        assert state["offsetX"] == pytest.approx(math.sin(1.2 * math.pi) * 2 * W)
        assert state["offsetY"] == pytest.approx(math.cos(1.2 * math.pi) * 2 * W + 2 * W)

    def test_in_settles_at_rest(self):
        state = wheel_transition(25, W, H, duration=25)
        assert state["offsetX"] == pytest.approx(0, abs=1e-6)
        assert state["offsetY"] == pytest.approx(0, abs=1e-6)
        assert state["rotation"] == pytest.approx(0, abs=1e-9)

    def test_out_swings_the_other_way(self):
        assert wheel_transition(0, W, H, kind="out")["rotation"] == pytest.approx(0, abs=1e-9)
        assert wheel_transition(25, W, H, kind="out", duration=25)["rotation"] == pytest.approx(36)

    def test_pivot_below_frame(self):
        state = wheel_transition(0, W, H)
        assert state["pivotX"] == W / 2
        assert state["pivotY"] == H / 2 + 2 * W


class TestFlip:
    def test_start_shows_front(self):
        state = flip_transition(0)
        assert state["axis"] == "Y"
        assert state["front"] == {"rotation": 0, "opacity": 1.0}
        assert state["back"]["rotation"] == pytest.approx(math.pi)
        assert state["back"]["opacity"] == 0.0

    def test_end_shows_back(self):
        state = flip_transition(20, duration=20)
        assert state["back"] == {"rotation": 0, "opacity": 1.0}
        assert state["front"]["opacity"] == 0.0

    def test_exactly_one_face_visible(self):
        for f in range(21):
            state = flip_transition(f, duration=20)
            assert state["front"]["opacity"] + state["back"]["opacity"] == 1.0

    def test_vertical_axis(self):
        assert flip_transition(0, direction="vertical")["axis"] == "X"


class TestSceneTransition:
    def test_dispatches_by_type(self):
        state = scene_transition({"type": "curtain", "durationInFrames": 20}, 20, W, H)
        assert state["type"] == "curtain"
        assert state["leftPanelX"] == -W / 2
        assert state["progress"] == 1.0

    def test_linear_progress(self):
        state = scene_transition({"type": "curtain", "durationInFrames": 20}, 10, W, H)
        assert state["progress"] == pytest.approx(0.5)

    def test_unknown_type_is_fade(self):
        state = scene_transition({"type": "dissolve"}, 0, W, H)
        assert state["type"] == "fade"
        assert state["opacity"] == 0

    def test_default_duration(self):
        state = scene_transition({"type": "wheel"}, 25, W, H)
        assert state["rotation"] == pytest.approx(0, abs=1e-9)

    def test_slide_direction_and_delay(self):
        state = scene_transition(
            {"type": "slide", "direction": "bottom", "delay": 10}, 5, W, H,
        )
        assert state == {"axis": "Y", "offsetPercent": 100, "type": "slide", "progress": 0.0}


class TestItemTransition:
    def test_fade_in_is_linear(self):
        values = item_transition({"type": "fade", "durationInFrames": 10}, 5)
        assert values["opacity"] == pytest.approx(0.5)
        assert (values["type"], values["kind"]) == ("fade", "in")
        assert values["progress"] == pytest.approx(0.5)

    def test_fade_keeps_outgoing_opaque(self):
        assert item_transition({"type": "fade", "durationInFrames": 10}, 5, "out")["opacity"] == 1.0

    def test_slide_in_from_direction(self):
        config = {"type": "slide", "direction": "top", "durationInFrames": 10}
        assert item_transition(config, 0)["axis"] == "Y"
        assert item_transition(config, 0)["offsetPercent"] == -100
        assert item_transition(config, 5)["offsetPercent"] == pytest.approx(-50)

    def test_slide_pushes_outgoing_through_opposite_edge(self):
        config = {"type": "slide", "direction": "left", "durationInFrames": 10}
        values = item_transition(config, 5, "out")
        assert values["offsetPercent"] == pytest.approx(50)
        assert values["opacity"] == 1.0

    def test_slide_defaults_to_left(self):
        values = item_transition({"type": "slide", "durationInFrames": 10}, 0)
        assert (values["axis"], values["offsetPercent"]) == ("X", -100)

    def test_duration_falls_back_to_default(self):
        assert item_transition_duration({"type": "slide"}) == 15
        assert item_transition_duration({"type": "fade", "durationInFrames": 8}) == 8
