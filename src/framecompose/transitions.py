"""Scene transitions.

Each transition is a pure function of the scene-relative frame that returns
the numeric parameters a renderer needs (offsets, rotations, opacities).
Frames before `delay` evaluate as frame 0. Every transition except fade is
driven by a spring stretched to the transition's duration.
"""

import math

from .common import clamp, interpolate, is_finite_number
from .easing import DEFAULT_SPRING_PRESET, get_spring_config, spring_progress


VALID_TRANSITIONS = {"fade", "slide", "curtain", "wheel", "flip"}
VALID_SLIDE_DIRECTIONS = {"left", "right", "top", "bottom"}
VALID_FLIP_DIRECTIONS = {"horizontal", "vertical"}

DEFAULT_DURATIONS = {
    "fade": 15,
    "slide": 15,
    "curtain": 20,
    "wheel": 25,
    "flip": 20,
}

DEFAULT_CURTAIN_COLOR = "#4290f5"

# Wheel pivot sits this many frame-widths below the frame centre.
WHEEL_RADIUS_FACTOR = 2.0
WHEEL_SWING = math.pi * 0.2


def _delayed(frame: float, delay: float) -> float:
    if not is_finite_number(frame):
        return 0.0
    return max(0.0, frame - (delay or 0))


def transition_progress(
    frame: float,
    delay: float = 0,
    duration: float = 20,
    fps: float = 30,
    spring_preset: str | None = DEFAULT_SPRING_PRESET,
) -> float:
    """Spring progress 0 → 1 for a transition that starts after `delay` frames."""
    return spring_progress(
        _delayed(frame, delay), fps, get_spring_config(spring_preset), duration=duration,
    )


# ── Transitions ───────────────────────────────────────────────────

def fade_transition(frame, kind="in", delay=0, duration=DEFAULT_DURATIONS["fade"]) -> dict:
    """Linear opacity ramp; "in" goes 0 → 1, "out" goes 1 → 0."""
    local = _delayed(frame, delay)
    if not is_finite_number(duration) or duration <= 0:
        progress = 1.0
    else:
        progress = clamp(local / duration, 0.0, 1.0)
    return {"opacity": progress if kind == "in" else 1 - progress}


def slide_transition(
    frame, kind="in", direction="left", delay=0,
    duration=DEFAULT_DURATIONS["slide"], fps=30, spring_preset=DEFAULT_SPRING_PRESET,
    timing="spring",
) -> dict:
    """Slide the scene in from (or out towards) one edge.

    offsetPercent is a translate along `axis` in percent of the frame size.
    timing="linear" moves at constant speed instead of following the spring.
    """
    if timing == "linear":
        progress = _overall_progress(frame, delay, duration)
    else:
        progress = transition_progress(frame, delay, duration, fps, spring_preset)
    final = progress if kind == "in" else 1 - progress
    axis = "X" if direction in ("left", "right") else "Y"
    sign = 1 if direction in ("right", "bottom") else -1
    return {
        "axis": axis,
        "offsetPercent": interpolate(final, (0, 1), (sign * 100, 0)),
    }


def curtain_transition(
    frame, width, kind="in", delay=0, duration=DEFAULT_DURATIONS["curtain"],
    fps=30, spring_preset=DEFAULT_SPRING_PRESET, color=DEFAULT_CURTAIN_COLOR,
) -> dict:
    """Two half-width panels part from the centre ("in") or close over it ("out")."""
    progress = transition_progress(frame, delay, duration, fps, spring_preset)
    final = progress if kind == "in" else 1 - progress
    return {
        "leftPanelX": final * (-width / 2),
        "rightPanelX": final * (width / 2),
        "color": color,
    }


def wheel_transition(
    frame, width, height, kind="in", delay=0, duration=DEFAULT_DURATIONS["wheel"],
    fps=30, spring_preset=DEFAULT_SPRING_PRESET,
) -> dict:
    """Swing the whole scene about a pivot far below the frame.

    offsetX/offsetY are measured from the rest pose, so a settled "in"
    transition reports (0, 0) and rotation 0. rotation is in degrees.
    """
    progress = transition_progress(frame, delay, duration, fps, spring_preset)
    radius = width * WHEEL_RADIUS_FACTOR
    center_angle = math.pi
    end_angle = center_angle + WHEEL_SWING * (1 if kind == "in" else -1)
    if kind == "in":
        angle = end_angle + (center_angle - end_angle) * progress
    else:
        angle = center_angle + (end_angle - center_angle) * progress

    return {
        "offsetX": math.sin(angle) * radius,
        "offsetY": math.cos(angle) * radius + radius,
        "rotation": -math.degrees(angle - center_angle),
        "pivotX": width / 2,
        "pivotY": height / 2 + radius,
    }


def flip_transition(
    frame, delay=0, duration=DEFAULT_DURATIONS["flip"], fps=30,
    spring_preset=DEFAULT_SPRING_PRESET, direction="horizontal",
) -> dict:
    """Card flip from the outgoing (front) to the incoming (back) scene.

    Rotations are in radians about `axis`; exactly one face is visible.
    """
    progress = transition_progress(frame, delay, duration, fps, spring_preset)
    return {
        "axis": "Y" if direction == "horizontal" else "X",
        "front": {
            "rotation": interpolate(progress, (0, 1), (0, -math.pi)),
            "opacity": 1.0 if progress < 0.5 else 0.0,
        },
        "back": {
            "rotation": interpolate(progress, (0, 1), (math.pi, 0)),
            "opacity": 1.0 if progress >= 0.5 else 0.0,
        },
    }


# ── Item transitions ──────────────────────────────────────────────

VALID_ITEM_TRANSITIONS = {"fade", "slide"}

OPPOSITE_DIRECTIONS = {"left": "right", "right": "left", "top": "bottom", "bottom": "top"}


def item_transition_duration(config: dict) -> float:
    """Length in frames of an item's transitionIn."""
    ttype = config.get("type") if config.get("type") in VALID_ITEM_TRANSITIONS else "fade"
    duration = config.get("durationInFrames")
    if not is_finite_number(duration) or duration <= 0:
        return DEFAULT_DURATIONS[ttype]
    return duration


def item_transition(config: dict, frame: float, kind: str = "in") -> dict:
    """Linear fade or slide joining two consecutive items on a track.

    `frame` counts from the entering item's start. The entering item ("in")
    fades in, or slides in from `direction`. The outgoing item ("out") stays
    opaque; on a slide it is pushed out through the opposite edge.
    """
    ttype = config.get("type") if config.get("type") in VALID_ITEM_TRANSITIONS else "fade"
    duration = item_transition_duration(config)

    if ttype == "slide":
        direction = config.get("direction")
        if direction not in VALID_SLIDE_DIRECTIONS:
            direction = "left"
        if kind == "out":
            direction = OPPOSITE_DIRECTIONS[direction]
        values = slide_transition(frame, kind, direction, duration=duration, timing="linear")
        values["opacity"] = 1.0
    elif kind == "in":
        values = fade_transition(frame, "in", duration=duration)
    else:
        values = {"opacity": 1.0}

    values["type"] = ttype
    values["kind"] = kind
    values["progress"] = _overall_progress(frame, 0, duration)
    return values


# ── Dispatch ──────────────────────────────────────────────────────

def scene_transition(
    transition: dict,
    frame: float,
    width: float,
    height: float,
    fps: float = 30,
    kind: str = "in",
) -> dict:
    """Evaluate a scene's transition config at a scene-relative frame.

    Unknown transition types behave as fade. The result carries the
    resolved "type" alongside the transition's values.
    """
    ttype = transition.get("type", "fade")
    if ttype not in VALID_TRANSITIONS:
        ttype = "fade"
    duration = transition.get("durationInFrames") or DEFAULT_DURATIONS[ttype]
    delay = transition.get("delay", 0)
    preset = transition.get("springPreset") or DEFAULT_SPRING_PRESET

    if ttype == "slide":
        values = slide_transition(
            frame, kind, transition.get("direction") or "left", delay, duration, fps, preset,
        )
    elif ttype == "curtain":
        values = curtain_transition(
            frame, width, kind, delay, duration, fps, preset,
            transition.get("color") or DEFAULT_CURTAIN_COLOR,
        )
    elif ttype == "wheel":
        values = wheel_transition(frame, width, height, kind, delay, duration, fps, preset)
    elif ttype == "flip":
        values = flip_transition(
            frame, delay, duration, fps, preset, transition.get("direction") or "horizontal",
        )
    else:
        values = fade_transition(frame, kind, delay, duration)

    values["type"] = ttype
    values["progress"] = _overall_progress(frame, delay, duration)
    return values


def _overall_progress(frame, delay, duration) -> float:
    """Linear 0 → 1 over the transition window, for renderers that need it."""
    if not is_finite_number(duration) or duration <= 0:
        return 1.0
    return clamp(_delayed(frame, delay) / duration, 0.0, 1.0)
