"""Enter and exit animations for timeline items.

An item may declare
    enterAnimation: {type: spring-scale, durationInFrames: 15, staggerDelay: 8}
    exitAnimation:  {type: fade, durationInFrames: 10}

The enter animation plays from the item's first frame (after any stagger
delay), the exit animation over its last frames. Both are spring driven and
evaluated directly from the item-relative frame.

Results carry CSS strings (opacity/transform/filter) for web renderers and
the numeric scale/translate/blur for the preview renderer.
"""

import math

from .common import clamp, css_number, interpolate
from .easing import get_spring_config, spring_progress


VALID_ANIMATIONS = {
    "none", "fade", "slide", "scale", "spring-scale", "spring-slide",
    "spring-bounce", "flip", "zoom-blur",
}
VALID_DIRECTIONS = {"left", "right", "top", "bottom"}

DEFAULT_ENTER_DURATION = 15
DEFAULT_EXIT_DURATION = 10
DEFAULT_STAGGER_FRAMES = 8

# Spring used by spring-bounce when no preset is named.
BOUNCE_SPRING_CONFIG = {"mass": 1.0, "stiffness": 100.0, "damping": 100.0, "velocity": 0.0}

FLIP_PERSPECTIVE = "perspective(1000px)"


def stagger_delay(index: int, stagger_frames: int = DEFAULT_STAGGER_FRAMES) -> int:
    """Enter delay for the index-th item of a staggered group."""
    return index * stagger_frames


def _state(opacity=1.0, scale=1.0, axis=None, offset=0.0, rotate_y=None, blur=None) -> dict:
    """Build an animation state with both CSS strings and numeric parts."""
    transforms = []
    if axis is not None:
        transforms.append(f"translate{axis}({css_number(offset)}%)")
    if rotate_y is not None:
        transforms.append(f"{FLIP_PERSPECTIVE} rotateY({css_number(rotate_y)}rad)")
    if scale != 1.0 or (axis is None and rotate_y is None and blur is not None):
        transforms.append(f"scale({css_number(scale)})")
    return {
        "opacity": opacity,
        "transform": " ".join(transforms) or "none",
        "filter": f"blur({css_number(blur)}px)" if blur is not None else None,
        "scale": scale,
        "translate": {axis: offset} if axis is not None else {},
        "rotateY": rotate_y or 0.0,
        "blur": blur or 0.0,
    }


def _slide_axis(direction: str) -> tuple[str, int]:
    axis = "X" if direction in ("left", "right") else "Y"
    sign = 1 if direction in ("right", "bottom") else -1
    return axis, sign


def _hidden_state(config: dict) -> dict:
    """What an item looks like while its stagger delay has not passed."""
    kind = config.get("type")
    if kind in ("scale", "spring-scale", "spring-bounce"):
        return _state(opacity=0.0, scale=0.0)
    if kind in ("slide", "spring-slide"):
        axis, sign = _slide_axis(config.get("direction") or "left")
        return _state(opacity=0.0, axis=axis, offset=sign * 100)
    if kind == "flip":
        return _state(opacity=0.0, rotate_y=math.pi)
    if kind == "zoom-blur":
        return _state(opacity=0.0, scale=1.3, blur=10.0)
    return _state(opacity=0.0)


def enter_state(frame: float, fps: float, config: dict) -> dict:
    """Enter animation state at an item-relative frame."""
    duration = max(1, config.get("durationInFrames") or DEFAULT_ENTER_DURATION)
    delay = config.get("staggerDelay") or 0
    if frame < delay:
        return _hidden_state(config)

    local = max(0.0, frame - delay)
    spring = get_spring_config(config.get("springPreset"))
    progress = spring_progress(local, fps, spring, duration=duration)
    kind = config.get("type")

    if kind == "fade":
        return _state(opacity=progress)
    if kind == "slide":
        axis, sign = _slide_axis(config.get("direction") or "left")
        return _state(axis=axis, offset=interpolate(progress, (0, 1), (sign * 100, 0)))
    if kind == "scale":
        return _state(opacity=progress, scale=0.5 + 0.5 * progress)
    if kind == "spring-scale":
        return _state(opacity=interpolate(progress, (0, 0.3), (0, 1)), scale=progress)
    if kind == "spring-slide":
        axis, sign = _slide_axis(config.get("direction") or "left")
        return _state(
            opacity=interpolate(progress, (0, 0.5), (0, 1)),
            axis=axis,
            offset=sign * 120 * (1 - progress),
        )
    if kind == "spring-bounce":
        bounce = spring if config.get("springPreset") else BOUNCE_SPRING_CONFIG
        bounce_progress = spring_progress(local, fps, bounce, duration=duration)
        return _state(
            opacity=interpolate(bounce_progress, (0, 0.2), (0, 1)),
            scale=bounce_progress,
        )
    if kind == "flip":
        return _state(
            opacity=interpolate(progress, (0, 0.5), (0, 1)),
            rotate_y=math.pi * (1 - progress),
        )
    if kind == "zoom-blur":
        return _state(
            opacity=clamp(progress, 0.0, 1.0),
            scale=1.3 - 0.3 * progress,
            blur=max(0.0, 10 * (1 - progress)),
        )
    return _state()


def exit_state(frames_from_end: float, fps: float, config: dict) -> dict:
    """Exit animation state, `frames_from_end` frames before the item ends."""
    duration = max(1, config.get("durationInFrames") or DEFAULT_EXIT_DURATION)
    spring = get_spring_config(config.get("springPreset"))
    progress = spring_progress(duration - frames_from_end, fps, spring, duration=duration)
    kind = config.get("type")

    if kind == "fade":
        return _state(opacity=1 - progress)
    if kind == "slide":
        axis, sign = _slide_axis(config.get("direction") or "right")
        return _state(axis=axis, offset=sign * 100 * progress)
    if kind in ("scale", "spring-scale", "spring-bounce"):
        return _state(
            opacity=interpolate(progress, (0.7, 1), (1, 0)),
            scale=1 - progress,
        )
    if kind == "spring-slide":
        axis, sign = _slide_axis(config.get("direction") or "right")
        return _state(
            opacity=interpolate(progress, (0.5, 1), (1, 0)),
            axis=axis,
            offset=sign * 120 * progress,
        )
    if kind == "flip":
        return _state(
            opacity=interpolate(progress, (0.5, 1), (1, 0)),
            rotate_y=-math.pi * progress,
        )
    if kind == "zoom-blur":
        return _state(
            opacity=clamp(1 - progress, 0.0, 1.0),
            scale=1 - 0.3 * progress,
            blur=max(0.0, 10 * progress),
        )
    return _state()


def item_animation(
    frame: float,
    fps: float,
    enter: dict | None = None,
    exit: dict | None = None,
    duration: float | None = None,
) -> dict:
    """Combined enter and exit animation at an item-relative frame.

    Opacities multiply; transforms, filters and numeric parts combine.
    Once the enter animation (plus stagger) has run its course the enter
    side snaps to fully visible. The exit side needs the item's duration.
    """
    enter_result = _state()
    exit_result = _state()

    if enter and enter.get("type", "none") != "none":
        enter_total = (enter.get("durationInFrames") or DEFAULT_ENTER_DURATION) + (
            enter.get("staggerDelay") or 0
        )
        if frame < enter_total:
            enter_result = enter_state(frame, fps, enter)

    if exit and exit.get("type", "none") != "none" and duration is not None:
        exit_duration = exit.get("durationInFrames") or DEFAULT_EXIT_DURATION
        frames_from_end = duration - frame
        if frames_from_end <= exit_duration:
            exit_result = exit_state(frames_from_end, fps, exit)

    transforms = [
        t for t in (enter_result["transform"], exit_result["transform"]) if t and t != "none"
    ]
    filters = [f for f in (enter_result["filter"], exit_result["filter"]) if f]
    translate = dict(enter_result["translate"])
    for axis, offset in exit_result["translate"].items():
        translate[axis] = translate.get(axis, 0.0) + offset

    return {
        "opacity": enter_result["opacity"] * exit_result["opacity"],
        "transform": " ".join(transforms) or "none",
        "filter": " ".join(filters) or None,
        "scale": enter_result["scale"] * exit_result["scale"],
        "translate": translate,
        "rotateY": enter_result["rotateY"] + exit_result["rotateY"],
        "blur": enter_result["blur"] + exit_result["blur"],
    }
