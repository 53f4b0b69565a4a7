"""Cursor motion and click effects.

Cursor keyframe frames are relative to the cursor item's start. Each
keyframe's position is taken, in priority order, from a pre-resolved target
(see cursor_targets.resolve_all_cursor_targets), its manual x/y, or the
composition centre. Between keyframes the cursor moves linearly.
"""

from .common import interpolate, interpolate_points, is_finite_number
from .cursor_targets import target_key


VALID_CLICK_EFFECTS = {"ripple", "highlight", "none"}
VALID_CURSOR_STYLES = {"default", "pointer", "hand"}

CLICK_ACTIVE_FRAMES = 5
CLICK_PRESS_FRAMES = 4
FALLBACK_KEYFRAME_SPACING = 30


def cursor_waypoints(
    item: dict,
    width: float,
    height: float,
    resolved: dict | None = None,
) -> list[dict]:
    """Per-keyframe {"frame", "x", "y", "click"}, sorted by frame."""
    resolved = resolved or {}
    waypoints = []
    for index, kf in enumerate(item.get("keyframes") or []):
        frame = kf.get("frame")
        if not is_finite_number(frame):
            frame = index * FALLBACK_KEYFRAME_SPACING

        position = resolved.get(target_key(item.get("id"), kf.get("frame")))
        if position is not None:
            x, y = position["x"], position["y"]
        elif is_finite_number(kf.get("x")) and is_finite_number(kf.get("y")):
            x, y = kf["x"], kf["y"]
        else:
            x, y = width / 2, height / 2

        if not is_finite_number(x):
            x = width / 2
        if not is_finite_number(y):
            y = height / 2
        waypoints.append({"frame": frame, "x": x, "y": y, "click": bool(kf.get("click"))})

    return sorted(waypoints, key=lambda w: w["frame"])


def cursor_position(
    item: dict,
    rel_frame: float,
    width: float,
    height: float,
    resolved: dict | None = None,
) -> dict | None:
    """Cursor {"x", "y"} at an item-relative frame, or None without keyframes."""
    waypoints = cursor_waypoints(item, width, height, resolved)
    if not waypoints:
        return None
    if len(waypoints) == 1:
        return {"x": waypoints[0]["x"], "y": waypoints[0]["y"]}

    frames = [w["frame"] for w in waypoints]
    return {
        "x": interpolate_points(rel_frame, frames, [w["x"] for w in waypoints]),
        "y": interpolate_points(rel_frame, frames, [w["y"] for w in waypoints]),
    }


def ripple_effect(elapsed: float) -> dict | None:
    """Two expanding rings and a fading centre dot, 0-17 frames after a click."""
    if elapsed < 0 or elapsed > 17:
        return None
    return {
        "type": "ripple",
        "rings": [
            {
                "radius": interpolate(elapsed, (0, 15), (0, 50)),
                "opacity": interpolate(elapsed, (0, 15), (0.8, 0)),
            },
            {
                "radius": interpolate(elapsed, (2, 17), (0, 40)),
                "opacity": interpolate(elapsed, (2, 17), (0.6, 0)) if elapsed >= 2 else 0.0,
            },
        ],
        "dotOpacity": interpolate(elapsed, (0, 8), (1, 0)) if elapsed < 8 else 0.0,
    }


def highlight_effect(elapsed: float) -> dict | None:
    """A growing burst, 0-12 frames after a click."""
    if elapsed < 0 or elapsed > 12:
        return None
    return {
        "type": "highlight",
        "scale": interpolate(elapsed, (0, 12), (0.3, 2)),
        "opacity": interpolate(elapsed, (0, 12), (0.9, 0)),
        "coreOpacity": interpolate(elapsed, (0, 6), (1, 0)),
    }


def click_effects(item: dict, rel_frame: float, waypoints: list[dict]) -> list[dict]:
    """Visible click effects at rel_frame, one per recent click keyframe."""
    effect = item.get("clickEffect", "ripple")
    if effect == "none":
        return []
    effects = []
    for w in waypoints:
        if not w["click"] or abs(rel_frame - w["frame"]) >= CLICK_ACTIVE_FRAMES:
            continue
        elapsed = rel_frame - w["frame"]
        state = highlight_effect(elapsed) if effect == "highlight" else ripple_effect(elapsed)
        if state is not None:
            state["frame"] = w["frame"]
            effects.append(state)
    return effects


def press_scale(rel_frame: float, waypoints: list[dict]) -> float:
    """Cursor icon scale: dips to 0.85 during the first frames of a click."""
    for w in waypoints:
        if w["click"] and w["frame"] <= rel_frame < w["frame"] + CLICK_PRESS_FRAMES:
            return interpolate_points(rel_frame - w["frame"], [0, 2, 4], [1, 0.85, 1])
    return 1.0


def cursor_state(
    item: dict,
    rel_frame: float,
    width: float,
    height: float,
    resolved: dict | None = None,
) -> dict | None:
    """Everything needed to draw one cursor at an item-relative frame."""
    waypoints = cursor_waypoints(item, width, height, resolved)
    if not waypoints:
        return None
    position = cursor_position(item, rel_frame, width, height, resolved)
    return {
        "id": item.get("id"),
        "x": position["x"],
        "y": position["y"],
        "style": item.get("cursorStyle", "default"),
        "scale": item.get("scale", 1) * press_scale(rel_frame, waypoints),
        "clicks": click_effects(item, rel_frame, waypoints),
    }
