"""Bezier motion paths.

A path is {"points": [...], "autoRotate": bool}. Points live in 0-1
composition space and may carry an outgoing "controlPoint1" and an incoming
"controlPoint2". Progress is split evenly across segments, so each segment
takes the same time regardless of its length.
"""

import copy
import math

from .common import clamp, is_finite_number


# ── Presets ───────────────────────────────────────────────────────

MOTION_PATH_PRESETS = {
    "arc-left-to-right": {
        "points": [
            {"x": 0, "y": 0.5},
            {"x": 0.5, "y": 0.2, "controlPoint1": {"x": 0.25, "y": 0.2},
             "controlPoint2": {"x": 0.35, "y": 0.2}},
            {"x": 1, "y": 0.5, "controlPoint2": {"x": 0.75, "y": 0.2}},
        ],
        "autoRotate": False,
    },
    "arc-right-to-left": {
        "points": [
            {"x": 1, "y": 0.5},
            {"x": 0.5, "y": 0.2, "controlPoint1": {"x": 0.75, "y": 0.2},
             "controlPoint2": {"x": 0.65, "y": 0.2}},
            {"x": 0, "y": 0.5, "controlPoint2": {"x": 0.25, "y": 0.2}},
        ],
        "autoRotate": False,
    },
    "wave": {
        "points": [
            {"x": 0, "y": 0.5},
            {"x": 0.25, "y": 0.3, "controlPoint1": {"x": 0.1, "y": 0.3}},
            {"x": 0.5, "y": 0.5, "controlPoint1": {"x": 0.35, "y": 0.7},
             "controlPoint2": {"x": 0.4, "y": 0.7}},
            {"x": 0.75, "y": 0.7, "controlPoint1": {"x": 0.6, "y": 0.3},
             "controlPoint2": {"x": 0.65, "y": 0.3}},
            {"x": 1, "y": 0.5, "controlPoint2": {"x": 0.9, "y": 0.7}},
        ],
        "autoRotate": False,
    },
    "figure-8": {
        "points": [
            {"x": 0.5, "y": 0.3},
            {"x": 0.7, "y": 0.4, "controlPoint1": {"x": 0.65, "y": 0.25}},
            {"x": 0.5, "y": 0.5, "controlPoint1": {"x": 0.7, "y": 0.55},
             "controlPoint2": {"x": 0.65, "y": 0.55}},
            {"x": 0.3, "y": 0.6, "controlPoint1": {"x": 0.35, "y": 0.55}},
            {"x": 0.5, "y": 0.7, "controlPoint1": {"x": 0.3, "y": 0.75},
             "controlPoint2": {"x": 0.35, "y": 0.75}},
            {"x": 0.5, "y": 0.3, "controlPoint1": {"x": 0.65, "y": 0.75},
             "controlPoint2": {"x": 0.7, "y": 0.45}},
        ],
        "autoRotate": True,
    },
    "bounce-path": {
        "points": [
            {"x": 0.2, "y": 0.8},
            {"x": 0.35, "y": 0.3, "controlPoint1": {"x": 0.25, "y": 0.3}},
            {"x": 0.5, "y": 0.7, "controlPoint1": {"x": 0.4, "y": 0.7},
             "controlPoint2": {"x": 0.45, "y": 0.7}},
            {"x": 0.65, "y": 0.45, "controlPoint1": {"x": 0.55, "y": 0.45}},
            {"x": 0.8, "y": 0.6, "controlPoint1": {"x": 0.7, "y": 0.6},
             "controlPoint2": {"x": 0.75, "y": 0.6}},
            {"x": 0.9, "y": 0.55},
        ],
        "autoRotate": False,
    },
    "spiral-in": {
        "points": [
            {"x": 0.1, "y": 0.5},
            {"x": 0.3, "y": 0.2, "controlPoint1": {"x": 0.1, "y": 0.2}},
            {"x": 0.7, "y": 0.3, "controlPoint1": {"x": 0.5, "y": 0.15},
             "controlPoint2": {"x": 0.6, "y": 0.2}},
            {"x": 0.8, "y": 0.6, "controlPoint1": {"x": 0.85, "y": 0.4}},
            {"x": 0.6, "y": 0.7, "controlPoint1": {"x": 0.75, "y": 0.75},
             "controlPoint2": {"x": 0.7, "y": 0.72}},
            {"x": 0.5, "y": 0.5, "controlPoint1": {"x": 0.5, "y": 0.65},
             "controlPoint2": {"x": 0.48, "y": 0.55}},
        ],
        "autoRotate": True,
    },
}

PATH_LENGTH_SAMPLES = 20


def get_motion_path_preset(name: str) -> dict:
    """Deep copy of a named preset path. Raises KeyError for unknown names."""
    return copy.deepcopy(MOTION_PATH_PRESETS[name])


def resolve_motion_path(config: dict | None) -> dict | None:
    """Turn an item's motionPath entry into a concrete path.

    Accepts an inline path ({"points": [...]}) or a preset reference
    ({"preset": "wave", "autoRotate": false}). Unknown presets give None.
    """
    if not config:
        return None
    if "preset" in config:
        if config["preset"] not in MOTION_PATH_PRESETS:
            return None
        path = get_motion_path_preset(config["preset"])
        if "autoRotate" in config:
            path["autoRotate"] = bool(config["autoRotate"])
        return path
    return {
        "points": list(config.get("points") or []),
        "autoRotate": bool(config.get("autoRotate", False)),
    }


# ── Bezier math ───────────────────────────────────────────────────

def cubic_bezier(t: float, p0: float, p1: float, p2: float, p3: float) -> float:
    u = 1 - t
    return u * u * u * p0 + 3 * u * u * t * p1 + 3 * u * t * t * p2 + t * t * t * p3


def cubic_bezier_derivative(t: float, p0: float, p1: float, p2: float, p3: float) -> float:
    u = 1 - t
    return 3 * u * u * (p1 - p0) + 6 * u * t * (p2 - p1) + 3 * t * t * (p3 - p2)


def _segment_controls(start: dict, end: dict) -> tuple[dict, dict]:
    """Control points for one segment; missing ones make a straight line."""
    cp1 = start.get("controlPoint1") or {
        "x": start["x"] + (end["x"] - start["x"]) / 3,
        "y": start["y"] + (end["y"] - start["y"]) / 3,
    }
    cp2 = end.get("controlPoint2") or {
        "x": end["x"] - (end["x"] - start["x"]) / 3,
        "y": end["y"] - (end["y"] - start["y"]) / 3,
    }
    return cp1, cp2


# ── Evaluation ────────────────────────────────────────────────────

def position_on_path(path: dict, progress: float) -> dict[str, float]:
    """Position (and heading, if autoRotate) at progress 0-1 along the path.

    Returns {"x", "y", "rotation"}; rotation is in degrees and is 0 unless
    the path auto-rotates. An empty path sits at the centre.
    """
    points = path.get("points") or []
    if not points:
        return {"x": 0.5, "y": 0.5, "rotation": 0.0}
    if len(points) == 1:
        return {"x": points[0]["x"], "y": points[0]["y"], "rotation": 0.0}

    if not is_finite_number(progress):
        progress = 0.0
    t = clamp(progress, 0.0, 1.0)

    total_segments = len(points) - 1
    scaled = t * total_segments
    index = min(math.floor(scaled), total_segments - 1)
    local_t = scaled - index

    start = points[index]
    end = points[index + 1]
    cp1, cp2 = _segment_controls(start, end)

    x = cubic_bezier(local_t, start["x"], cp1["x"], cp2["x"], end["x"])
    y = cubic_bezier(local_t, start["y"], cp1["y"], cp2["y"], end["y"])

    rotation = 0.0
    if path.get("autoRotate"):
        dx = cubic_bezier_derivative(local_t, start["x"], cp1["x"], cp2["x"], end["x"])
        dy = cubic_bezier_derivative(local_t, start["y"], cp1["y"], cp2["y"], end["y"])
        rotation = math.degrees(math.atan2(dy, dx))

    return {"x": x, "y": y, "rotation": rotation}


def path_length(points: list[dict], samples: int = PATH_LENGTH_SAMPLES) -> float:
    """Approximate arc length by sampling each segment as a polyline.

    Segments without control points are measured as straight lines.
    """
    if len(points) < 2:
        return 0.0

    total = 0.0
    for start, end in zip(points, points[1:]):
        cp1 = start.get("controlPoint1") or start
        cp2 = end.get("controlPoint2") or end
        prev_x, prev_y = start["x"], start["y"]
        for j in range(1, samples + 1):
            t = j / samples
            x = cubic_bezier(t, start["x"], cp1["x"], cp2["x"], end["x"])
            y = cubic_bezier(t, start["y"], cp1["y"], cp2["y"], end["y"])
            total += math.hypot(x - prev_x, y - prev_y)
            prev_x, prev_y = x, y
    return total


def path_to_keyframes(
    path: dict,
    duration_in_frames: int,
    easing: str = "ease-out",
    include_rotation: bool | None = None,
) -> list[dict]:
    """Sample a path into positionX/positionY keyframes, one per path point.

    Rotation is included only when the path auto-rotates and
    include_rotation (default: the path's autoRotate) is true.
    """
    points = path.get("points") or []
    if len(points) < 2:
        return []
    auto_rotate = bool(path.get("autoRotate"))
    if include_rotation is None:
        include_rotation = auto_rotate

    total_segments = len(points) - 1
    keyframes = []
    for i in range(total_segments + 1):
        progress = i / total_segments
        pos = position_on_path(path, progress)
        values = {"positionX": pos["x"], "positionY": pos["y"]}
        if include_rotation and auto_rotate:
            values["rotation"] = pos["rotation"]
        keyframes.append({
            "frame": math.floor(progress * duration_in_frames + 0.5),
            "values": values,
            "easing": None if i == 0 else easing,
        })
    return keyframes
