"""Keyframe interpolation for numeric item properties.

A keyframe is a dict:
    {"frame": 12, "values": {"opacity": 1, "scale": 1.2},
     "easing": "ease-in-out", "springPreset": "bouncy", "springConfig": {...}}

Frames are relative to the owning item's start. The easing (and spring
settings) of the *destination* keyframe shape the segment leading into it.
"""

from .common import is_finite_number
from .easing import DEFAULT_EASING, resolve_progress


def _valid_keyframes(keyframes) -> list[dict]:
    """Drop keyframes without a finite numeric frame; sort the rest by frame."""
    valid = [
        kf for kf in keyframes or []
        if isinstance(kf, dict) and is_finite_number(kf.get("frame"))
    ]
    return sorted(valid, key=lambda kf: kf["frame"])


def _numeric_values(keyframe: dict) -> dict[str, float]:
    values = keyframe.get("values") or {}
    return {k: v for k, v in values.items() if is_finite_number(v)}


def segment_progress(prev_kf: dict, next_kf: dict, frame: float, fps: float) -> float:
    """Eased progress between two keyframes, driven by next_kf's easing."""
    duration = next_kf["frame"] - prev_kf["frame"]
    return resolve_progress(
        frame - prev_kf["frame"],
        duration,
        easing=next_kf.get("easing") or DEFAULT_EASING,
        fps=fps,
        spring_config=next_kf.get("springConfig"),
        spring_preset=next_kf.get("springPreset"),
    )


def _interpolate_property(relevant: list[dict], name: str, frame: float, fps: float) -> float:
    """Value of one property given the sorted keyframes that define it."""
    first = relevant[0]
    last = relevant[-1]
    if frame <= first["frame"]:
        return first["values"][name]
    if frame >= last["frame"]:
        return last["values"][name]

    for prev_kf, next_kf in zip(relevant, relevant[1:]):
        if prev_kf["frame"] <= frame <= next_kf["frame"]:
            start = prev_kf["values"][name]
            end = next_kf["values"][name]
            if next_kf["frame"] - prev_kf["frame"] <= 0:
                return start
            progress = segment_progress(prev_kf, next_kf, frame, fps)
            return start + (end - start) * progress

    return last["values"][name]


def interpolate_keyframes(keyframes, frame: float, fps: float = 30) -> dict[str, float]:
    """Evaluate every animated property at one frame.

    Args:
        keyframes: Item keyframes (any order). Keyframes with a missing or
            non-finite frame are ignored.
        frame: Item-relative frame to evaluate.
        fps: Composition frame rate, used by spring easing.

    Returns:
        Property name -> value. Empty when there are no usable keyframes.
        Outside the keyframed range each property holds its first/last
        value. Springs may overshoot between keyframes.
    """
    valid = _valid_keyframes(keyframes)
    if not valid:
        return {}
    if len(valid) == 1:
        return _numeric_values(valid[0])
    if not is_finite_number(frame):
        frame = valid[0]["frame"]

    names = []
    for kf in valid:
        for name in kf.get("values") or {}:
            if name not in names:
                names.append(name)

    result = {}
    for name in names:
        relevant = [kf for kf in valid if is_finite_number((kf.get("values") or {}).get(name))]
        if not relevant:
            continue
        if len(relevant) == 1:
            result[name] = relevant[0]["values"][name]
            continue
        result[name] = _interpolate_property(relevant, name, frame, fps)

    return result
