"""Whole-frame evaluation.

Combines every evaluator into the complete visual state of one frame:
the active scene and its transition, each visible item's animated values
and styles, cursor positions with click effects, and UI interaction styles.

evaluate_frame() depends only on its arguments. Frames can be evaluated in
any order, repeatedly, or in parallel worker processes.
"""

from .cursor import cursor_state
from .interactions import interaction_state
from .item_animation import item_animation
from .keyframes import interpolate_keyframes
from .motion_path import path_to_keyframes, resolve_motion_path
from .styles import build_all_styles
from .transitions import (
    DEFAULT_DURATIONS,
    item_transition,
    item_transition_duration,
    scene_transition,
)


def _active(item: dict, frame: float) -> bool:
    start = item.get("from", 0)
    return start <= frame < start + item.get("durationInFrames", 0)


def item_values(item: dict, rel_frame: float, fps: float) -> dict[str, float]:
    """Motion path values overlaid by the item's own keyframe values."""
    values = {}
    path = resolve_motion_path(item.get("motionPath"))
    if path:
        path_keyframes = path_to_keyframes(path, item.get("durationInFrames", 0))
        values.update(interpolate_keyframes(path_keyframes, rel_frame, fps))
    values.update(interpolate_keyframes(item.get("keyframes"), rel_frame, fps))
    return values


def item_transition_state(item: dict, track: dict, frame: float) -> dict | None:
    """The transitionIn an item takes part in at an absolute frame, if any.

    Items with a transitionIn enter over the first durationInFrames of their
    window; the first item on a track never does. The item placed just
    before the entering one is outgoing for the same frames.
    """
    ordered = sorted(track.get("items") or [], key=lambda other: other.get("from", 0))
    index = next((n for n, other in enumerate(ordered) if other is item), None)
    if index is None:
        return None

    config = item.get("transitionIn")
    if config and index > 0:
        rel = frame - item.get("from", 0)
        if 0 <= rel < item_transition_duration(config):
            return item_transition(config, rel, "in")

    if index + 1 < len(ordered):
        following = ordered[index + 1]
        config = following.get("transitionIn")
        if config:
            rel = frame - following.get("from", 0)
            if 0 <= rel < item_transition_duration(config):
                return item_transition(config, rel, "out")
    return None


def item_state(item: dict, track: dict, rel_frame: float, fps: float) -> dict:
    """Animated values and CSS styles of one item at an item-relative frame."""
    values = item_values(item, rel_frame, fps)
    transition = item_transition_state(item, track, rel_frame + item.get("from", 0))
    transition_opacity = transition["opacity"] if transition else 1.0
    animation = item_animation(
        rel_frame, fps,
        enter=item.get("enterAnimation"),
        exit=item.get("exitAnimation"),
        duration=item.get("durationInFrames"),
    )
    styles = build_all_styles(values, animation["transform"])
    filters = [f for f in (animation["filter"], styles["filter"]) if f and f != "none"]

    return {
        "id": item.get("id"),
        "trackId": track.get("id"),
        "type": item.get("type"),
        "relativeFrame": rel_frame,
        "values": values,
        "opacity": animation["opacity"] * values.get("opacity", 1.0) * transition_opacity,
        "transform": styles["transform"],
        "filter": " ".join(filters) or "none",
        "boxShadow": styles["boxShadow"],
        "textStyles": styles["textStyles"],
        "animation": {
            "scale": animation["scale"],
            "translate": animation["translate"],
            "rotateY": animation["rotateY"],
            "blur": animation["blur"],
        },
        "transition": transition,
    }


def scene_state(composition: dict, frame: float) -> dict | None:
    """The scene covering the frame, with its entrance transition evaluated."""
    fps = composition.get("fps", 30)
    for index, scene in enumerate(composition.get("scenes") or []):
        if not (scene["startFrame"] <= frame < scene["startFrame"] + scene["durationInFrames"]):
            continue
        rel = frame - scene["startFrame"]
        transition = None
        if scene.get("transition"):
            config = scene["transition"]
            transition = scene_transition(
                config, rel, composition["width"], composition["height"], fps=fps, kind="in",
            )
            window = (config.get("delay") or 0) + (
                config.get("durationInFrames") or DEFAULT_DURATIONS.get(transition["type"], 15)
            )
            transition["active"] = rel < window
        return {
            "index": index,
            "relativeFrame": rel,
            "previousIndex": index - 1 if index > 0 else None,
            "transition": transition,
        }
    return None


def evaluate_frame(composition: dict, frame: int, resolved_targets: dict | None = None) -> dict:
    """Evaluate the full visual state of a composition at an absolute frame.

    Args:
        composition: Normalized composition (see composition.load_composition).
        frame: Absolute frame number.
        resolved_targets: Optional "itemId:frame" -> position map from
            cursor_targets.resolve_all_cursor_targets. Without it cursors use
            their manual coordinates or the composition centre.

    Returns:
        {"frame", "scene", "items", "cursors", "interactions"}.
    """
    fps = composition.get("fps", 30)
    width = composition["width"]
    height = composition["height"]
    tracks = composition.get("tracks") or []

    items = []
    cursors = []
    for track in tracks:
        if track.get("visible") is False:
            continue
        for item in track.get("items") or []:
            if not _active(item, frame):
                continue
            rel = frame - item.get("from", 0)
            if item.get("type") == "cursor":
                state = cursor_state(item, rel, width, height, resolved_targets)
                if state is not None:
                    cursors.append(state)
                continue
            items.append(item_state(item, track, rel, fps))

    return {
        "frame": frame,
        "scene": scene_state(composition, frame),
        "items": items,
        "cursors": cursors,
        "interactions": interaction_state(tracks, frame),
    }


def evaluate_range(composition: dict, start: int, end: int, resolved_targets: dict | None = None):
    """Yield evaluate_frame() for each frame in [start, end)."""
    for frame in range(start, end):
        yield evaluate_frame(composition, frame, resolved_targets)
