"""Composition loader.

Parses YAML (or JSON) composition files, resolves ${path} variables,
converts palette hex colors to RGB tuples, fills defaults and validates
tracks, items, keyframes, motion paths, animations and scenes.

Schema (keys match the composition store's serialized form):

    fps: 30
    width: 1280
    height: 720
    durationInFrames: 150
    paths: {assets: /data/assets}
    colors: {background: "#101418", text: "#F5F5F5"}
    tracks:
      - id: cursor-track
        type: cursor
        items:
          - id: cursor-1
            type: cursor
            from: 0
            durationInFrames: 90
            keyframes:
              - {frame: 0, x: 100, y: 100}
              - {frame: 30, target: "#email", interaction: {selector: "#email", action: type, value: hi}}
    scenes:
      - {startFrame: 0, durationInFrames: 90, transition: {type: curtain, durationInFrames: 20}}

Evaluators tolerate bad data by degrading to safe defaults; this loader is
the strict boundary that tells authors what is wrong and where.
"""

from pathlib import Path

import yaml

from .common import is_finite_number, parse_hex_color, resolve_path_vars
from .cursor import VALID_CLICK_EFFECTS, VALID_CURSOR_STYLES
from .easing import SPRING_PRESETS, VALID_EASINGS
from .interactions import VALID_ACTIONS
from .item_animation import VALID_ANIMATIONS, VALID_DIRECTIONS
from .motion_path import MOTION_PATH_PRESETS
from .transitions import (
    VALID_FLIP_DIRECTIONS,
    VALID_ITEM_TRANSITIONS,
    VALID_SLIDE_DIRECTIONS,
    VALID_TRANSITIONS,
)


# ── Valid values ──────────────────────────────────────────────────

VALID_TRACK_TYPES = {
    "text", "video", "audio", "image", "component", "cursor",
    "gradient", "shape", "particles",
}

REQUIRED_COMPOSITION_FIELDS = ("fps", "width", "height", "durationInFrames")

SPRING_CONFIG_KEYS = {"mass", "stiffness", "damping", "velocity"}

MEDIA_EXTENSIONS = {
    ".mp4", ".webm", ".mov", ".png", ".jpg", ".jpeg", ".webp", ".gif",
    ".mp3", ".wav", ".m4a",
}


# ── Loading ───────────────────────────────────────────────────────


def load_composition(composition_path: str | Path) -> dict:
    """Load, validate, and normalize a composition file.

    Processing pipeline:
      1. Parse YAML (JSON files parse as YAML too).
      2. Parse all colors.* hex strings to RGB tuples.
      3. Resolve ${path} variables in all track and scene string values.
      4. Fill defaults (track visibility, item ids, keyframe lists).
      5. Validate structure and enum values.

    Args:
        composition_path: Path to the YAML/JSON composition file.

    Returns:
        Normalized composition dict ready for frame evaluation.

    Raises:
        ValueError: Missing field, bad type, unknown enum value.
        FileNotFoundError: Missing composition file.
    """
    with open(composition_path) as f:
        raw = yaml.safe_load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"Composition {composition_path}: top level must be a mapping")
    return normalize_composition(raw)


def normalize_composition(raw: dict) -> dict:
    """Validate and normalize an already-parsed composition dict."""
    for field in REQUIRED_COMPOSITION_FIELDS:
        if field not in raw:
            raise ValueError(f"Composition: missing required field '{field}'")

    config = {}

    fps = raw["fps"]
    if not is_finite_number(fps) or fps <= 0:
        raise ValueError(f"Composition: 'fps' must be a positive number, got {fps!r}")
    config["fps"] = fps

    for field in ("width", "height", "durationInFrames"):
        value = raw[field]
        if not _is_int(value) or value <= 0:
            raise ValueError(f"Composition: '{field}' must be a positive integer, got {value!r}")
        config[field] = value

    paths = raw.get("paths") or {}

    colors = {}
    for key, value in (raw.get("colors") or {}).items():
        if isinstance(value, str):
            colors[key] = parse_hex_color(value)
        elif isinstance(value, list):
            colors[key] = tuple(value)
        else:
            colors[key] = value
    config["colors"] = colors

    tracks = raw.get("tracks") or []
    if not isinstance(tracks, list):
        raise ValueError("Composition: 'tracks' must be a list")
    track_ids = {}
    config["tracks"] = []
    for t_idx, track in enumerate(tracks):
        resolved = _resolve_paths(track, paths)
        normalized = _normalize_track(resolved, t_idx)
        if normalized["id"] in track_ids:
            raise ValueError(
                f"Track {t_idx}: duplicate id '{normalized['id']}' "
                f"(also used by track {track_ids[normalized['id']]})"
            )
        track_ids[normalized["id"]] = t_idx
        config["tracks"].append(normalized)

    scenes = raw.get("scenes") or []
    if not isinstance(scenes, list):
        raise ValueError("Composition: 'scenes' must be a list")
    config["scenes"] = [
        _validate_scene(_resolve_paths(scene, paths), s_idx)
        for s_idx, scene in enumerate(scenes)
    ]

    return config


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _resolve_paths(obj, paths: dict):
    """Recursively resolve ${var} in all string values."""
    if isinstance(obj, str):
        return resolve_path_vars(obj, paths)
    elif isinstance(obj, dict):
        return {k: _resolve_paths(v, paths) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_resolve_paths(item, paths) for item in obj]
    return obj


# ── Tracks and items ──────────────────────────────────────────────


def _normalize_track(track: dict, index: int) -> dict:
    if not isinstance(track, dict):
        raise ValueError(f"Track {index}: must be a mapping")
    ttype = track.get("type")
    if ttype not in VALID_TRACK_TYPES:
        raise ValueError(
            f"Track {index}: Unknown type '{ttype}'. "
            f"Valid: {sorted(VALID_TRACK_TYPES)}"
        )
    prefix = f"Track {index} ({ttype})"

    normalized = dict(track)
    normalized["id"] = str(track.get("id") or f"track-{index}")
    normalized["visible"] = track.get("visible", True) is not False

    items = track.get("items") or []
    if not isinstance(items, list):
        raise ValueError(f"{prefix}: 'items' must be a list")

    item_ids = set()
    normalized["items"] = []
    for i_idx, item in enumerate(items):
        item = _normalize_item(item, f"{prefix}, item {i_idx}", normalized["id"], i_idx)
        if item["id"] in item_ids:
            raise ValueError(f"{prefix}, item {i_idx}: duplicate id '{item['id']}'")
        item_ids.add(item["id"])
        normalized["items"].append(item)
    return normalized


def _normalize_item(item: dict, prefix: str, track_id: str, index: int) -> dict:
    if not isinstance(item, dict):
        raise ValueError(f"{prefix}: must be a mapping")
    for field in ("type", "from", "durationInFrames"):
        if field not in item:
            raise ValueError(f"{prefix}: missing required field '{field}'")

    start = item["from"]
    if not _is_int(start) or start < 0:
        raise ValueError(f"{prefix}: 'from' must be an integer >= 0, got {start!r}")
    duration = item["durationInFrames"]
    if not _is_int(duration) or duration <= 0:
        raise ValueError(
            f"{prefix}: 'durationInFrames' must be a positive integer, got {duration!r}"
        )

    normalized = dict(item)
    normalized["id"] = str(item.get("id") or f"{track_id}-item-{index}")

    keyframes = item.get("keyframes") or []
    if not isinstance(keyframes, list):
        raise ValueError(f"{prefix}: 'keyframes' must be a list")
    if item["type"] == "cursor":
        for k_idx, kf in enumerate(keyframes):
            _validate_cursor_keyframe(kf, f"{prefix}, keyframe {k_idx}")
        click_effect = item.get("clickEffect", "ripple")
        if click_effect not in VALID_CLICK_EFFECTS:
            raise ValueError(
                f"{prefix}: invalid clickEffect '{click_effect}'. "
                f"Valid: {sorted(VALID_CLICK_EFFECTS)}"
            )
        cursor_style = item.get("cursorStyle", "default")
        if cursor_style not in VALID_CURSOR_STYLES:
            raise ValueError(
                f"{prefix}: invalid cursorStyle '{cursor_style}'. "
                f"Valid: {sorted(VALID_CURSOR_STYLES)}"
            )
    else:
        for k_idx, kf in enumerate(keyframes):
            _validate_property_keyframe(kf, f"{prefix}, keyframe {k_idx}")
    normalized["keyframes"] = keyframes

    for field in ("enterAnimation", "exitAnimation"):
        if item.get(field) is not None:
            _validate_animation(item[field], f"{prefix}, {field}")

    if item.get("motionPath") is not None:
        _validate_motion_path(item["motionPath"], f"{prefix}, motionPath")

    if item.get("transitionIn") is not None:
        _validate_item_transition(item["transitionIn"], f"{prefix}, transitionIn")

    return normalized


def _validate_property_keyframe(kf: dict, prefix: str) -> None:
    if not isinstance(kf, dict):
        raise ValueError(f"{prefix}: must be a mapping")
    if not is_finite_number(kf.get("frame")):
        raise ValueError(f"{prefix}: 'frame' must be a finite number, got {kf.get('frame')!r}")
    values = kf.get("values")
    if not isinstance(values, dict):
        raise ValueError(f"{prefix}: 'values' must be a mapping of property -> number")
    for name, value in values.items():
        if not is_finite_number(value):
            raise ValueError(f"{prefix}: value '{name}' must be a finite number, got {value!r}")
    _validate_spring_fields(kf, prefix)


def _validate_spring_fields(obj: dict, prefix: str) -> None:
    easing = obj.get("easing")
    if easing is not None and easing not in VALID_EASINGS:
        raise ValueError(
            f"{prefix}: invalid easing '{easing}'. Valid: {sorted(VALID_EASINGS)}"
        )
    preset = obj.get("springPreset")
    if preset is not None and preset not in SPRING_PRESETS:
        raise ValueError(
            f"{prefix}: invalid springPreset '{preset}'. Valid: {sorted(SPRING_PRESETS)}"
        )
    spring_config = obj.get("springConfig")
    if spring_config is not None:
        if not isinstance(spring_config, dict):
            raise ValueError(f"{prefix}: 'springConfig' must be a mapping")
        for key, value in spring_config.items():
            if key not in SPRING_CONFIG_KEYS:
                raise ValueError(
                    f"{prefix}: unknown springConfig key '{key}'. "
                    f"Valid: {sorted(SPRING_CONFIG_KEYS)}"
                )
            if not is_finite_number(value):
                raise ValueError(f"{prefix}: springConfig '{key}' must be a finite number")
            if key != "velocity" and value <= 0:
                raise ValueError(f"{prefix}: springConfig '{key}' must be > 0, got {value}")


def _validate_cursor_keyframe(kf: dict, prefix: str) -> None:
    if not isinstance(kf, dict):
        raise ValueError(f"{prefix}: must be a mapping")
    if not is_finite_number(kf.get("frame")):
        raise ValueError(f"{prefix}: 'frame' must be a finite number, got {kf.get('frame')!r}")
    for field in ("x", "y"):
        if kf.get(field) is not None and not is_finite_number(kf[field]):
            raise ValueError(f"{prefix}: '{field}' must be a finite number")
    target = kf.get("target")
    if target is not None and not isinstance(target, str):
        raise ValueError(f"{prefix}: 'target' must be a selector string")
    offset = kf.get("targetOffset")
    if offset is not None:
        if not isinstance(offset, dict) or not all(
            is_finite_number(offset.get(axis, 0)) for axis in ("x", "y")
        ):
            raise ValueError(f"{prefix}: 'targetOffset' must be {{x: number, y: number}}")

    interaction = kf.get("interaction")
    if interaction is None:
        return
    if not isinstance(interaction, dict):
        raise ValueError(f"{prefix}, interaction: must be a mapping")
    selector = interaction.get("selector")
    if not isinstance(selector, str) or not selector.strip():
        raise ValueError(f"{prefix}, interaction: 'selector' must be a non-empty string")
    action = interaction.get("action")
    if action not in VALID_ACTIONS:
        raise ValueError(
            f"{prefix}, interaction: invalid action '{action}'. "
            f"Valid: {sorted(VALID_ACTIONS)}"
        )
    for field in ("holdDuration", "speed"):
        value = interaction.get(field)
        if value is not None and (not is_finite_number(value) or value <= 0):
            raise ValueError(f"{prefix}, interaction: '{field}' must be a positive number")
    if action == "type" and not isinstance(interaction.get("value"), str):
        raise ValueError(f"{prefix}, interaction: 'type' requires a string 'value'")


def _validate_animation(animation: dict, prefix: str) -> None:
    if not isinstance(animation, dict):
        raise ValueError(f"{prefix}: must be a mapping")
    atype = animation.get("type")
    if atype not in VALID_ANIMATIONS:
        raise ValueError(
            f"{prefix}: invalid type '{atype}'. Valid: {sorted(VALID_ANIMATIONS)}"
        )
    direction = animation.get("direction")
    if direction is not None and direction not in VALID_DIRECTIONS:
        raise ValueError(
            f"{prefix}: invalid direction '{direction}'. Valid: {sorted(VALID_DIRECTIONS)}"
        )
    for field in ("durationInFrames", "staggerDelay"):
        value = animation.get(field)
        if value is not None and (not is_finite_number(value) or value < 0):
            raise ValueError(f"{prefix}: '{field}' must be a number >= 0")
    _validate_spring_fields({"springPreset": animation.get("springPreset")}, prefix)


def _validate_motion_path(motion_path: dict, prefix: str) -> None:
    if not isinstance(motion_path, dict):
        raise ValueError(f"{prefix}: must be a mapping")
    if "preset" in motion_path:
        if motion_path["preset"] not in MOTION_PATH_PRESETS:
            raise ValueError(
                f"{prefix}: Unknown preset '{motion_path['preset']}'. "
                f"Valid: {sorted(MOTION_PATH_PRESETS)}"
            )
        return
    points = motion_path.get("points")
    if not isinstance(points, list):
        raise ValueError(f"{prefix}: requires 'preset' or a 'points' list")
    for p_idx, point in enumerate(points):
        p_prefix = f"{prefix}, point {p_idx}"
        if not isinstance(point, dict):
            raise ValueError(f"{p_prefix}: must be a mapping")
        for field in ("x", "y"):
            if not is_finite_number(point.get(field)):
                raise ValueError(f"{p_prefix}: '{field}' must be a finite number")
        for cp_name in ("controlPoint1", "controlPoint2"):
            cp = point.get(cp_name)
            if cp is None:
                continue
            if not isinstance(cp, dict) or not all(
                is_finite_number(cp.get(axis)) for axis in ("x", "y")
            ):
                raise ValueError(f"{p_prefix}: '{cp_name}' must be {{x: number, y: number}}")


# ── Scenes ────────────────────────────────────────────────────────


def _validate_item_transition(transition: dict, prefix: str) -> None:
    if not isinstance(transition, dict):
        raise ValueError(f"{prefix}: must be a mapping")
    ttype = transition.get("type")
    if ttype not in VALID_ITEM_TRANSITIONS:
        raise ValueError(
            f"{prefix}: invalid type '{ttype}'. Valid: {sorted(VALID_ITEM_TRANSITIONS)}"
        )
    direction = transition.get("direction")
    if direction is not None and direction not in VALID_SLIDE_DIRECTIONS:
        raise ValueError(
            f"{prefix}: invalid direction '{direction}'. "
            f"Valid: {sorted(VALID_SLIDE_DIRECTIONS)}"
        )
    duration = transition.get("durationInFrames")
    if not _is_int(duration) or duration <= 0:
        raise ValueError(
            f"{prefix}: 'durationInFrames' must be a positive integer, got {duration!r}"
        )


def _validate_scene(scene: dict, index: int) -> dict:
    prefix = f"Scene {index}"
    if not isinstance(scene, dict):
        raise ValueError(f"{prefix}: must be a mapping")
    for field in ("startFrame", "durationInFrames"):
        if field not in scene:
            raise ValueError(f"{prefix}: missing required field '{field}'")
    if not _is_int(scene["startFrame"]) or scene["startFrame"] < 0:
        raise ValueError(f"{prefix}: 'startFrame' must be an integer >= 0")
    if not _is_int(scene["durationInFrames"]) or scene["durationInFrames"] <= 0:
        raise ValueError(f"{prefix}: 'durationInFrames' must be a positive integer")

    transition = scene.get("transition")
    if transition is None:
        return dict(scene)
    t_prefix = f"{prefix}, transition"
    if not isinstance(transition, dict):
        raise ValueError(f"{t_prefix}: must be a mapping")
    ttype = transition.get("type")
    if ttype not in VALID_TRANSITIONS:
        raise ValueError(
            f"{t_prefix}: Unknown type '{ttype}'. Valid: {sorted(VALID_TRANSITIONS)}"
        )
    duration = transition.get("durationInFrames")
    if duration is not None and (not is_finite_number(duration) or duration <= 0):
        raise ValueError(f"{t_prefix}: 'durationInFrames' must be a positive number")
    delay = transition.get("delay")
    if delay is not None and (not is_finite_number(delay) or delay < 0):
        raise ValueError(f"{t_prefix}: 'delay' must be a number >= 0")
    direction = transition.get("direction")
    if direction is not None:
        valid = VALID_FLIP_DIRECTIONS if ttype == "flip" else VALID_SLIDE_DIRECTIONS
        if direction not in valid:
            raise ValueError(
                f"{t_prefix}: invalid direction '{direction}' for {ttype}. "
                f"Valid: {sorted(valid)}"
            )
    _validate_spring_fields({"springPreset": transition.get("springPreset")}, t_prefix)
    return dict(scene)


# ── Path validation ───────────────────────────────────────────────


def validate_media_paths(config: dict) -> None:
    """Check that all media paths referenced by tracks exist on disk.

    Walks every track recursively, finds string values that look like file
    paths (contain '/' and end with a media extension), and checks each one
    exists. Reports all missing paths at once.

    Raises:
        FileNotFoundError: Lists all missing files.
    """
    missing = []

    def _check(obj):
        if isinstance(obj, str):
            p = Path(obj)
            if p.suffix.lower() in MEDIA_EXTENSIONS and "/" in obj:
                if not p.exists():
                    missing.append(obj)
        elif isinstance(obj, dict):
            for v in obj.values():
                _check(v)
        elif isinstance(obj, list):
            for item in obj:
                _check(item)

    for track in config["tracks"]:
        _check(track)

    if missing:
        msg = f"Missing {len(missing)} file(s):\n"
        for p in missing:
            msg += f"  - {p}\n"
        raise FileNotFoundError(msg)
