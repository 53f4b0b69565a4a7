"""Resolve cursor target selectors to composition coordinates.

This is the one evaluator that reads external state: the measured geometry
of rendered component previews. A context bundles

  - containers: component id -> container (or None), searched in order.
    A container has query_selector(selector) returning an element or None;
    an element has bounding_rect().
  - surface: the preview surface, with bounding_rect().
  - the composition width and height.

Rects are (left, top, width, height) in surface pixels. Live surfaces must be
queried on the thread that owns them; other threads go through
request_cursor_target() and a RequestChannel.

For offline work a LayoutSnapshot (loaded from YAML/JSON) provides the same
container/surface interface from recorded geometry.
"""

from pathlib import Path

import yaml

from .cache import ContentCache, content_hash
from .channel import ChannelError, ChannelTimeoutError
from .common import is_finite_number


RESOLVE_TARGET_REQUEST = "resolve-target"


class CursorTargetContext:
    """Containers, preview surface and composition size for target lookups."""

    def __init__(self, containers: dict, surface, width: float, height: float,
                 fingerprint: str | None = None):
        self.containers = containers
        self.surface = surface
        self.width = width
        self.height = height
        self.fingerprint = fingerprint


def target_key(item_id: str, frame: float) -> str:
    """Lookup key for a resolved cursor keyframe: "itemId:frame"."""
    if isinstance(frame, float) and frame.is_integer():
        frame = int(frame)
    return f"{item_id}:{frame}"


def _rect(value) -> tuple[float, float, float, float]:
    """Normalize a rect given as a mapping or a 4-sequence."""
    if isinstance(value, dict):
        left = value.get("left", value.get("x", 0))
        top = value.get("top", value.get("y", 0))
        return (float(left), float(top), float(value["width"]), float(value["height"]))
    left, top, width, height = value
    return (float(left), float(top), float(width), float(height))


# ── Single target ─────────────────────────────────────────────────

def resolve_cursor_target(
    target: str | None,
    target_offset: dict | None,
    context: CursorTargetContext | None,
    fallback_x: float,
    fallback_y: float,
) -> dict:
    """Centre of the first element matching `target`, in composition pixels.

    Returns {"x", "y", "found"}. Without a target, or when nothing matches,
    the fallback position is returned with found False. An error raised
    while searching one container (for example a malformed selector) makes
    that container a miss; the search continues with the next one.
    """
    fallback = {"x": fallback_x, "y": fallback_y, "found": False}
    if not target or context is None:
        return fallback

    for container in context.containers.values():
        if container is None:
            continue
        try:
            element = container.query_selector(target)
            if element is None or context.surface is None:
                continue
            left, top, width, height = _rect(element.bounding_rect())
            s_left, s_top, s_width, s_height = _rect(context.surface.bounding_rect())
            if s_width <= 0 or s_height <= 0:
                continue

            center_x = left + width / 2 - s_left
            center_y = top + height / 2 - s_top
            x = center_x * (context.width / s_width)
            y = center_y * (context.height / s_height)
            if target_offset:
                x += target_offset.get("x", 0)
                y += target_offset.get("y", 0)
            return {"x": x, "y": y, "found": True}
        except Exception:
            continue

    return fallback


def visible_component_items(tracks: list[dict], frame: float) -> list[dict]:
    """Component items on visible component tracks that cover the frame."""
    items = []
    for track in tracks or []:
        if track.get("type") != "component" or track.get("visible") is False:
            continue
        for item in track.get("items") or []:
            if item.get("type") != "component":
                continue
            start = item.get("from", 0)
            if start <= frame < start + item.get("durationInFrames", 0):
                items.append(item)
    return items


# ── Bulk resolution ───────────────────────────────────────────────

def _cursor_keyframes(tracks: list[dict]):
    for track in tracks or []:
        if track.get("type") != "cursor":
            continue
        for item in track.get("items") or []:
            if item.get("type") != "cursor":
                continue
            for kf in item.get("keyframes") or []:
                yield item, kf


def _resolve_all(tracks: list[dict], context: CursorTargetContext) -> dict[str, dict]:
    resolved = {}
    for item, kf in _cursor_keyframes(tracks):
        key = target_key(item.get("id"), kf.get("frame"))
        if kf.get("target"):
            fallback_x = kf["x"] if kf.get("x") is not None else context.width / 2
            fallback_y = kf["y"] if kf.get("y") is not None else context.height / 2
            resolved[key] = resolve_cursor_target(
                kf["target"], kf.get("targetOffset"), context, fallback_x, fallback_y,
            )
        elif kf.get("x") is not None and kf.get("y") is not None:
            resolved[key] = {"x": kf["x"], "y": kf["y"], "found": True}
    return resolved


def resolve_all_cursor_targets(
    tracks: list[dict],
    context: CursorTargetContext,
    cache: ContentCache | None = None,
) -> dict[str, dict]:
    """Pre-resolve every cursor keyframe position.

    Returns "itemId:frame" -> {"x", "y", "found"}. Keyframes with a target
    are looked up (falling back to their x/y, else the composition centre);
    keyframes with only x and y are passed through as found.

    With a cache, results are memoized by the cursor keyframes plus the
    context fingerprint. Contexts without a fingerprint are never cached,
    since their geometry may change between calls.
    """
    if cache is None or context.fingerprint is None:
        return _resolve_all(tracks, context)

    cursor_data = [
        {"id": item.get("id"), "keyframe": kf} for item, kf in _cursor_keyframes(tracks)
    ]
    content = {
        "cursors": cursor_data,
        "layout": context.fingerprint,
        "size": [context.width, context.height],
    }
    return cache.get_or_compute(content, lambda: _resolve_all(tracks, context))


# ── Cross-thread resolution ───────────────────────────────────────

def target_request_handler(context: CursorTargetContext):
    """Handler for RESOLVE_TARGET_REQUEST, to register on the owning thread's channel."""
    def _handle(payload):
        return resolve_cursor_target(
            payload.get("target"),
            payload.get("targetOffset"),
            context,
            payload["fallbackX"],
            payload["fallbackY"],
        )
    return _handle


def request_cursor_target(
    channel,
    target: str | None,
    target_offset: dict | None,
    fallback_x: float,
    fallback_y: float,
    timeout: float | None = None,
) -> dict:
    """Resolve a target through the surface-owning thread.

    Timeouts and handler failures degrade to the fallback position with
    found False, like any other miss.
    """
    fallback = {"x": fallback_x, "y": fallback_y, "found": False}
    if not target:
        return fallback
    payload = {
        "target": target,
        "targetOffset": target_offset,
        "fallbackX": fallback_x,
        "fallbackY": fallback_y,
    }
    try:
        return channel.request(RESOLVE_TARGET_REQUEST, payload, timeout=timeout)
    except (ChannelTimeoutError, ChannelError):
        return fallback


# ── Layout snapshots ──────────────────────────────────────────────

_BRACKET_PAIRS = {"]": "[", ")": "("}
_COMBINATORS = (">", "+", "~", ",")


def validate_selector(selector: str) -> None:
    """Reject selectors a browser would refuse to parse.

    Raises:
        ValueError: Empty selector, unbalanced brackets/parentheses,
            unterminated quotes, or a dangling combinator.
    """
    if not isinstance(selector, str) or not selector.strip():
        raise ValueError(f"Invalid selector: {selector!r}")

    stack = []
    quote = None
    for ch in selector:
        if quote:
            if ch == quote:
                quote = None
            continue
        if ch in ("'", '"'):
            quote = ch
        elif ch in "[(":
            stack.append(ch)
        elif ch in _BRACKET_PAIRS:
            if not stack or stack.pop() != _BRACKET_PAIRS[ch]:
                raise ValueError(f"Invalid selector: {selector!r} (unbalanced '{ch}')")
    if quote:
        raise ValueError(f"Invalid selector: {selector!r} (unterminated string)")
    if stack:
        raise ValueError(f"Invalid selector: {selector!r} (unclosed '{stack[-1]}')")

    stripped = selector.strip()
    if stripped.startswith(_COMBINATORS) or stripped.endswith(_COMBINATORS):
        raise ValueError(f"Invalid selector: {selector!r} (dangling combinator)")


class SnapshotElement:
    def __init__(self, rect):
        self.rect = _rect(rect)

    def bounding_rect(self) -> tuple[float, float, float, float]:
        return self.rect


class SnapshotContainer:
    """Recorded elements of one component preview, keyed by selector."""

    def __init__(self, elements: dict):
        self.elements = {selector: SnapshotElement(rect) for selector, rect in elements.items()}

    def query_selector(self, selector: str) -> SnapshotElement | None:
        validate_selector(selector)
        return self.elements.get(selector.strip())


class LayoutSnapshot:
    """Measured preview geometry: a surface rect plus per-component elements."""

    def __init__(self, surface, containers: dict, raw: dict | None = None):
        self.surface = SnapshotElement(surface) if surface is not None else None
        self.containers = {
            cid: SnapshotContainer(elements) if elements is not None else None
            for cid, elements in containers.items()
        }
        self.fingerprint = content_hash(raw if raw is not None else {
            "surface": surface, "containers": containers,
        })

    def context(self, width: float, height: float) -> CursorTargetContext:
        return CursorTargetContext(
            self.containers, self.surface, width, height, fingerprint=self.fingerprint,
        )


def load_layout_snapshot(path: str | Path) -> LayoutSnapshot:
    """Load a layout snapshot from YAML or JSON.

    Expected shape:
        surface: {left: 0, top: 0, width: 960, height: 540}
        containers:
          signup-form:
            "#email": {left: 120, top: 80, width: 300, height: 40}
            "button.submit": [120, 140, 120, 36]

    Raises:
        ValueError: Missing surface, malformed rects or containers.
        FileNotFoundError: Missing snapshot file.
    """
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    if "surface" not in raw:
        raise ValueError(f"Layout snapshot {path}: missing required field 'surface'")
    surface = raw["surface"]
    _check_rect(surface, f"Layout snapshot {path}, surface")
    if _rect(surface)[2] <= 0 or _rect(surface)[3] <= 0:
        raise ValueError(f"Layout snapshot {path}, surface: width and height must be > 0")

    containers = raw.get("containers") or {}
    if not isinstance(containers, dict):
        raise ValueError(f"Layout snapshot {path}: 'containers' must be a mapping")
    for cid, elements in containers.items():
        if elements is None:
            continue
        if not isinstance(elements, dict):
            raise ValueError(
                f"Layout snapshot {path}, container '{cid}': elements must be a mapping"
            )
        for selector, rect in elements.items():
            _check_rect(rect, f"Layout snapshot {path}, container '{cid}', '{selector}'")

    return LayoutSnapshot(surface, containers, raw=raw)


def _check_rect(rect, prefix: str) -> None:
    if isinstance(rect, dict):
        values = [rect.get("width"), rect.get("height")]
        values.append(rect.get("left", rect.get("x", 0)))
        values.append(rect.get("top", rect.get("y", 0)))
    elif isinstance(rect, (list, tuple)) and len(rect) == 4:
        values = list(rect)
    else:
        raise ValueError(f"{prefix}: rect must be a mapping or [left, top, width, height]")
    if not all(is_finite_number(v) for v in values):
        raise ValueError(f"{prefix}: rect values must be finite numbers, got {rect}")
