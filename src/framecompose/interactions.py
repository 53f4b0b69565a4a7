"""Cursor-driven UI interaction effects.

Cursor keyframes may carry an interaction:
    {"frame": 40, "interaction": {"selector": "#email", "action": "type",
                                  "value": "ada@example.com", "speed": 2}}

For a given absolute frame this module computes, per CSS selector, the
inline style overrides (and input value / typing caret flag) that the
renderer applies to the matching element. Everything is recomputed from
(frame, keyframe), so scrubbing in any direction gives the same result.
"""

import math

from .common import css_number, is_finite_number


VALID_ACTIONS = {"hover", "click", "focus", "type", "select", "check"}

DEFAULT_HOVER_HOLD = 20
DEFAULT_CLICK_HOLD = 10
DEFAULT_TYPE_SPEED = 2
HOVER_RAMP_FRAMES = 5

BLUE = "59,130,246"
GREEN = "34,197,94"
FOCUS_OUTLINE = f"3px solid rgba({BLUE},0.9)"


# ── Active cursor items ───────────────────────────────────────────

def active_cursor_items(tracks: list[dict], absolute_frame: float) -> list[dict]:
    """Cursor items on visible cursor tracks whose window contains the frame."""
    items = []
    for track in tracks or []:
        if track.get("type") != "cursor" or track.get("visible") is False:
            continue
        for item in track.get("items") or []:
            if item.get("type") != "cursor":
                continue
            start = item.get("from", 0)
            if start <= absolute_frame < start + item.get("durationInFrames", 0):
                items.append(item)
    return items


def focus_intervals(keyframes: list[dict]) -> dict[int, float | None]:
    """Latch end frame for each focus keyframe, keyed by keyframe index.

    Focus holds until the earliest later keyframe whose interaction targets
    a different selector. None means it never releases. Keyframes without a
    finite frame neither latch nor release.
    """
    intervals = {}
    for i, kf in enumerate(keyframes):
        interaction = kf.get("interaction")
        if not interaction or interaction.get("action") != "focus":
            continue
        if not is_finite_number(kf.get("frame")):
            continue
        selector = interaction.get("selector")
        release = None
        for other in keyframes:
            other_interaction = other.get("interaction")
            if not other_interaction or other_interaction.get("selector") == selector:
                continue
            if not is_finite_number(other.get("frame")):
                continue
            if other["frame"] > kf["frame"]:
                if release is None or other["frame"] < release:
                    release = other["frame"]
        intervals[i] = release
    return intervals


# ── Per-action effects ────────────────────────────────────────────

def _hover(el: dict, elapsed: float, hold: float) -> None:
    if elapsed < 0:
        intensity = max(0.0, 1 + elapsed / HOVER_RAMP_FRAMES)
    elif elapsed > hold - HOVER_RAMP_FRAMES:
        intensity = max(0.0, (hold - elapsed) / HOVER_RAMP_FRAMES)
    else:
        intensity = 1.0

    styles = el["styles"]
    styles["filter"] = f"brightness({css_number(1 + 0.15 * intensity)})"
    styles["boxShadow"] = (
        f"0 0 0 {css_number(3 * intensity)}px rgba({BLUE},{css_number(0.6 * intensity)}), "
        f"0 0 {css_number(20 * intensity)}px rgba({BLUE},{css_number(0.35 * intensity)}), "
        f"0 {css_number(4 * intensity)}px {css_number(12 * intensity)}px "
        "rgba(0,0,0,0.15)"
    )
    styles["transition"] = "all 0.1s ease"
    styles["position"] = "relative"
    styles["zIndex"] = "100"


def _click(el: dict, elapsed: float, hold: float) -> None:
    p = elapsed / hold
    if p < 0.3:
        scale = 1 - (p / 0.3) * 0.08
    else:
        scale = 0.92 + ((p - 0.3) / 0.7) * 0.08

    styles = el["styles"]
    styles["transform"] = f"scale({css_number(scale)})"
    styles["filter"] = "brightness(0.85)" if p < 0.5 else "brightness(1)"
    styles["boxShadow"] = (
        f"0 0 0 4px rgba({BLUE},{css_number(0.8 - p * 0.3)}), "
        f"0 0 {css_number(25 - p * 10)}px rgba({BLUE},{css_number(0.5 - p * 0.2)})"
    )
    styles["transition"] = "none"


def _focus(el: dict, elapsed: float) -> None:
    pulse = math.sin(elapsed * 0.15) * 0.5 + 0.5
    glow = 0.25 + pulse * 0.15

    styles = el["styles"]
    styles["outline"] = FOCUS_OUTLINE
    styles["outlineOffset"] = "2px"
    styles["boxShadow"] = (
        f"0 0 {css_number(12 + pulse * 8)}px rgba({BLUE},{css_number(glow)}), "
        f"0 0 25px rgba({BLUE},0.15), inset 0 0 2px rgba({BLUE},0.1)"
    )
    styles["backgroundColor"] = "rgba(255,255,255,1)"


def typed_characters(elapsed: float, speed: float, length: int) -> int:
    """Characters revealed after `elapsed` frames at `speed` frames per character."""
    return min(math.floor(elapsed / speed) + 1, length)


def _type(el: dict, elapsed: float, value: str, speed: float) -> None:
    chars = typed_characters(elapsed, speed, len(value))
    still_typing = chars < len(value)
    el["value"] = value[:chars]

    styles = el["styles"]
    styles["outline"] = FOCUS_OUTLINE
    styles["outlineOffset"] = "2px"
    styles["boxShadow"] = (
        f"0 0 15px rgba({BLUE},0.4), 0 0 30px rgba({BLUE},0.2), "
        f"inset 0 0 3px rgba({BLUE},0.1)"
    )
    styles["backgroundColor"] = "rgba(255,255,255,1)"
    styles["color"] = "#000"
    styles["fontWeight"] = "500"

    if still_typing:
        el["showTypingCursor"] = True
        caret_visible = elapsed % 30 < 20
        styles["caretColor"] = f"rgba({BLUE},1)" if caret_visible else "transparent"

        pulse = math.sin(elapsed * 0.3) * 0.5 + 0.5
        glow = 0.3 + pulse * 0.2
        styles["boxShadow"] = (
            f"0 0 {css_number(15 + pulse * 10)}px rgba({BLUE},{css_number(glow)}), "
            f"0 0 30px rgba({BLUE},0.2), inset 0 0 3px rgba({BLUE},0.1)"
        )


def _select(el: dict, elapsed: float, value: str | None) -> None:
    if value:
        el["value"] = value
    flash = (10 - elapsed) / 10 if elapsed < 10 else 0.0

    styles = el["styles"]
    styles["outline"] = FOCUS_OUTLINE
    styles["outlineOffset"] = "2px"
    styles["backgroundColor"] = f"rgba({BLUE},{css_number(0.05 + flash * 0.15)})"
    styles["boxShadow"] = (
        f"0 0 {css_number(15 + flash * 10)}px rgba({BLUE},{css_number(0.3 + flash * 0.2)})"
    )
    styles["color"] = "#000"
    styles["fontWeight"] = "500"


def _check(el: dict, elapsed: float) -> None:
    bounce = 1 + math.sin(elapsed / 8 * math.pi) * 0.15 if elapsed < 8 else 1.0
    flash = (12 - elapsed) / 12 if elapsed < 12 else 0.0

    el["value"] = "checked"
    styles = el["styles"]
    styles["outline"] = f"3px solid rgba({GREEN},0.9)"
    styles["outlineOffset"] = "3px"
    styles["boxShadow"] = (
        f"0 0 {css_number(15 + flash * 10)}px rgba({GREEN},{css_number(0.35 + flash * 0.25)})"
    )
    styles["transform"] = f"scale({css_number(bounce)})"


# ── Frame evaluation ──────────────────────────────────────────────

def _positive(value, default: float) -> float:
    return value if is_finite_number(value) and value > 0 else default


def _apply_cursor_item(elements: dict, item: dict, rel_frame: float) -> None:
    keyframes = [
        kf for kf in item.get("keyframes") or []
        if isinstance(kf, dict) and isinstance(kf.get("interaction"), dict)
        and is_finite_number(kf.get("frame"))
    ]
    latches = focus_intervals(keyframes)

    def _el(selector):
        return elements.setdefault(selector, {"styles": {}})

    for i, kf in enumerate(keyframes):
        interaction = kf["interaction"]
        selector = interaction.get("selector")
        if not selector or not isinstance(selector, str):
            continue
        action = interaction.get("action")
        value = interaction.get("value")
        elapsed = rel_frame - kf["frame"]

        if action == "hover":
            hold = _positive(interaction.get("holdDuration"), DEFAULT_HOVER_HOLD)
            if -HOVER_RAMP_FRAMES <= elapsed <= hold:
                _hover(_el(selector), elapsed, hold)
        elif action == "click":
            hold = _positive(interaction.get("holdDuration"), DEFAULT_CLICK_HOLD)
            if 0 <= elapsed < hold:
                _click(_el(selector), elapsed, hold)
        elif action == "focus":
            release = latches.get(i)
            if elapsed >= 0 and (release is None or rel_frame < release):
                _focus(_el(selector), elapsed)
        elif action == "type":
            if value and elapsed >= 0:
                speed = _positive(interaction.get("speed"), DEFAULT_TYPE_SPEED)
                _type(_el(selector), elapsed, str(value), speed)
        elif action == "select":
            if elapsed >= 0:
                _select(_el(selector), elapsed, value)
        elif action == "check":
            if elapsed >= 0:
                _check(_el(selector), elapsed)


def interaction_state(tracks: list[dict], absolute_frame: float) -> dict[str, dict]:
    """Selector -> {"styles", "value"?, "showTypingCursor"?} at an absolute frame.

    Cursor keyframe frames are relative to their cursor item's start. When
    several interactions hit the same selector, later keyframes overwrite
    the style keys they share with earlier ones.
    """
    elements = {}
    if not is_finite_number(absolute_frame):
        return elements
    for item in active_cursor_items(tracks, absolute_frame):
        _apply_cursor_item(elements, item, absolute_frame - item.get("from", 0))
    return elements
