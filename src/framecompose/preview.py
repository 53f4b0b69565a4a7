"""Schematic preview rendering.

Draws evaluated frame states as images: items become labelled boxes placed
by their animated position/scale/rotation/opacity, cursors become arrows
with click rings, and scene transitions are applied to the whole frame.
Frames are numpy RGB arrays, so they feed straight into a moviepy
VideoClip for mp4 export.

The preview is for checking timing and motion, not a pixel-accurate
render of component content.
"""

import math
from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFilter
from moviepy import VideoClip

from .common import clamp, load_font, resolve_color
from .frame import evaluate_frame


# ── Constants ────────────────────────────────────────────────────

DEFAULT_BACKGROUND = (16, 20, 24)
DEFAULT_TEXT_COLOR = (245, 245, 245)
DEFAULT_ITEM_SIZE = (0.3, 0.2)         # fraction of frame width / height
ITEM_BORDER_RADIUS = 8
CURSOR_BASE_SIZE = 24                  # px at 720p

ITEM_COLORS = {
    "text": (90, 110, 140),
    "video": (60, 90, 160),
    "image": (70, 140, 120),
    "component": (110, 90, 170),
    "gradient": (170, 100, 80),
    "shape": (150, 150, 60),
    "particles": (120, 120, 120),
}

# Items without a visual footprint.
NON_VISUAL_TYPES = {"audio", "cursor"}

RIPPLE_COLOR = (59, 130, 246)
HIGHLIGHT_COLOR = (250, 204, 21)


# ── Compositing helpers ──────────────────────────────────────────


def alpha_blend(frame: np.ndarray, layer: np.ndarray, opacity: float = 1.0) -> np.ndarray:
    """Blend an RGBA layer over an RGB frame, scaling the layer alpha by opacity."""
    alpha = layer[:, :, 3:4].astype(np.float32) / 255.0 * clamp(opacity, 0.0, 1.0)
    rgb = layer[:, :, :3].astype(np.float32)
    blended = frame.astype(np.float32) * (1 - alpha) + rgb * alpha
    return blended.astype(np.uint8)


def _solid(shape: tuple, color: tuple[int, int, int]) -> np.ndarray:
    out = np.empty(shape, dtype=np.uint8)
    out[:] = color
    return out


def _shift(frame: np.ndarray, dx: int, dy: int, background: tuple[int, int, int]) -> np.ndarray:
    """Translate a frame by whole pixels, filling uncovered area with background."""
    h, w = frame.shape[:2]
    out = _solid(frame.shape, background)
    width = w - abs(dx)
    height = h - abs(dy)
    if width <= 0 or height <= 0:
        return out
    src_x, dst_x = max(0, -dx), max(0, dx)
    src_y, dst_y = max(0, -dy), max(0, dy)
    out[dst_y:dst_y + height, dst_x:dst_x + width] = frame[src_y:src_y + height, src_x:src_x + width]
    return out


def index_items(composition: dict) -> dict[tuple[str, str], dict]:
    """(trackId, itemId) -> item config, for looking up static item fields."""
    return {
        (track["id"], item["id"]): item
        for track in composition.get("tracks") or []
        for item in track.get("items") or []
    }


# ── Items ────────────────────────────────────────────────────────


def render_item_layer(
    item: dict,
    state: dict,
    frame_w: int,
    frame_h: int,
    colors: dict[str, tuple[int, int, int]],
) -> np.ndarray:
    """Draw one item as a labelled box on a transparent full-frame RGBA layer.

    Args:
        item: Static item config (position, width, height, color, text).
        state: The item's entry from evaluate_frame()["items"].
        frame_w: Frame width in pixels.
        frame_h: Frame height in pixels.
        colors: Palette for resolving the item's color reference.

    Returns:
        numpy array of shape (frame_h, frame_w, 4), dtype uint8 (RGBA).
    """
    values = state["values"]
    animation = state["animation"]
    position = item.get("position") or {}

    cx = values.get("positionX", position.get("x", 0.5)) * frame_w
    cy = values.get("positionY", position.get("y", 0.5)) * frame_h
    scale = values.get("scale", 1.0) * animation["scale"]
    box_w = item.get("width", DEFAULT_ITEM_SIZE[0]) * frame_w * scale
    box_h = item.get("height", DEFAULT_ITEM_SIZE[1]) * frame_h * scale
    box_w *= abs(math.cos(animation["rotateY"]))

    # CSS translate percentages are relative to the element's own size.
    cx += animation["translate"].get("X", 0.0) / 100 * box_w
    cy += animation["translate"].get("Y", 0.0) / 100 * box_h

    # Item transitions slide the whole item layer, so offsets are in frame size.
    transition = state.get("transition") or {}
    if transition.get("axis") == "X":
        cx += transition["offsetPercent"] / 100 * frame_w
    elif transition.get("axis") == "Y":
        cy += transition["offsetPercent"] / 100 * frame_h

    color_ref = item.get("color")
    if color_ref:
        color = resolve_color(color_ref, colors)
    else:
        color = ITEM_COLORS.get(item.get("type"), ITEM_COLORS["shape"])

    img = Image.new("RGBA", (frame_w, frame_h), (0, 0, 0, 0))
    if box_w >= 1 and box_h >= 1:
        draw = ImageDraw.Draw(img)
        box = [cx - box_w / 2, cy - box_h / 2, cx + box_w / 2, cy + box_h / 2]
        radius = min(ITEM_BORDER_RADIUS, box_w / 2, box_h / 2)
        draw.rounded_rectangle(box, radius=radius, fill=(*color, 255))

        label = str(item.get("text") or item.get("label") or item.get("id", ""))
        font = load_font(max(12, round(24 * frame_h / 1080 * scale)))
        bbox = draw.textbbox((0, 0), label, font=font)
        text_w, text_h = bbox[2] - bbox[0], bbox[3] - bbox[1]
        if text_w <= box_w and text_h <= box_h:
            text_color = colors.get("text", DEFAULT_TEXT_COLOR)
            draw.text((cx - text_w / 2, cy - text_h / 2), label, fill=(*text_color, 255), font=font)

    rotation = values.get("rotation", 0.0)
    if rotation:
        # Pillow rotates counter-clockwise; CSS rotate() is clockwise.
        img = img.rotate(-rotation, center=(cx, cy), resample=Image.BICUBIC)

    blur = animation["blur"] + values.get("blur", 0.0)
    if blur > 0:
        img = img.filter(ImageFilter.GaussianBlur(blur))

    return np.array(img)


# ── Scene transitions ────────────────────────────────────────────


def apply_scene_transition(
    frame: np.ndarray,
    transition: dict | None,
    background: tuple[int, int, int],
) -> np.ndarray:
    """Apply an evaluated entrance transition to the scene's frame.

    For flips only the incoming face is drawn; while the outgoing face is
    showing the frame is background.
    """
    if not transition or not transition.get("active"):
        return frame
    h, w = frame.shape[:2]
    ttype = transition["type"]

    if ttype == "fade":
        bg = _solid(frame.shape, background).astype(np.float32)
        opacity = clamp(transition["opacity"], 0.0, 1.0)
        return (frame.astype(np.float32) * opacity + bg * (1 - opacity)).astype(np.uint8)

    if ttype == "slide":
        span = w if transition["axis"] == "X" else h
        offset = round(transition["offsetPercent"] / 100 * span)
        if transition["axis"] == "X":
            return _shift(frame, offset, 0, background)
        return _shift(frame, 0, offset, background)

    if ttype == "curtain":
        out = frame.copy()
        panel = resolve_color(transition["color"], {})
        left_end = int(round(w / 2 + transition["leftPanelX"]))
        right_start = int(round(w / 2 + transition["rightPanelX"]))
        if left_end > 0:
            out[:, :min(w, left_end)] = panel
        if right_start < w:
            out[:, max(0, right_start):] = panel
        return out

    if ttype == "wheel":
        img = Image.fromarray(frame).rotate(
            -transition["rotation"],
            center=(transition["pivotX"], transition["pivotY"]),
            translate=(transition["offsetX"], transition["offsetY"]),
            resample=Image.BICUBIC,
            fillcolor=background,
        )
        return np.array(img)

    if ttype == "flip":
        if transition["back"]["opacity"] < 1:
            return _solid(frame.shape, background)
        factor = abs(math.cos(transition["back"]["rotation"]))
        out = _solid(frame.shape, background)
        if transition["axis"] == "Y":
            new_w = max(1, round(w * factor))
            squashed = np.array(Image.fromarray(frame).resize((new_w, h)))
            x0 = (w - new_w) // 2
            out[:, x0:x0 + new_w] = squashed
        else:
            new_h = max(1, round(h * factor))
            squashed = np.array(Image.fromarray(frame).resize((w, new_h)))
            y0 = (h - new_h) // 2
            out[y0:y0 + new_h, :] = squashed
        return out

    return frame


# ── Cursors ──────────────────────────────────────────────────────


def draw_cursor(frame: np.ndarray, cursor: dict) -> np.ndarray:
    """Draw a cursor arrow and its active click effects onto the frame."""
    h, w = frame.shape[:2]
    x, y = cursor["x"], cursor["y"]
    size = CURSOR_BASE_SIZE * cursor.get("scale", 1.0) * h / 720

    layer = Image.new("RGBA", (w, h), (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)

    for effect in cursor.get("clicks") or []:
        if effect["type"] == "ripple":
            for ring in effect["rings"]:
                r = ring["radius"]
                alpha = int(255 * clamp(ring["opacity"], 0.0, 1.0))
                if r >= 1 and alpha > 0:
                    draw.ellipse([x - r, y - r, x + r, y + r],
                                 outline=(*RIPPLE_COLOR, alpha), width=3)
            dot_alpha = int(255 * 0.8 * clamp(effect["dotOpacity"], 0.0, 1.0))
            if dot_alpha > 0:
                draw.ellipse([x - 6, y - 6, x + 6, y + 6], fill=(*RIPPLE_COLOR, dot_alpha))
        elif effect["type"] == "highlight":
            r = 20 * effect["scale"]
            alpha = int(255 * clamp(effect["opacity"], 0.0, 1.0))
            draw.ellipse([x - r, y - r, x + r, y + r], fill=(*HIGHLIGHT_COLOR, alpha // 2))

    arrow = [
        (x, y),
        (x, y + size),
        (x + size * 0.28, y + size * 0.72),
        (x + size * 0.62, y + size * 0.62),
    ]
    draw.polygon(arrow, fill=(255, 255, 255, 255), outline=(0, 0, 0, 255))

    return alpha_blend(frame, np.array(layer))


# ── Frame rendering ──────────────────────────────────────────────


def render_preview_frame(
    composition: dict,
    state: dict,
    items_by_key: dict | None = None,
) -> np.ndarray:
    """Render one evaluated frame state to an RGB image.

    Args:
        composition: Normalized composition.
        state: Output of evaluate_frame() for the frame.
        items_by_key: Optional index_items(composition), to avoid rebuilding
            the index for every frame.

    Returns:
        numpy array of shape (height, width, 3), dtype uint8.
    """
    w, h = composition["width"], composition["height"]
    colors = composition.get("colors") or {}
    background = colors.get("background", DEFAULT_BACKGROUND)
    lookup = items_by_key if items_by_key is not None else index_items(composition)

    frame = _solid((h, w, 3), background)
    for item_state in state["items"]:
        item = lookup.get((item_state["trackId"], item_state["id"]), {})
        if item.get("type", item_state["type"]) in NON_VISUAL_TYPES:
            continue
        layer = render_item_layer(item, item_state, w, h, colors)
        frame = alpha_blend(frame, layer, item_state["opacity"])

    scene = state.get("scene")
    if scene and scene.get("transition"):
        frame = apply_scene_transition(frame, scene["transition"], background)

    for cursor in state["cursors"]:
        frame = draw_cursor(frame, cursor)

    return frame


def build_preview_clip(
    composition: dict,
    resolved_targets: dict | None = None,
    start_frame: int = 0,
    end_frame: int | None = None,
) -> VideoClip:
    """A moviepy clip that evaluates and renders frames on demand."""
    fps = composition["fps"]
    if end_frame is None:
        end_frame = composition["durationInFrames"]
    n_frames = max(1, end_frame - start_frame)
    lookup = index_items(composition)

    def make_frame(t):
        frame = start_frame + min(math.floor(t * fps + 0.5), n_frames - 1)
        state = evaluate_frame(composition, frame, resolved_targets)
        return render_preview_frame(composition, state, lookup)

    return VideoClip(make_frame, duration=n_frames / fps).with_fps(fps)


def export_clip(clip, output_path, fps, quiet=False):
    """Write a clip to mp4 with standard encoding settings."""
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    clip.write_videofile(
        str(output_path),
        fps=fps,
        codec="libx264",
        audio=False,
        preset="medium",
        ffmpeg_params=["-crf", "20", "-pix_fmt", "yuv420p"],
        logger=None if quiet else "bar",
    )


def save_still(composition: dict, frame: int, output_path, resolved_targets: dict | None = None) -> None:
    """Render a single frame to a PNG."""
    state = evaluate_frame(composition, frame, resolved_targets)
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(render_preview_frame(composition, state)).save(str(output_path))
