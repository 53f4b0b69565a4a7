"""Timeline snapping, frame/pixel conversion and zoom.

Editor-side helpers: snap points come from the composition (start, end,
playhead, every item edge) and a dragged item snaps to the nearest point
within a pixel threshold.
"""

import math

from .common import clamp, is_finite_number


DEFAULT_SNAP_THRESHOLD = 10  # pixels

MIN_ZOOM = 0.1
MAX_ZOOM = 10.0
DEFAULT_ZOOM = 1.0
ZOOM_STEP = 0.1
BASE_PIXELS_PER_FRAME = 2.0


# ── Snap points ───────────────────────────────────────────────────

def collect_snap_points(
    tracks: list[dict], current_frame: float, duration_in_frames: float,
) -> list[dict]:
    """Candidate {"frame", "label"} snap points, one per distinct frame.

    Order: timeline start, playhead, composition end, then each item's start
    and end. When two points share a frame the first one is kept.
    """
    points = [
        {"frame": 0, "label": "timeline-start"},
        {"frame": current_frame, "label": "playhead"},
        {"frame": duration_in_frames, "label": "clip-end"},
    ]
    for track in tracks or []:
        for item in track.get("items") or []:
            start = item.get("from", 0)
            points.append({"frame": start, "label": "clip-start"})
            points.append({"frame": start + item.get("durationInFrames", 0), "label": "clip-end"})

    unique = {}
    for point in points:
        unique.setdefault(point["frame"], point)
    return list(unique.values())


def snap_drag_delta(
    snap_points: list[dict],
    original_frame: float | None,
    delta_x: float,
    pixels_per_frame: float,
    threshold: float = DEFAULT_SNAP_THRESHOLD,
) -> float:
    """Adjust a horizontal drag delta so the item lands on a nearby snap point.

    The nearest point strictly closer than `threshold` pixels wins (ties keep
    the earlier point). Without one, or without an original frame or a
    usable zoom, the delta is returned unchanged.
    """
    if original_frame is None or not is_finite_number(pixels_per_frame) or pixels_per_frame <= 0:
        return delta_x

    current_frame = (original_frame * pixels_per_frame + delta_x) / pixels_per_frame
    closest = None
    closest_distance = threshold / pixels_per_frame
    for point in snap_points:
        distance = abs(current_frame - point["frame"])
        if distance < closest_distance:
            closest_distance = distance
            closest = point

    if closest is None:
        return delta_x
    return closest["frame"] * pixels_per_frame - original_frame * pixels_per_frame


# ── Frame / pixel / time conversion ───────────────────────────────

def frames_to_pixels(frames: float, pixels_per_frame: float) -> float:
    return frames * pixels_per_frame


def pixels_to_frames(pixels: float, pixels_per_frame: float) -> int:
    """Nearest whole frame; halves round up."""
    return math.floor(pixels / pixels_per_frame + 0.5)


def timeline_width(duration_in_frames: float, pixels_per_frame: float) -> float:
    return duration_in_frames * pixels_per_frame


def format_time(frame: float, fps: float) -> str:
    """M:SS.ff timecode, e.g. 95 frames at 30fps -> '0:03.05'."""
    total_seconds = frame / fps
    minutes = math.floor(total_seconds / 60)
    seconds = math.floor(total_seconds % 60)
    frames = math.floor(frame % fps)
    return f"{minutes}:{seconds:02d}.{frames:02d}"


def format_duration(duration_in_frames: float, fps: float) -> str:
    """Seconds with one decimal, e.g. '2.5s'."""
    return f"{duration_in_frames / fps:.1f}s"


# ── Zoom ──────────────────────────────────────────────────────────

def clamp_zoom(zoom: float) -> float:
    return clamp(zoom, MIN_ZOOM, MAX_ZOOM)


def pixels_per_frame(zoom: float) -> float:
    return BASE_PIXELS_PER_FRAME * zoom


def fit_zoom(container_width: float, duration_in_frames: float) -> float | None:
    """Zoom that fits the whole composition in the container, or None if undefined."""
    if duration_in_frames <= 0 or container_width <= 0:
        return None
    return clamp_zoom(container_width / duration_in_frames / BASE_PIXELS_PER_FRAME)


class TimelineZoom:
    """Zoom level of a timeline view (UI state, never stored in the composition)."""

    def __init__(self, zoom: float = DEFAULT_ZOOM):
        self.zoom = clamp_zoom(zoom)

    @property
    def pixels_per_frame(self) -> float:
        return pixels_per_frame(self.zoom)

    def set_zoom(self, zoom: float) -> None:
        self.zoom = clamp_zoom(zoom)

    def zoom_in(self) -> None:
        self.zoom = min(MAX_ZOOM, self.zoom + ZOOM_STEP)

    def zoom_out(self) -> None:
        self.zoom = max(MIN_ZOOM, self.zoom - ZOOM_STEP)

    def fit_to_view(self, container_width: float, duration_in_frames: float) -> None:
        zoom = fit_zoom(container_width, duration_in_frames)
        if zoom is not None:
            self.zoom = zoom

    def wheel(self, delta_y: float, modifier_held: bool) -> bool:
        """Ctrl/Cmd + wheel zooms one step. Returns True if the event was consumed."""
        if not modifier_held:
            return False
        step = -ZOOM_STEP if delta_y > 0 else ZOOM_STEP
        self.zoom = clamp_zoom(self.zoom + step)
        return True
