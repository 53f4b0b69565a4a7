"""Easing curves and spring physics.

Every function here is a pure function of the frame number: there is no
per-frame integration state, so any frame can be evaluated directly and in
any order (scrubbing backwards yields the same values as playing forwards).

Spring progress is the unit step response of a mass-spring-damper, solved in
closed form. When a target duration is given the response is time-stretched
so the spring's natural settle time lands on that duration.
"""

import math

from .common import clamp, is_finite_number


# ── Spring configuration ──────────────────────────────────────────

DEFAULT_SPRING_CONFIG = {
    "mass": 1.0,
    "stiffness": 100.0,
    "damping": 10.0,
    "velocity": 0.0,
}

SPRING_PRESETS = {
    "smooth": {"mass": 1.0, "stiffness": 100.0, "damping": 200.0, "velocity": 0.0},
    "snappy": {"mass": 0.5, "stiffness": 300.0, "damping": 200.0, "velocity": 0.0},
    "heavy": {"mass": 5.0, "stiffness": 150.0, "damping": 200.0, "velocity": 0.0},
    "bouncy": {"mass": 1.0, "stiffness": 200.0, "damping": 100.0, "velocity": 0.0},
    "gentle": {"mass": 2.0, "stiffness": 100.0, "damping": 300.0, "velocity": 0.0},
    "wobbly": {"mass": 1.0, "stiffness": 180.0, "damping": 80.0, "velocity": 0.0},
}

DEFAULT_SPRING_PRESET = "smooth"

# Editor-facing ranges for user-tuned springs.
SPRING_CONFIG_LIMITS = {
    "mass": (0.1, 10.0),
    "stiffness": (1.0, 1000.0),
    "damping": (1.0, 500.0),
}

# Damping ratios below this oscillate visibly for a long time.
MIN_STABLE_DAMPING_RATIO = 0.05

SPRING_REST_THRESHOLD = 0.005
SPRING_REST_FRAMES = 20
MAX_SPRING_MEASURE_FRAMES = 100_000


def get_spring_config(preset: str | None) -> dict:
    """Return a copy of a named preset. Unknown names get the smooth preset."""
    return dict(SPRING_PRESETS.get(preset, SPRING_PRESETS[DEFAULT_SPRING_PRESET]))


def resolve_spring_config(
    config: dict | None = None, preset: str | None = None,
) -> dict | None:
    """Pick the spring to use: an explicit config wins over a named preset.

    Returns None when neither is given.
    """
    if config:
        return {**DEFAULT_SPRING_CONFIG, **config}
    if preset:
        return get_spring_config(preset)
    return None


def clamp_spring_config(config: dict) -> dict:
    """Clamp mass, stiffness and damping into their editor ranges."""
    clamped = dict(config)
    for key, (low, high) in SPRING_CONFIG_LIMITS.items():
        if key in clamped:
            clamped[key] = clamp(clamped[key], low, high)
    return clamped


def damping_ratio(config: dict) -> float:
    """zeta = c / (2 * sqrt(k * m))."""
    merged = {**DEFAULT_SPRING_CONFIG, **config}
    return merged["damping"] / (2.0 * math.sqrt(merged["stiffness"] * merged["mass"]))


def is_spring_stable(config: dict) -> bool:
    """False for springs so under-damped they never visibly settle."""
    return damping_ratio(config) >= MIN_STABLE_DAMPING_RATIO


def _sanitize_spring_config(config: dict | None) -> dict:
    """Merge with defaults, replacing unusable values instead of raising."""
    merged = dict(DEFAULT_SPRING_CONFIG)
    for key, default in DEFAULT_SPRING_CONFIG.items():
        value = (config or {}).get(key, default)
        if not is_finite_number(value):
            value = default
        if key != "velocity" and value <= 0:
            value = default
        merged[key] = float(value)
    return merged


# ── Spring evaluation ─────────────────────────────────────────────

def _step_response(t: float, config: dict) -> float:
    """Position of a spring released at 0 toward 1 after t seconds.

    Under-damped springs use the oscillating solution. Critically and
    over-damped springs use the critically damped solution.
    """
    mass = config["mass"]
    stiffness = config["stiffness"]
    damping = config["damping"]
    v0 = -config["velocity"]
    x0 = 1.0

    zeta = damping / (2.0 * math.sqrt(stiffness * mass))
    omega0 = math.sqrt(stiffness / mass)

    if zeta < 1:
        omega1 = omega0 * math.sqrt(1.0 - zeta ** 2)
        envelope = math.exp(-zeta * omega0 * t)
        offset = envelope * (
            math.sin(omega1 * t) * ((v0 + zeta * omega0 * x0) / omega1)
            + x0 * math.cos(omega1 * t)
        )
        return 1.0 - offset

    envelope = math.exp(-omega0 * t)
    return 1.0 - envelope * (x0 + (v0 + omega0 * x0) * t)


def measure_spring(
    fps: float,
    config: dict | None = None,
    threshold: float = SPRING_REST_THRESHOLD,
) -> int:
    """Natural settle time of a spring, in frames.

    Steps frame by frame until the spring is within threshold of its target,
    then requires it to stay there for SPRING_REST_FRAMES more frames.
    """
    config = _sanitize_spring_config(config)
    if not is_finite_number(fps) or fps <= 0:
        fps = 30

    def _difference(f):
        return abs(_step_response(f / fps, config) - 1.0)

    frame = 0
    while _difference(frame) >= threshold and frame < MAX_SPRING_MEASURE_FRAMES:
        frame += 1
    finished_frame = frame

    settled = 0
    while settled < SPRING_REST_FRAMES and frame < MAX_SPRING_MEASURE_FRAMES:
        frame += 1
        if _difference(frame) >= threshold:
            settled = 0
            finished_frame = frame + 1
        else:
            settled += 1

    return finished_frame


def spring_progress(
    frame: float,
    fps: float,
    config: dict | None = None,
    duration: float | None = None,
) -> float:
    """Spring progress 0 → 1 at the given frame.

    Args:
        frame: Frames since the spring started. Values <= 0 give 0.
        fps: Frames per second; converts frames to seconds.
        config: mass/stiffness/damping/velocity. Missing keys use defaults.
        duration: If set, stretch the spring so it settles on this frame.
            At frame >= duration the result is exactly 1.

    Returns:
        Progress value. May overshoot 1 before settling.
    """
    if not is_finite_number(frame) or frame <= 0:
        return 0.0
    if not is_finite_number(fps) or fps <= 0:
        fps = 30
    config = _sanitize_spring_config(config)

    if duration is not None:
        if not is_finite_number(duration) or duration <= 0 or frame >= duration:
            return 1.0
        natural = measure_spring(fps, config)
        frame = frame * natural / duration

    return _step_response(frame / fps, config)


# ── Easing curves ─────────────────────────────────────────────────

def ease_linear(t: float) -> float:
    return t


def ease_in(t: float) -> float:
    return t * t


def ease_out(t: float) -> float:
    return 1 - (1 - t) * (1 - t)


def ease_in_out(t: float) -> float:
    if t < 0.5:
        return 2 * t * t
    return 1 - (-2 * t + 2) ** 2 / 2


EASING_FUNCTIONS = {
    "linear": ease_linear,
    "ease-in": ease_in,
    "ease-out": ease_out,
    "ease-in-out": ease_in_out,
}

VALID_EASINGS = set(EASING_FUNCTIONS) | {"spring"}

DEFAULT_EASING = "ease-out"


def resolve_progress(
    local_frame: float,
    duration: float,
    easing: str | None = "linear",
    fps: float = 30,
    spring_config: dict | None = None,
    spring_preset: str | None = None,
) -> float:
    """Progress 0 → 1 through a segment of `duration` frames.

    Degenerate durations (<= 0 or non-finite) report the end state, 1.
    A non-finite local_frame reports the start state, 0. A spring is used
    when easing is "spring" or a spring config/preset is supplied; an
    explicit config overrides a preset. Unknown easing names are linear.
    """
    if not is_finite_number(duration) or duration <= 0:
        return 1.0
    if not is_finite_number(local_frame):
        return 0.0

    config = resolve_spring_config(spring_config, spring_preset)
    if easing == "spring" or config is not None:
        if config is None:
            config = get_spring_config(DEFAULT_SPRING_PRESET)
        return spring_progress(local_frame, fps, config, duration=duration)

    t = clamp(local_frame / duration, 0.0, 1.0)
    return EASING_FUNCTIONS.get(easing, ease_linear)(t)
