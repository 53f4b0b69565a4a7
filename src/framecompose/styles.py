"""CSS style builders for interpolated keyframe values.

Turn property maps such as {"blur": 4, "skewX": 10, "shadowBlur": 20}
into filter / transform / box-shadow strings for web renderers.
"""

from .common import css_number


FILTER_DEFAULTS = {
    "blur": 0,
    "brightness": 1,
    "contrast": 1,
    "saturate": 1,
    "hueRotate": 0,
}

SHADOW_KEYS = ("shadowBlur", "shadowOffsetX", "shadowOffsetY", "shadowOpacity")


def _differs(values: dict, key: str, neutral: float) -> bool:
    return values.get(key) is not None and values[key] != neutral


def has_filter_effects(values: dict) -> bool:
    return any(_differs(values, key, neutral) for key, neutral in FILTER_DEFAULTS.items())


def has_shadow_effects(values: dict) -> bool:
    return any(values.get(key) is not None for key in SHADOW_KEYS)


def build_filter_style(values: dict) -> str:
    """CSS filter from blur/brightness/contrast/saturate/hueRotate, or 'none'."""
    filters = []
    if _differs(values, "blur", 0):
        filters.append(f"blur({css_number(values['blur'])}px)")
    if _differs(values, "brightness", 1):
        filters.append(f"brightness({css_number(values['brightness'])})")
    if _differs(values, "contrast", 1):
        filters.append(f"contrast({css_number(values['contrast'])})")
    if _differs(values, "saturate", 1):
        filters.append(f"saturate({css_number(values['saturate'])})")
    if _differs(values, "hueRotate", 0):
        filters.append(f"hue-rotate({css_number(values['hueRotate'])}deg)")
    return " ".join(filters) or "none"


def build_skew_transform(values: dict) -> str:
    transforms = []
    if _differs(values, "skewX", 0):
        transforms.append(f"skewX({css_number(values['skewX'])}deg)")
    if _differs(values, "skewY", 0):
        transforms.append(f"skewY({css_number(values['skewY'])}deg)")
    return " ".join(transforms)


def build_keyframe_transform(values: dict) -> str:
    """scale/rotation keyframe values as a CSS transform fragment."""
    transforms = []
    if _differs(values, "scale", 1):
        transforms.append(f"scale({css_number(values['scale'])})")
    if _differs(values, "rotation", 0):
        transforms.append(f"rotate({css_number(values['rotation'])}deg)")
    return " ".join(transforms)


def build_shadow_style(values: dict) -> str | None:
    """box-shadow from the shadow* values; None when none of them is set.

    Unset parts default to blur 10, offset (0, 4), opacity 0.5.
    """
    if not has_shadow_effects(values):
        return None
    blur = values.get("shadowBlur", 10)
    x = values.get("shadowOffsetX", 0)
    y = values.get("shadowOffsetY", 4)
    opacity = values.get("shadowOpacity", 0.5)
    return (
        f"{css_number(x)}px {css_number(y)}px {css_number(blur)}px "
        f"rgba(0,0,0,{css_number(opacity)})"
    )


def build_text_styles(values: dict) -> dict[str, str]:
    styles = {}
    if values.get("letterSpacing") is not None:
        styles["letterSpacing"] = f"{css_number(values['letterSpacing'])}px"
    if values.get("wordSpacing") is not None:
        styles["wordSpacing"] = f"{css_number(values['wordSpacing'])}px"
    return styles


def build_all_styles(values: dict, base_transform: str = "") -> dict:
    """All style builders at once; skews are appended to base_transform."""
    transforms = [
        t for t in (base_transform, build_keyframe_transform(values), build_skew_transform(values))
        if t and t != "none"
    ]
    return {
        "filter": build_filter_style(values),
        "transform": " ".join(transforms) or "none",
        "boxShadow": build_shadow_style(values),
        "textStyles": build_text_styles(values),
    }
