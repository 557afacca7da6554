"""Color helpers: parsing, formatting, averaging and favicon sampling."""

import math
import re
from collections.abc import Sequence
from io import BytesIO

from PIL import Image

from advanced_tab_groups.models import PickerSample

Rgb = tuple[int, int, int]

DEFAULT_ALPHA_THRESHOLD = 128
DEFAULT_BRIGHTNESS_THRESHOLD = 30

_RGB_RE = re.compile(r"rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)")
_HEX_RE = re.compile(r"#([0-9a-fA-F]{6}|[0-9a-fA-F]{3})\b")


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; stored colors use half-up.
    return math.floor(value + 0.5)


def average_colors(colors: Sequence[Rgb]) -> Rgb:
    """Unweighted per-channel mean, rounded to integers. Empty input yields black."""
    if not colors:
        return (0, 0, 0)
    n = len(colors)
    return (
        round_half_up(sum(c[0] for c in colors) / n),
        round_half_up(sum(c[1] for c in colors) / n),
        round_half_up(sum(c[2] for c in colors) / n),
    )


def format_rgb(color: Rgb) -> str:
    return f"rgb({color[0]}, {color[1]}, {color[2]})"


def _hex_to_rgb(hex_digits: str) -> Rgb:
    if len(hex_digits) == 3:
        hex_digits = "".join(ch * 2 for ch in hex_digits)
    return (int(hex_digits[0:2], 16), int(hex_digits[2:4], 16), int(hex_digits[4:6], 16))


def parse_color(value: str | None) -> Rgb | None:
    """Parse an `rgb()`, hex, or gradient value into its first RGB triple.

    Gradients resolve to their first color stop. Returns None when nothing can be parsed.
    """
    if not value:
        return None
    value = value.strip()
    if value.startswith("#"):
        match = _HEX_RE.match(value)
        return _hex_to_rgb(match.group(1)) if match else None
    match = _RGB_RE.search(value)
    if match:
        return (int(match.group(1)), int(match.group(2)), int(match.group(3)))
    if "gradient" in value:
        match = _HEX_RE.search(value)
        if match:
            return _hex_to_rgb(match.group(1))
    return None


def picker_sample_from_css(value: str | None, is_primary: bool = False, type: str | None = None) -> PickerSample | None:
    """Build a picker sample from a dot's CSS color; unset or 'undefined' dots yield None."""
    if not value or value == "undefined":
        return None
    rgb = parse_color(value) if value.startswith(("rgb", "#")) else None
    return PickerSample(c=rgb or (0, 0, 0), is_primary=is_primary, type=type)


def representative_color(
    rgba: bytes,
    alpha_threshold: int = DEFAULT_ALPHA_THRESHOLD,
    brightness_threshold: int = DEFAULT_BRIGHTNESS_THRESHOLD,
) -> Rgb | None:
    """Average the channels of content pixels in a flat RGBA buffer.

    Pixels at or below the alpha threshold are background, as are pixels whose
    channel sum is at or below the brightness threshold. Returns None when no
    pixel qualifies.
    """
    r = g = b = count = 0
    for i in range(0, len(rgba) - 3, 4):
        pr, pg, pb, pa = rgba[i], rgba[i + 1], rgba[i + 2], rgba[i + 3]
        if pa > alpha_threshold and pr + pg + pb > brightness_threshold:
            r += pr
            g += pg
            b += pb
            count += 1
    if count == 0:
        return None
    return (round_half_up(r / count), round_half_up(g / count), round_half_up(b / count))


def sample_image(
    data: bytes,
    alpha_threshold: int = DEFAULT_ALPHA_THRESHOLD,
    brightness_threshold: int = DEFAULT_BRIGHTNESS_THRESHOLD,
) -> Rgb | None:
    """Decode image bytes with Pillow and return their representative color.

    Raises whatever Pillow raises for undecodable data (usually `PIL.UnidentifiedImageError`).
    """
    with Image.open(BytesIO(data)) as img:
        rgba = img.convert("RGBA").tobytes()
    return representative_color(rgba, alpha_threshold, brightness_threshold)
