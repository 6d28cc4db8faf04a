from __future__ import annotations

import math
from typing import Callable, Dict, NamedTuple

class Color(NamedTuple):
    r: int
    g: int
    b: int

BLACK = Color(0, 0, 0)

ColorScheme = Callable[[float], Color]

def gradient_color(ratio: float) -> Color:
    """Blue for fast escapes fading to light grey inside the set."""
    t = min(255, max(0, math.floor(ratio * 255)))
    return Color(t, t, 255 - t)

def sinebow_color(ratio: float) -> Color:
    """
    Three sine waves 120 degrees apart over one turn of ``ratio``.

    Channels are floored from [-255, 255] and stored as bytes, so negative
    values wrap modulo 256. Points inside the set are black.
    """
    if ratio >= 1.0:
        return BLACK

    turn = 2 * math.pi * ratio
    r = math.floor(math.sin(turn) * 255)
    g = math.floor(math.sin(turn + 2 * math.pi / 3) * 255)
    b = math.floor(math.sin(turn + 4 * math.pi / 3) * 255)
    return Color(r % 256, g % 256, b % 256)

SCHEMES: Dict[str, ColorScheme] = {
    "gradient": gradient_color,
    "sinebow": sinebow_color,
}

def get_scheme(name: str) -> ColorScheme:
    try:
        return SCHEMES[name]
    except KeyError:
        raise ValueError(f"Unknown color scheme {name!r}; choose one of: {', '.join(sorted(SCHEMES))}") from None
