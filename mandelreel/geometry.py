from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

# Seahorse-tail point used for the deep zoom; float64 keeps ~17 significant digits of it.
DEFAULT_CENTER: Tuple[float, float] = (-1.7499984109937408, -1.6571246929541869e-15)
BASE_HALF_EXTENT = 2.0

@dataclass(frozen=True)
class Viewport:
    """Rectangular window onto the complex plane."""

    x_min: float
    x_max: float
    y_min: float
    y_max: float

    def __post_init__(self) -> None:
        if not (self.x_min < self.x_max and self.y_min < self.y_max):
            raise ValueError(
                f"Degenerate viewport x=[{self.x_min}, {self.x_max}] y=[{self.y_min}, {self.y_max}]"
            )

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    @property
    def half_width(self) -> float:
        return self.width / 2.0

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.x_min + self.x_max) / 2.0, (self.y_min + self.y_max) / 2.0)

def viewport_for_frame(
    center: Tuple[float, float],
    zoom_factor: float,
    frame_index: int,
    half_extent: float = BASE_HALF_EXTENT,
) -> Viewport:
    """Square viewport around ``center`` after ``frame_index`` zoom steps.

    Zoom is geometric: each frame is exactly ``1 / zoom_factor`` the width of
    the previous one. Past a scale of roughly 1e-13 neighbouring pixels map to
    the same float64 coordinate and frames start to pixelate.
    """
    if zoom_factor <= 1.0:
        raise ValueError("zoom_factor must be > 1")
    if frame_index < 0:
        raise ValueError("frame_index must be >= 0")

    cx, cy = center
    scale = half_extent / zoom_factor ** frame_index
    return Viewport(x_min=cx - scale, x_max=cx + scale, y_min=cy - scale, y_max=cy + scale)
