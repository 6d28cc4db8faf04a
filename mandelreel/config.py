from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple

from mandelreel.geometry import DEFAULT_CENTER
from mandelreel.renderers.palette import SCHEMES

class ConfigError(ValueError):
    """Invalid or incomplete run configuration."""

@dataclass(frozen=True)
class RenderConfig:
    max_iter: int
    zoom_start: int
    zoom_end: int
    zoom_factor: float
    width: int = 1200
    height: int = 1200
    center: Tuple[float, float] = DEFAULT_CENTER
    color_scheme: str = "gradient"
    invert: bool = False
    frames_dir: str = "frames"
    frame_prefix: str = "frame"
    output_video: str = "mandelbrot_zoom.mp4"
    workers: Optional[int] = None

    @property
    def total_frames(self) -> int:
        return self.zoom_end - self.zoom_start + 1

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["center"] = list(self.center)
        return out

def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    if not config_path:
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = json.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config {config_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config {config_path} is not valid JSON: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigError("Config JSON must be an object.")
    return cfg

def _as_int(cfg: Dict[str, Any], key: str) -> int:
    value = cfg[key]
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ConfigError(f"{key} must be an integer, got {value!r}")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {value!r}") from None

def _as_float(cfg: Dict[str, Any], key: str) -> float:
    value = cfg[key]
    try:
        out = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a number, got {value!r}") from None
    if not math.isfinite(out):
        raise ConfigError(f"{key} must be finite, got {value!r}")
    return out

def normalise_config(cfg: Dict[str, Any]) -> RenderConfig:
    required = ["max_iter", "zoom_start", "zoom_end", "zoom_factor"]
    for r in required:
        if cfg.get(r) is None:
            raise ConfigError(f"Missing config field: {r}")

    max_iter = _as_int(cfg, "max_iter")
    zoom_start = _as_int(cfg, "zoom_start")
    zoom_end = _as_int(cfg, "zoom_end")
    zoom_factor = _as_float(cfg, "zoom_factor")

    if max_iter <= 0:
        raise ConfigError("max_iter must be a positive integer.")
    if zoom_start < 0:
        raise ConfigError("zoom_start must be >= 0.")
    if zoom_end < zoom_start:
        raise ConfigError("zoom_end must be >= zoom_start.")
    if zoom_factor <= 1.0:
        raise ConfigError("zoom_factor must be > 1.")

    out: Dict[str, Any] = {
        "max_iter": max_iter,
        "zoom_start": zoom_start,
        "zoom_end": zoom_end,
        "zoom_factor": zoom_factor,
    }

    for key in ("width", "height"):
        if cfg.get(key) is not None:
            out[key] = _as_int(cfg, key)
            if out[key] <= 0:
                raise ConfigError("width/height must be positive.")

    if cfg.get("center") is not None:
        center = cfg["center"]
        if not (isinstance(center, (list, tuple)) and len(center) == 2):
            raise ConfigError("center must be [re, im].")
        pair = {"re": center[0], "im": center[1]}
        out["center"] = (_as_float(pair, "re"), _as_float(pair, "im"))

    if cfg.get("color_scheme") is not None:
        scheme = str(cfg["color_scheme"])
        if scheme not in SCHEMES:
            raise ConfigError(f"color_scheme must be one of: {', '.join(sorted(SCHEMES))}")
        out["color_scheme"] = scheme

    if cfg.get("invert") is not None:
        out["invert"] = bool(cfg["invert"])

    for key in ("frames_dir", "frame_prefix", "output_video"):
        if cfg.get(key) is not None:
            out[key] = str(cfg[key])
    if out.get("frame_prefix") == "":
        raise ConfigError("frame_prefix must not be empty.")

    if cfg.get("workers") is not None:
        out["workers"] = _as_int(cfg, "workers")
        if out["workers"] <= 0:
            raise ConfigError("workers must be positive.")

    return RenderConfig(**out)
