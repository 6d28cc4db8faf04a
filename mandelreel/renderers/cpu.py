from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from PIL import Image

from mandelreel.config import RenderConfig
from mandelreel.jobs import FrameJob
from mandelreel.renderers.escape import escape_ratio
from mandelreel.renderers.palette import get_scheme
from mandelreel.util.logging_setup import get_logger

@dataclass
class RenderedFrame:
    frame_index: int
    width: int
    height: int
    pixels: np.ndarray

def render_frame(job: FrameJob, cfg: RenderConfig) -> RenderedFrame:
    logger = get_logger()
    width = cfg.width
    height = cfg.height
    max_iter = cfg.max_iter
    color_for = get_scheme(cfg.color_scheme)

    vp = job.viewport()
    re_min = vp.x_min
    im_min = vp.y_min
    re_span = vp.width
    im_span = vp.height

    logger.debug("[Frame %04d] render start re=(%r,%r) im=(%r,%r) iter=%s",
                 job.frame_index, vp.x_min, vp.x_max, vp.y_min, vp.y_max, max_iter)

    buf = np.zeros((height, width, 3), dtype=np.uint8)
    for y in range(height):
        im = im_min + (y / height) * im_span
        row = buf[y]
        for x in range(width):
            re = re_min + (x / width) * re_span
            row[x] = color_for(escape_ratio(complex(re, im), max_iter))

    if cfg.invert:
        np.subtract(255, buf, out=buf)

    return RenderedFrame(frame_index=job.frame_index, width=width, height=height, pixels=buf)

def frame_to_image(frame: RenderedFrame) -> Image.Image:
    return Image.fromarray(frame.pixels)
