from __future__ import annotations

import glob
import os
import re
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Protocol

from natsort import natsorted

from mandelreel.util.logging_setup import get_logger

FPS = 30

@dataclass(frozen=True)
class AssemblyResult:
    output_path: str
    returncode: Optional[int]
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

class VideoAssembler(Protocol):
    def assemble(self, frames_dir: str, output_path: str) -> AssemblyResult:
        ...

def collect_frames(frames_dir: str, prefix: str) -> List[str]:
    """Frame files ``<prefix>_NNNN.png`` in ``frames_dir``, in frame order."""
    pattern = re.compile(rf"^{re.escape(prefix)}_(\d{{4,}})\.png$")
    found = glob.glob(os.path.join(glob.escape(frames_dir), f"{glob.escape(prefix)}_*.png"))
    return natsorted(p for p in found if pattern.match(os.path.basename(p)))

def _frame_number(path: str) -> int:
    stem = os.path.splitext(os.path.basename(path))[0]
    return int(stem.rsplit("_", 1)[1])

class FfmpegAssembler:
    """Stitch a numbered PNG sequence into an H.264 MP4 with the ffmpeg binary."""

    def __init__(self, *, prefix: str = "frame", fps: int = FPS, binary: str = "ffmpeg") -> None:
        self.prefix = prefix
        self.fps = fps
        self.binary = binary

    def build_command(self, frames_dir: str, output_path: str, start_number: int) -> List[str]:
        return [
            self.binary,
            "-y",
            "-framerate", str(self.fps),
            "-start_number", str(start_number),
            "-i", os.path.join(frames_dir, f"{self.prefix}_%04d.png"),
            "-c:v", "libx264",
            "-pix_fmt", "yuv420p",
            output_path,
        ]

    def assemble(self, frames_dir: str, output_path: str) -> AssemblyResult:
        logger = get_logger()
        frames = collect_frames(frames_dir, self.prefix)
        if not frames:
            return AssemblyResult(output_path, None, f"No frames matching {self.prefix}_NNNN.png in {frames_dir}")

        cmd = self.build_command(frames_dir, output_path, _frame_number(frames[0]))
        logger.info("Encoding video %s from %s frames @ %sfps", output_path, len(frames), self.fps)
        logger.debug("Running: %s", " ".join(cmd))
        try:
            r = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            return AssemblyResult(output_path, None, f"Failed to execute {self.binary}: {e}")

        if r.returncode != 0:
            tail = (r.stderr or "").strip().splitlines()[-5:]
            return AssemblyResult(output_path, r.returncode, "\n".join(tail))

        logger.info("Video written: %s", output_path)
        return AssemblyResult(output_path, 0)
