"""Frame jobs and the queue that hands them to workers."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, List, Optional, Tuple

from mandelreel.config import RenderConfig
from mandelreel.geometry import BASE_HALF_EXTENT, Viewport, viewport_for_frame

@dataclass(frozen=True)
class FrameJob:
    frame_index: int
    base_viewport: Viewport
    zoom_factor: float
    # Exact zoom target. base_viewport.center is rebuilt from rounded bounds.
    center: Tuple[float, float]
    half_extent: float = BASE_HALF_EXTENT

    def viewport(self) -> Viewport:
        """Viewport for this frame, derived from the zoom center alone."""
        return viewport_for_frame(self.center, self.zoom_factor, self.frame_index, half_extent=self.half_extent)

def generate_jobs(cfg: RenderConfig) -> List[FrameJob]:
    base = viewport_for_frame(cfg.center, cfg.zoom_factor, 0)
    return [
        FrameJob(frame_index=i, base_viewport=base, zoom_factor=cfg.zoom_factor, center=cfg.center)
        for i in range(cfg.zoom_start, cfg.zoom_end + 1)
    ]

class JobQueue:
    """
    Multi-consumer FIFO with close semantics.

    Every job put on the queue is returned by exactly one ``get`` call. Once
    the queue is closed and drained, ``get`` returns ``None`` to every
    consumer, so surplus workers exit without seeing a job.
    """

    def __init__(self, jobs: Optional[Iterable[FrameJob]] = None) -> None:
        self._items: Deque[FrameJob] = deque()
        self._cond = threading.Condition()
        self._closed = False
        self._delivered = 0
        self._completed = 0
        if jobs is not None:
            for job in jobs:
                self.put(job)

    def put(self, job: FrameJob) -> None:
        with self._cond:
            if self._closed:
                raise RuntimeError("Cannot put on a closed JobQueue.")
            self._items.append(job)
            self._cond.notify()

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def get(self) -> Optional[FrameJob]:
        with self._cond:
            while not self._items and not self._closed:
                self._cond.wait()
            if not self._items:
                return None
            self._delivered += 1
            return self._items.popleft()

    def task_done(self) -> None:
        with self._cond:
            if self._completed >= self._delivered:
                raise ValueError("task_done() called more times than jobs were delivered.")
            self._completed += 1

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    @property
    def delivered(self) -> int:
        with self._cond:
            return self._delivered

    @property
    def completed(self) -> int:
        with self._cond:
            return self._completed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)
