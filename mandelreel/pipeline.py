from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import Executor, ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Any, List, Optional, Sequence

from tqdm import tqdm

from mandelreel.config import RenderConfig
from mandelreel.jobs import FrameJob, JobQueue
from mandelreel.renderers.cpu import RenderedFrame, frame_to_image, render_frame
from mandelreel.util.logging_setup import get_logger, logging_initialiser

FrameWriter = Callable[[RenderedFrame, str, str], str]
ExecutorFactory = Callable[..., Executor]

def _ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)

def frame_path(frames_dir: str, prefix: str, frame_index: int) -> str:
    return os.path.join(frames_dir, f"{prefix}_{frame_index:04d}.png")

def save_frame(frame: RenderedFrame, frames_dir: str, prefix: str) -> str:
    path = frame_path(frames_dir, prefix, frame.frame_index)
    frame_to_image(frame).save(path, format="PNG")
    return path

@dataclass(frozen=True)
class FrameOutcome:
    frame_index: int
    path: Optional[str]
    elapsed: float
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

@dataclass
class RenderStats:
    frames_completed: int = 0
    frames_failed: int = 0
    failed_frames: List[int] = field(default_factory=list)
    total_elapsed: float = 0.0
    render_seconds: float = 0.0

    @classmethod
    def from_outcomes(cls, outcomes: Sequence[FrameOutcome], total_elapsed: float) -> "RenderStats":
        stats = cls(total_elapsed=total_elapsed)
        for o in sorted(outcomes, key=lambda o: o.frame_index):
            stats.render_seconds += o.elapsed
            if o.ok:
                stats.frames_completed += 1
            else:
                stats.frames_failed += 1
                stats.failed_frames.append(o.frame_index)
        return stats

    @property
    def total_frames(self) -> int:
        return self.frames_completed + self.frames_failed

    @property
    def status(self) -> str:
        if self.frames_failed == 0:
            return "success"
        if self.frames_completed == 0:
            return "failure"
        return "partial-failure"

    @property
    def avg_ms_per_frame(self) -> float:
        if self.total_frames == 0:
            return 0.0
        return 1000.0 * self.total_elapsed / self.total_frames

    def as_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "frames_completed": self.frames_completed,
            "frames_failed": self.frames_failed,
            "failed_frames": list(self.failed_frames),
            "total_elapsed": self.total_elapsed,
            "render_seconds": self.render_seconds,
            "avg_ms_per_frame": self.avg_ms_per_frame,
        }

def process_job(job: FrameJob, cfg: RenderConfig, writer: Optional[FrameWriter] = None) -> FrameOutcome:
    """Render one frame and write it. Write failures come back as a failed outcome."""
    logger = get_logger()
    write = writer or save_frame
    t0 = time.perf_counter()

    frame = render_frame(job, cfg)
    try:
        path = write(frame, cfg.frames_dir, cfg.frame_prefix)
    except OSError as e:
        elapsed = time.perf_counter() - t0
        logger.error("[Frame %04d] write failed: %s", job.frame_index, e)
        return FrameOutcome(frame_index=job.frame_index, path=None, elapsed=elapsed, error=f"write failed: {e}")

    elapsed = time.perf_counter() - t0
    logger.info("[Frame %04d] completed in %.2fs -> %s", job.frame_index, elapsed, path)
    return FrameOutcome(frame_index=job.frame_index, path=path, elapsed=elapsed)

class WorkerPool:
    """
    Fixed-size pool that renders frame jobs in parallel.

    One dispatcher thread per worker slot pulls jobs from a shared
    :class:`JobQueue` and runs them on the executor (worker processes by
    default). ``run`` returns only after every job has completed or failed.
    """

    def __init__(
        self,
        cfg: RenderConfig,
        *,
        workers: Optional[int] = None,
        executor_factory: ExecutorFactory = ProcessPoolExecutor,
        writer: Optional[FrameWriter] = None,
        log_queue=None,
        log_level: int = logging.INFO,
        progress: bool = True,
    ) -> None:
        self.cfg = cfg
        if workers is None:
            workers = cfg.workers or os.cpu_count() or 1
        self.workers = workers
        if self.workers < 1:
            raise ValueError("workers must be >= 1")
        self._executor_factory = executor_factory
        self._writer = writer
        self._log_queue = log_queue
        self._log_level = log_level
        self._progress = progress

    def _make_executor(self) -> Executor:
        if self._log_queue is None:
            return self._executor_factory(max_workers=self.workers)
        return self._executor_factory(
            max_workers=self.workers,
            initializer=logging_initialiser,
            initargs=(self._log_queue, self._log_level),
        )

    def _dispatch(self, queue: JobQueue, executor: Executor, sink: List[FrameOutcome], bar: tqdm, bar_lock: threading.Lock) -> None:
        logger = get_logger()
        while True:
            job = queue.get()
            if job is None:
                return
            try:
                outcome = executor.submit(process_job, job, self.cfg, self._writer).result()
            except Exception as e:
                logger.error("[Frame %04d] render failed: %r", job.frame_index, e)
                outcome = FrameOutcome(frame_index=job.frame_index, path=None, elapsed=0.0, error=repr(e))
            sink.append(outcome)
            queue.task_done()
            with bar_lock:
                bar.update(1)

    def run(self, jobs: Sequence[FrameJob]) -> RenderStats:
        logger = get_logger()
        _ensure_dir(self.cfg.frames_dir)

        queue = JobQueue(jobs)
        queue.close()

        logger.info("Render start frames=%s size=%sx%s iter=%s zoom_factor=%s scheme=%s workers=%s",
                    len(jobs), self.cfg.width, self.cfg.height, self.cfg.max_iter,
                    self.cfg.zoom_factor, self.cfg.color_scheme, self.workers)

        sinks: List[List[FrameOutcome]] = [[] for _ in range(self.workers)]
        bar_lock = threading.Lock()
        t0 = time.perf_counter()

        with tqdm(total=len(jobs), desc="Rendering frames", unit="frame", disable=not self._progress) as bar:
            with self._make_executor() as executor:
                threads = [
                    threading.Thread(
                        target=self._dispatch,
                        args=(queue, executor, sinks[i], bar, bar_lock),
                        name=f"dispatch-{i}",
                        daemon=True,
                    )
                    for i in range(self.workers)
                ]
                for t in threads:
                    t.start()
                for t in threads:
                    t.join()

        total_elapsed = time.perf_counter() - t0
        if queue.completed != len(jobs):
            raise RuntimeError(f"Barrier released with {queue.completed}/{len(jobs)} jobs completed.")

        outcomes = [o for sink in sinks for o in sink]
        stats = RenderStats.from_outcomes(outcomes, total_elapsed)
        logger.info("%s frames completed in %.2fs (avg %.1f ms/frame), %s failed",
                    stats.frames_completed, stats.total_elapsed, stats.avg_ms_per_frame, stats.frames_failed)
        if stats.failed_frames:
            logger.error("Failed frames: %s", ", ".join(f"{i:04d}" for i in stats.failed_frames))
        return stats

def render_sequence(*, cfg: RenderConfig, jobs: Sequence[FrameJob], **pool_kwargs) -> RenderStats:
    return WorkerPool(cfg, **pool_kwargs).run(jobs)
