"""Tests for the job generator and JobQueue delivery guarantees."""

import threading

import pytest

from mandelreel.geometry import viewport_for_frame
from mandelreel.jobs import FrameJob, JobQueue, generate_jobs


def _jobs(n):
    base = viewport_for_frame((0.0, 0.0), 2.0, 0)
    return [FrameJob(frame_index=i, base_viewport=base, zoom_factor=2.0, center=(0.0, 0.0)) for i in range(n)]


def _drain(queue, seen, lock):
    while True:
        job = queue.get()
        if job is None:
            return
        with lock:
            seen.append(job.frame_index)
        queue.task_done()


# ─────────────────────────────────────────────────────────────────────────────
# generate_jobs
# ─────────────────────────────────────────────────────────────────────────────


def test_generate_jobs_covers_inclusive_range(make_config):
    cfg = make_config(zoom_start=3, zoom_end=7, zoom_factor=1.5)
    jobs = generate_jobs(cfg)
    assert [j.frame_index for j in jobs] == [3, 4, 5, 6, 7]
    assert all(j.zoom_factor == 1.5 for j in jobs)
    assert len({j.base_viewport for j in jobs}) == 1
    assert jobs[0].base_viewport == viewport_for_frame(cfg.center, 1.5, 0)


def test_generate_single_job(make_config):
    jobs = generate_jobs(make_config(zoom_start=0, zoom_end=0))
    assert len(jobs) == 1
    assert jobs[0].frame_index == 0


# ─────────────────────────────────────────────────────────────────────────────
# JobQueue
# ─────────────────────────────────────────────────────────────────────────────


def test_fifo_order_and_close():
    queue = JobQueue(_jobs(3))
    queue.close()
    assert [queue.get().frame_index for _ in range(3)] == [0, 1, 2]
    assert queue.get() is None
    assert queue.get() is None
    assert queue.delivered == 3


def test_put_after_close_raises():
    queue = JobQueue()
    queue.close()
    with pytest.raises(RuntimeError):
        queue.put(_jobs(1)[0])


def test_task_done_cannot_exceed_deliveries():
    queue = JobQueue(_jobs(1))
    with pytest.raises(ValueError):
        queue.task_done()
    queue.get()
    queue.task_done()
    assert queue.completed == 1


def test_blocked_consumer_released_by_close():
    queue = JobQueue()
    result = []
    t = threading.Thread(target=lambda: result.append(queue.get()))
    t.start()
    queue.close()
    t.join(timeout=5)
    assert not t.is_alive()
    assert result == [None]


def test_blocked_consumer_receives_late_job():
    queue = JobQueue()
    result = []
    t = threading.Thread(target=lambda: result.append(queue.get()))
    t.start()
    job = _jobs(1)[0]
    queue.put(job)
    t.join(timeout=5)
    assert result == [job]


@pytest.mark.parametrize("workers", [1, 2, 7, 64])
def test_every_job_delivered_exactly_once(workers):
    n = 50
    queue = JobQueue(_jobs(n))
    queue.close()
    seen, lock = [], threading.Lock()
    threads = [threading.Thread(target=_drain, args=(queue, seen, lock)) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert sorted(seen) == list(range(n))
    assert queue.delivered == n
    assert queue.completed == n
    assert len(queue) == 0


def test_concurrent_producer_and_consumers():
    queue = JobQueue()
    seen, lock = [], threading.Lock()
    consumers = [threading.Thread(target=_drain, args=(queue, seen, lock)) for _ in range(4)]
    for t in consumers:
        t.start()
    for job in _jobs(200):
        queue.put(job)
    queue.close()
    for t in consumers:
        t.join(timeout=10)
    assert sorted(seen) == list(range(200))
    assert queue.completed == 200
