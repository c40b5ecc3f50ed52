"""调度器：动态提交、完成屏障与错误隔离测试。"""

from __future__ import annotations

import logging
import threading

import pytest

from image_cascade.core.exceptions import SchedulerClosedError, WriteFailure
from image_cascade.core.progress import ProgressUpdate
from image_cascade.core.reporting import ErrorReporter
from image_cascade.core.scheduler import TaskScheduler


class Counter:
    def __init__(self) -> None:
        self.value = 0
        self._lock = threading.Lock()

    def incr(self) -> None:
        with self._lock:
            self.value += 1


@pytest.mark.parametrize("top_level, children", [(0, 0), (1, 0), (0, 5), (3, 4), (20, 10)])
def test_barrier_waits_for_nested_submissions(top_level: int, children: int) -> None:
    counter = Counter()
    reporter = ErrorReporter()
    scheduler = TaskScheduler(reporter)
    scheduler.run(4)

    def parent() -> None:
        counter.incr()
        for _ in range(children):
            scheduler.submit(counter.incr)

    for _ in range(top_level):
        scheduler.submit(parent)

    completed = scheduler.drain()
    reporter.close()

    assert counter.value == top_level * children + top_level
    assert completed == top_level * children + top_level
    assert scheduler.submitted == completed
    assert reporter.errors == []


def test_single_worker_accepts_submissions_from_running_task() -> None:
    counter = Counter()
    reporter = ErrorReporter()
    scheduler = TaskScheduler(reporter)
    scheduler.run(1)

    def spawn(depth: int) -> None:
        counter.incr()
        if depth:
            for _ in range(3):
                scheduler.submit(spawn, depth - 1)

    scheduler.submit(spawn, 4)
    scheduler.drain()
    reporter.close()

    assert counter.value == 1 + 3 + 9 + 27 + 81


def test_failing_task_does_not_block_siblings() -> None:
    counter = Counter()
    reporter = ErrorReporter()
    scheduler = TaskScheduler(reporter)
    scheduler.run(2)

    def fail() -> None:
        raise WriteFailure("写入文件失败: out.webp")

    for index in range(10):
        scheduler.submit(fail if index % 3 == 0 else counter.incr)

    assert scheduler.drain() == 10
    reporter.close()

    assert counter.value == 6
    assert scheduler.failed == 4
    assert len(reporter.errors) == 4
    assert all(isinstance(error, WriteFailure) for error in reporter.errors)


def test_arguments_are_bound_at_submit_time() -> None:
    seen: list[int] = []
    lock = threading.Lock()
    reporter = ErrorReporter()
    scheduler = TaskScheduler(reporter)

    def record(value: int) -> None:
        with lock:
            seen.append(value)

    for value in range(5):
        scheduler.submit(record, value)
    scheduler.run(3)
    scheduler.drain()
    reporter.close()

    assert sorted(seen) == [0, 1, 2, 3, 4]


def test_submit_after_drain_is_rejected() -> None:
    reporter = ErrorReporter()
    scheduler = TaskScheduler(reporter)
    scheduler.run(2)
    scheduler.drain()
    reporter.close()

    assert scheduler.closed
    with pytest.raises(SchedulerClosedError):
        scheduler.submit(lambda: None)


def test_progress_callback_sees_every_completion() -> None:
    updates: list[ProgressUpdate] = []
    lock = threading.Lock()

    def on_progress(update: ProgressUpdate) -> None:
        with lock:
            updates.append(update)

    reporter = ErrorReporter()
    with TaskScheduler(reporter, on_progress=on_progress) as scheduler:
        scheduler.run(2)
        for _ in range(7):
            scheduler.submit(lambda: None)
    reporter.close()

    assert len(updates) == 7
    assert max(update.completed for update in updates) == 7


def test_reporter_logs_errors(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR)
    reporter = ErrorReporter()
    reporter.report(WriteFailure("写入文件失败: a.webp"))
    reporter.report(ValueError("boom"))
    reporter.close()

    assert len(reporter.errors) == 2
    assert "a.webp" in caplog.text
    assert "boom" in caplog.text

    with pytest.raises(RuntimeError):
        reporter.report(WriteFailure("late"))


def test_progress_update_carries_failure_message() -> None:
    updates: list[ProgressUpdate] = []
    lock = threading.Lock()

    def on_progress(update: ProgressUpdate) -> None:
        with lock:
            updates.append(update)

    def fail() -> None:
        raise WriteFailure("写入文件失败: broken.webp")

    reporter = ErrorReporter()
    scheduler = TaskScheduler(reporter, on_progress=on_progress)
    scheduler.run(2)
    scheduler.submit(fail)
    scheduler.submit(lambda: None)
    scheduler.drain()
    reporter.close()

    messages = [update.message for update in updates if update.message]
    assert messages == ["失败：写入文件失败: broken.webp"]


def test_closed_reporter_does_not_kill_workers(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR)
    counter = Counter()
    reporter = ErrorReporter()
    reporter.close()
    scheduler = TaskScheduler(reporter)
    scheduler.run(1)

    def fail() -> None:
        raise WriteFailure("写入文件失败: late.webp")

    for index in range(6):
        scheduler.submit(fail if index % 2 == 0 else counter.incr)

    assert scheduler.drain() == 6
    assert counter.value == 3
    assert scheduler.failed == 3
    assert "late.webp" in caplog.text
