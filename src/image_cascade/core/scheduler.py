"""固定线程数的任务调度器，支持任务在执行中继续提交新任务。

任务队列是无界的，提交永远不需要等待空闲的工作线程，因此所有工作线程
同时在任务内部提交新任务也不会死锁。未完成计数在提交时加一、完成时减一，
``drain`` 在计数归零时才返回；任务在自身完成之前提交的子任务已经计入，
所以计数不会在仍有任务发布新工作时提前归零。
"""

from __future__ import annotations

import functools
import logging
import queue
import threading
from typing import Any, Callable, Optional

from image_cascade.core.exceptions import SchedulerClosedError
from image_cascade.core.progress import ProgressUpdate
from image_cascade.core.reporting import ErrorReporter

LOGGER = logging.getLogger(__name__)

WorkItem = Callable[[], None]
ProgressCallback = Optional[Callable[[ProgressUpdate], None]]

_STOP = object()


class TaskScheduler:
    """显式创建、显式关闭的工作线程池。"""

    def __init__(self, reporter: ErrorReporter, on_progress: ProgressCallback = None) -> None:
        self._reporter = reporter
        self._on_progress = on_progress
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._condition = threading.Condition()
        self._workers: list[threading.Thread] = []
        self._outstanding = 0
        self._submitted = 0
        self._completed = 0
        self._failed = 0
        self._closed = False

    @property
    def submitted(self) -> int:
        with self._condition:
            return self._submitted

    @property
    def completed(self) -> int:
        with self._condition:
            return self._completed

    @property
    def failed(self) -> int:
        with self._condition:
            return self._failed

    @property
    def closed(self) -> bool:
        with self._condition:
            return self._closed

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        """提交一个任务；参数在提交时绑定。"""

        item: WorkItem = functools.partial(fn, *args, **kwargs) if args or kwargs else fn
        with self._condition:
            if self._closed:
                raise SchedulerClosedError("任务队列已关闭")
            self._outstanding += 1
            self._submitted += 1
        self._queue.put(item)

    def run(self, worker_count: int) -> None:
        """启动 ``worker_count`` 个工作线程。"""

        if self._workers:
            raise RuntimeError("调度器已经启动")
        worker_count = max(1, worker_count)
        LOGGER.debug("启动 %d 个工作线程", worker_count)
        for index in range(worker_count):
            thread = threading.Thread(target=self._work, name=f"worker-{index}", daemon=True)
            thread.start()
            self._workers.append(thread)

    def drain(self) -> int:
        """阻塞直到所有已提交任务（含间接提交的）完成，随后停止工作线程。

        返回完成的任务数。
        """

        with self._condition:
            if self._outstanding and not self._workers:
                raise RuntimeError("调度器尚未启动，无法等待任务完成")
            self._condition.wait_for(lambda: self._outstanding == 0)
            self._closed = True
        for _ in self._workers:
            self._queue.put(_STOP)
        for thread in self._workers:
            thread.join()
        self._workers.clear()
        return self.completed

    def _work(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            error: Optional[Exception] = None
            try:
                item()  # type: ignore[operator]
            except Exception as exc:  # noqa: BLE001
                error = exc
                self._report(exc)
            finally:
                self._finish(error)

    def _report(self, error: Exception) -> None:
        try:
            self._reporter.report(error)
        except Exception:  # noqa: BLE001
            LOGGER.exception("任务执行异常：%s", error)

    def _finish(self, error: Optional[Exception]) -> None:
        with self._condition:
            self._outstanding -= 1
            self._completed += 1
            if error is not None:
                self._failed += 1
            update = ProgressUpdate(
                total=self._submitted,
                completed=self._completed,
                message=f"失败：{error}" if error is not None else None,
            )
            if self._outstanding == 0:
                self._condition.notify_all()
        if self._on_progress:
            try:
                self._on_progress(update)
            except Exception:  # noqa: BLE001
                LOGGER.exception("进度回调异常")

    def __enter__(self) -> "TaskScheduler":
        return self

    def __exit__(self, *exc_info: object) -> None:
        if not self.closed:
            self.drain()
