"""异步错误上报：任务把错误推入队列，由独立线程记录日志。"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Optional

from image_cascade.core.exceptions import ImageCascadeError

LOGGER = logging.getLogger(__name__)

_CLOSE = object()


class ErrorReporter:
    """无界错误通道及其消费线程。"""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or LOGGER
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._errors: list[BaseException] = []
        self._lock = threading.Lock()
        self._closed = False
        self._thread = threading.Thread(target=self._consume, name="error-reporter", daemon=True)
        self._thread.start()

    def report(self, error: BaseException) -> None:
        """推入一个错误，可在任意线程调用。"""

        with self._lock:
            if self._closed:
                raise RuntimeError("错误通道已关闭")
            self._queue.put(error)

    def close(self) -> None:
        """关闭通道并等待所有已推入的错误记录完毕。"""

        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_CLOSE)
        self._thread.join()

    @property
    def errors(self) -> list[BaseException]:
        with self._lock:
            return list(self._errors)

    def _consume(self) -> None:
        while True:
            item = self._queue.get()
            if item is _CLOSE:
                return
            assert isinstance(item, BaseException)
            with self._lock:
                self._errors.append(item)
            if isinstance(item, ImageCascadeError):
                self._logger.error("%s", item)
            else:
                self._logger.error("任务执行异常：%s", item, exc_info=item)

    def __enter__(self) -> "ErrorReporter":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
