"""单张图片的缩放级联：加载、可选的独立目录、按宽度拆分写入任务。"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Sequence

from image_cascade.core.cascade import plan_cascade, scaled_height
from image_cascade.core.config import ACCEPTED_EXTENSIONS, CANONICAL_EXTENSION
from image_cascade.core.exceptions import DirectoryCreateFailure, UnsupportedExtension
from image_cascade.core.models import ImageTask, ResizerContext
from image_cascade.core.naming import format_output_name, full_size_name
from image_cascade.core.scheduler import TaskScheduler
from image_cascade.processing.codec import PillowCodec

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class VariantJob:
    """某个宽度的写入任务在提交时的快照。"""

    context: ResizerContext
    width: int
    destination: Path


class Resizer:
    """为一张源图片生成全尺寸转换文件与各宽度的缩放文件。"""

    def __init__(
        self,
        task: ImageTask,
        codec: PillowCodec,
        accepted_extensions: Sequence[str] = ACCEPTED_EXTENSIONS,
    ) -> None:
        self.task = task
        self.codec = codec
        self.accepted_extensions = tuple(accepted_extensions)
        self.context: Optional[ResizerContext] = None
        self._pending = 0
        self._lock = threading.Lock()

    def open(self) -> ResizerContext:
        """读取源文件、转换为工作格式并记录固有尺寸。"""

        if self.task.extension not in self.accepted_extensions:
            raise UnsupportedExtension(f"不支持的文件扩展名: {self.task.source_path}")

        data = self.codec.read(self.task.source_path)
        source_image = self.codec.decode(data)
        try:
            encoded = self.codec.convert(source_image)
        finally:
            source_image.close()

        image = self.codec.decode(encoded)
        try:
            width, height = self.codec.size(image)
        except Exception:
            image.close()
            raise

        self.context = ResizerContext(
            image=image,
            encoded=encoded,
            width=width,
            height=height,
            output_dir=self.task.output_dir,
        )
        return self.context

    def containerize(self) -> Path:
        """在输出目录下创建以文件名命名的子目录，后续写入都放在其中。"""

        context = self._require_context()
        output_dir = context.output_dir / self.task.base_name
        _ensure_directory(output_dir)
        self.context = replace(context, output_dir=output_dir)
        return output_dir

    def create_resize_tasks(self, scheduler: TaskScheduler) -> int:
        """按级联宽度提交写入任务，返回提交的任务数。"""

        context = self._require_context()
        _ensure_directory(context.output_dir)

        cascade = plan_cascade(context.width, self.task.sizes)
        LOGGER.info("缩放 %s 到 %s", self.task.source_path.name, list(cascade))

        jobs = [
            VariantJob(
                context=context,
                width=width,
                destination=context.output_dir
                / format_output_name(self.task.name_template, self.task.base_name, width),
            )
            for width in cascade
        ]

        submitted = 0
        if self.task.extension != CANONICAL_EXTENSION:
            destination = context.output_dir / full_size_name(self.task.base_name)
            scheduler.submit(self.write_full_size, context.encoded, destination)
            submitted += 1

        if not jobs:
            self.close()
            return submitted

        with self._lock:
            self._pending = len(jobs)
        for job in jobs:
            scheduler.submit(self.resize_to_width, job)
            submitted += 1
        return submitted

    def resize_to_width(self, job: VariantJob) -> Path:
        context = job.context
        try:
            LOGGER.debug("缩放 %s 到 %d w", self.task.base_name, job.width)
            height = scaled_height(job.width, context.width, context.height)
            data = self.codec.resize(context.image, job.width, height)
            self.codec.write(job.destination, data)
            return job.destination
        finally:
            self._release(context)

    def write_full_size(self, data: bytes, destination: Path) -> Path:
        LOGGER.debug("写入全尺寸文件 %s", destination)
        self.codec.write(destination, data)
        return destination

    def close(self) -> None:
        """没有待完成的缩放任务时释放解码后的图像。"""

        with self._lock:
            idle = self._pending == 0
        if idle and self.context is not None:
            self.context.image.close()

    def _release(self, context: ResizerContext) -> None:
        with self._lock:
            self._pending -= 1
            last = self._pending == 0
        if last:
            context.image.close()

    def _require_context(self) -> ResizerContext:
        if self.context is None:
            raise RuntimeError("需要先调用 open()")
        return self.context


def _ensure_directory(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryCreateFailure(f"无法创建目录 {path}: {exc}") from exc


def process_image(
    task: ImageTask,
    codec: PillowCodec,
    scheduler: TaskScheduler,
    accepted_extensions: Sequence[str] = ACCEPTED_EXTENSIONS,
) -> int:
    """顶层任务：为一张图片构建 Resizer 并提交它的全部写入任务。"""

    resizer = Resizer(task, codec, accepted_extensions)
    resizer.open()
    try:
        if task.container:
            resizer.containerize()
        return resizer.create_resize_tasks(scheduler)
    except Exception:
        resizer.close()
        raise
