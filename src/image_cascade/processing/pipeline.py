"""处理流水线：扫描输入、并发执行缩放级联、等待全部任务完成。"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, Optional

from image_cascade.core.config import JobConfig, normalize_sizes
from image_cascade.core.models import BatchResult, ImageTask, SourceImage
from image_cascade.core.progress import ProgressUpdate
from image_cascade.core.reporting import ErrorReporter
from image_cascade.core.scanner import iter_source_images, single_source_image
from image_cascade.core.scheduler import TaskScheduler
from image_cascade.processing.codec import PillowCodec
from image_cascade.processing.resizer import process_image

LOGGER = logging.getLogger(__name__)


ProgressCallback = Optional[Callable[[ProgressUpdate], None]]


def process_batch(config: JobConfig, progress_callback: ProgressCallback = None) -> BatchResult:
    """批量处理入口：扫描、提交顶层任务并等待所有派生任务完成。"""

    start = time.perf_counter()
    sizes = normalize_sizes(config.sizes)
    output_root = config.output.output_dir
    codec = PillowCodec(quality=config.output.quality)

    reporter = ErrorReporter()
    scheduler = TaskScheduler(reporter, on_progress=progress_callback)
    scheduler.run(config.max_workers)

    discovered = 0
    try:
        for source in _iter_sources(config, reporter):
            task = ImageTask.from_source(
                source,
                output_root,
                sizes,
                container=config.output.container,
                name_template=config.output.name_template,
            )
            LOGGER.info("处理 %s，输出到 %s", source.source_path, task.output_dir)
            scheduler.submit(process_image, task, codec, scheduler, config.accepted_extensions)
            discovered += 1
    finally:
        scheduler.drain()
        reporter.close()

    elapsed = time.perf_counter() - start
    errors = reporter.errors
    LOGGER.info("共处理 %d 张图片，完成 %d 个任务，耗时 %.2fs", discovered, scheduler.completed, elapsed)
    return BatchResult(
        discovered=discovered,
        completed=scheduler.completed,
        failed=len(errors),
        elapsed=elapsed,
        errors=[str(error) for error in errors],
    )


def _iter_sources(config: JobConfig, reporter: ErrorReporter) -> Iterable[SourceImage]:
    if config.single_file is not None:
        return [single_source_image(config.single_file)]
    return iter_source_images(
        config.input_dir,
        recursive=config.allow_recursive,
        accepted_extensions=config.accepted_extensions,
        on_error=reporter.report,
    )
