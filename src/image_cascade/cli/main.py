"""命令行入口。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

import typer
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from image_cascade.core.config import (
    DEFAULT_NAME_TEMPLATE,
    DEFAULT_QUALITY,
    DEFAULT_SIZES,
    JobConfig,
    OutputConfig,
    default_worker_count,
    parse_sizes,
)
from image_cascade.core.exceptions import InvalidConfigurationError
from image_cascade.core.progress import ProgressUpdate
from image_cascade.processing.pipeline import process_batch
from image_cascade.utils.logging import setup_logging

app = typer.Typer(help="批量生成多种宽度的 WEBP 缩放图。")


def _parse_sizes(value: str) -> Tuple[int, ...]:
    try:
        return parse_sizes(value)
    except InvalidConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _build_progress_callback(progress: Progress):
    task_id = progress.add_task("处理图片", total=None)

    def callback(update: ProgressUpdate) -> None:
        # 任务会动态派生，总数随之增长。
        progress.update(task_id, total=update.total, completed=update.completed)
        if update.message:
            progress.log(update.message)

    return callback


@app.command("run")
def run_cli(  # noqa: PLR0913
    size: str = typer.Option(
        ",".join(str(s) for s in DEFAULT_SIZES), "--size", "-s", help="逗号分隔的目标宽度，例如 1400,1200,800"
    ),
    out_dir: Path = typer.Option(Path("."), "--out-dir", "-o", help="输出目录"),
    input_dir: Path = typer.Option(Path("."), "--input-dir", "-i", help="输入目录"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="单个文件，会覆盖输入目录与递归选项"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="递归扫描输入目录"),
    container: bool = typer.Option(False, "--container", "-c", help="每张图片的输出放入同名子目录"),
    name_format: str = typer.Option(
        DEFAULT_NAME_TEMPLATE, "--name-format", "-n", help="输出文件名模板，{s} 为宽度，{f} 为文件名"
    ),
    max_workers: int = typer.Option(default_worker_count(), "--workers", "-w", help="并发线程数量"),
    quality: int = typer.Option(DEFAULT_QUALITY, "--quality", "-q", help="WEBP 编码质量"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出调试日志"),
) -> None:
    """执行批量缩放。"""

    setup_logging(logging.DEBUG if verbose else logging.INFO)
    sizes = _parse_sizes(size)
    logging.getLogger(__name__).debug("CLI 参数解析完成，目标宽度 %s", list(sizes))

    job = JobConfig(
        sizes=sizes,
        output=OutputConfig(
            output_dir=out_dir.expanduser(),
            container=container,
            name_template=name_format,
            quality=quality,
        ),
        input_dir=input_dir.expanduser(),
        single_file=file.expanduser() if file else None,
        allow_recursive=recursive,
        max_workers=max_workers,
    )

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
    )

    with progress:
        result = process_batch(job, progress_callback=_build_progress_callback(progress))

    typer.echo(
        f"处理完成：{result.discovered} 张图片，完成 {result.completed} 个任务，失败 {result.failed} 个。"
    )
    typer.echo(f"耗时 {result.elapsed:.2f}s")


if __name__ == "__main__":
    app()
