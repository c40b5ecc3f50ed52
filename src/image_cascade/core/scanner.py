"""文件扫描与筛选逻辑。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterator, Optional, Sequence, Tuple

from image_cascade.core.config import ACCEPTED_EXTENSIONS
from image_cascade.core.exceptions import DiscoveryError
from image_cascade.core.models import SourceImage

LOGGER = logging.getLogger(__name__)

ErrorCallback = Callable[[DiscoveryError], None]


def split_file_name(path: Path) -> Optional[Tuple[str, str]]:
    """返回 ``(扩展名, 不含扩展名的文件名)``，没有扩展名时返回 None。"""

    if not path.suffix:
        return None
    return path.suffix, path.stem


def _list_directory(directory: Path) -> list[Path]:
    try:
        return sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        raise DiscoveryError(f"无法读取目录 {directory}: {exc}") from exc


def iter_source_images(
    root: Path,
    recursive: bool = False,
    accepted_extensions: Sequence[str] = ACCEPTED_EXTENSIONS,
    on_error: Optional[ErrorCallback] = None,
) -> Iterator[SourceImage]:
    """遍历输入目录，逐个产出扩展名匹配的图片。

    扩展名区分大小写。非递归模式下跳过子目录。某个目录读取失败时调用
    ``on_error`` 并放弃该子树，其余目录不受影响；未提供 ``on_error`` 时直接抛出。
    """

    yield from _walk(root, Path(), recursive, tuple(accepted_extensions), on_error)


def _walk(
    root: Path,
    relative_dir: Path,
    recursive: bool,
    accepted_extensions: Tuple[str, ...],
    on_error: Optional[ErrorCallback],
) -> Iterator[SourceImage]:
    try:
        entries = _list_directory(root / relative_dir)
    except DiscoveryError as exc:
        if on_error is None:
            raise
        on_error(exc)
        return

    for entry in entries:
        if entry.is_dir():
            if recursive:
                yield from _walk(root, relative_dir / entry.name, recursive, accepted_extensions, on_error)
            continue

        parts = split_file_name(entry)
        if parts is None or parts[0] not in accepted_extensions:
            continue

        LOGGER.debug("发现图片 %s", entry)
        yield SourceImage(source_path=entry, relative_path=relative_dir / entry.name)


def single_source_image(path: Path) -> SourceImage:
    """单文件模式：输出直接写入输出根目录。"""

    return SourceImage(source_path=path, relative_path=Path(path.name))
