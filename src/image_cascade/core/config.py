"""处理任务的配置模型。"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

from image_cascade.core.exceptions import InvalidConfigurationError

DEFAULT_SIZES: Tuple[int, ...] = (1400, 1200, 800, 400)
DEFAULT_NAME_TEMPLATE = "{s}w:{f}"
ACCEPTED_EXTENSIONS: Tuple[str, ...] = (".jpeg", ".jpg", ".png", ".webp")

CANONICAL_FORMAT = "WEBP"
CANONICAL_EXTENSION = ".webp"
DEFAULT_QUALITY = 80


def default_worker_count() -> int:
    """默认并发线程数：主机 CPU 数量，无法获取时为 4。"""

    return os.cpu_count() or 4


def normalize_sizes(values: Iterable[int]) -> Tuple[int, ...]:
    """去重并按降序排列目标宽度。"""

    sizes = set()
    for value in values:
        if value <= 0:
            raise InvalidConfigurationError(f"宽度必须大于 0: {value}")
        sizes.add(int(value))
    if not sizes:
        raise InvalidConfigurationError("至少需要一个目标宽度")
    return tuple(sorted(sizes, reverse=True))


def parse_sizes(text: str) -> Tuple[int, ...]:
    """解析逗号分隔的宽度列表，例如 ``1400,1200,800``。"""

    values: list[int] = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            values.append(int(part))
        except ValueError as exc:
            raise InvalidConfigurationError(f"无法解析宽度: {part}") from exc
    return normalize_sizes(values)


@dataclass(slots=True)
class OutputConfig:
    """输出目录与命名配置。"""

    output_dir: Path
    container: bool = False
    name_template: str = DEFAULT_NAME_TEMPLATE
    quality: int = DEFAULT_QUALITY


@dataclass(slots=True)
class JobConfig:
    """单次批处理任务的配置集合。"""

    sizes: Sequence[int]
    output: OutputConfig
    input_dir: Path = Path(".")
    single_file: Optional[Path] = None
    allow_recursive: bool = False
    accepted_extensions: Sequence[str] = field(default_factory=lambda: ACCEPTED_EXTENSIONS)
    max_workers: int = field(default_factory=default_worker_count)
