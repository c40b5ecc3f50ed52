"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

from PIL import Image

from image_cascade.core.config import DEFAULT_NAME_TEMPLATE


@dataclass(slots=True, frozen=True)
class SourceImage:
    """扫描阶段得到的源图片信息。"""

    source_path: Path
    relative_path: Path


@dataclass(slots=True, frozen=True)
class ImageTask:
    """单张源图片及其缩放配置，由 Resizer 消费一次。"""

    source_path: Path
    output_dir: Path
    sizes: Tuple[int, ...]
    container: bool = False
    name_template: str = DEFAULT_NAME_TEMPLATE

    @property
    def base_name(self) -> str:
        return self.source_path.stem

    @property
    def extension(self) -> str:
        return self.source_path.suffix

    @classmethod
    def from_source(
        cls,
        source: SourceImage,
        output_root: Path,
        sizes: Tuple[int, ...],
        *,
        container: bool = False,
        name_template: str = DEFAULT_NAME_TEMPLATE,
    ) -> "ImageTask":
        """按源图片的相对目录在输出根目录下镜像出输出目录。"""

        return cls(
            source_path=source.source_path,
            output_dir=output_root / source.relative_path.parent,
            sizes=sizes,
            container=container,
            name_template=name_template,
        )


@dataclass(slots=True, frozen=True)
class ResizerContext:
    """已解码的工作图像及其固有尺寸。

    仅由同一张图片的任务使用，不与其他图片共享。
    """

    image: Image.Image
    encoded: bytes
    width: int
    height: int
    output_dir: Path


@dataclass(slots=True)
class BatchResult:
    """批处理结束后的汇总。"""

    discovered: int
    completed: int
    failed: int
    elapsed: float
    errors: list[str] = field(default_factory=list)
