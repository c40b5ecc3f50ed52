"""基于 Pillow 的编解码适配层：读取、解码、转换、缩放与写入。"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from image_cascade.core.config import CANONICAL_FORMAT, DEFAULT_QUALITY
from image_cascade.core.exceptions import (
    ConvertFailure,
    DecodeFailure,
    ReadFailure,
    ResizeFailure,
    SizeFailure,
    WriteFailure,
)

LOGGER = logging.getLogger(__name__)

# 各编码器可直接写入的色彩模式
_ENCODER_MODES = {
    "WEBP": {"RGB", "RGBA"},
    "PNG": {"1", "L", "LA", "P", "RGB", "RGBA"},
    "JPEG": {"L", "RGB"},
}


class PillowCodec:
    """把 Pillow 包装成窄接口，所有失败都转换为对应的领域异常。"""

    def __init__(self, image_format: str = CANONICAL_FORMAT, quality: int = DEFAULT_QUALITY) -> None:
        self.image_format = image_format.upper()
        self.quality = quality

    def read(self, path: Path) -> bytes:
        try:
            return Path(path).read_bytes()
        except OSError as exc:
            raise ReadFailure(f"无法读取文件: {path}") from exc

    def decode(self, data: bytes) -> Image.Image:
        """解码并执行 EXIF 旋转校正。

        返回值为完全载入内存的新 Image 对象，调用者负责关闭。
        """

        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                transposed = ImageOps.exif_transpose(img)
                return transposed.copy() if transposed is img else transposed
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            LOGGER.debug("无法识别图像数据: %s", exc)
            raise DecodeFailure("无法解码图像数据") from exc

    def convert(self, image: Image.Image, image_format: Optional[str] = None) -> bytes:
        """编码为目标格式（默认为工作格式）。"""

        target = (image_format or self.image_format).upper()
        try:
            return self._encode(image, target)
        except (OSError, ValueError, KeyError) as exc:
            raise ConvertFailure(f"无法转换为 {target}") from exc

    def size(self, image: Image.Image) -> Tuple[int, int]:
        width, height = image.size
        if width <= 0 or height <= 0:
            raise SizeFailure(f"无效的图像尺寸: {width}x{height}")
        return width, height

    def resize(self, image: Image.Image, width: int, height: int) -> bytes:
        """缩放并编码为工作格式。"""

        try:
            resized = image.resize((width, height), Image.Resampling.LANCZOS)
        except (OSError, ValueError) as exc:
            raise ResizeFailure(f"无法缩放到 {width}x{height}") from exc
        try:
            return self._encode(resized, self.image_format)
        except (OSError, ValueError, KeyError) as exc:
            raise ResizeFailure(f"无法编码 {width}x{height} 的缩放结果") from exc
        finally:
            resized.close()

    def write(self, path: Path, data: bytes) -> None:
        try:
            Path(path).write_bytes(data)
        except OSError as exc:
            raise WriteFailure(f"写入文件失败: {path}") from exc

    def _encode(self, image: Image.Image, image_format: str) -> bytes:
        image_to_save = _normalize_mode(image, image_format)
        save_params: dict = {}
        if image_format in {"WEBP", "JPEG"}:
            save_params["quality"] = self.quality
        if image_format == "WEBP":
            save_params["method"] = 4
        else:
            save_params["optimize"] = True

        buffer = io.BytesIO()
        try:
            image_to_save.save(buffer, format=image_format, **save_params)
        finally:
            if image_to_save is not image:
                image_to_save.close()
        return buffer.getvalue()


def _normalize_mode(image: Image.Image, image_format: str) -> Image.Image:
    """将图像模式转换为编码器支持的模式。"""

    allowed = _ENCODER_MODES.get(image_format)
    if allowed is None or image.mode in allowed:
        return image

    has_alpha = image.mode in {"RGBA", "LA", "PA"} or (image.mode == "P" and "transparency" in image.info)
    if has_alpha and "RGBA" in allowed:
        return image.convert("RGBA")

    if has_alpha:
        # 不支持 Alpha 的格式通过白色背景混合生成 RGB。
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[-1])
        rgba.close()
        return background

    return image.convert("RGB")
