"""输出文件命名。"""

from __future__ import annotations

import re

from image_cascade.core.config import CANONICAL_EXTENSION, DEFAULT_NAME_TEMPLATE

BASE_NAME_PLACEHOLDER = "{f}"
WIDTH_PLACEHOLDER = "{s}"

_PLACEHOLDER_RE = re.compile(re.escape(BASE_NAME_PLACEHOLDER) + "|" + re.escape(WIDTH_PLACEHOLDER))


def format_output_name(
    template: str,
    base_name: str,
    width: int,
    extension: str = CANONICAL_EXTENSION,
) -> str:
    """将 ``{f}`` 替换为文件名、``{s}`` 替换为宽度，并追加扩展名。

    替换只做一遍，文件名中出现的占位符不会被再次替换。模板中不含任何
    占位符也是允许的，此时所有宽度会写入同一个文件名。
    """

    template = template or DEFAULT_NAME_TEMPLATE
    values = {BASE_NAME_PLACEHOLDER: base_name, WIDTH_PLACEHOLDER: str(width)}
    return _PLACEHOLDER_RE.sub(lambda match: values[match.group(0)], template) + extension


def full_size_name(base_name: str, extension: str = CANONICAL_EXTENSION) -> str:
    return f"{base_name}{extension}"
