"""尺寸级联规划：决定每张图片实际输出哪些宽度。"""

from __future__ import annotations

from typing import Sequence, Tuple


def plan_cascade(intrinsic_width: int, sizes: Sequence[int]) -> Tuple[int, ...]:
    """返回 ``sizes`` 中从第一个严格小于原图宽度的元素开始的后缀。

    ``sizes`` 必须已按降序排列且无重复。若所有目标宽度都不小于原图宽度，
    只返回最小的目标宽度。
    """

    if not sizes:
        return ()

    for index, size in enumerate(sizes):
        if size < intrinsic_width:
            return tuple(sizes[index:])

    return (sizes[-1],)


def scaled_height(width: int, intrinsic_width: int, intrinsic_height: int) -> int:
    """保持宽高比计算目标高度（向下取整）。"""

    return width * intrinsic_height // intrinsic_width
