"""进度更新的数据模型。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class ProgressUpdate:
    """批处理过程中的进度信息。

    ``total`` 随任务动态提交而增长；任务失败时 ``message`` 为错误描述。
    """

    total: int
    completed: int
    message: Optional[str] = None
