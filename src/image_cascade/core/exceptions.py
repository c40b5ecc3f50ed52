"""项目内使用的自定义异常定义。"""


class ImageCascadeError(Exception):
    """基础异常类型。"""


class InvalidConfigurationError(ImageCascadeError):
    """配置不合法时抛出。"""


class DiscoveryError(ImageCascadeError):
    """目录无法读取，放弃该子树。"""


class UnsupportedExtension(ImageCascadeError):
    """文件扩展名不在允许列表中。"""


class ReadFailure(ImageCascadeError):
    """源文件读取失败。"""


class DecodeFailure(ImageCascadeError):
    """图像数据无法解码。"""


class ConvertFailure(ImageCascadeError):
    """转换为目标编码失败。"""


class SizeFailure(ImageCascadeError):
    """无法获取图像尺寸。"""


class ResizeFailure(ImageCascadeError):
    """缩放失败。"""


class WriteFailure(ImageCascadeError):
    """输出写入失败。"""


class DirectoryCreateFailure(ImageCascadeError):
    """输出目录创建失败。"""


class SchedulerClosedError(ImageCascadeError):
    """任务队列已关闭后仍尝试提交。"""
