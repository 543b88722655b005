"""
错误类型定义

- ValidationError：输入不合法（必填字段缺失、数值非法、logo 尺寸过小），同步抛出给调用方
- CompositeFailure：logo 合成失败，仅在内部流转，调用方永远拿到不带 logo 的二维码
"""
from __future__ import annotations


class ValidationError(ValueError):
    """支付参数或渲染参数校验失败"""


class CompositeFailure(RuntimeError):
    """logo 叠加失败（加载/解码/缩放/合成任一环节）"""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause
