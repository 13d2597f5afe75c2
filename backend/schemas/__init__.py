"""
数据验证模式目录
"""

from .module import ModuleInfo, BootData
from .response import success

__all__ = [
    # 模块
    "ModuleInfo", "BootData",
    # 响应
    "success",
]
