"""
路由目录
"""

from . import boot

__all__ = ["boot"]
