"""
模块数据验证
模块信息、启动数据等
"""

from typing import List, Dict, Any, Optional
from pydantic import BaseModel

from core.menu import MenuNode


class ModuleInfo(BaseModel):
    """模块信息"""
    id: str
    name: str
    version: str
    description: str
    icon: str
    author: str
    enabled: bool
    router_prefix: str
    menu: Dict[str, Any]
    permissions: List[str]


class BootData(BaseModel):
    """系统启动信息"""
    app_name: str
    version: str
    modules: List[ModuleInfo] = []
    menu: Optional[MenuNode] = None
