"""
媒体模块前端路由表
路径到视图的静态映射，鉴权由宿主路由负责
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .media_menu import MEDIA_FILES_PATH, MEDIA_FOLDERS_PATH


@dataclass(frozen=True)
class RouteRecord:
    """路由记录"""
    path: str
    name: str
    view: str                        # 视图组件名，由宿主渲染层解析
    meta: Dict[str, object] = field(default_factory=dict)

    @property
    def title(self) -> str:
        return str(self.meta.get("title", ""))

    @property
    def requires_auth(self) -> bool:
        return bool(self.meta.get("requiresAuth", False))


media_routes: List[RouteRecord] = [
    RouteRecord(
        path=MEDIA_FILES_PATH,
        name="media",
        view="MediaFileList",
        meta={"title": "媒体文件", "requiresAuth": True},
    ),
    RouteRecord(
        path=MEDIA_FOLDERS_PATH,
        name="media-folders",
        view="MediaFolderList",
        meta={"title": "媒体文件夹", "requiresAuth": True},
    ),
]


def find_route(path: str) -> Optional[RouteRecord]:
    """按路径查找路由（忽略末尾斜杠）"""
    normalized = path.rstrip("/") or "/"
    for route in media_routes:
        if route.path == normalized:
            return route
    return None
