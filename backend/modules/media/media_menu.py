"""
媒体菜单构建器
向管理后台菜单注入「媒体」菜单及其子菜单
"""

import logging
from enum import Enum
from typing import List, Optional

from core.menu import MenuNode, find_menu_item, upsert_menu_item

logger = logging.getLogger(__name__)

MEDIA_MENU_ID = "media-management"
MEDIA_MENU_ORDER = 50
MEDIA_MENU_TITLE = "媒体"
MEDIA_MENU_ICON = "📁"
MEDIA_FILES_PATH = "/media"
MEDIA_FOLDERS_PATH = "/media/folders"


class MenuMergePolicy(str, Enum):
    """菜单合并方式"""
    FLAT = "flat"              # 一次插入带完整子菜单的节点
    DELEGATED = "delegated"    # 先插入顶级节点，再逐个挂载子菜单


def media_menu_children() -> List[MenuNode]:
    """媒体菜单的子菜单（每次构建新的节点实例）"""
    return [
        MenuNode(id="media-files", title="文件", path=MEDIA_FILES_PATH, icon="🖼️", order=10),
        MenuNode(id="media-folders", title="文件夹", path=MEDIA_FOLDERS_PATH, icon="🗂️", order=20),
    ]


class MediaMenuBuilder:
    """
    媒体菜单构建器

    只在目标菜单（默认 admin）下生效，其他菜单原样返回。
    两种合并方式都通过 upsert_menu_item 完成，重复构建不会产生重复菜单。
    """

    def __init__(
        self,
        target_menu: str = "admin",
        policy: MenuMergePolicy = MenuMergePolicy.DELEGATED
    ):
        self.target_menu = target_menu
        self.policy = MenuMergePolicy(policy)

    def contribute(self, tree: MenuNode, scope: str) -> MenuNode:
        if scope != self.target_menu:
            return tree

        if self.policy is MenuMergePolicy.FLAT:
            tree = self._build_flat(tree)
        else:
            tree = self._build_delegated(tree)

        logger.debug(f"已注入媒体菜单: {scope} ({self.policy.value})")
        return tree

    def build(self, tree: MenuNode, menu_name: str) -> MenuNode:
        """构建菜单，调用方必须使用返回值"""
        return self.contribute(tree, menu_name)

    def _media_item(self, children: Optional[List[MenuNode]] = None) -> MenuNode:
        return MenuNode(
            id=MEDIA_MENU_ID,
            title=MEDIA_MENU_TITLE,
            path=MEDIA_FILES_PATH,
            icon=MEDIA_MENU_ICON,
            order=MEDIA_MENU_ORDER,
            children=children,
        )

    def _build_flat(self, tree: MenuNode) -> MenuNode:
        return upsert_menu_item(tree, self._media_item(media_menu_children()))

    def _build_delegated(self, tree: MenuNode) -> MenuNode:
        # 其他贡献者挂在媒体菜单下的子菜单保留
        existing = find_menu_item(tree, MEDIA_MENU_ID)
        kept = list(existing.children or []) if existing is not None else None
        tree = upsert_menu_item(tree, self._media_item(kept))
        for child in media_menu_children():
            tree = upsert_menu_item(tree, child, parent_id=MEDIA_MENU_ID)
        return tree
