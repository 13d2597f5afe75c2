"""
媒体管理模块清单
上传的媒体文件按多级文件夹组织，并向管理后台菜单注入入口
"""

from core.config import get_settings
from core.loader import ModuleManifest

from .media_menu import MediaMenuBuilder, MEDIA_MENU_ICON, MEDIA_MENU_TITLE, MEDIA_FILES_PATH

# 菜单静态配置
MEDIA_MENU_CONFIG = {
    "label": MEDIA_MENU_TITLE,
    "icon": MEDIA_MENU_ICON,
    "route": MEDIA_FILES_PATH,
}

# 模块清单
manifest = ModuleManifest(
    # 基本信息
    id="media",
    name="媒体管理",
    version="1.0.0",
    description="媒体文件与多级文件夹管理，支持上传、移动、重命名与删除",
    icon=MEDIA_MENU_ICON,
    author="JeJe WebOS",

    # 远端接口前缀
    router_prefix="/api/media",

    # 菜单配置
    menu=MEDIA_MENU_CONFIG,
    menu_builder=MediaMenuBuilder(target_menu=get_settings().admin_menu_name),

    # 权限声明
    permissions=[
        "media.read",      # 浏览文件
        "media.upload",    # 上传文件
        "media.update",    # 重命名/移动
        "media.delete",    # 删除文件/文件夹
    ],

    # 模块依赖
    dependencies=[],

    # 是否启用
    enabled=True,
)
