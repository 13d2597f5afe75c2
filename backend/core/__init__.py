"""
JeJe Media 核心模块
提供框架的基础设施和通用功能

导出列表：
- 配置管理: get_settings, Settings
- 模块加载: ModuleLoader, ModuleManifest
- 菜单组合: MenuNode, MenuComposer, MenuContributor, upsert_menu_item
- 错误处理: ErrorCode, AppException, register_exception_handlers
"""

# 配置管理
from .config import get_settings, Settings, reload_settings

# 菜单组合
from .menu import (
    MenuNode,
    MenuComposer,
    MenuContributor,
    effective_order,
    upsert_menu_item,
    sort_menu_children,
    find_menu_item,
    validate_menu_tree,
    UNSET_ORDER
)

# 模块加载
from .loader import ModuleLoader, ModuleManifest, LoadedModule

# 错误处理
from .errors import (
    ErrorCode,
    AppException,
    ValidationException,
    AuthException,
    NotFoundException,
    PermissionException,
    TransportException,
    TreeInvariantViolation,
    register_exception_handlers
)


__all__ = [
    # 配置
    "get_settings",
    "Settings",
    "reload_settings",

    # 菜单
    "MenuNode",
    "MenuComposer",
    "MenuContributor",
    "effective_order",
    "upsert_menu_item",
    "sort_menu_children",
    "find_menu_item",
    "validate_menu_tree",
    "UNSET_ORDER",

    # 模块
    "ModuleLoader",
    "ModuleManifest",
    "LoadedModule",

    # 错误
    "ErrorCode",
    "AppException",
    "ValidationException",
    "AuthException",
    "NotFoundException",
    "PermissionException",
    "TransportException",
    "TreeInvariantViolation",
    "register_exception_handlers",
]
