"""
系统引导路由
系统初始化、模块列表、菜单构建
"""

from fastapi import APIRouter, Depends, Request

from core.config import get_settings
from core.loader import ModuleLoader
from core.menu import MenuComposer
from schemas import BootData, ModuleInfo, success

router = APIRouter(prefix="/api/v1/system", tags=["系统"])


def get_loader(request: Request) -> ModuleLoader:
    """当前应用上下文的模块加载器"""
    return request.app.state.module_loader


def get_menu_composer(request: Request) -> MenuComposer:
    """当前应用上下文的菜单组合器"""
    return request.app.state.menu_composer


def _module_info(manifest) -> ModuleInfo:
    return ModuleInfo(
        id=manifest.id,
        name=manifest.name,
        version=manifest.version,
        description=manifest.description,
        icon=manifest.icon,
        author=manifest.author,
        enabled=manifest.enabled,
        router_prefix=manifest.router_prefix,
        menu=manifest.menu,
        permissions=manifest.permissions,
    )


@router.get("/init")
async def system_init(
    loader: ModuleLoader = Depends(get_loader),
    composer: MenuComposer = Depends(get_menu_composer),
):
    """
    系统初始化接口
    返回应用名称、版本、已加载模块列表和管理后台菜单
    前端启动时调用此接口
    """
    settings = get_settings()
    data = BootData(
        app_name=settings.app_name,
        version=settings.app_version,
        modules=[_module_info(m) for m in loader.get_loaded_modules()],
        menu=composer.compose(settings.admin_menu_name),
    )
    return success(data.model_dump(exclude_none=True))


@router.get("/modules")
async def list_modules(loader: ModuleLoader = Depends(get_loader)):
    """获取已加载模块列表"""
    return success([_module_info(m).model_dump() for m in loader.get_loaded_modules()])


@router.get("/menus/{menu_name}")
async def get_menu(
    menu_name: str,
    composer: MenuComposer = Depends(get_menu_composer),
):
    """构建指定名称的菜单，没有模块关心的菜单只返回根节点"""
    return success(composer.compose(menu_name).to_dict())


@router.get("/health")
async def health_check():
    """健康检查"""
    return {"status": "ok"}
