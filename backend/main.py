"""
JeJe Media - 主入口
基于FastAPI的模块化宿主，负责加载模块并对外提供菜单

- 模块清单加载
- 菜单组合（各模块贡献菜单项）
- 标准化错误处理
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI

from core.config import get_settings
from core.loader import ModuleLoader
from core.errors import register_exception_handlers
from routers import boot

settings = get_settings()

# 配置日志
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# 减少第三方库的日志输出
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def init_modules(app: FastAPI, modules_dir: Optional[str] = None) -> ModuleLoader:
    """加载模块并把加载器、菜单组合器挂到 app.state"""
    loader = ModuleLoader(modules_dir)
    results = loader.load_all()
    loaded_count = sum(1 for v in results.values() if v)
    logger.info(f"✅ 已加载 {loaded_count} 个模块")

    app.state.module_loader = loader
    app.state.menu_composer = loader.create_menu_composer()
    return loader


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    current_settings = get_settings()
    logger.info(f"🚀 正在启动 {current_settings.app_name} v{current_settings.app_version}...")

    yield

    logger.info("👋 应用已关闭")


async def api_info():
    """API 信息"""
    return {"name": settings.app_name, "version": settings.app_version}


def create_app(modules_dir: Optional[str] = None) -> FastAPI:
    """创建应用实例"""
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )
    register_exception_handlers(application)
    application.include_router(boot.router)
    application.add_api_route("/api", api_info, methods=["GET"])
    init_modules(application, modules_dir)
    return application


app = create_app()
