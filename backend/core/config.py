"""
系统配置管理
统一管理所有配置项，支持环境变量覆盖
"""

from pathlib import Path
from pydantic_settings import BaseSettings
from typing import Optional

# 获取backend目录的绝对路径
BACKEND_DIR = Path(__file__).parent.parent.resolve()
ENV_FILE = BACKEND_DIR / ".env"


class Settings(BaseSettings):
    """系统配置"""

    # 应用信息
    app_name: str = "JeJe Media"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # 媒体服务接口配置
    server_url: str = "http://localhost:8000"
    api_token: Optional[str] = None   # 为空则不附加 Authorization 头
    request_timeout: float = 30.0     # 单次请求超时（秒）

    # 菜单配置
    admin_menu_name: str = "admin"    # 媒体菜单注入的目标菜单

    # 模块配置
    modules_dir: str = "modules"

    @property
    def api_base_url(self) -> str:
        return self.server_url.rstrip("/")

    class Config:
        env_file = str(ENV_FILE)
        env_file_encoding = "utf-8"
        extra = "ignore"


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """
    获取配置单例
    支持运行时重新加载
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()

        if not _settings_instance.debug and _settings_instance.server_url.startswith("http://localhost"):
            import logging
            logging.getLogger("core.config").info(
                "ℹ️ 媒体服务地址使用默认值 http://localhost:8000，可在 .env 中配置 SERVER_URL"
            )
    return _settings_instance


def reload_settings():
    """
    重新加载配置
    已创建的客户端不会受影响，需要重新构造
    """
    global _settings_instance
    _settings_instance = Settings()
    return _settings_instance
