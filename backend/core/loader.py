"""
模块加载器
负责扫描、校验、加载模块清单，并收集各模块的菜单贡献者

- 模块依赖检查与拓扑排序
- 菜单贡献者收集（manifest.menu_builder）
"""

import importlib
import importlib.util
import sys
import logging
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from pathlib import Path
from datetime import datetime

from .config import get_settings
from .menu import MenuContributor, MenuComposer

logger = logging.getLogger(__name__)


# 确保backend目录在sys.path中，以便模块可以导入core等包
_backend_path = str(Path(__file__).parent.parent.absolute())
if _backend_path not in sys.path:
    sys.path.insert(0, _backend_path)


@dataclass
class ModuleManifest:
    """模块清单协议"""
    id: str                          # 唯一标识
    name: str                        # 显示名称
    version: str                     # 版本号
    description: str = ""            # 描述
    icon: str = "📦"                 # 图标
    author: str = ""                 # 作者

    # 接口前缀（模块调用的远端接口），如 /api/media
    router_prefix: str = ""

    # 菜单配置（静态描述，供前端展示模块信息）
    menu: Dict[str, Any] = field(default_factory=dict)
    # 菜单贡献者，构建菜单时调用
    menu_builder: Optional[MenuContributor] = None

    # 依赖声明
    dependencies: List[str] = field(default_factory=list)  # 依赖的其他模块ID

    # 权限声明
    permissions: List[str] = field(default_factory=list)

    # 状态
    enabled: bool = True


@dataclass
class LoadedModule:
    """已加载模块信息"""
    manifest: ModuleManifest
    path: Path
    loaded_at: datetime = field(default_factory=datetime.now)


class ModuleLoader:
    """
    模块加载器

    按命名规范扫描 modules/{module_id}/{module_id}_manifest.py，
    依赖先于依赖方加载，禁用的模块不参与菜单构建。
    """

    def __init__(self, modules_dir: Optional[str] = None):
        self.modules: Dict[str, LoadedModule] = {}
        # 允许显式指定目录，否则使用配置
        if modules_dir:
            self.modules_path = Path(modules_dir)
        else:
            self.modules_path = Path(_backend_path) / get_settings().modules_dir

    def scan_modules(self) -> List[str]:
        """扫描模块目录"""
        if not self.modules_path.exists():
            logger.warning(f"模块目录不存在: {self.modules_path}")
            return []

        module_ids = []
        for item in sorted(self.modules_path.iterdir()):
            if item.is_dir() and not item.name.startswith("_"):
                manifest_file = item / f"{item.name}_manifest.py"
                if manifest_file.exists():
                    module_ids.append(item.name)
                    logger.debug(f"发现模块: {item.name}")

        return module_ids

    def _import_module(self, module_name: str, file_path: Path) -> Optional[Any]:
        """导入模块（优先使用标准导入，失败则回退到路径加载）"""
        try:
            return importlib.import_module(module_name)
        except ImportError:
            if not file_path.exists():
                return None
            try:
                spec = importlib.util.spec_from_file_location(module_name, file_path)
                if spec and spec.loader:
                    module = importlib.util.module_from_spec(spec)
                    sys.modules[module_name] = module
                    spec.loader.exec_module(module)
                    return module
            except Exception as e:
                sys.modules.pop(module_name, None)
                logger.error(f"路径加载模块失败 {module_name} ({file_path}): {e}")
                return None
        return None

    def load_manifest(self, module_id: str) -> Optional[ModuleManifest]:
        """加载模块清单"""
        manifest_file = self.modules_path / module_id / f"{module_id}_manifest.py"
        module_name = f"modules.{module_id}.{module_id}_manifest"

        module = self._import_module(module_name, manifest_file)
        if not module:
            return None

        manifest = getattr(module, "manifest", None)
        if not isinstance(manifest, ModuleManifest):
            logger.error(f"清单文件缺少manifest对象: {module_id}")
            return None
        return manifest

    def _check_dependencies(self, manifest: ModuleManifest) -> tuple[bool, List[str]]:
        """
        检查模块依赖

        Returns:
            (satisfied, missing): 是否满足依赖，缺失的模块列表
        """
        missing = [dep for dep in manifest.dependencies if dep not in self.modules]
        return len(missing) == 0, missing

    def _sort_by_dependencies(self, manifests: Dict[str, ModuleManifest]) -> List[str]:
        """
        按依赖关系排序模块
        使用拓扑排序确保依赖先加载
        """
        in_degree = {mid: 0 for mid in manifests}
        dependents: Dict[str, List[str]] = {mid: [] for mid in manifests}

        for mid, manifest in manifests.items():
            for dep in manifest.dependencies:
                if dep in manifests:
                    in_degree[mid] += 1
                    dependents[dep].append(mid)

        sorted_ids = []
        queue = [mid for mid in in_degree if in_degree[mid] == 0]

        while queue:
            mid = queue.pop(0)
            sorted_ids.append(mid)
            for dependent in dependents[mid]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        # 检查循环依赖
        if len(sorted_ids) != len(manifests):
            circular = [mid for mid in manifests if mid not in sorted_ids]
            logger.warning(f"检测到循环依赖，涉及模块: {circular}")
            return list(manifests)

        return sorted_ids

    def register_manifest(self, manifest: ModuleManifest, path: Optional[Path] = None) -> bool:
        """登记一个已加载的清单"""
        if manifest.id in self.modules:
            logger.warning(f"模块已加载: {manifest.id}")
            return True

        if not manifest.enabled:
            logger.debug(f"模块已禁用: {manifest.id}")
            return False

        satisfied, missing = self._check_dependencies(manifest)
        if not satisfied:
            logger.error(f"模块 {manifest.id} 依赖未满足，缺失: {missing}")
            return False

        self.modules[manifest.id] = LoadedModule(
            manifest=manifest,
            path=path or self.modules_path / manifest.id
        )
        logger.debug(f"模块加载成功: {manifest.name} v{manifest.version}")
        return True

    def load_module(self, module_id: str) -> bool:
        """加载单个模块"""
        manifest = self.load_manifest(module_id)
        if not manifest:
            return False
        return self.register_manifest(manifest)

    def load_all(self) -> Dict[str, bool]:
        """加载所有模块，返回 {module_id: 是否成功}"""
        manifests = {}
        results = {}
        for module_id in self.scan_modules():
            manifest = self.load_manifest(module_id)
            if manifest:
                manifests[module_id] = manifest
            else:
                results[module_id] = False

        for module_id in self._sort_by_dependencies(manifests):
            results[module_id] = self.register_manifest(manifests[module_id])

        return results

    def get_loaded_modules(self) -> List[ModuleManifest]:
        """获取已加载模块的清单列表"""
        return [m.manifest for m in self.modules.values()]

    def get_menu_contributors(self) -> List[MenuContributor]:
        """按加载顺序获取启用模块的菜单贡献者"""
        return [
            m.manifest.menu_builder
            for m in self.modules.values()
            if m.manifest.enabled and m.manifest.menu_builder is not None
        ]

    def create_menu_composer(self) -> MenuComposer:
        """用当前已加载模块的贡献者构造菜单组合器"""
        return MenuComposer(self.get_menu_contributors())

