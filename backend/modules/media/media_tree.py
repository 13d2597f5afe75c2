"""
媒体资源树
文件夹层级的纯函数校验与树形整理，不访问网络

归属关系只看 parent_id / folder_id，忽略服务端填充的 parent / children / folder
"""

import logging
from typing import Dict, List, Optional, Sequence

from core.errors import TreeInvariantViolation
from .media_schemas import MediaFolder, MediaFile, FolderTreeNode, BreadcrumbItem

logger = logging.getLogger(__name__)


def _index_folders(folders: Sequence[MediaFolder]) -> Dict[int, MediaFolder]:
    return {f.id: f for f in folders if f.id is not None}


def is_valid_folder_ref(folders: Sequence[MediaFolder], folder_id: Optional[int]) -> bool:
    """
    folder_id 是否为合法引用

    None 表示根目录/未归档，总是合法；否则必须指向列表中存在的文件夹
    """
    if folder_id is None:
        return True
    return any(f.id == folder_id for f in folders)


def find_cycle(folders: Sequence[MediaFolder]) -> Optional[List[int]]:
    """查找 parent_id 链上的循环，返回构成循环的文件夹 ID（按链路顺序），没有则返回 None"""
    by_id = _index_folders(folders)
    finished = set()

    for start in by_id:
        if start in finished:
            continue
        chain: List[int] = []
        on_chain = set()
        current: Optional[int] = start
        while current is not None and current in by_id and current not in finished:
            if current in on_chain:
                return chain[chain.index(current):]
            chain.append(current)
            on_chain.add(current)
            current = by_id[current].parent_id
        finished.update(chain)

    return None


def is_acyclic(folders: Sequence[MediaFolder]) -> bool:
    """文件夹层级是否无环（没有文件夹是自己的祖先）"""
    return find_cycle(folders) is None


def validate_folder_forest(folders: Sequence[MediaFolder]) -> None:
    """
    校验文件夹集合构成森林

    Raises:
        TreeInvariantViolation: id 重复、parent_id 指向不存在的文件夹或存在循环
    """
    seen = set()
    duplicates = []
    for folder in folders:
        if folder.id is None:
            continue
        if folder.id in seen:
            duplicates.append(folder.id)
        seen.add(folder.id)
    if duplicates:
        raise TreeInvariantViolation(f"文件夹 ID 重复: {duplicates}", duplicates)

    dangling = [f.id for f in folders if not is_valid_folder_ref(folders, f.parent_id)]
    if dangling:
        raise TreeInvariantViolation(f"文件夹的父级不存在: {dangling}", dangling)

    cycle = find_cycle(folders)
    if cycle:
        raise TreeInvariantViolation(f"文件夹层级存在循环: {cycle}", cycle)


def validate_file_refs(files: Sequence[MediaFile], folders: Sequence[MediaFolder]) -> None:
    """
    校验文件的 folder_id 都指向存在的文件夹

    Raises:
        TreeInvariantViolation: 存在悬空的 folder_id
    """
    dangling = [f.id for f in files if not is_valid_folder_ref(folders, f.folder_id)]
    if dangling:
        raise TreeInvariantViolation(f"文件所属文件夹不存在: {dangling}", dangling)


def build_folder_tree(folders: Sequence[MediaFolder]) -> List[FolderTreeNode]:
    """
    由扁平列表构建文件夹树

    同级保持输入顺序；父级不在列表中的文件夹作为根节点
    """
    validate_folder_forest(folders)

    folder_map = {
        f.id: FolderTreeNode(id=f.id, name=f.name, path=f.path, children=[])
        for f in folders if f.id is not None
    }
    root_nodes = []

    for folder in folders:
        if folder.id is None:
            continue
        node = folder_map[folder.id]
        if folder.parent_id is not None and folder.parent_id in folder_map:
            folder_map[folder.parent_id].children.append(node)
        else:
            root_nodes.append(node)

    return root_nodes


def get_breadcrumbs(folders: Sequence[MediaFolder], folder_id: Optional[int]) -> List[BreadcrumbItem]:
    """
    获取从根目录到指定文件夹的面包屑

    第一项固定为根目录；folder_id 为 None 时只返回根目录
    """
    breadcrumbs = [BreadcrumbItem(id=None, name="根目录", path="/")]
    if folder_id is None:
        return breadcrumbs

    by_id = _index_folders(folders)
    if folder_id not in by_id:
        raise TreeInvariantViolation(f"文件夹不存在: {folder_id}", [folder_id])

    chain = []
    visited = set()
    current: Optional[int] = folder_id
    while current is not None and current in by_id:
        if current in visited:
            raise TreeInvariantViolation(f"文件夹层级存在循环: {current}", [current])
        visited.add(current)
        folder = by_id[current]
        chain.append(BreadcrumbItem(id=folder.id, name=folder.name, path=folder.path))
        current = folder.parent_id

    breadcrumbs.extend(reversed(chain))
    return breadcrumbs


def get_descendant_ids(folders: Sequence[MediaFolder], folder_id: int) -> List[int]:
    """获取指定文件夹的所有子孙文件夹 ID（广度优先）"""
    children_of: Dict[int, List[int]] = {}
    for f in folders:
        if f.id is not None and f.parent_id is not None:
            children_of.setdefault(f.parent_id, []).append(f.id)

    result = []
    queue = list(children_of.get(folder_id, []))
    while queue:
        fid = queue.pop(0)
        if fid in result or fid == folder_id:
            continue
        result.append(fid)
        queue.extend(children_of.get(fid, []))
    return result
