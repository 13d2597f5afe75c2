"""
菜单组合引擎
各模块通过统一的插入原语（按 id 插入或替换，然后稳定排序）向宿主菜单树贡献菜单项

- MenuNode: 菜单树节点
- upsert_menu_item: 唯一的插入原语，所有模块共用
- MenuContributor: 菜单贡献者能力协议（只需实现 contribute 方法）
- MenuComposer: 按注册顺序依次执行贡献者，生成指定名称的菜单
"""

import sys
import logging
from typing import Optional, List, Iterable, Iterator, Protocol, runtime_checkable

from pydantic import BaseModel

from .errors import TreeInvariantViolation

logger = logging.getLogger(__name__)

# 未设置 order 的节点排在所有设置了 order 的节点之后
UNSET_ORDER = sys.maxsize

ROOT_MENU_ID = "root"


class MenuNode(BaseModel):
    """菜单树节点"""
    id: str                              # 树内唯一
    title: str = ""
    path: str = ""
    icon: Optional[str] = None
    order: Optional[int] = None          # 越小越靠前，None 排在最后
    children: Optional[List["MenuNode"]] = None

    def to_dict(self) -> dict:
        return self.model_dump(exclude_none=True)


MenuNode.model_rebuild()


def effective_order(node: MenuNode) -> int:
    """节点的实际排序值，未设置时为 UNSET_ORDER"""
    return UNSET_ORDER if node.order is None else node.order


def _children_list(node: MenuNode, create: bool = False) -> Optional[List[MenuNode]]:
    """取节点的子列表，非列表时直接报错（不做修复）"""
    children = node.children
    if children is None:
        if not create:
            return None
        node.children = children = []
    if not isinstance(children, list):
        raise TreeInvariantViolation(
            f"菜单节点 {node.id} 的 children 不是列表: {type(children).__name__}",
            [node.id]
        )
    return children


def sort_menu_children(node: MenuNode, recursive: bool = False) -> MenuNode:
    """按实际排序值对子节点稳定排序（order 相同或都未设置时保持原有相对顺序）"""
    children = _children_list(node)
    if children is None:
        return node
    children.sort(key=effective_order)
    if recursive:
        for child in children:
            sort_menu_children(child, recursive=True)
    return node


def iter_menu_nodes(tree: MenuNode) -> Iterator[MenuNode]:
    """深度优先遍历菜单树（包含根节点）"""
    yield tree
    for child in _children_list(tree) or []:
        yield from iter_menu_nodes(child)


def find_menu_item(tree: MenuNode, item_id: str) -> Optional[MenuNode]:
    """按 id 查找菜单节点"""
    for node in iter_menu_nodes(tree):
        if node.id == item_id:
            return node
    return None


def validate_menu_tree(tree: MenuNode) -> None:
    """
    校验菜单树不变量

    Raises:
        TreeInvariantViolation: children 不是列表或 id 重复
    """
    seen = set()
    duplicates = []
    for node in iter_menu_nodes(tree):
        if node.id in seen:
            duplicates.append(node.id)
        seen.add(node.id)
    if duplicates:
        raise TreeInvariantViolation(f"菜单树中存在重复的 id: {duplicates}", duplicates)


def upsert_menu_item(
    tree: MenuNode,
    item: MenuNode,
    parent_id: Optional[str] = None
) -> MenuNode:
    """
    插入或替换菜单项

    在 parent_id 指定的节点（默认根节点）下按 id 查找同级节点：
    已存在则原位替换，否则追加；随后对该层以及新节点自身的子节点稳定排序。
    重复调用结果不变。

    Args:
        tree: 菜单树根节点（原地修改）
        item: 要插入的节点
        parent_id: 父节点 id，为空则插入到根节点下

    Returns:
        修改后的菜单树（即传入的 tree）

    Raises:
        TreeInvariantViolation: 父节点不存在、同级 id 重复或 id 已在树的其他位置使用
    """
    parent = tree if parent_id is None else find_menu_item(tree, parent_id)
    if parent is None:
        raise TreeInvariantViolation(f"父菜单不存在: {parent_id}", [parent_id])

    siblings = _children_list(parent, create=True)
    positions = [i for i, node in enumerate(siblings) if node.id == item.id]
    if len(positions) > 1:
        raise TreeInvariantViolation(f"同级菜单存在重复的 id: {item.id}", [item.id])

    if positions:
        siblings[positions[0]] = item
        logger.debug(f"替换菜单项: {item.id} (父级: {parent.id})")
    else:
        existing = find_menu_item(tree, item.id)
        if existing is not None:
            raise TreeInvariantViolation(f"菜单 id 已在其他位置使用: {item.id}", [item.id])
        siblings.append(item)
        logger.debug(f"添加菜单项: {item.id} (父级: {parent.id})")

    sort_menu_children(parent)
    sort_menu_children(item, recursive=True)
    return tree


@runtime_checkable
class MenuContributor(Protocol):
    """
    菜单贡献者

    contribute 只在自己关心的菜单名称下修改菜单树，其他菜单原样返回。
    调用方必须使用返回值作为新的菜单树。
    """

    def contribute(self, tree: MenuNode, scope: str) -> MenuNode:
        ...


class MenuComposer:
    """
    菜单组合器

    每个应用上下文构造一个实例，按注册顺序调用各贡献者。
    不同菜单名称的构建各自使用独立的 MenuNode，互不共享状态。
    """

    def __init__(self, contributors: Optional[Iterable[MenuContributor]] = None):
        self._contributors: List[MenuContributor] = []
        for contributor in contributors or []:
            self.register(contributor)

    @property
    def contributors(self) -> List[MenuContributor]:
        return list(self._contributors)

    def register(self, contributor: MenuContributor) -> None:
        """注册贡献者"""
        if not isinstance(contributor, MenuContributor):
            raise TypeError(f"{type(contributor).__name__} 没有实现 contribute(tree, scope)")
        self._contributors.append(contributor)

    def build(self, tree: MenuNode, menu_name: str) -> MenuNode:
        """对给定菜单树依次应用所有贡献者"""
        for contributor in self._contributors:
            tree = contributor.contribute(tree, menu_name)
            validate_menu_tree(tree)
        return tree

    def compose(self, menu_name: str) -> MenuNode:
        """从空根节点构建指定名称的菜单"""
        root = MenuNode(id=ROOT_MENU_ID, title=menu_name, path="/", children=[])
        tree = self.build(root, menu_name)
        logger.debug(f"菜单构建完成: {menu_name}, 顶级菜单 {len(tree.children or [])} 项")
        return tree
