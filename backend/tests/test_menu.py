"""
菜单组合引擎单元测试
覆盖：排序值、插入原语、稳定排序、树校验、组合器
"""

import sys
import pytest

from core.errors import TreeInvariantViolation
from core.menu import (
    MenuNode,
    MenuComposer,
    MenuContributor,
    UNSET_ORDER,
    effective_order,
    find_menu_item,
    sort_menu_children,
    upsert_menu_item,
    validate_menu_tree,
)


def _ids(node: MenuNode) -> list:
    return [c.id for c in node.children or []]


class TestEffectiveOrder:
    """排序值测试"""

    def test_explicit_order(self):
        assert effective_order(MenuNode(id="a", order=30)) == 30

    def test_zero_order_is_not_unset(self):
        assert effective_order(MenuNode(id="a", order=0)) == 0

    def test_unset_order_is_max_int(self):
        assert effective_order(MenuNode(id="a")) == UNSET_ORDER == sys.maxsize


class TestSortMenuChildren:
    """稳定排序测试"""

    def test_unset_sorts_last(self):
        root = MenuNode(id="root", children=[
            MenuNode(id="a", order=30),
            MenuNode(id="b"),
            MenuNode(id="c", order=10),
        ])
        sort_menu_children(root)
        assert _ids(root) == ["c", "a", "b"]

    def test_ties_keep_relative_order(self):
        root = MenuNode(id="root", children=[
            MenuNode(id="x"),
            MenuNode(id="y", order=5),
            MenuNode(id="z"),
            MenuNode(id="w", order=5),
        ])
        sort_menu_children(root)
        assert _ids(root) == ["y", "w", "x", "z"]

    def test_recursive(self):
        root = MenuNode(id="root", children=[
            MenuNode(id="p", children=[MenuNode(id="p2", order=2), MenuNode(id="p1", order=1)]),
        ])
        sort_menu_children(root, recursive=True)
        assert _ids(root.children[0]) == ["p1", "p2"]

    def test_leaf_without_children(self):
        leaf = MenuNode(id="leaf")
        assert sort_menu_children(leaf) is leaf
        assert leaf.children is None

    def test_non_list_children_fails_loudly(self):
        root = MenuNode(id="root")
        root.children = "oops"
        with pytest.raises(TreeInvariantViolation):
            sort_menu_children(root)


class TestUpsertMenuItem:
    """插入原语测试"""

    def test_insert_into_root(self, host_menu):
        tree = upsert_menu_item(host_menu, MenuNode(id="media", order=50))
        assert tree is host_menu
        assert _ids(tree) == ["dashboard", "media"]

    def test_insert_creates_children_list(self):
        root = MenuNode(id="root")
        upsert_menu_item(root, MenuNode(id="a", order=1))
        assert _ids(root) == ["a"]

    def test_insert_position_follows_order(self):
        root = MenuNode(id="root", children=[
            MenuNode(id="a", order=30),
            MenuNode(id="b"),
            MenuNode(id="c", order=10),
        ])
        upsert_menu_item(root, MenuNode(id="new", order=50))
        assert _ids(root) == ["c", "a", "new", "b"]
        assert [c.order for c in root.children] == [10, 30, 50, None]

    def test_replace_in_place(self):
        root = MenuNode(id="root", children=[
            MenuNode(id="a", title="旧", order=20),
            MenuNode(id="b", order=20),
        ])
        upsert_menu_item(root, MenuNode(id="a", title="新", order=20))
        assert _ids(root) == ["a", "b"]
        assert root.children[0].title == "新"

    def test_repeated_upsert_is_idempotent(self, host_menu):
        for _ in range(3):
            upsert_menu_item(host_menu, MenuNode(id="media", order=50))
        assert _ids(host_menu).count("media") == 1

    def test_insert_under_parent(self, host_menu):
        upsert_menu_item(host_menu, MenuNode(id="child-2", order=2), parent_id="dashboard")
        upsert_menu_item(host_menu, MenuNode(id="child-1", order=1), parent_id="dashboard")
        dashboard = find_menu_item(host_menu, "dashboard")
        assert _ids(dashboard) == ["child-1", "child-2"]

    def test_inserted_item_children_are_sorted(self):
        root = MenuNode(id="root", children=[])
        item = MenuNode(id="p", children=[MenuNode(id="b", order=2), MenuNode(id="a", order=1)])
        upsert_menu_item(root, item)
        assert _ids(root.children[0]) == ["a", "b"]

    def test_missing_parent(self, host_menu):
        with pytest.raises(TreeInvariantViolation) as exc_info:
            upsert_menu_item(host_menu, MenuNode(id="x"), parent_id="nope")
        assert exc_info.value.node_ids == ["nope"]

    def test_duplicate_siblings_rejected(self):
        root = MenuNode(id="root", children=[MenuNode(id="a"), MenuNode(id="a")])
        with pytest.raises(TreeInvariantViolation):
            upsert_menu_item(root, MenuNode(id="a"))

    def test_id_used_elsewhere_rejected(self, host_menu):
        upsert_menu_item(host_menu, MenuNode(id="shared"), parent_id="dashboard")
        with pytest.raises(TreeInvariantViolation):
            upsert_menu_item(host_menu, MenuNode(id="shared"))


class TestValidateMenuTree:
    """树校验测试"""

    def test_valid_tree(self, host_menu):
        validate_menu_tree(host_menu)

    def test_duplicate_ids(self):
        tree = MenuNode(id="root", children=[
            MenuNode(id="a", children=[MenuNode(id="dup")]),
            MenuNode(id="dup"),
        ])
        with pytest.raises(TreeInvariantViolation) as exc_info:
            validate_menu_tree(tree)
        assert exc_info.value.node_ids == ["dup"]

    def test_violation_is_assertion_error(self):
        assert issubclass(TreeInvariantViolation, AssertionError)


class _ReportsContributor:
    """只在 admin 菜单下添加报表入口"""

    def contribute(self, tree, scope):
        if scope != "admin":
            return tree
        return upsert_menu_item(tree, MenuNode(id="reports", title="报表", path="/reports", order=20))


class _ReplacingContributor:
    """返回新的菜单树而不是原地修改"""

    def contribute(self, tree, scope):
        new_tree = tree.model_copy(deep=True)
        return upsert_menu_item(new_tree, MenuNode(id="help", title="帮助", path="/help"))


class TestMenuComposer:
    """组合器测试"""

    def test_contributor_protocol(self):
        assert isinstance(_ReportsContributor(), MenuContributor)
        assert not isinstance(object(), MenuContributor)

    def test_register_rejects_non_contributor(self):
        composer = MenuComposer()
        with pytest.raises(TypeError):
            composer.register(object())

    def test_compose_admin(self):
        composer = MenuComposer([_ReportsContributor()])
        tree = composer.compose("admin")
        assert tree.id == "root"
        assert _ids(tree) == ["reports"]

    def test_compose_other_menu(self):
        composer = MenuComposer([_ReportsContributor()])
        assert _ids(composer.compose("public")) == []

    def test_each_compose_uses_fresh_root(self):
        composer = MenuComposer([_ReportsContributor()])
        first = composer.compose("admin")
        second = composer.compose("admin")
        assert first is not second
        assert _ids(second) == ["reports"]

    def test_uses_returned_tree(self, host_menu):
        composer = MenuComposer([_ReplacingContributor(), _ReportsContributor()])
        tree = composer.build(host_menu, "admin")
        assert tree is not host_menu
        assert _ids(tree) == ["dashboard", "reports", "help"]
        assert _ids(host_menu) == ["dashboard"]

    def test_contributors_copy(self):
        contributor = _ReportsContributor()
        composer = MenuComposer([contributor])
        composer.contributors.clear()
        assert composer.contributors == [contributor]
