"""Category tree building and navigation.

The category endpoint returns a flat list in which every category points
at its parent. This module turns that list into a forest of ``TreeNode``
objects with children ordered by name, and provides the navigation helpers
the catalog view needs: ancestor paths for auto-expansion, expansion
toggling and depth-annotated rows for rendering.

Example:
    tree = build_category_tree(categories)
    expanded = tree.expand_to(selected_id, expanded=frozenset())
    rows = tree.visible_nodes(expanded)
"""

import unicodedata
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from catalog_search.domain.exceptions import CategoryCycleError, DuplicateCategoryError


@dataclass(frozen=True)
class Category:
    """A catalog category as returned by the category endpoint.

    Attributes:
        id: Category ID.
        name: Display name.
        slug: URL slug of this category.
        parent_id: ID of parent category (None for root).
        level: Depth reported by the backend, if any.
        sort_order: Backend sort hint, if any.
        is_active: Inactive categories are hidden from the tree.
        full_slug: Slug path from the root, if any.
    """

    id: int
    name: str
    slug: str = ""
    parent_id: int | None = None
    level: int | None = None
    sort_order: int | None = None
    is_active: bool = True
    full_slug: str | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "Category":
        """Create from a category endpoint item.

        Args:
            data: Raw JSON object.

        Returns:
            Category instance.
        """
        parent_id = data.get("parentId")
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            slug=data.get("slug") or "",
            parent_id=int(parent_id) if parent_id is not None else None,
            level=data.get("level"),
            sort_order=data.get("sortOrder"),
            is_active=data.get("isActive", True),
            full_slug=data.get("fullSlug"),
        )

    @property
    def slug_id(self) -> str:
        """Readable URL token, e.g. "monstera-12"."""
        return f"{self.slug}-{self.id}" if self.slug else str(self.id)


@dataclass
class TreeNode:
    """A category plus its ordered children."""

    category: Category
    children: list["TreeNode"] = field(default_factory=list)

    @property
    def id(self) -> int:
        return self.category.id

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass(frozen=True)
class VisibleRow:
    """One rendered row of the category tree.

    Attributes:
        node: Tree node shown on this row.
        depth: Nesting depth, 0 for roots.
        is_expanded: Whether the node's children are shown.
    """

    node: TreeNode
    depth: int
    is_expanded: bool


def collation_key(name: str) -> tuple[str, str, str]:
    """Locale-aware sort key for category names.

    Compares by base letters first (accents and case ignored), then
    case-insensitively, then exactly, so "Éclair" sorts next to "eclair"
    and "apple" before "Banana".
    """
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), name.casefold(), name


def _sort_nodes(nodes: list[TreeNode]) -> None:
    pending = [nodes]
    while pending:
        siblings = pending.pop()
        siblings.sort(key=lambda node: collation_key(node.category.name))
        pending.extend(node.children for node in siblings if node.children)


def _check_cycles(categories: dict[int, Category]) -> None:
    """Walk every parent chain once, failing on a loop."""
    acyclic: set[int] = set()
    for category_id in categories:
        chain: list[int] = []
        on_chain: set[int] = set()
        current: int | None = category_id
        while current is not None and current in categories and current not in acyclic:
            if current in on_chain:
                raise CategoryCycleError(current, chain + [current])
            chain.append(current)
            on_chain.add(current)
            current = categories[current].parent_id
        acyclic.update(chain)


def _index(categories: Iterable[Category]) -> dict[int, Category]:
    by_id: dict[int, Category] = {}
    for category in categories:
        if category.id in by_id:
            raise DuplicateCategoryError(category.id)
        by_id[category.id] = category
    return by_id


class CategoryTree:
    """Immutable forest of categories.

    Built with ``build_category_tree`` or ``CategoryTree.flat``; a new tree
    is built whenever the category list changes.
    """

    def __init__(self, roots: list[TreeNode], categories: dict[int, Category]) -> None:
        self._roots = roots
        self._categories = categories
        # parent links as attached in this tree, not as reported by the backend
        self._parents: dict[int, int] = {}
        for node, _ in self.walk():
            for child in node.children:
                self._parents[child.id] = node.id
        self._by_slug = {c.slug: c for c in categories.values() if c.slug}

    @classmethod
    def flat(cls, categories: Iterable[Category]) -> "CategoryTree":
        """Build a tree in which every category is a root.

        Used as a fallback when the hierarchy is structurally broken.
        Duplicated ids keep their first occurrence.
        """
        by_id: dict[int, Category] = {}
        for category in categories:
            by_id.setdefault(category.id, category)
        roots = [TreeNode(category) for category in by_id.values()]
        _sort_nodes(roots)
        return cls(roots, by_id)

    @property
    def roots(self) -> list[TreeNode]:
        """Top-level nodes, sorted by name."""
        return list(self._roots)

    def __len__(self) -> int:
        return len(self._categories)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._categories

    def get(self, category_id: int) -> Category | None:
        """Get category by ID."""
        return self._categories.get(category_id)

    def get_by_slug(self, slug: str) -> Category | None:
        """Get category by slug."""
        return self._by_slug.get(slug)

    def walk(self) -> Iterator[tuple[TreeNode, int]]:
        """Iterate nodes depth-first in display order.

        Yields:
            (node, depth) tuples.
        """
        stack = [(node, 0) for node in reversed(self._roots)]
        while stack:
            node, depth = stack.pop()
            yield node, depth
            stack.extend((child, depth + 1) for child in reversed(node.children))

    def find_ancestor_path(self, target_id: int) -> list[int]:
        """Get the ids strictly above a category, root first.

        Args:
            target_id: Category to locate.

        Returns:
            Ancestor ids; empty for a root or an unknown id.
        """
        path: list[int] = []
        current = self._parents.get(target_id)
        while current is not None:
            path.append(current)
            current = self._parents.get(current)
        path.reverse()
        return path

    def expand_to(self, selected_id: int | None, expanded: Iterable[int] = ()) -> frozenset[int]:
        """Add the ancestors of the selected category to an expansion set.

        Nodes the user expanded stay expanded; the selected node itself is
        not expanded.
        """
        result = set(expanded)
        if selected_id is not None:
            result.update(self.find_ancestor_path(selected_id))
        return frozenset(result)

    def toggle(self, expanded: Iterable[int], category_id: int) -> frozenset[int]:
        """Flip the expansion of one node."""
        result = set(expanded)
        if category_id in result:
            result.remove(category_id)
        else:
            result.add(category_id)
        return frozenset(result)

    def visible_nodes(self, expanded: Iterable[int]) -> list[VisibleRow]:
        """Flatten the tree into the rows a user currently sees.

        Args:
            expanded: Ids of expanded nodes.

        Returns:
            Rows in display order; children of collapsed nodes are skipped.
        """
        expanded = set(expanded)
        rows: list[VisibleRow] = []
        stack = [(node, 0) for node in reversed(self._roots)]
        while stack:
            node, depth = stack.pop()
            is_expanded = node.id in expanded and not node.is_leaf
            rows.append(VisibleRow(node=node, depth=depth, is_expanded=is_expanded))
            if is_expanded:
                stack.extend((child, depth + 1) for child in reversed(node.children))
        return rows

    def slug_index(self) -> dict[int, str]:
        """Get the id -> slug mapping used for query strings."""
        return {c.id: c.slug for c in self._categories.values() if c.slug}

    def name_index(self) -> dict[int, str]:
        """Get the id -> name mapping used for chips."""
        return {c.id: c.name for c in self._categories.values()}


def build_category_tree(categories: Iterable[Category]) -> CategoryTree:
    """Build a sorted forest from a flat category list.

    Categories whose parent is missing from the list become roots.

    Args:
        categories: Flat category list in any order.

    Returns:
        Category tree containing every input category exactly once.

    Raises:
        DuplicateCategoryError: If two categories share an id.
        CategoryCycleError: If parent references form a loop.
    """
    by_id = _index(categories)
    _check_cycles(by_id)

    # First pass: one node per category
    nodes = {category_id: TreeNode(category) for category_id, category in by_id.items()}

    # Second pass: attach to parents
    roots: list[TreeNode] = []
    for node in nodes.values():
        parent = nodes.get(node.category.parent_id) if node.category.parent_id is not None else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)

    _sort_nodes(roots)
    return CategoryTree(roots, by_id)


def find_ancestor_path(categories: Iterable[Category], target_id: int) -> list[int]:
    """Get the ancestor ids of a category from a raw flat list.

    Args:
        categories: Flat category list.
        target_id: Category to locate.

    Returns:
        Ancestor ids, root first; empty for a root or an unknown id.

    Raises:
        CategoryCycleError: If the parent chain of the target loops.
    """
    by_id = {category.id: category for category in categories}
    path: list[int] = []
    seen = {target_id}
    category = by_id.get(target_id)
    while category is not None and category.parent_id in by_id:
        parent_id = category.parent_id
        if parent_id in seen:
            raise CategoryCycleError(parent_id, [target_id, *path, parent_id])
        seen.add(parent_id)
        path.append(parent_id)
        category = by_id[parent_id]
    path.reverse()
    return path
