"""Category catalog.

Builds the navigable category tree from the backend's flat category list.
"""

from catalog_search.catalog.category_tree import (
    Category,
    CategoryTree,
    TreeNode,
    VisibleRow,
    build_category_tree,
    collation_key,
    find_ancestor_path,
)
from catalog_search.catalog.service import CategoryService

__all__ = [
    # Tree
    "Category",
    "CategoryTree",
    "TreeNode",
    "VisibleRow",
    "build_category_tree",
    "collation_key",
    "find_ancestor_path",
    # Service
    "CategoryService",
]
