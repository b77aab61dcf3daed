"""Category loading service.

Fetches the category list from the backend and builds the tree shown in
the filter sidebar.
"""

from typing import Protocol

import structlog

from catalog_search.catalog.category_tree import Category, CategoryTree, build_category_tree
from catalog_search.domain.exceptions import CategoryTreeError

logger = structlog.get_logger()


class CategorySource(Protocol):
    """Backend able to list categories."""

    async def get_categories(self) -> list[Category]: ...


class CategoryService:
    """Service for category tree operations.

    Example usage:
        service = CategoryService(client)
        tree = await service.load_tree()
    """

    def __init__(self, source: CategorySource) -> None:
        """Initialize service.

        Args:
            source: Backend providing the flat category list.
        """
        self._source = source

    async def load_tree(self) -> CategoryTree:
        """Fetch categories and build the tree.

        Inactive categories are dropped. When the hierarchy is structurally
        broken (duplicate ids, cyclic parents) the error is logged and a
        flat listing is returned instead.

        Returns:
            Category tree.

        Raises:
            SearchClientError: If the categories cannot be fetched.
        """
        categories = [c for c in await self._source.get_categories() if c.is_active]
        return self.build(categories)

    def build(self, categories: list[Category]) -> CategoryTree:
        """Build a tree, falling back to a flat listing on structural errors."""
        try:
            tree = build_category_tree(categories)
        except CategoryTreeError as e:
            logger.error(
                "Category hierarchy is malformed, showing flat list",
                error=e.message,
                **e.details,
            )
            return CategoryTree.flat(categories)

        logger.info("Category tree built", category_count=len(tree), root_count=len(tree.roots))
        return tree
