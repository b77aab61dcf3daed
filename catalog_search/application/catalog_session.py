"""Catalog browsing session.

Wires the filter store, search orchestrator, suggestion fetcher and
category tree together for one catalog view. The query string is the
session's location: ``navigate`` restores state from it and ``location``
reflects every change back.
"""

from collections.abc import Iterable
from typing import Any

import structlog

from catalog_search.application.filter_store import FilterStateStore
from catalog_search.application.search_orchestrator import Notifier, SearchOrchestrator, SearchView
from catalog_search.application.suggestion_fetcher import SuggestionFetcher
from catalog_search.catalog.category_tree import CategoryTree, VisibleRow
from catalog_search.catalog.service import CategoryService
from catalog_search.domain.chips import ActiveChip
from catalog_search.domain.exceptions import SessionClosedError
from catalog_search.domain.filters import FilterState
from catalog_search.domain.pagination import PageToken, compute_pagination_window
from catalog_search.domain.state_machines import SearchStatus
from catalog_search.infrastructure.search_client import CatalogSearchClient
from catalog_search.infrastructure.timers import TimerService

logger = structlog.get_logger()


class CatalogSession:
    """One catalog view: filters, results, suggestions and categories.

    Example usage:
        session = CatalogSession(notifier=toasts)
        await session.load_categories()
        session.navigate("?category=ferns-7&minPrice=10")
        await session.wait_for_search()
        print(session.view.hits, session.pagination())
        await session.close()
    """

    def __init__(
        self,
        client: CatalogSearchClient | None = None,
        notifier: Notifier | None = None,
        timers: TimerService | None = None,
        page_size: int | None = None,
    ) -> None:
        """Initialize session.

        Args:
            client: Backend client; a default one is created and owned if omitted.
            notifier: Receives user-visible search error messages.
            timers: Timer service for suggestion debouncing.
            page_size: Hits per page (defaults to settings).
        """
        self._owns_client = client is None
        self._client = client or CatalogSearchClient()
        self.store = FilterStateStore()
        self.search = SearchOrchestrator(self._client, notifier=notifier, page_size=page_size)
        self.suggestions = SuggestionFetcher(self._client, timers=timers)
        self.categories = CategoryService(self._client)

        self._tree = CategoryTree.flat([])
        self._expanded: frozenset[int] = frozenset()
        self._closed = False
        self._unsubscribers = [
            self.store.subscribe(self._on_state_change),
            self.search.subscribe(self._on_view_change),
        ]

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("CatalogSession")

    def _on_state_change(self, state: FilterState) -> None:
        self._expanded = self._tree.expand_to(state.category_id, self._expanded)
        self.search.on_state_change(state)

    def _on_view_change(self, view: SearchView) -> None:
        if view.status != SearchStatus.SUCCESS or view.facets is None:
            return
        brand_names = {
            bucket.id: bucket.label
            for bucket in view.facets.brands
            if bucket.id is not None and bucket.label
        }
        if brand_names:
            self.store.set_labels(brand_names=brand_names)

    # =========================================================================
    # Categories
    # =========================================================================

    async def load_categories(self) -> CategoryTree:
        """Load the category tree and expand it to the selected category.

        Raises:
            SearchClientError: If the categories cannot be fetched.
        """
        self._ensure_open()
        tree = await self.categories.load_tree()
        self._tree = tree
        self.store.set_category_slugs(tree.slug_index())
        self.store.set_labels(category_names=tree.name_index())
        self._expanded = tree.expand_to(self.store.state.category_id, self._expanded)
        return tree

    @property
    def category_tree(self) -> CategoryTree:
        return self._tree

    def expanded_category_ids(self) -> frozenset[int]:
        """Ids of expanded tree nodes (includes the selected category's ancestors)."""
        return self._expanded

    def toggle_category(self, category_id: int) -> frozenset[int]:
        """Expand or collapse one tree node."""
        self._expanded = self._tree.toggle(self._expanded, category_id)
        return self._expanded

    def visible_categories(self) -> list[VisibleRow]:
        return self._tree.visible_nodes(self._expanded)

    # =========================================================================
    # Filters
    # =========================================================================

    def navigate(self, location: str | Iterable[tuple[str, str]]) -> FilterState:
        """Restore the state from a query string and search for it.

        The first navigation always issues a search, even when the location
        describes the default state.
        """
        self._ensure_open()
        previous = self.store.state
        state = self.store.restore(location)
        if state == previous and self.search.status == SearchStatus.IDLE:
            self._on_state_change(state)
        return state

    def apply(self, **changes: Any) -> FilterState:
        """Apply a filter change (see ``filters.apply_change``).

        Raises:
            FilterValidationError: If the change is invalid; nothing is sent.
        """
        self._ensure_open()
        return self.store.apply_change(**changes)

    def go_to_page(self, page: int) -> FilterState:
        self._ensure_open()
        return self.store.go_to_page(page)

    def remove_chip(self, key: str) -> FilterState:
        self._ensure_open()
        return self.store.remove_chip(key)

    def clear_all(self) -> FilterState:
        self._ensure_open()
        return self.store.clear_all()

    def retry(self) -> None:
        """Re-issue the last search after an error."""
        self._ensure_open()
        self.search.retry()

    def on_query_input(self, text: str) -> None:
        """Feed raw search-box input to the suggestion fetcher."""
        self._ensure_open()
        self.suggestions.on_query_change(text)

    # =========================================================================
    # Views
    # =========================================================================

    @property
    def state(self) -> FilterState:
        return self.store.state

    @property
    def location(self) -> str:
        """Query string describing the current state."""
        return self.store.to_query_string()

    @property
    def view(self) -> SearchView:
        return self.search.view

    def chips(self) -> list[ActiveChip]:
        return self.store.active_chips()

    def pagination(self) -> list[PageToken]:
        """Pagination tokens for the current result set."""
        return compute_pagination_window(self.search.view.total_pages, self.store.state.page)

    async def wait_for_search(self) -> None:
        await self.search.wait_for_pending()

    async def close(self) -> None:
        """Tear down: cancel timers and requests, ignore late responses."""
        if self._closed:
            return
        self._closed = True
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self.search.close()
        self.suggestions.close()
        if self._owns_client:
            await self._client.close()
        logger.debug("Catalog session closed")
