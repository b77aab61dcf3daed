"""Search orchestration.

Turns filter state changes into backend search requests. Each request is
tagged with a token; only the response to the most recent request may
update the view, so fast filter changes never show results for an older
state.

Lifecycle (see ``SearchStatus``):
    idle -> loading -> success | error, and loading again on every change.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

import structlog

from catalog_search.application.request_tokens import RequestTokens
from catalog_search.domain.exceptions import CatalogSearchError, SessionClosedError
from catalog_search.domain.filters import FilterState
from catalog_search.domain.state_machines import SearchStatus, validate_search_transition
from catalog_search.infrastructure.config import settings
from catalog_search.infrastructure.schemas import SearchFacets, SearchHit, SearchResult
from catalog_search.infrastructure.search_client import (
    GENERIC_ERROR_MESSAGE,
    SearchClientError,
    SearchQuery,
)

logger = structlog.get_logger()


class SearchBackend(Protocol):
    """Backend able to run a search."""

    async def search(self, query: SearchQuery) -> SearchResult: ...


class Notifier(Protocol):
    """Surface for user-visible error messages (e.g. toasts)."""

    def notify_error(self, message: str) -> None: ...


@dataclass(frozen=True)
class SearchView:
    """Immutable snapshot of what the result area shows.

    Attributes:
        status: Lifecycle state of the latest request.
        filter_state: State the latest request was issued for.
        hits: Current result page.
        facets: Facet buckets of the latest successful response.
        total_hits: Total number of matches.
        page: Zero-based page of the current hits.
        total_pages: Number of pages.
        has_next: Whether a next page exists.
        has_previous: Whether a previous page exists.
        error: Human-readable message when status is ERROR.
        took_ms: Backend processing time of the latest response.
    """

    status: SearchStatus = SearchStatus.IDLE
    filter_state: FilterState | None = None
    hits: tuple[SearchHit, ...] = field(default_factory=tuple)
    facets: SearchFacets | None = None
    total_hits: int = 0
    page: int = 0
    total_pages: int = 0
    has_next: bool = False
    has_previous: bool = False
    error: str | None = None
    took_ms: float | None = None

    @property
    def is_loading(self) -> bool:
        return self.status == SearchStatus.LOADING

    @property
    def can_retry(self) -> bool:
        return self.status.is_retryable()


ViewListener = Callable[[SearchView], None]


class SearchOrchestrator:
    """Issues searches for filter states and reconciles their responses.

    Example usage:
        orchestrator = SearchOrchestrator(client, notifier=toasts)
        store.subscribe(orchestrator.on_state_change)
    """

    def __init__(
        self,
        backend: SearchBackend,
        notifier: Notifier | None = None,
        page_size: int | None = None,
    ) -> None:
        self._backend = backend
        self._notifier = notifier
        self._page_size = page_size if page_size is not None else settings.page_size
        if self._page_size < 1:
            raise ValueError(f"page_size must be positive, got {self._page_size}")
        self._tokens = RequestTokens()
        self._tasks: set[asyncio.Task[None]] = set()
        self._listeners: list[ViewListener] = []
        self._view = SearchView()
        self._last_state: FilterState | None = None
        self._closed = False

    @property
    def view(self) -> SearchView:
        return self._view

    @property
    def status(self) -> SearchStatus:
        return self._view.status

    def subscribe(self, listener: ViewListener) -> Callable[[], None]:
        """Register a listener; returns a callable removing it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, view: SearchView) -> None:
        validate_search_transition(self._view.status, view.status)
        self._view = view
        for listener in list(self._listeners):
            listener(view)

    def on_state_change(self, filter_state: FilterState) -> asyncio.Task[None]:
        """Issue a search for a new filter state.

        Any request still in flight is superseded. The loading state is
        published before this method returns.

        Returns:
            Task completing when the response has been handled.

        Raises:
            SessionClosedError: If the orchestrator has been closed.
        """
        if self._closed:
            raise SessionClosedError("SearchOrchestrator")

        token = self._tokens.mint()
        self._last_state = filter_state
        self._publish(
            SearchView(
                status=SearchStatus.LOADING,
                filter_state=filter_state,
                hits=self._view.hits,
                facets=self._view.facets,
                total_hits=self._view.total_hits,
                page=self._view.page,
                total_pages=self._view.total_pages,
                has_next=self._view.has_next,
                has_previous=self._view.has_previous,
                took_ms=self._view.took_ms,
            )
        )

        query = SearchQuery.from_filter_state(filter_state, self._page_size)
        task = asyncio.get_running_loop().create_task(self._run(query, filter_state, token))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def retry(self) -> asyncio.Task[None]:
        """Re-issue the last search with a new token.

        Raises:
            CatalogSearchError: If no search has been issued yet.
            SessionClosedError: If the orchestrator has been closed.
        """
        if self._last_state is None:
            raise CatalogSearchError("No search to retry")
        logger.info("Retrying search", status=self.status.value)
        return self.on_state_change(self._last_state)

    async def _run(self, query: SearchQuery, filter_state: FilterState, token: int) -> None:
        try:
            result = await self._backend.search(query)
        except SearchClientError as e:
            if self._tokens.is_stale(token):
                logger.debug("Discarding stale search failure", token=token)
                return
            self._fail(filter_state, e)
            return

        if self._tokens.is_stale(token):
            logger.debug("Discarding stale search response", token=token)
            return

        self._publish(
            SearchView(
                status=SearchStatus.SUCCESS,
                filter_state=filter_state,
                hits=tuple(result.hits),
                facets=result.facets,
                total_hits=result.total_hits,
                page=result.page,
                total_pages=result.total_pages,
                has_next=result.has_next,
                has_previous=result.has_previous,
                took_ms=result.took_ms,
            )
        )
        logger.debug(
            "Search completed",
            total_hits=result.total_hits,
            page=result.page,
            took_ms=result.took_ms,
        )

    def _fail(self, filter_state: FilterState, error: SearchClientError) -> None:
        message = error.message or GENERIC_ERROR_MESSAGE
        logger.error("Search failed", error=message, status_code=error.status_code)
        self._publish(
            SearchView(
                status=SearchStatus.ERROR,
                filter_state=filter_state,
                facets=self._view.facets,
                error=message,
            )
        )
        if self._notifier is not None:
            self._notifier.notify_error(message)

    async def wait_for_pending(self) -> None:
        """Wait until every in-flight search has finished."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """Stop handling responses and cancel in-flight searches."""
        self._closed = True
        self._tokens.invalidate()
        for task in list(self._tasks):
            task.cancel()
        self._listeners.clear()
