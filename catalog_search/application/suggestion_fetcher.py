"""Autocomplete suggestions.

Debounces raw text input and fetches suggestions, making sure a slow
response for an old prefix never replaces the suggestions for what the
user typed last.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

import structlog

from catalog_search.application.request_tokens import RequestTokens
from catalog_search.domain.exceptions import SessionClosedError
from catalog_search.infrastructure.config import settings
from catalog_search.infrastructure.search_client import SearchClientError
from catalog_search.infrastructure.timers import AsyncioTimerService, TimerHandle, TimerService

logger = structlog.get_logger()


class SuggestionSource(Protocol):
    """Backend able to return suggestions for a prefix."""

    async def suggest(self, query: str, limit: int | None = None) -> list[str]: ...


@dataclass(frozen=True)
class SuggestionState:
    """Snapshot published to subscribers."""

    suggestions: tuple[str, ...] = field(default_factory=tuple)
    is_loading: bool = False


SuggestionListener = Callable[[SuggestionState], None]


class SuggestionFetcher:
    """Debounced, race-free suggestion lookups.

    Text shorter than the minimum length clears the list immediately.
    Longer text (re)starts a single debounce timer; when it fires, the
    latest text is sent to the backend with a fresh request token.
    """

    def __init__(
        self,
        source: SuggestionSource,
        timers: TimerService | None = None,
        debounce_seconds: float | None = None,
        limit: int | None = None,
        min_length: int | None = None,
    ) -> None:
        self._source = source
        self._timers = timers or AsyncioTimerService()
        self._debounce = (
            debounce_seconds if debounce_seconds is not None else settings.suggestion_debounce_seconds
        )
        self._limit = limit if limit is not None else settings.suggestion_limit
        self._min_length = min_length if min_length is not None else settings.suggestion_min_length
        if self._limit < 1:
            raise ValueError(f"limit must be positive, got {self._limit}")
        if self._min_length < 0:
            raise ValueError(f"min_length cannot be negative, got {self._min_length}")

        self._tokens = RequestTokens()
        self._timer: TimerHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._listeners: list[SuggestionListener] = []
        self._state = SuggestionState()
        self._closed = False

    @property
    def state(self) -> SuggestionState:
        return self._state

    def subscribe(self, listener: SuggestionListener) -> Callable[[], None]:
        """Register a listener; returns a callable removing it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, state: SuggestionState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def on_query_change(self, text: str) -> None:
        """Handle a change of the search input.

        Raises:
            SessionClosedError: If the fetcher has been closed.
        """
        if self._closed:
            raise SessionClosedError("SuggestionFetcher")

        self._cancel_timer()
        query = text.strip()
        if len(query) < self._min_length:
            self._tokens.invalidate()
            self._publish(SuggestionState())
            return

        self._timer = self._timers.schedule(lambda: self._fire(query), self._debounce)

    def _fire(self, query: str) -> None:
        self._timer = None
        if self._closed:
            return
        token = self._tokens.mint()
        self._publish(SuggestionState(suggestions=self._state.suggestions, is_loading=True))
        task = asyncio.get_running_loop().create_task(self._fetch(query, token))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _fetch(self, query: str, token: int) -> None:
        try:
            suggestions = await self._source.suggest(query, limit=self._limit)
        except SearchClientError as e:
            if self._tokens.is_stale(token):
                return
            logger.warning("Suggestion lookup failed", query=query, error=e.message)
            self._publish(SuggestionState())
            return

        if self._tokens.is_stale(token):
            logger.debug("Discarding stale suggestions", query=query, token=token)
            return
        self._publish(SuggestionState(suggestions=tuple(suggestions)))

    async def wait_for_pending(self) -> None:
        """Wait until every in-flight lookup has finished."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """Cancel the timer and drop every in-flight lookup."""
        self._closed = True
        self._cancel_timer()
        self._tokens.invalidate()
        for task in list(self._tasks):
            task.cancel()
        self._listeners.clear()
