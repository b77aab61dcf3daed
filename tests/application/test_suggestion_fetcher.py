"""Tests for debounced suggestion lookups."""

import pytest
from conftest import FakeBackend, ManualTimerService, settle

from catalog_search.application import SuggestionFetcher, SuggestionState
from catalog_search.domain import SessionClosedError
from catalog_search.infrastructure.search_client import SearchClientError


@pytest.fixture
def fetcher(backend: FakeBackend, timers: ManualTimerService) -> SuggestionFetcher:
    """Create a fetcher with a 300 ms debounce driven by manual timers."""
    return SuggestionFetcher(backend, timers=timers, debounce_seconds=0.3, limit=8, min_length=2)


@pytest.fixture
def published(fetcher: SuggestionFetcher) -> list[SuggestionState]:
    """Collect published states."""
    states: list[SuggestionState] = []
    fetcher.subscribe(states.append)
    return states


class TestSuggestionFetcher:
    """Tests for SuggestionFetcher."""

    @pytest.mark.asyncio
    async def test_short_text_issues_no_request(
        self,
        fetcher: SuggestionFetcher,
        backend: FakeBackend,
        timers: ManualTimerService,
        published: list[SuggestionState],
    ) -> None:
        """Text shorter than two characters clears the list without a request."""
        fetcher.on_query_change(" f ")
        timers.advance(1.0)
        await settle()
        assert backend.suggest_calls == []
        assert published == [SuggestionState()]

    @pytest.mark.asyncio
    async def test_debounce_sends_only_last_text(
        self,
        fetcher: SuggestionFetcher,
        backend: FakeBackend,
        timers: ManualTimerService,
    ) -> None:
        """Keystrokes within the debounce window produce one request."""
        fetcher.on_query_change("fe")
        timers.advance(0.1)
        fetcher.on_query_change("fer")
        timers.advance(0.1)
        fetcher.on_query_change("fern")
        timers.advance(0.29)
        await settle()
        assert backend.suggest_calls == []

        timers.advance(0.05)
        await settle()
        assert [(q, limit) for q, limit, _ in backend.suggest_calls] == [("fern", 8)]

    @pytest.mark.asyncio
    async def test_response_applied(
        self,
        fetcher: SuggestionFetcher,
        backend: FakeBackend,
        timers: ManualTimerService,
        published: list[SuggestionState],
    ) -> None:
        """A current response is published and loading ends."""
        fetcher.on_query_change("fern")
        timers.advance(0.3)
        await settle()
        assert fetcher.state.is_loading

        backend.suggest_calls[0][2].set_result(["fern", "fern moss"])
        await fetcher.wait_for_pending()
        assert fetcher.state == SuggestionState(suggestions=("fern", "fern moss"))
        assert published[-1] == fetcher.state

    @pytest.mark.asyncio
    async def test_stale_response_discarded(
        self,
        fetcher: SuggestionFetcher,
        backend: FakeBackend,
        timers: ManualTimerService,
    ) -> None:
        """A slow response for an older prefix never overwrites a newer one."""
        fetcher.on_query_change("fe")
        timers.advance(0.3)
        await settle()
        fetcher.on_query_change("fern")
        timers.advance(0.3)
        await settle()

        old, new = backend.suggest_calls[0][2], backend.suggest_calls[1][2]
        new.set_result(["fern"])
        await settle()
        old.set_result(["feather", "fennel"])
        await fetcher.wait_for_pending()
        assert fetcher.state.suggestions == ("fern",)

    @pytest.mark.asyncio
    async def test_clearing_text_discards_in_flight(
        self,
        fetcher: SuggestionFetcher,
        backend: FakeBackend,
        timers: ManualTimerService,
    ) -> None:
        """Shortening the text below the minimum drops the pending response."""
        fetcher.on_query_change("fern")
        timers.advance(0.3)
        await settle()
        fetcher.on_query_change("")
        backend.suggest_calls[0][2].set_result(["fern"])
        await fetcher.wait_for_pending()
        assert fetcher.state == SuggestionState()

    @pytest.mark.asyncio
    async def test_failure_clears_list(
        self,
        fetcher: SuggestionFetcher,
        backend: FakeBackend,
        timers: ManualTimerService,
    ) -> None:
        """Backend failures empty the list without raising."""
        fetcher.on_query_change("fern")
        timers.advance(0.3)
        await settle()
        backend.suggest_calls[0][2].set_exception(SearchClientError("boom", 500))
        await fetcher.wait_for_pending()
        assert fetcher.state == SuggestionState()

    @pytest.mark.asyncio
    async def test_close_cancels_timer_and_requests(
        self,
        fetcher: SuggestionFetcher,
        backend: FakeBackend,
        timers: ManualTimerService,
    ) -> None:
        """After close no timer fires and further input is rejected."""
        fetcher.on_query_change("fern")
        fetcher.close()
        timers.advance(1.0)
        await settle()
        assert backend.suggest_calls == []
        with pytest.raises(SessionClosedError):
            fetcher.on_query_change("fern")

    @pytest.mark.asyncio
    async def test_explicit_min_length_honoured(
        self, backend: FakeBackend, timers: ManualTimerService
    ) -> None:
        """An explicit minimum length of zero is not replaced by the default."""
        fetcher = SuggestionFetcher(backend, timers=timers, debounce_seconds=0.3, min_length=0)
        fetcher.on_query_change("f")
        timers.advance(0.3)
        await settle()
        assert [q for q, _, _ in backend.suggest_calls] == ["f"]
        fetcher.close()
        await fetcher.wait_for_pending()

    def test_zero_limit_rejected(self, backend: FakeBackend, timers: ManualTimerService) -> None:
        """A limit of zero is invalid rather than silently defaulted."""
        with pytest.raises(ValueError):
            SuggestionFetcher(backend, timers=timers, limit=0)
