"""Pytest configuration and fixtures for catalog search tests."""

import asyncio
from collections.abc import Callable

import pytest

from catalog_search.catalog.category_tree import Category
from catalog_search.infrastructure.schemas import SearchResult
from catalog_search.infrastructure.search_client import SearchQuery


# ============================================================================
# Fakes
# ============================================================================


class ManualTimer:
    """Timer handle driven by ``ManualTimerService``."""

    def __init__(self, callback: Callable[[], None], due: float) -> None:
        self.callback = callback
        self.due = due
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimerService:
    """Timer service whose clock only moves when a test advances it."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[ManualTimer] = []

    def schedule(self, callback: Callable[[], None], delay: float) -> ManualTimer:
        timer = ManualTimer(callback, self.now + delay)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        """Move the clock and fire every timer that became due."""
        self.now += seconds
        for timer in sorted(self.pending, key=lambda t: t.due):
            if timer.due <= self.now:
                timer.cancelled = True
                timer.callback()


class FakeBackend:
    """Search backend whose responses are resolved by the test.

    Every call parks on a future; tests resolve it with ``set_result`` or
    ``set_exception`` in whatever order they want responses to arrive.
    """

    def __init__(self) -> None:
        self.search_calls: list[tuple[SearchQuery, asyncio.Future[SearchResult]]] = []
        self.suggest_calls: list[tuple[str, int | None, asyncio.Future[list[str]]]] = []
        self.categories: list[Category] = []
        self.closed = False

    async def search(self, query: SearchQuery) -> SearchResult:
        future: asyncio.Future[SearchResult] = asyncio.get_running_loop().create_future()
        self.search_calls.append((query, future))
        return await future

    async def suggest(self, query: str, limit: int | None = None) -> list[str]:
        future: asyncio.Future[list[str]] = asyncio.get_running_loop().create_future()
        self.suggest_calls.append((query, limit, future))
        return await future

    async def get_categories(self) -> list[Category]:
        return list(self.categories)

    async def close(self) -> None:
        self.closed = True


class RecordingNotifier:
    """Notifier collecting error messages."""

    def __init__(self) -> None:
        self.errors: list[str] = []

    def notify_error(self, message: str) -> None:
        self.errors.append(message)


async def settle() -> None:
    """Let scheduled tasks run until they block."""
    for _ in range(5):
        await asyncio.sleep(0)


def make_result(total_pages: int = 3, page: int = 0, hit_ids: tuple[int, ...] = (1,)) -> SearchResult:
    """Build a search result with the given hits."""
    return SearchResult.model_validate(
        {
            "hits": [{"offerId": hit_id, "title": f"Offer {hit_id}"} for hit_id in hit_ids],
            "totalHits": len(hit_ids) * total_pages,
            "page": page,
            "size": 20,
            "totalPages": total_pages,
            "hasNext": page < total_pages - 1,
            "hasPrevious": page > 0,
            "tookMs": 5,
        }
    )


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def timers() -> ManualTimerService:
    """Create a manual timer service."""
    return ManualTimerService()


@pytest.fixture
def backend() -> FakeBackend:
    """Create a fake search backend."""
    return FakeBackend()


@pytest.fixture
def notifier() -> RecordingNotifier:
    """Create a recording notifier."""
    return RecordingNotifier()


@pytest.fixture
def categories() -> list[Category]:
    """Create a small plant catalog hierarchy.

    Plants (1)
        Ferns (2)
            Boston fern (4)
        Succulents (3)
    Tools (5)
    Orphan (6) -> missing parent 99
    """
    return [
        Category(id=4, name="Boston fern", slug="boston-fern", parent_id=2),
        Category(id=3, name="Succulents", slug="succulents", parent_id=1),
        Category(id=5, name="Tools", slug="tools"),
        Category(id=2, name="Ferns", slug="ferns", parent_id=1),
        Category(id=1, name="Plants", slug="plants"),
        Category(id=6, name="Orphan", slug="orphan", parent_id=99),
    ]
