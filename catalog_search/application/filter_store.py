"""Filter state store.

Holds the current ``FilterState`` and notifies subscribers when it
changes. The store is the only writer of the state; every mutation goes
through the pure transitions in ``catalog_search.domain.filters``.
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any

import structlog

from catalog_search.domain import filters
from catalog_search.domain.chips import ActiveChip, remove_chip, to_active_chips
from catalog_search.domain.filters import FilterState
from catalog_search.domain.query_codec import deserialize, from_query_string, serialize, to_query_string

logger = structlog.get_logger()

Listener = Callable[[FilterState], None]


class FilterStateStore:
    """Single source of truth for the catalog filter state.

    Example usage:
        store = FilterStateStore()
        unsubscribe = store.subscribe(orchestrator.on_state_change)
        store.restore("category=ferns-7&page=2")
        store.apply_change(min_price=100)
    """

    def __init__(self, initial: FilterState | None = None) -> None:
        self._state = initial or FilterState()
        self._listeners: list[Listener] = []
        self._category_slugs: dict[int, str] = {}
        self._category_names: dict[int, str] = {}
        self._brand_names: dict[int, str] = {}

    @property
    def state(self) -> FilterState:
        """The current state."""
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with every new state.

        Returns:
            Callable removing the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self) -> None:
        """Call every listener with the current state."""
        for listener in list(self._listeners):
            listener(self._state)

    def _commit(self, state: FilterState) -> FilterState:
        if state == self._state:
            return self._state
        self._state = state
        logger.debug("Filter state changed", query_string=self.to_query_string())
        self.notify()
        return state

    # =========================================================================
    # Mutators
    # =========================================================================

    def apply_change(self, **changes: Any) -> FilterState:
        """Apply a partial change (see ``filters.apply_change``).

        Raises:
            FilterValidationError: If the change is invalid; the state is kept.
        """
        return self._commit(filters.apply_change(self._state, **changes))

    def go_to_page(self, page: int) -> FilterState:
        """Navigate to a page, keeping all filters."""
        return self._commit(filters.go_to_page(self._state, page))

    def remove_chip(self, key: str) -> FilterState:
        """Clear the dimension behind an active chip."""
        return self._commit(remove_chip(self._state, key))

    def clear_all(self) -> FilterState:
        """Reset every dimension to its default."""
        return self._commit(filters.clear_all())

    def restore(self, location: str | Iterable[tuple[str, str]]) -> FilterState:
        """Replace the state with one read from a query string or pairs."""
        if isinstance(location, str):
            state = from_query_string(location)
        else:
            state = deserialize(location)
        return self._commit(state)

    # =========================================================================
    # Views
    # =========================================================================

    def set_category_slugs(self, slugs: Mapping[int, str]) -> None:
        """Set the id -> slug lookup used in query strings."""
        self._category_slugs = dict(slugs)

    def set_labels(
        self,
        category_names: Mapping[int, str] | None = None,
        brand_names: Mapping[int, str] | None = None,
    ) -> None:
        """Set display names used by active chips."""
        if category_names is not None:
            self._category_names = dict(category_names)
        if brand_names is not None:
            self._brand_names = dict(brand_names)

    def serialize(self) -> list[tuple[str, str]]:
        return serialize(self._state, self._category_slugs)

    def to_query_string(self) -> str:
        return to_query_string(self._state, self._category_slugs)

    def active_chips(self) -> list[ActiveChip]:
        return to_active_chips(self._state, self._category_names, self._brand_names)
