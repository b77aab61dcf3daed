"""Application layer module.

Contains the stateful services that drive a catalog view: the filter
store, search orchestration, suggestions and the session wiring them.
"""

from catalog_search.application.catalog_session import CatalogSession
from catalog_search.application.filter_store import FilterStateStore
from catalog_search.application.request_tokens import RequestTokens
from catalog_search.application.search_orchestrator import (
    Notifier,
    SearchOrchestrator,
    SearchView,
)
from catalog_search.application.suggestion_fetcher import SuggestionFetcher, SuggestionState

__all__ = [
    "CatalogSession",
    "FilterStateStore",
    "Notifier",
    "RequestTokens",
    "SearchOrchestrator",
    "SearchView",
    "SuggestionFetcher",
    "SuggestionState",
]
