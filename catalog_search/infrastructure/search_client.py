"""Search backend HTTP client.

Thin async client for the faceted-search and catalog endpoints. Every
failure (transport error, non-2xx status, undecodable payload) is raised
as ``SearchClientError`` carrying a message suitable for display.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from catalog_search.catalog.category_tree import Category
from catalog_search.domain.filters import (
    DEFAULT_SORT,
    AttributeDimension,
    FilterFlag,
    FilterState,
    SortOption,
)
from catalog_search.domain.query_codec import format_price
from catalog_search.infrastructure.config import settings
from catalog_search.infrastructure.schemas import IndexStatus, SearchResult

logger = structlog.get_logger()

GENERIC_ERROR_MESSAGE = "Something went wrong while loading data. Please try again."


class SearchClientError(Exception):
    """Error from a search backend call."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


# ============================================================================
# Search Query
# ============================================================================


@dataclass(frozen=True)
class SearchQuery:
    """Parameters of one search request.

    Attributes:
        query: Free-text query.
        category_id: Category filter.
        min_price: Minimum price (inclusive).
        max_price: Maximum price (inclusive).
        in_stock: Only items in stock.
        brand_ids: Brand filter.
        attributes: Selected codes per attribute dimension.
        flags: Enabled boolean filters.
        sort_by: Result ordering.
        page: Zero-based page index.
        size: Page size.
        include_facets: Ask the backend for facet buckets.
    """

    query: str | None = None
    category_id: int | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    in_stock: bool = False
    brand_ids: tuple[int, ...] = ()
    attributes: dict[AttributeDimension, tuple[str, ...]] = field(default_factory=dict)
    flags: tuple[FilterFlag, ...] = ()
    sort_by: SortOption = DEFAULT_SORT
    page: int = 0
    size: int = 20
    include_facets: bool = True

    @classmethod
    def from_filter_state(
        cls,
        state: FilterState,
        page_size: int,
        include_facets: bool = True,
    ) -> "SearchQuery":
        """Project a filter state into request parameters.

        Args:
            state: Current filter state.
            page_size: Hits per page.
            include_facets: Ask the backend for facet buckets.

        Returns:
            SearchQuery instance.
        """
        return cls(
            query=state.query,
            category_id=state.category_id,
            min_price=state.min_price,
            max_price=state.max_price,
            in_stock=state.in_stock,
            brand_ids=tuple(sorted(state.brand_ids)),
            attributes={
                dimension: tuple(sorted(codes))
                for dimension, codes in state.attribute_filters.items()
            },
            flags=tuple(flag for flag in FilterFlag if state.boolean_flags.get(flag)),
            sort_by=state.sort_by,
            page=state.page,
            size=page_size,
            include_facets=include_facets,
        )

    def to_params(self) -> dict[str, str]:
        """Build the query parameters understood by the backend."""
        params: dict[str, str] = {}
        if self.query:
            params["q"] = self.query
        if self.category_id is not None:
            params["categoryId"] = str(self.category_id)
        if self.min_price is not None:
            params["minPrice"] = format_price(self.min_price)
        if self.max_price is not None:
            params["maxPrice"] = format_price(self.max_price)
        if self.in_stock:
            params["inStock"] = "true"
        if self.brand_ids:
            params["brandIds"] = ",".join(str(brand_id) for brand_id in self.brand_ids)
        for dimension in AttributeDimension:
            codes = self.attributes.get(dimension)
            if codes:
                params[dimension.value] = ",".join(codes)
        for flag in self.flags:
            params[flag.value] = "true"
        params["sortBy"] = self.sort_by.value
        params["page"] = str(self.page)
        params["size"] = str(self.size)
        params["includeFacets"] = "true" if self.include_facets else "false"
        return params


# ============================================================================
# HTTP Client
# ============================================================================


def _error_message(response: httpx.Response) -> str:
    """Extract the backend's message from an error response."""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return f"Request failed with status {response.status_code}"


class CatalogSearchClient:
    """HTTP client for the search and catalog endpoints.

    Example usage:
        client = CatalogSearchClient()
        result = await client.search(SearchQuery(query="monstera"))
        await client.close()
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Backend base URL (defaults to settings).
            timeout: Request timeout in seconds (defaults to settings).
        """
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.api_timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Make a GET request and decode the JSON body.

        Args:
            path: Endpoint path.
            params: Query parameters; None values are dropped.

        Returns:
            Decoded JSON payload.

        Raises:
            SearchClientError: On transport error, error status or bad payload.
        """
        client = await self._get_client()
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        logger.debug("Making search API request", path=path, params=params)
        try:
            response = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            logger.error("Search API request timeout", path=path, error=str(e))
            raise SearchClientError(f"Request timed out: {path}") from e
        except httpx.RequestError as e:
            logger.error("Search API request failed", path=path, error=str(e))
            raise SearchClientError(str(e) or GENERIC_ERROR_MESSAGE) from e

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(
                "Search API returned error",
                path=path,
                status_code=response.status_code,
                message=message,
            )
            raise SearchClientError(message, response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise SearchClientError(
                f"Invalid response from {path}", response.status_code
            ) from e

    # =========================================================================
    # Search Endpoints
    # =========================================================================

    async def search(self, query: SearchQuery) -> SearchResult:
        """Fetch one page of search results.

        Args:
            query: Search parameters.

        Returns:
            Parsed result page.

        Raises:
            SearchClientError: On any backend failure.
        """
        data = await self._get(settings.search_path, params=query.to_params())
        try:
            return SearchResult.model_validate(data)
        except ValidationError as e:
            logger.error("Unexpected search response", error=str(e))
            raise SearchClientError("Unexpected search response") from e

    async def suggest(self, query: str, limit: int | None = None) -> list[str]:
        """Fetch autocomplete suggestions.

        Args:
            query: Text typed so far.
            limit: Maximum number of suggestions (the backend enforces it).

        Returns:
            Suggestion strings in backend order.

        Raises:
            SearchClientError: On any backend failure.
        """
        data = await self._get(
            settings.suggest_path,
            params={"q": query, "limit": limit if limit is not None else settings.suggestion_limit},
        )
        if not isinstance(data, list):
            raise SearchClientError("Unexpected suggestion response")
        return [str(item) for item in data]

    async def get_status(self) -> IndexStatus:
        """Fetch search index health.

        Raises:
            SearchClientError: On any backend failure.
        """
        data = await self._get(settings.status_path)
        try:
            return IndexStatus.model_validate(data)
        except ValidationError as e:
            raise SearchClientError("Unexpected status response") from e

    # =========================================================================
    # Catalog Endpoints
    # =========================================================================

    async def get_categories(self) -> list[Category]:
        """Fetch the flat category list.

        Raises:
            SearchClientError: On any backend failure.
        """
        data = await self._get(settings.categories_path)
        if not isinstance(data, list):
            raise SearchClientError("Unexpected category response")
        try:
            return [Category.from_api_response(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise SearchClientError("Unexpected category response") from e
