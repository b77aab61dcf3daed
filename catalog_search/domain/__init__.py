"""Domain layer - filter state, query codec, chips, pagination, state machines.

This module exports the pure building blocks of the catalog view:

- **Filter State**: Immutable filter/sort/page value and its transitions
- **Query Codec**: Bijective mapping between filter state and query string
- **Chips**: Removable tags for active filters
- **Pagination**: Ellipsis-collapsed page window
- **State Machines**: Search request lifecycle
- **Exceptions**: Validation and structural errors

Example usage:
    from catalog_search.domain import FilterState, apply_change, to_query_string

    state = apply_change(FilterState(), category_id=7, min_price=10)
    print(to_query_string(state))  # category=7&minPrice=10
"""

# Exceptions
from catalog_search.domain.exceptions import (
    CatalogSearchError,
    CategoryCycleError,
    CategoryTreeError,
    DuplicateCategoryError,
    FilterValidationError,
    InvalidStateTransitionError,
    PriceRangeError,
    SessionClosedError,
    UnknownFilterError,
)

# Filter state
from catalog_search.domain.filters import (
    DEFAULT_SORT,
    AttributeDimension,
    FilterFlag,
    FilterState,
    SortOption,
    apply_change,
    clear_all,
    clear_filter,
    go_to_page,
)

# Query codec
from catalog_search.domain.query_codec import (
    deserialize,
    from_query_string,
    parse_slug_id,
    serialize,
    to_query_string,
)

# Chips
from catalog_search.domain.chips import ActiveChip, ChipKind, remove_chip, to_active_chips

# Pagination
from catalog_search.domain.pagination import compute_pagination_window

# State machines
from catalog_search.domain.state_machines import SearchStatus, validate_search_transition

__all__ = [
    # Exceptions
    "CatalogSearchError",
    "CategoryCycleError",
    "CategoryTreeError",
    "DuplicateCategoryError",
    "FilterValidationError",
    "InvalidStateTransitionError",
    "PriceRangeError",
    "SessionClosedError",
    "UnknownFilterError",
    # Filter state
    "DEFAULT_SORT",
    "AttributeDimension",
    "FilterFlag",
    "FilterState",
    "SortOption",
    "apply_change",
    "clear_all",
    "clear_filter",
    "go_to_page",
    # Query codec
    "deserialize",
    "from_query_string",
    "parse_slug_id",
    "serialize",
    "to_query_string",
    # Chips
    "ActiveChip",
    "ChipKind",
    "remove_chip",
    "to_active_chips",
    # Pagination
    "compute_pagination_window",
    # State machines
    "SearchStatus",
    "validate_search_transition",
]
