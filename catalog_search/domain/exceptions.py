"""Domain exceptions.

Errors raised by the filter state, the category tree builder and the
search state machine. Transport failures live in the infrastructure
layer (see ``SearchClientError``).
"""

from typing import Any


class CatalogSearchError(Exception):
    """Base class for all catalog search exceptions.

    All errors raised by this package inherit from this class so callers
    can catch them at the session boundary.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize catalog search error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# State Machine Errors
# ============================================================================


class InvalidStateTransitionError(CatalogSearchError):
    """Raised when an invalid state transition is attempted."""

    def __init__(
        self,
        entity_type: str,
        current_state: str,
        target_state: str,
        allowed_transitions: list[str] | None = None,
    ) -> None:
        """Initialize invalid state transition error.

        Args:
            entity_type: Type of the state machine owner (e.g., "Search").
            current_state: Current state.
            target_state: Attempted target state.
            allowed_transitions: List of allowed target states from current state.
        """
        allowed = allowed_transitions or []
        message = (
            f"Cannot transition {entity_type} "
            f"from '{current_state}' to '{target_state}'. "
            f"Allowed transitions: {allowed}"
        )
        super().__init__(
            message,
            details={
                "entity_type": entity_type,
                "current_state": current_state,
                "target_state": target_state,
                "allowed_transitions": allowed,
            },
        )


class SessionClosedError(CatalogSearchError):
    """Raised when a component is used after it has been closed."""

    def __init__(self, component: str) -> None:
        super().__init__(
            f"{component} has been closed",
            details={"component": component},
        )


# ============================================================================
# Filter Errors
# ============================================================================


class FilterValidationError(CatalogSearchError):
    """Raised when a filter change fails client-side validation.

    The change is not committed and never reaches the backend.
    """

    def __init__(self, field: str, message: str, value: Any = None) -> None:
        """Initialize filter validation error.

        Args:
            field: Filter dimension that failed validation.
            message: Human-readable explanation, suitable for inline display.
            value: The rejected value.
        """
        super().__init__(message, details={"field": field, "value": value})
        self.field = field


class PriceRangeError(FilterValidationError):
    """Raised when price bounds are negative or inverted."""

    def __init__(self, message: str, min_price: Any = None, max_price: Any = None) -> None:
        super().__init__(
            "price",
            message,
            value={"min": min_price, "max": max_price},
        )


class UnknownFilterError(FilterValidationError):
    """Raised for an unknown filter key, attribute dimension or flag."""

    def __init__(self, key: str) -> None:
        super().__init__(key, f"Unknown filter '{key}'", value=key)


# ============================================================================
# Category Errors
# ============================================================================


class CategoryTreeError(CatalogSearchError):
    """Base class for structural errors in category data."""

    pass


class CategoryCycleError(CategoryTreeError):
    """Raised when parent references form a cycle."""

    def __init__(self, category_id: int, chain: list[int]) -> None:
        """Initialize category cycle error.

        Args:
            category_id: Category whose parent chain loops.
            chain: Ids visited before the loop was detected.
        """
        super().__init__(
            f"Category {category_id} has a cyclic parent chain: {chain}",
            details={"category_id": category_id, "chain": chain},
        )


class DuplicateCategoryError(CategoryTreeError):
    """Raised when the same category id appears more than once."""

    def __init__(self, category_id: int) -> None:
        super().__init__(
            f"Category {category_id} appears more than once",
            details={"category_id": category_id},
        )
