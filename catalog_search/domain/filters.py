"""Canonical filter, sort and page state.

``FilterState`` is the single value that describes what the catalog is
showing. It is immutable; every mutation goes through ``apply_change``,
``go_to_page``, ``clear_filter`` or ``clear_all`` and yields a new state.
Validation happens on construction, so an invalid state (inverted price
range, unknown attribute dimension, negative page) cannot be committed.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from catalog_search.domain.base import ValueObject
from catalog_search.domain.exceptions import (
    FilterValidationError,
    PriceRangeError,
    UnknownFilterError,
)


class SortOption(str, Enum):
    """Result ordering understood by the search backend."""

    RELEVANCE = "relevance"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    RATING_DESC = "rating_desc"
    POPULARITY_DESC = "popularity_desc"
    CREATED_DESC = "created_desc"
    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"

    @property
    def label(self) -> str:
        """Display label for the sort selector."""
        return SORT_LABELS[self]


SORT_LABELS: dict[SortOption, str] = {
    SortOption.RELEVANCE: "Relevance",
    SortOption.POPULARITY_DESC: "Most popular",
    SortOption.RATING_DESC: "Top rated",
    SortOption.PRICE_ASC: "Price: low to high",
    SortOption.PRICE_DESC: "Price: high to low",
    SortOption.CREATED_DESC: "Newest",
    SortOption.NAME_ASC: "Name: A to Z",
    SortOption.NAME_DESC: "Name: Z to A",
}

DEFAULT_SORT = SortOption.RELEVANCE


class AttributeDimension(str, Enum):
    """Multi-valued attribute facets (plant care attributes).

    The value doubles as the backend parameter name and the query-string key.
    """

    LIGHT_REQUIREMENTS = "lightRequirements"
    WATERING_FREQUENCIES = "wateringFrequencies"
    HUMIDITY_LEVELS = "humidityLevels"
    SOIL_TYPES = "soilTypes"
    CARE_DIFFICULTIES = "careDifficulties"
    TOXICITIES = "toxicities"
    GROWTH_RATES = "growthRates"

    @property
    def label(self) -> str:
        """Display label for the dimension."""
        return ATTRIBUTE_LABELS[self]

    def code_label(self, code: str) -> str:
        """Display label for a code, falling back to the code itself."""
        return ATTRIBUTE_CODE_LABELS.get(self, {}).get(code, code)


class FilterFlag(str, Enum):
    """Boolean filters. Only enabled flags are part of a state."""

    PET_SAFE = "petSafe"
    BEGINNER_FRIENDLY = "beginnerFriendly"

    @property
    def label(self) -> str:
        """Display label for the flag."""
        return FLAG_LABELS[self]


ATTRIBUTE_LABELS: dict[AttributeDimension, str] = {
    AttributeDimension.LIGHT_REQUIREMENTS: "Light",
    AttributeDimension.WATERING_FREQUENCIES: "Watering",
    AttributeDimension.HUMIDITY_LEVELS: "Humidity",
    AttributeDimension.SOIL_TYPES: "Soil",
    AttributeDimension.CARE_DIFFICULTIES: "Difficulty",
    AttributeDimension.TOXICITIES: "Toxicity",
    AttributeDimension.GROWTH_RATES: "Growth rate",
}

# Used when a facet bucket arrives without a display name
ATTRIBUTE_CODE_LABELS: dict[AttributeDimension, dict[str, str]] = {
    AttributeDimension.LIGHT_REQUIREMENTS: {
        "FULL_SUN": "Full sun",
        "BRIGHT_INDIRECT": "Bright indirect",
        "PARTIAL_SHADE": "Partial shade",
        "SHADE": "Shade",
        "LOW_LIGHT": "Low light",
    },
    AttributeDimension.WATERING_FREQUENCIES: {
        "VERY_LOW": "Very rare",
        "LOW": "Rare",
        "MODERATE": "Moderate",
        "HIGH": "Frequent",
        "VERY_HIGH": "Very frequent",
        "AQUATIC": "Aquatic",
    },
    AttributeDimension.HUMIDITY_LEVELS: {
        "LOW": "Low",
        "MEDIUM": "Medium",
        "HIGH": "High",
        "VERY_HIGH": "Very high",
    },
    AttributeDimension.SOIL_TYPES: {
        "UNIVERSAL": "Universal",
        "ACIDIC": "Acidic",
        "ALKALINE": "Alkaline",
        "SANDY": "Sandy",
        "LOAMY": "Loamy",
        "PEAT": "Peat",
        "SUCCULENT_MIX": "Succulent mix",
        "ORCHID_MIX": "Orchid mix",
        "AQUATIC": "Aquatic substrate",
    },
    AttributeDimension.CARE_DIFFICULTIES: {
        "BEGINNER": "Beginner",
        "EASY": "Easy",
        "MODERATE": "Moderate",
        "ADVANCED": "Advanced",
        "EXPERT": "Expert",
    },
    AttributeDimension.TOXICITIES: {
        "NON_TOXIC": "Non-toxic",
        "MILDLY_TOXIC": "Mildly toxic",
        "TOXIC_TO_PETS": "Toxic to pets",
        "TOXIC_TO_HUMANS": "Toxic to humans",
        "HIGHLY_TOXIC": "Highly toxic",
    },
    AttributeDimension.GROWTH_RATES: {
        "VERY_SLOW": "Very slow",
        "SLOW": "Slow",
        "MODERATE": "Moderate",
        "FAST": "Fast",
        "VERY_FAST": "Very fast",
    },
}

FLAG_LABELS: dict[FilterFlag, str] = {
    FilterFlag.PET_SAFE: "Pet safe",
    FilterFlag.BEGINNER_FRIENDLY: "Beginner friendly",
}


# ============================================================================
# Coercion helpers
# ============================================================================


def to_price(value: Any, field_name: str = "price") -> Decimal | None:
    """Coerce a price input to ``Decimal``.

    Args:
        value: None, int, float, str or Decimal.
        field_name: Dimension name used in the error.

    Returns:
        Decimal value, or None when the bound is unset.

    Raises:
        FilterValidationError: If the value is not a finite number.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise FilterValidationError(field_name, "Price must be a number", value)
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise FilterValidationError(field_name, "Price must be a number", value) from e
    if not price.is_finite():
        raise FilterValidationError(field_name, "Price must be a number", value)
    return price


def _to_dimension(key: Any) -> AttributeDimension:
    try:
        return AttributeDimension(key)
    except ValueError as e:
        raise UnknownFilterError(str(key)) from e


def _to_flag(key: Any) -> FilterFlag:
    try:
        return FilterFlag(key)
    except ValueError as e:
        raise UnknownFilterError(str(key)) from e


def _to_id(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise FilterValidationError(field_name, "Ids must be integers", value)
    try:
        id_ = int(value)
    except (TypeError, ValueError) as e:
        raise FilterValidationError(field_name, "Ids must be integers", value) from e
    if id_ < 0:
        raise FilterValidationError(field_name, "Ids cannot be negative", value)
    return id_


def _to_ids(values: Iterable[Any], field_name: str) -> frozenset[int]:
    return frozenset(_to_id(value, field_name) for value in values)


def _to_codes(values: Iterable[Any], field_name: str) -> frozenset[str]:
    if isinstance(values, str):
        values = [values]
    codes = frozenset(str(v).strip() for v in values if str(v).strip())
    for code in codes:
        # comma is the list separator in the query string
        if "," in code:
            raise FilterValidationError(field_name, "Attribute codes cannot contain ','", code)
    return codes


# ============================================================================
# Filter State
# ============================================================================


@dataclass(frozen=True)
class FilterState(ValueObject):
    """Filter, sort and page state of the catalog view.

    Attributes:
        category_id: Selected category, None for all categories.
        query: Free-text query, stripped; None when blank.
        min_price: Lower price bound (inclusive).
        max_price: Upper price bound (inclusive).
        in_stock: Only show items in stock.
        brand_ids: Selected brands.
        attribute_filters: Selected codes per attribute dimension.
        boolean_flags: Enabled boolean filters (only True values are kept).
        sort_by: Result ordering.
        page: Zero-based page index.
    """

    category_id: int | None = None
    query: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    in_stock: bool = False
    brand_ids: frozenset[int] = frozenset()
    attribute_filters: Mapping[AttributeDimension, frozenset[str]] = field(default_factory=dict)
    boolean_flags: Mapping[FilterFlag, bool] = field(default_factory=dict)
    sort_by: SortOption = DEFAULT_SORT
    page: int = 0

    def __post_init__(self) -> None:
        """Normalize values and enforce invariants."""
        if self.category_id is not None:
            object.__setattr__(self, "category_id", _to_id(self.category_id, "category_id"))

        query = self.query.strip() if self.query else None
        object.__setattr__(self, "query", query or None)

        min_price = to_price(self.min_price, "min_price")
        max_price = to_price(self.max_price, "max_price")
        if (min_price is not None and min_price < 0) or (max_price is not None and max_price < 0):
            raise PriceRangeError("Price cannot be negative", min_price, max_price)
        if min_price is not None and max_price is not None and min_price > max_price:
            raise PriceRangeError(
                "Minimum price cannot be greater than maximum price",
                min_price,
                max_price,
            )
        object.__setattr__(self, "min_price", min_price)
        object.__setattr__(self, "max_price", max_price)

        object.__setattr__(self, "in_stock", bool(self.in_stock))
        object.__setattr__(self, "brand_ids", _to_ids(self.brand_ids, "brand_ids"))

        attributes: dict[AttributeDimension, frozenset[str]] = {}
        for key, codes in self.attribute_filters.items():
            dimension = _to_dimension(key)
            normalized = _to_codes(codes, dimension.value)
            if normalized:
                attributes[dimension] = normalized
        object.__setattr__(self, "attribute_filters", attributes)

        flags: dict[FilterFlag, bool] = {}
        for key, enabled in self.boolean_flags.items():
            flag = _to_flag(key)
            if enabled:
                flags[flag] = True
        object.__setattr__(self, "boolean_flags", flags)

        try:
            object.__setattr__(self, "sort_by", SortOption(self.sort_by))
        except ValueError as e:
            raise UnknownFilterError(str(self.sort_by)) from e

        if isinstance(self.page, bool) or not isinstance(self.page, int) or self.page < 0:
            raise FilterValidationError("page", "Page must be a non-negative integer", self.page)

    def __hash__(self) -> int:
        return hash(
            (
                self.category_id,
                self.query,
                self.min_price,
                self.max_price,
                self.in_stock,
                self.brand_ids,
                frozenset(self.attribute_filters.items()),
                frozenset(self.boolean_flags),
                self.sort_by,
                self.page,
            )
        )

    def codes_for(self, dimension: AttributeDimension | str) -> frozenset[str]:
        """Get selected codes for an attribute dimension."""
        return self.attribute_filters.get(_to_dimension(dimension), frozenset())

    def has_flag(self, flag: FilterFlag | str) -> bool:
        """Check if a boolean filter is enabled."""
        return self.boolean_flags.get(_to_flag(flag), False)

    @property
    def has_price_range(self) -> bool:
        """True if either price bound is set."""
        return self.min_price is not None or self.max_price is not None

    @property
    def is_default(self) -> bool:
        """True if no filter dimension deviates from its default."""
        return _filters_only(self) == _filters_only(FilterState())


_UNSET: Any = object()


def _filters_only(state: FilterState) -> FilterState:
    return replace(state, page=0)


def apply_change(
    state: FilterState,
    *,
    category_id: int | None = _UNSET,
    query: str | None = _UNSET,
    min_price: Any = _UNSET,
    max_price: Any = _UNSET,
    in_stock: bool = _UNSET,
    brand_ids: Iterable[int] = _UNSET,
    attributes: Mapping[AttributeDimension | str, Iterable[str]] = _UNSET,
    flags: Mapping[FilterFlag | str, bool] = _UNSET,
    sort_by: SortOption | str = _UNSET,
    page: int = _UNSET,
) -> FilterState:
    """Apply a partial change and return the resulting state.

    ``attributes`` and ``flags`` are merged per key into the existing
    selections; an empty code list or a False flag clears that key. Any
    change that alters a filter dimension resets the page to 0. A change
    that only navigates pages keeps every other dimension as is.

    Raises:
        FilterValidationError: If the resulting state would be invalid.
    """
    updates: dict[str, Any] = {}
    if category_id is not _UNSET:
        updates["category_id"] = category_id
    if query is not _UNSET:
        updates["query"] = query
    if min_price is not _UNSET:
        updates["min_price"] = to_price(min_price, "min_price")
    if max_price is not _UNSET:
        updates["max_price"] = to_price(max_price, "max_price")
    if in_stock is not _UNSET:
        updates["in_stock"] = in_stock
    if brand_ids is not _UNSET:
        updates["brand_ids"] = _to_ids(brand_ids or (), "brand_ids")
    if attributes is not _UNSET:
        merged = dict(state.attribute_filters)
        for key, codes in attributes.items():
            dimension = _to_dimension(key)
            merged[dimension] = _to_codes(codes or (), dimension.value)
        updates["attribute_filters"] = merged
    if flags is not _UNSET:
        merged_flags = dict(state.boolean_flags)
        for key, enabled in flags.items():
            merged_flags[_to_flag(key)] = bool(enabled)
        updates["boolean_flags"] = merged_flags
    if sort_by is not _UNSET:
        updates["sort_by"] = sort_by if sort_by is not None else DEFAULT_SORT

    candidate = replace(state, **updates) if updates else state
    if _filters_only(candidate) != _filters_only(state):
        return replace(candidate, page=0)
    if page is not _UNSET:
        return replace(candidate, page=page)
    return candidate


def go_to_page(state: FilterState, page: int) -> FilterState:
    """Navigate to a page without touching any filter dimension."""
    return apply_change(state, page=page)


def clear_all() -> FilterState:
    """Get the default state (all filters, sort and page reset)."""
    return FilterState()


# Keys addressing a single filter dimension (chip keys)
CATEGORY_FILTER = "category"
QUERY_FILTER = "q"
PRICE_FILTER = "price"
IN_STOCK_FILTER = "inStock"
BRANDS_FILTER = "brands"
SORT_FILTER = "sort"


def clear_filter(state: FilterState, key: str) -> FilterState:
    """Reset exactly one filter dimension to its default.

    Args:
        state: Current state.
        key: Dimension key ("category", "q", "price", "inStock", "brands",
            "sort", an attribute dimension or a flag name).

    Returns:
        New state with that dimension cleared and the page reset.

    Raises:
        UnknownFilterError: If the key does not name a dimension.
    """
    if key == CATEGORY_FILTER:
        return apply_change(state, category_id=None)
    if key == QUERY_FILTER:
        return apply_change(state, query=None)
    if key == PRICE_FILTER:
        return apply_change(state, min_price=None, max_price=None)
    if key == IN_STOCK_FILTER:
        return apply_change(state, in_stock=False)
    if key == BRANDS_FILTER:
        return apply_change(state, brand_ids=())
    if key == SORT_FILTER:
        return apply_change(state, sort_by=DEFAULT_SORT)
    if key in {d.value for d in AttributeDimension}:
        return apply_change(state, attributes={key: ()})
    if key in {f.value for f in FilterFlag}:
        return apply_change(state, flags={key: False})
    raise UnknownFilterError(key)
