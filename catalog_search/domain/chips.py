"""Active filter chips.

A chip is the removable tag shown above the results for each filter
dimension that differs from its default. Multi-valued dimensions collapse
into a single chip whose value joins the selected labels.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from catalog_search.domain.base import ValueObject
from catalog_search.domain.filters import (
    BRANDS_FILTER,
    CATEGORY_FILTER,
    DEFAULT_SORT,
    IN_STOCK_FILTER,
    PRICE_FILTER,
    QUERY_FILTER,
    SORT_FILTER,
    AttributeDimension,
    FilterFlag,
    FilterState,
    clear_filter,
)
from catalog_search.domain.query_codec import format_price

VALUE_SEPARATOR = ", "


class ChipKind(str, Enum):
    """Chip grouping, used for icons and ordering."""

    CATEGORY = "category"
    BRAND = "brand"
    PRICE = "price"
    ATTRIBUTE = "attribute"
    OTHER = "other"


@dataclass(frozen=True)
class ActiveChip(ValueObject):
    """A removable tag for one active filter dimension.

    Attributes:
        key: Dimension key, accepted by ``remove_chip``.
        label: Dimension name, e.g. "Price".
        value: Display value, e.g. "from 100 to 500".
        kind: Chip grouping.
    """

    key: str
    label: str
    value: str
    kind: ChipKind


def _price_value(state: FilterState) -> str:
    if state.min_price is not None and state.max_price is not None:
        return f"from {format_price(state.min_price)} to {format_price(state.max_price)}"
    if state.min_price is not None:
        return f"from {format_price(state.min_price)}"
    return f"up to {format_price(state.max_price)}"


def to_active_chips(
    state: FilterState,
    category_names: Mapping[int, str] | None = None,
    brand_names: Mapping[int, str] | None = None,
) -> list[ActiveChip]:
    """Build one chip per non-default filter dimension.

    Args:
        state: Current filter state.
        category_names: Optional id -> name lookup for the category chip.
        brand_names: Optional id -> name lookup for the brand chip.

    Returns:
        Chips in canonical dimension order. Page is not a filter and never
        produces a chip.
    """
    category_names = category_names or {}
    brand_names = brand_names or {}
    chips: list[ActiveChip] = []

    if state.category_id is not None:
        chips.append(
            ActiveChip(
                key=CATEGORY_FILTER,
                label="Category",
                value=category_names.get(state.category_id, f"#{state.category_id}"),
                kind=ChipKind.CATEGORY,
            )
        )
    if state.query:
        chips.append(ActiveChip(key=QUERY_FILTER, label="Search", value=state.query, kind=ChipKind.OTHER))
    if state.has_price_range:
        chips.append(ActiveChip(key=PRICE_FILTER, label="Price", value=_price_value(state), kind=ChipKind.PRICE))
    if state.in_stock:
        chips.append(ActiveChip(key=IN_STOCK_FILTER, label="Availability", value="In stock", kind=ChipKind.OTHER))
    if state.brand_ids:
        names = [brand_names.get(brand_id, f"#{brand_id}") for brand_id in sorted(state.brand_ids)]
        chips.append(
            ActiveChip(
                key=BRANDS_FILTER,
                label="Brand",
                value=VALUE_SEPARATOR.join(names),
                kind=ChipKind.BRAND,
            )
        )
    for dimension in AttributeDimension:
        codes = state.attribute_filters.get(dimension)
        if not codes:
            continue
        labels = [dimension.code_label(code) for code in sorted(codes)]
        chips.append(
            ActiveChip(
                key=dimension.value,
                label=dimension.label,
                value=VALUE_SEPARATOR.join(labels),
                kind=ChipKind.ATTRIBUTE,
            )
        )
    for flag in FilterFlag:
        if state.boolean_flags.get(flag):
            chips.append(ActiveChip(key=flag.value, label=flag.label, value="Yes", kind=ChipKind.ATTRIBUTE))
    if state.sort_by != DEFAULT_SORT:
        chips.append(ActiveChip(key=SORT_FILTER, label="Sort", value=state.sort_by.label, kind=ChipKind.OTHER))

    return chips


def remove_chip(state: FilterState, key: str) -> FilterState:
    """Clear the dimension behind a chip, leaving all others untouched.

    Raises:
        UnknownFilterError: If the key does not belong to any chip.
    """
    return clear_filter(state, key)
