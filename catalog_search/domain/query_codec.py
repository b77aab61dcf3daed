"""Query-string representation of ``FilterState``.

The query string is the only persisted surface of the catalog view:
shared or bookmarked locations must deserialize back to an equal state.
Keys are emitted in a fixed canonical order and only for dimensions that
differ from their default, so the default state serializes to nothing.

Key layout:
    category          "<slug>-<id>" (or "<id>" when no slug is known)
    q                 free text
    minPrice/maxPrice decimal numbers
    inStock           "true"
    brands            comma-separated ids, ascending
    <dimension>       comma-separated codes, sorted (one key per dimension)
    petSafe/...       "true"
    sort              SortOption value
    page              zero-based page index
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any
from urllib.parse import parse_qsl, urlencode

import structlog

from catalog_search.domain.exceptions import FilterValidationError
from catalog_search.domain.filters import (
    DEFAULT_SORT,
    AttributeDimension,
    FilterFlag,
    FilterState,
    SortOption,
    to_price,
)

logger = structlog.get_logger()

CATEGORY_KEY = "category"
QUERY_KEY = "q"
MIN_PRICE_KEY = "minPrice"
MAX_PRICE_KEY = "maxPrice"
IN_STOCK_KEY = "inStock"
BRANDS_KEY = "brands"
SORT_KEY = "sort"
PAGE_KEY = "page"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def parse_slug_id(value: str | None) -> tuple[str, int] | None:
    """Split a "slug-id" token into its parts.

    Accepts "monstera-deliciosa-123" as well as a bare "123".

    Args:
        value: Token from the query string.

    Returns:
        (slug, id) tuple, slug empty for a bare id; None if no id can be found.
    """
    if not value:
        return None
    slug, sep, tail = value.rpartition("-")
    if sep and slug and _is_number(tail):
        return slug, int(tail)
    if _is_number(value):
        return "", int(value)
    return None


def _is_number(text: str) -> bool:
    # str.isdigit alone accepts superscripts and other digits int() rejects
    return text.isascii() and text.isdigit()


def format_price(value: Decimal) -> str:
    """Render a price without exponent or trailing zeros."""
    return format(value.normalize(), "f")


def _join(values: Iterable[Any]) -> str:
    return ",".join(str(v) for v in values)


def _split(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def serialize(
    state: FilterState,
    category_slugs: Mapping[int, str] | None = None,
) -> list[tuple[str, str]]:
    """Serialize a state into ordered query-string pairs.

    Args:
        state: State to serialize.
        category_slugs: Optional id -> slug lookup for readable category keys.

    Returns:
        Ordered list of (key, value) pairs; empty for the default state.
    """
    pairs: list[tuple[str, str]] = []

    if state.category_id is not None:
        slug = (category_slugs or {}).get(state.category_id)
        token = f"{slug}-{state.category_id}" if slug else str(state.category_id)
        pairs.append((CATEGORY_KEY, token))
    if state.query:
        pairs.append((QUERY_KEY, state.query))
    if state.min_price is not None:
        pairs.append((MIN_PRICE_KEY, format_price(state.min_price)))
    if state.max_price is not None:
        pairs.append((MAX_PRICE_KEY, format_price(state.max_price)))
    if state.in_stock:
        pairs.append((IN_STOCK_KEY, "true"))
    if state.brand_ids:
        pairs.append((BRANDS_KEY, _join(sorted(state.brand_ids))))
    for dimension in AttributeDimension:
        codes = state.attribute_filters.get(dimension)
        if codes:
            pairs.append((dimension.value, _join(sorted(codes))))
    for flag in FilterFlag:
        if state.boolean_flags.get(flag):
            pairs.append((flag.value, "true"))
    if state.sort_by != DEFAULT_SORT:
        pairs.append((SORT_KEY, state.sort_by.value))
    if state.page:
        pairs.append((PAGE_KEY, str(state.page)))

    return pairs


def deserialize(pairs: Iterable[tuple[str, str]]) -> FilterState:
    """Rebuild a state from query-string pairs.

    Missing keys take their default. Malformed values are logged and fall
    back to the default of that dimension; an inverted price range drops
    both bounds. Unknown keys are ignored. When a key repeats, the last
    value wins.

    Args:
        pairs: (key, value) pairs, e.g. from ``parse_qsl``.

    Returns:
        Deserialized state.
    """
    values: dict[str, str] = {}
    for key, value in pairs:
        values[key] = value

    kwargs: dict[str, Any] = {}

    if CATEGORY_KEY in values:
        parsed = parse_slug_id(values[CATEGORY_KEY])
        if parsed is None:
            _log_invalid(CATEGORY_KEY, values[CATEGORY_KEY])
        else:
            kwargs["category_id"] = parsed[1]

    if values.get(QUERY_KEY, "").strip():
        kwargs["query"] = values[QUERY_KEY]

    min_price = _parse_price(values, MIN_PRICE_KEY)
    max_price = _parse_price(values, MAX_PRICE_KEY)
    if min_price is not None and max_price is not None and min_price > max_price:
        logger.warning(
            "Dropping inverted price range from query string",
            min_price=str(min_price),
            max_price=str(max_price),
        )
    else:
        kwargs["min_price"] = min_price
        kwargs["max_price"] = max_price

    if IN_STOCK_KEY in values:
        kwargs["in_stock"] = values[IN_STOCK_KEY].strip().lower() in _TRUE_VALUES

    if BRANDS_KEY in values:
        brand_ids = []
        for part in _split(values[BRANDS_KEY]):
            if _is_number(part):
                brand_ids.append(int(part))
            else:
                _log_invalid(BRANDS_KEY, part)
        kwargs["brand_ids"] = frozenset(brand_ids)

    attributes = {
        dimension: frozenset(_split(values[dimension.value]))
        for dimension in AttributeDimension
        if dimension.value in values
    }
    if attributes:
        kwargs["attribute_filters"] = attributes

    flags = {
        flag: values[flag.value].strip().lower() in _TRUE_VALUES
        for flag in FilterFlag
        if flag.value in values
    }
    if flags:
        kwargs["boolean_flags"] = flags

    if SORT_KEY in values:
        try:
            kwargs["sort_by"] = SortOption(values[SORT_KEY])
        except ValueError:
            _log_invalid(SORT_KEY, values[SORT_KEY])

    if PAGE_KEY in values:
        raw_page = values[PAGE_KEY].strip()
        if _is_number(raw_page):
            kwargs["page"] = int(raw_page)
        else:
            _log_invalid(PAGE_KEY, raw_page)

    return FilterState(**kwargs)


def _parse_price(values: Mapping[str, str], key: str) -> Decimal | None:
    if key not in values:
        return None
    try:
        price = to_price(values[key], key)
    except FilterValidationError:
        _log_invalid(key, values[key])
        return None
    if price is not None and price < 0:
        _log_invalid(key, values[key])
        return None
    return price


def _log_invalid(key: str, value: str) -> None:
    logger.warning("Ignoring malformed query-string value", key=key, value=value)


def to_query_string(
    state: FilterState,
    category_slugs: Mapping[int, str] | None = None,
) -> str:
    """Serialize a state into a URL-encoded query string (without "?")."""
    return urlencode(serialize(state, category_slugs))


def from_query_string(query_string: str) -> FilterState:
    """Deserialize a URL-encoded query string (a leading "?" is allowed)."""
    return deserialize(parse_qsl(query_string.lstrip("?"), keep_blank_values=False))
