"""Tests for filter state and its transitions."""

from decimal import Decimal

import pytest

from catalog_search.domain import (
    AttributeDimension,
    FilterFlag,
    FilterState,
    FilterValidationError,
    PriceRangeError,
    SortOption,
    UnknownFilterError,
    apply_change,
    clear_all,
    clear_filter,
    go_to_page,
)


class TestFilterStateNormalization:
    """Tests for FilterState construction."""

    def test_default_state(self) -> None:
        """Default state has no filters and page 0."""
        state = FilterState()
        assert state.is_default
        assert state.page == 0
        assert state.sort_by == SortOption.RELEVANCE

    def test_blank_query_becomes_none(self) -> None:
        """Whitespace-only query is treated as no query."""
        assert FilterState(query="   ").query is None
        assert FilterState(query="  fern ").query == "fern"

    def test_prices_become_decimal(self) -> None:
        """Prices given as int, float or str are stored as Decimal."""
        state = FilterState(min_price=10, max_price="99.50")
        assert state.min_price == Decimal("10")
        assert state.max_price == Decimal("99.50")

    def test_false_flags_are_dropped(self) -> None:
        """Only enabled flags are kept."""
        state = FilterState(boolean_flags={"petSafe": True, "beginnerFriendly": False})
        assert state.boolean_flags == {FilterFlag.PET_SAFE: True}

    def test_empty_attribute_sets_are_dropped(self) -> None:
        """Dimensions without codes are not part of the state."""
        state = FilterState(attribute_filters={"soilTypes": [], "toxicities": ["NON_TOXIC"]})
        assert state.attribute_filters == {AttributeDimension.TOXICITIES: frozenset({"NON_TOXIC"})}

    def test_equal_states_hash_equal(self) -> None:
        """Equal states built differently are interchangeable."""
        a = FilterState(brand_ids=[3, 1], attribute_filters={"soilTypes": ["PEAT"]})
        b = FilterState(brand_ids=frozenset({1, 3}), attribute_filters={AttributeDimension.SOIL_TYPES: {"PEAT"}})
        assert a == b
        assert hash(a) == hash(b)


class TestFilterStateValidation:
    """Tests for rejected states."""

    def test_inverted_price_range_rejected(self) -> None:
        """min_price greater than max_price is rejected."""
        with pytest.raises(PriceRangeError) as exc_info:
            FilterState(min_price=500, max_price=100)
        assert exc_info.value.field == "price"

    def test_negative_price_rejected(self) -> None:
        """Negative prices are rejected."""
        with pytest.raises(PriceRangeError):
            FilterState(min_price=-1)

    def test_non_numeric_price_rejected(self) -> None:
        """Non-numeric price input is rejected."""
        with pytest.raises(FilterValidationError):
            FilterState(max_price="cheap")

    def test_equal_bounds_allowed(self) -> None:
        """A single-price range is valid."""
        state = FilterState(min_price=100, max_price=100)
        assert state.min_price == state.max_price

    def test_negative_page_rejected(self) -> None:
        """Page must be non-negative."""
        with pytest.raises(FilterValidationError):
            FilterState(page=-1)

    def test_negative_category_rejected(self) -> None:
        """Category ids must be non-negative."""
        with pytest.raises(FilterValidationError) as exc_info:
            FilterState(category_id=-5)
        assert exc_info.value.field == "category_id"

    def test_negative_brand_rejected(self) -> None:
        """Brand ids must be non-negative."""
        with pytest.raises(FilterValidationError) as exc_info:
            FilterState(brand_ids={-3})
        assert exc_info.value.field == "brand_ids"

    def test_non_numeric_category_rejected(self) -> None:
        """Category ids must be integers."""
        with pytest.raises(FilterValidationError):
            FilterState(category_id="ferns")

    def test_unknown_dimension_rejected(self) -> None:
        """Unknown attribute dimensions are rejected."""
        with pytest.raises(UnknownFilterError):
            FilterState(attribute_filters={"colour": ["RED"]})

    def test_unknown_flag_rejected_even_when_false(self) -> None:
        """Unknown flags are rejected regardless of value."""
        with pytest.raises(UnknownFilterError):
            FilterState(boolean_flags={"organic": False})

    def test_code_with_comma_rejected(self) -> None:
        """Codes cannot contain the list separator."""
        with pytest.raises(FilterValidationError) as exc_info:
            FilterState(attribute_filters={"soilTypes": ["PEAT,SAND"]})
        assert exc_info.value.field == "soilTypes"


class TestApplyChange:
    """Tests for apply_change and page reset."""

    @pytest.fixture
    def paged_state(self) -> FilterState:
        """State on page 3 with a few filters."""
        return FilterState(category_id=2, min_price=10, brand_ids={1}, page=3)

    @pytest.mark.parametrize(
        "changes",
        [
            {"category_id": 5},
            {"query": "monstera"},
            {"min_price": 20},
            {"max_price": 200},
            {"in_stock": True},
            {"brand_ids": [1, 2]},
            {"attributes": {"lightRequirements": ["SHADE"]}},
            {"flags": {"petSafe": True}},
            {"sort_by": SortOption.PRICE_ASC},
        ],
    )
    def test_filter_change_resets_page(self, paged_state: FilterState, changes: dict) -> None:
        """Any filter dimension change resets the page to 0."""
        new_state = apply_change(paged_state, **changes)
        assert new_state.page == 0
        assert new_state != paged_state

    def test_page_change_keeps_filters(self, paged_state: FilterState) -> None:
        """Page navigation leaves every other dimension untouched."""
        new_state = go_to_page(paged_state, 7)
        assert new_state.page == 7
        assert new_state.category_id == paged_state.category_id
        assert new_state.min_price == paged_state.min_price
        assert new_state.brand_ids == paged_state.brand_ids

    def test_same_value_is_not_a_change(self, paged_state: FilterState) -> None:
        """Setting a dimension to its current value keeps the page."""
        assert apply_change(paged_state, category_id=2) == paged_state

    def test_filter_and_page_change_together(self, paged_state: FilterState) -> None:
        """A filter change wins over a simultaneous page change."""
        new_state = apply_change(paged_state, category_id=9, page=4)
        assert new_state.page == 0

    def test_attributes_merge_per_dimension(self) -> None:
        """Attribute changes only touch the given dimensions."""
        state = FilterState(attribute_filters={"soilTypes": ["PEAT"]})
        new_state = apply_change(state, attributes={"toxicities": ["NON_TOXIC"]})
        assert new_state.codes_for("soilTypes") == {"PEAT"}
        assert new_state.codes_for("toxicities") == {"NON_TOXIC"}

    def test_empty_codes_clear_dimension(self) -> None:
        """An empty code list removes the dimension."""
        state = FilterState(attribute_filters={"soilTypes": ["PEAT"]})
        new_state = apply_change(state, attributes={"soilTypes": []})
        assert AttributeDimension.SOIL_TYPES not in new_state.attribute_filters

    def test_invalid_change_leaves_state(self, paged_state: FilterState) -> None:
        """A rejected change raises and the original state is unchanged."""
        with pytest.raises(PriceRangeError):
            apply_change(paged_state, max_price=5)
        assert paged_state.max_price is None
        assert paged_state.page == 3

    def test_clear_all_resets_sort(self) -> None:
        """clear_all resets every dimension including sort."""
        assert clear_all() == FilterState()
        assert clear_all().sort_by == SortOption.RELEVANCE


class TestClearFilter:
    """Tests for clearing a single dimension."""

    @pytest.fixture
    def full_state(self) -> FilterState:
        """State with every dimension set."""
        return FilterState(
            category_id=2,
            query="fern",
            min_price=10,
            max_price=50,
            in_stock=True,
            brand_ids={4},
            attribute_filters={"soilTypes": ["PEAT"], "toxicities": ["NON_TOXIC"]},
            boolean_flags={"petSafe": True},
            sort_by=SortOption.NAME_ASC,
            page=2,
        )

    def test_clear_price_clears_both_bounds(self, full_state: FilterState) -> None:
        """The price chip clears both bounds."""
        state = clear_filter(full_state, "price")
        assert state.min_price is None and state.max_price is None
        assert state.query == "fern"
        assert state.page == 0

    def test_clear_one_attribute_keeps_others(self, full_state: FilterState) -> None:
        """Clearing an attribute dimension keeps the other dimensions."""
        state = clear_filter(full_state, "soilTypes")
        assert state.codes_for("soilTypes") == frozenset()
        assert state.codes_for("toxicities") == {"NON_TOXIC"}

    def test_clear_flag(self, full_state: FilterState) -> None:
        """Flags can be cleared by name."""
        assert not clear_filter(full_state, "petSafe").has_flag("petSafe")

    def test_unknown_key_rejected(self, full_state: FilterState) -> None:
        """Unknown keys raise UnknownFilterError."""
        with pytest.raises(UnknownFilterError):
            clear_filter(full_state, "colour")
