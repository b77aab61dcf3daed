"""Tests for the search lifecycle state machine."""

import pytest

from catalog_search.domain import InvalidStateTransitionError, SearchStatus, validate_search_transition


class TestSearchStatus:
    """Tests for SearchStatus state machine."""

    def test_idle_can_only_start_loading(self) -> None:
        """IDLE can only transition to LOADING."""
        assert SearchStatus.IDLE.allowed_transitions() == [SearchStatus.LOADING]

    def test_loading_can_be_superseded(self) -> None:
        """LOADING can transition to LOADING for a superseding request."""
        assert SearchStatus.LOADING.can_transition_to(SearchStatus.LOADING)

    def test_loading_settles(self) -> None:
        """LOADING can settle in SUCCESS or ERROR."""
        assert SearchStatus.LOADING.can_transition_to(SearchStatus.SUCCESS)
        assert SearchStatus.LOADING.can_transition_to(SearchStatus.ERROR)

    def test_settled_states(self) -> None:
        """SUCCESS and ERROR are settled, only ERROR is retryable."""
        assert SearchStatus.SUCCESS.is_settled()
        assert SearchStatus.ERROR.is_settled()
        assert not SearchStatus.LOADING.is_settled()
        assert SearchStatus.ERROR.is_retryable()
        assert not SearchStatus.SUCCESS.is_retryable()

    def test_success_cannot_become_error(self) -> None:
        """A settled result cannot change without a new request."""
        assert not SearchStatus.SUCCESS.can_transition_to(SearchStatus.ERROR)


class TestValidateSearchTransition:
    """Tests for validate_search_transition."""

    def test_valid_transition(self) -> None:
        """Valid transitions pass silently."""
        validate_search_transition(SearchStatus.IDLE, SearchStatus.LOADING)

    def test_invalid_transition_raises(self) -> None:
        """Invalid transitions raise with details."""
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            validate_search_transition(SearchStatus.IDLE, SearchStatus.SUCCESS)
        assert exc_info.value.details["current_state"] == "idle"
        assert exc_info.value.details["allowed_transitions"] == ["loading"]
