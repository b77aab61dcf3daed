"""State machine for the search request lifecycle.

Defines the valid transitions of the search orchestrator. Every state
change goes through ``validate_search_transition`` so an impossible
sequence (e.g. a result arriving while idle) fails loudly.
"""

from enum import Enum

from catalog_search.domain.exceptions import InvalidStateTransitionError


class SearchStatus(str, Enum):
    """Search lifecycle states.

    State diagram:
        IDLE
          │
          │ request
          ▼
        LOADING ◄──────────────┐ (superseding request)
          │       │            │
          │       └────────────┘
          │
          ├──── result ────► SUCCESS ──┐
          │                            │ request / retry
          └──── failure ───► ERROR ────┤
                                       ▼
                                    LOADING
    """

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"

    def can_transition_to(self, target: "SearchStatus") -> bool:
        """Check if transition to target state is valid.

        Args:
            target: Target state to transition to.

        Returns:
            True if transition is valid.
        """
        return target in _SEARCH_TRANSITIONS.get(self, set())

    def allowed_transitions(self) -> list["SearchStatus"]:
        """Get list of valid target states.

        Returns:
            List of states that can be transitioned to.
        """
        return sorted(_SEARCH_TRANSITIONS.get(self, set()), key=lambda s: s.value)

    def is_settled(self) -> bool:
        """Check if the last request has completed.

        Returns:
            True for SUCCESS and ERROR.
        """
        return self in {SearchStatus.SUCCESS, SearchStatus.ERROR}

    def is_retryable(self) -> bool:
        """Check if a manual retry makes sense in this state."""
        return self == SearchStatus.ERROR


_SEARCH_TRANSITIONS: dict[SearchStatus, set[SearchStatus]] = {
    SearchStatus.IDLE: {SearchStatus.LOADING},
    SearchStatus.LOADING: {SearchStatus.LOADING, SearchStatus.SUCCESS, SearchStatus.ERROR},
    SearchStatus.SUCCESS: {SearchStatus.LOADING},
    SearchStatus.ERROR: {SearchStatus.LOADING},
}


def validate_search_transition(
    current_status: SearchStatus,
    target_status: SearchStatus,
) -> None:
    """Validate and raise if search state transition is invalid.

    Args:
        current_status: Current search status.
        target_status: Target search status.

    Raises:
        InvalidStateTransitionError: If transition is not valid.
    """
    if not current_status.can_transition_to(target_status):
        raise InvalidStateTransitionError(
            entity_type="Search",
            current_state=current_status.value,
            target_state=target_status.value,
            allowed_transitions=[s.value for s in current_status.allowed_transitions()],
        )
