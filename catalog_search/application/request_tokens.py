"""Request tokens.

Each outgoing request gets a token from a monotonically increasing
counter. When the response arrives, the owner checks ``is_stale`` and
drops responses that a newer request has superseded.
"""


class RequestTokens:
    """Counter minting request tokens for one owner."""

    def __init__(self) -> None:
        self._issued = 0
        self._latest: int | None = None

    def mint(self) -> int:
        """Issue a new token, superseding every earlier one."""
        self._issued += 1
        self._latest = self._issued
        return self._issued

    def invalidate(self) -> None:
        """Make every issued token stale."""
        self._latest = None

    def is_stale(self, token: int) -> bool:
        """Check whether a response for ``token`` must be discarded."""
        return token != self._latest

    @property
    def latest(self) -> int | None:
        """The current token, or None if nothing is in flight."""
        return self._latest
