"""Session token holder shared by every authenticated ECPP call of one client."""

from ecppbridge.errors import UnauthenticatedError


class SessionContext:
    """
    Holds the ECPP session token for one client.

    The token is empty until a login succeeds and is never refreshed.
    Not thread-safe; the bridge runs one call at a time.
    """

    def __init__(self, token: str = ""):
        self._token = token

    def set_token(self, token: str) -> None:
        self._token = token

    def get_token(self) -> str:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def require_token(self) -> str:
        """Return the token, raising UnauthenticatedError when none is set."""
        if not self._token:
            raise UnauthenticatedError()
        return self._token

    def clear(self) -> None:
        self._token = ""

    def masked(self) -> str:
        """Token prefix safe for log output."""
        return f"{self._token[:5]}..." if self._token else "(none)"
