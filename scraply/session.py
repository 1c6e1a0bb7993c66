"""
Client-side session state for Scraply front ends and scripts.

Holds the bearer token and profile returned by ``POST /auth/login`` and decides
whether an active popup should be displayed, using :class:`PopupThrottle`.
The server never imports this module.
"""
from datetime import datetime
from typing import Optional

from .throttle import PopupThrottle


class ClientSession:
    """
    Everything a signed-in client keeps between requests: the bearer token,
    the profile returned at login and the popup display history.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        user: Optional[dict] = None,
        popups: Optional[PopupThrottle] = None,
    ):
        self.token = token
        self.user = user
        self.popups = popups or PopupThrottle()

    @classmethod
    def from_login(cls, data: dict, popups: Optional[PopupThrottle] = None) -> "ClientSession":
        """Build a session from the ``data`` of a ``POST /auth/login`` response."""
        profile = {key: value for key, value in data.items() if key != "token"}
        return cls(token=data["token"], user=profile, popups=popups)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def user_id(self) -> Optional[int]:
        return self.user.get("id") if self.user else None

    @property
    def role(self) -> Optional[str]:
        return self.user.get("role") if self.user else None

    def auth_headers(self) -> dict:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def popup_to_show(self, page: str, active: list, now: Optional[datetime] = None) -> Optional[dict]:
        """
        Return the popup from a ``GET /popups/active`` result that should be
        presented now, or ``None`` if it was shown too recently.
        """
        for popup in active:
            if self.popups.should_show(page, popup["id"], popup["frequency"], now):
                return popup
        return None

    def clear(self) -> None:
        # popup history outlives a sign-out
        self.token = None
        self.user = None
