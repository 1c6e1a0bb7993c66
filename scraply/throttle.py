"""
Display throttling for promotional popups.

The server only picks which popup is eligible for a page; whether it is
actually presented again is decided by the client from the time it was last
shown and the popup's ``frequency`` (hours between shows).
"""
from datetime import datetime, timedelta
from typing import MutableMapping, Optional


class PopupThrottle:
    def __init__(self, store: Optional[MutableMapping[str, datetime]] = None):
        self._store = {} if store is None else store

    @staticmethod
    def key(page: str, popup_id: int) -> str:
        return f"popup_last_shown_{page}_{popup_id}"

    def last_shown(self, page: str, popup_id: int) -> Optional[datetime]:
        return self._store.get(self.key(page, popup_id))

    def should_show(
        self,
        page: str,
        popup_id: int,
        frequency_hours: int,
        now: Optional[datetime] = None,
    ) -> bool:
        last = self.last_shown(page, popup_id)
        if last is None:
            return True
        now = now or datetime.utcnow()
        return now - last >= timedelta(hours=frequency_hours)

    def record_shown(self, page: str, popup_id: int, now: Optional[datetime] = None) -> None:
        self._store[self.key(page, popup_id)] = now or datetime.utcnow()

    def clear(self) -> None:
        self._store.clear()
