"""Thread-safe store of other users' public keys."""

from __future__ import annotations

import threading


class UserStore:
    """Maps nicknames to their public keys; safe to share between threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: dict[str, str] = {}

    def set_user(self, nick: str, public_key: str) -> None:
        """Add or replace the public key of a user."""
        with self._lock:
            self._users[nick] = public_key

    def get_public_key(self, nick: str) -> str | None:
        """Return the public key of a user, or None if it is unknown."""
        with self._lock:
            return self._users.get(nick)

    def delete_user(self, nick: str) -> None:
        """Forget a user; unknown users are ignored."""
        with self._lock:
            self._users.pop(nick, None)