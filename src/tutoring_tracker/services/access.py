from __future__ import annotations

import hmac
import logging
from datetime import date
from typing import Any, Protocol

from tutoring_tracker.models import ProgressEntry
from tutoring_tracker.services.entry_store import EntryStore
from tutoring_tracker.services.errors import AccessDenied

_LOGGER = logging.getLogger(__name__)


class TokenVerifier(Protocol):
    def verify(self, token: str) -> bool:
        ...


class SharedSecretVerifier:
    """Accepts exactly one configured access token."""

    def __init__(self, secret: str | None) -> None:
        self._secret = secret or ""

    def verify(self, token: str) -> bool:
        if not self._secret or not token:
            return False
        return hmac.compare_digest(token.encode("utf-8"), self._secret.encode("utf-8"))


class AccessGate:
    def __init__(self, verifier: TokenVerifier) -> None:
        self._verifier = verifier
        self._unlocked = False

    @property
    def is_unlocked(self) -> bool:
        return self._unlocked

    def unlock(self, token: str) -> bool:
        self._unlocked = bool(self._verifier.verify(token))
        if not self._unlocked:
            _LOGGER.warning("Rejected admin access token")
        return self._unlocked

    def lock(self) -> None:
        self._unlocked = False

    def require(self) -> None:
        if not self._unlocked:
            raise AccessDenied("Admin access required.")


class AdminControls:
    """Edit and delete operations, available only while the gate is unlocked."""

    def __init__(self, store: EntryStore, gate: AccessGate) -> None:
        self._store = store
        self._gate = gate

    def update_entry(self, entry_id: str, **fields: Any) -> ProgressEntry:
        self._gate.require()
        return self._store.update_entry(entry_id, **fields)

    def delete_entry(self, entry_id: str) -> None:
        self._gate.require()
        self._store.delete_entry(entry_id)

    def clear_entries_before(self, cutoff: date | str) -> int:
        self._gate.require()
        return self._store.clear_entries_before(cutoff)
