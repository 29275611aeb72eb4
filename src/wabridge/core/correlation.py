"""Classifier state: revoke correlation and pending ciphertext messages."""

from __future__ import annotations

from typing import Optional, Set

from wabridge.core.models import MessageView


class CorrelationState:
    """Holds the most recent non-revoked message seen on a change notification.

    The slot is overwritten on every non-revoked change, so it only helps the
    revoke check that immediately follows. It is not a history.
    """

    def __init__(self) -> None:
        self.last_message: Optional[MessageView] = None

    def remember(self, message: MessageView) -> None:
        if not message.is_revoked:
            self.last_message = message

    def original_for(self, revoked: MessageView) -> Optional[MessageView]:
        """Return the remembered message when its inner id matches ``revoked``."""

        last = self.last_message
        if last is not None and last.key.id == revoked.key.id:
            return last
        return None


class CiphertextTracker:
    """Per-message state machine for messages that arrived as ciphertext.

    A message is ``awaiting-resolution`` from the moment it is added as a
    ciphertext placeholder until its first type change, when it becomes
    ``resolved`` and is dropped. Only pending messages are held, and a
    placeholder removed before resolving is dropped as well.
    """

    def __init__(self) -> None:
        self._pending: Set[str] = set()

    def await_resolution(self, message: MessageView) -> None:
        self._pending.add(message.key.serialized)

    def is_pending(self, message: MessageView) -> bool:
        return message.key.serialized in self._pending

    def resolve(self, message: MessageView) -> bool:
        """Resolve a pending message; True only on the first transition."""

        key = message.key.serialized
        if key not in self._pending:
            return False
        self._pending.discard(key)
        return True

    def forget(self, message: MessageView) -> None:
        self._pending.discard(message.key.serialized)

    @property
    def pending_count(self) -> int:
        return len(self._pending)
