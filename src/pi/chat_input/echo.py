"""Echo reconciliation between owner-supplied values and local edits.

The input emits every edit to its owner, and the owner later hands the value
back as a prop. That returning value must not be treated as an external
reset, or an edit made in between would be lost. ``EchoReconciler`` is the
single place that makes this decision.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class EchoStatus(enum.Enum):
    SYNCED = "synced"
    DIVERGED = "diverged"


@dataclass(frozen=True)
class Reconciliation:
    """Outcome of comparing an owner value against the last emitted one."""

    status: EchoStatus
    replace: bool
    value: str
    cursor: int | None = None


class EchoReconciler:
    def __init__(self, initial_value: str = "") -> None:
        self._last_emitted_value = initial_value
        self._status = EchoStatus.SYNCED

    @property
    def last_emitted_value(self) -> str:
        return self._last_emitted_value

    @property
    def status(self) -> EchoStatus:
        return self._status

    def record_emitted(self, value: str) -> None:
        """Remember a locally produced value; call before notifying the owner."""
        self._last_emitted_value = value
        self._status = EchoStatus.SYNCED

    def reconcile(self, value: str, cursor_nudge: int | None = None) -> Reconciliation:
        """Classify an owner-supplied *value*.

        An echo of the last emitted value leaves the buffer alone (a nudge
        still moves the cursor). Any other value replaces the buffer, with the
        cursor at the nudge if given, else at the end.
        """
        if value == self._last_emitted_value:
            self._status = EchoStatus.SYNCED
            return Reconciliation(
                status=EchoStatus.SYNCED, replace=False, value=value, cursor=cursor_nudge
            )

        self._status = EchoStatus.DIVERGED
        # Adopt the reset so the same prop arriving again is recognised
        self._last_emitted_value = value
        cursor = len(value) if cursor_nudge is None else max(0, min(cursor_nudge, len(value)))
        return Reconciliation(status=EchoStatus.DIVERGED, replace=True, value=value, cursor=cursor)
