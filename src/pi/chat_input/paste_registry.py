"""Storage for large pasted text kept out of the visible buffer."""

from __future__ import annotations

import re
from dataclasses import dataclass

_PLACEHOLDER_RE = re.compile(r"\[Pasted text #(\d+) \+(\d+) lines\]")


def format_placeholder(paste_id: int, line_count: int) -> str:
    return f"[Pasted text #{paste_id} +{line_count} lines]"


@dataclass
class PasteRecord:
    id: int
    full_text: str


class PasteRegistry:
    """Maps paste ids to full text.

    Ids are monotonic for the registry's lifetime and never reused, even
    after ``clear()``.
    """

    def __init__(self) -> None:
        self._records: dict[int, PasteRecord] = {}
        self._next_id = 1

    def allocate(self, full_text: str) -> int:
        paste_id = self._next_id
        self._next_id += 1
        self._records[paste_id] = PasteRecord(id=paste_id, full_text=full_text)
        return paste_id

    def get(self, paste_id: int) -> PasteRecord | None:
        return self._records.get(paste_id)

    def resolve_placeholders(self, text: str) -> str:
        """Expand every known placeholder in *text* to its full content.

        Placeholders with unknown ids are left as typed.
        """

        def _expand(match: re.Match[str]) -> str:
            record = self._records.get(int(match.group(1)))
            return record.full_text if record else match.group(0)

        return _PLACEHOLDER_RE.sub(_expand, text)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)
