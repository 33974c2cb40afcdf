from __future__ import annotations

from enum import Enum
from typing import Optional


class NoDataPolicy(str, Enum):
    """
    What a blank cell (or a cell holding ``""``) reads as.

    AS_ABSENT is the safer default: downstream validation can then tell
    "no value" apart from an explicit empty string.
    """

    AS_ABSENT = "absent"
    AS_EMPTY_STRING = "empty_string"

    @property
    def sentinel(self) -> Optional[str]:
        return "" if self is NoDataPolicy.AS_EMPTY_STRING else None

    def substitute(self, value: Optional[str]) -> Optional[str]:
        """Return the sentinel for ``None`` / ``""``, else *value* unchanged."""
        if value is None or value == "":
            return self.sentinel
        return value
