from __future__ import annotations

from enum import Enum


class TriState(str, Enum):
    """Y / N / N/A flag as rendered in the sheet."""

    YES = "Y"
    NO = "N"
    NOT_APPLICABLE = "N/A"

    def __str__(self) -> str:
        return self.value

    def __or__(self, other: "TriState") -> "TriState":
        # Y wins over N, and a known answer wins over N/A.
        if TriState.YES in (self, other):
            return TriState.YES
        if TriState.NO in (self, other):
            return TriState.NO
        return TriState.NOT_APPLICABLE

    @classmethod
    def from_bool(cls, value: bool) -> "TriState":
        return cls.YES if value else cls.NO

    @classmethod
    def from_text(cls, raw: str) -> "TriState":
        """
        Resolve an XML boolean node's text.

        Empty text means the node was absent (N/A); only an explicit "false"
        yields N, any other value counts as set.
        """

        text = (raw or "").strip().lower()
        if not text:
            return cls.NOT_APPLICABLE
        return cls.NO if text == "false" else cls.YES
