"""
Condition table and evaluation outcome models.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Mapping, Optional, Sequence, Tuple, Union


@dataclass(frozen=True)
class Matched:
    """Evaluation completed; ``value`` tells whether the post matched."""

    value: bool

    @property
    def matched(self) -> bool:
        return self.value


@dataclass(frozen=True)
class EvalFailed:
    """Evaluation could not complete; the condition counts as non-matching."""

    reason: str

    @property
    def matched(self) -> bool:
        return False


EvalOutcome = Union[Matched, EvalFailed]


class ConditionTable(Mapping[str, str]):
    """
    Ordered, immutable mapping of condition expressions to tags.

    Iteration order follows source row order. A condition that appears more
    than once keeps the position of its first row and the tag of its last.
    """

    def __init__(self, entries: Optional[Mapping[str, str]] = None):
        self._entries: Dict[str, str] = dict(entries or {})

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[object]]) -> "ConditionTable":
        """
        Build a table from ``[condition, tag, ...]`` rows.

        Cells are stringified and trimmed; rows whose first two cells are not
        both populated are skipped.
        """
        entries: Dict[str, str] = {}
        for row in rows:
            if row is None or len(row) < 2:
                continue

            condition = _cell_text(row[0])
            tag = _cell_text(row[1])
            if not condition or not tag:
                continue

            entries[condition] = tag

        return cls(entries)

    @classmethod
    def empty(cls) -> "ConditionTable":
        return cls()

    def __getitem__(self, condition: str) -> str:
        return self._entries[condition]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ConditionTable({self._entries!r})"

    def pairs(self) -> Tuple[Tuple[str, str], ...]:
        """Condition/tag pairs in evaluation order."""
        return tuple(self._entries.items())


def _cell_text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()
