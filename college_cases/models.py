from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple, Union

Count = Optional[Union[int, float]]


@dataclass(frozen=True)
class Record:
    """One institution's report."""
    institution: str
    city: str
    state: str
    cases: Count
    cases_2021: Count

    @property
    def is_eligible(self) -> bool:
        """True when the record can take part in filter and aggregate views."""
        return self.city != "" and self.cases is not None

    def field(self, name: str) -> str:
        value = getattr(self, name)
        return "" if value is None else str(value)

    def to_row(self) -> dict[str, object]:
        return {
            "institution": self.institution,
            "cases": self.cases,
            "cases_2021": self.cases_2021,
        }


# Sorted by city, never mutated after load.
Dataset = Tuple[Record, ...]
