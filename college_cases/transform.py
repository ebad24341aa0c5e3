from __future__ import annotations
from typing import Iterable, Sequence

import pandas as pd

from .config import TABLE_COLUMNS
from .models import Record

GroupedAggregate = dict[str, list[Record]]


def select_category(dataset: Sequence[Record], field: str, value: str) -> list[Record]:
    """Eligible records whose `field` equals `value`; nothing for an empty value."""
    if not value:
        return []
    return [r for r in dataset if r.is_eligible and r.field(field) == value]


def available_values(dataset: Sequence[Record], field: str) -> list[str]:
    """Distinct non-empty values of `field`, in first-occurrence order."""
    values = (r.field(field) for r in dataset)
    return list(dict.fromkeys(v for v in values if v))


def group_by(records: Iterable[Record], field: str) -> GroupedAggregate:
    """Partition eligible records by `field`.

    Every key gets a group, in first-occurrence order, even when none of
    its records are eligible; such a group stays empty. A blank value is a
    key like any other.
    """
    groups: GroupedAggregate = {}
    for record in records:
        bucket = groups.setdefault(record.field(field), [])
        if record.is_eligible:
            bucket.append(record)
    return groups


def records_frame(records: Sequence[Record]) -> pd.DataFrame:
    """Table view: college plus both case counts, blanks for unreported."""
    rows = []
    for r in records:
        row = r.to_row()
        rows.append([row["institution"]] + ["" if row[c] is None else str(row[c]) for c in ["cases", "cases_2021"]])
    return pd.DataFrame(rows, columns=TABLE_COLUMNS)
