"""
Shift reconciliation: rebuild entry/exit pairs from raw punch events.

Events are bucketed per (employee, UTC calendar day). Inside a bucket the
entries and the exits are sorted independently and paired by position;
whichever list is longer leaves unpaired shifts behind.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from datetime import date, timezone
from itertools import zip_longest

from ponto.core.exceptions import UnknownEmployeeError
from ponto.reports.domain import Employee, PunchEvent, PunchKind, ShiftPair, ShiftStatus


def _utc_date(event: PunchEvent) -> date:
    ts = event.timestamp
    if ts.tzinfo is None:
        return ts.date()
    return ts.astimezone(timezone.utc).date()


def _bucket_events(
    events: Iterable[PunchEvent],
) -> dict[tuple[uuid.UUID, date], list[PunchEvent]]:
    buckets: dict[tuple[uuid.UUID, date], list[PunchEvent]] = {}
    for event in events:
        buckets.setdefault((event.employee_id, _utc_date(event)), []).append(event)
    return buckets


def _status(entry: PunchEvent | None, exit_: PunchEvent | None) -> ShiftStatus:
    if entry is not None and exit_ is not None:
        return ShiftStatus.COMPLETE
    if entry is not None:
        return ShiftStatus.ENTRY_WITHOUT_EXIT
    return ShiftStatus.EXIT_WITHOUT_ENTRY


def pair_bucket(employee: Employee, day: date, events: Iterable[PunchEvent]) -> list[ShiftPair]:
    """Pair the events of a single (employee, day) bucket."""
    # Ties on timestamp fall back to the store id so the output is stable
    entries = sorted(
        (e for e in events if e.kind == PunchKind.ENTRY),
        key=lambda e: (e.timestamp, e.id),
    )
    exits = sorted(
        (e for e in events if e.kind == PunchKind.EXIT),
        key=lambda e: (e.timestamp, e.id),
    )

    pairs: list[ShiftPair] = []
    for entry, exit_ in zip_longest(entries, exits):
        worked = None
        if entry is not None and exit_ is not None:
            worked = exit_.timestamp - entry.timestamp
        pairs.append(
            ShiftPair(
                employee=employee,
                date=day,
                entry=entry,
                exit=exit_,
                worked_duration=worked,
                status=_status(entry, exit_),
            )
        )
    return pairs


def reconcile(
    events: Iterable[PunchEvent],
    employee_directory: Mapping[uuid.UUID, Employee],
) -> list[ShiftPair]:
    """
    Turn an unordered stream of punch events into shift pairs.

    Raises UnknownEmployeeError when an event references an employee that
    is not present in ``employee_directory``. The output is ordered by
    bucket key so repeated runs over the same events are identical.
    """
    buckets = _bucket_events(events)

    result: list[ShiftPair] = []
    for (employee_id, day) in sorted(buckets, key=lambda k: (str(k[0]), k[1])):
        employee = employee_directory.get(employee_id)
        if employee is None:
            raise UnknownEmployeeError(employee_id)
        result.extend(pair_bucket(employee, day, buckets[(employee_id, day)]))
    return result
