"""Seat map derivation and selection rules.

Layouts are rebuilt from (total_seats, booked labels) every time the booked
list changes; selections are plain frozensets owned by whoever runs the
booking flow. Nothing in here keeps state.
"""
import math
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import FrozenSet, Iterable, Iterator, Optional, Tuple

from loguru import logger

from .exceptions import InvalidSeatLabel

SEATS_PER_ROW = 6
COLUMNS = "ABCDEF"

_LABEL_RE = re.compile(r"^([1-9][0-9]*)([A-F])$")


class SeatState(str, Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    SELECTED = "selected"


@dataclass(frozen=True)
class Seat:
    row: int
    column: str
    linear_index: int
    state: SeatState = SeatState.AVAILABLE

    @property
    def label(self) -> str:
        return f"{self.row}{self.column}"

    @property
    def is_booked(self) -> bool:
        return self.state is SeatState.BOOKED


@dataclass(frozen=True)
class SeatStats:
    total_seats: int
    booked_seats: int
    available_seats: int
    occupancy_rate: float


@dataclass(frozen=True)
class SeatLayout:
    rows: Tuple[Tuple[Seat, ...], ...] = ()

    def seats(self) -> Iterator[Seat]:
        for row in self.rows:
            yield from row

    def seat(self, label: str) -> Optional[Seat]:
        try:
            row, column = parse_seat_label(label)
        except InvalidSeatLabel:
            return None
        if row > len(self.rows):
            return None
        col = COLUMNS.index(column)
        seats = self.rows[row - 1]
        if col >= len(seats):
            return None
        return seats[col]

    def __contains__(self, label) -> bool:
        return isinstance(label, str) and self.seat(label) is not None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def flat_seat_count(self) -> int:
        return sum(len(row) for row in self.rows)

    @property
    def booked_labels(self) -> FrozenSet[str]:
        return frozenset(s.label for s in self.seats() if s.is_booked)


def parse_seat_label(label) -> Tuple[int, str]:
    """Split a label such as ``"12C"`` into ``(12, "C")``.

    Raises InvalidSeatLabel for anything that is not a positive row number
    followed by a single column letter A-F.
    """
    if not isinstance(label, str):
        raise InvalidSeatLabel(f"seat label must be a string, got {label!r}")
    m = _LABEL_RE.match(label.strip().upper())
    if not m:
        raise InvalidSeatLabel(f"invalid seat label {label!r}")
    return int(m.group(1)), m.group(2)


def _seat_total(total_seats) -> int:
    # bools are ints in python; neither they nor fractional counts make seats
    if isinstance(total_seats, bool) or not isinstance(total_seats, int):
        return 0
    return max(total_seats, 0)


def build_layout(total_seats, booked_labels: Iterable[str] = ()) -> SeatLayout:
    total = _seat_total(total_seats)
    booked = set()
    for label in booked_labels or ():
        try:
            row, column = parse_seat_label(label)
        except InvalidSeatLabel:
            logger.warning(f"skipping malformed booked seat {label!r}")
            continue
        booked.add(f"{row}{column}")
    rows = []
    for row in range(1, math.ceil(total / SEATS_PER_ROW) + 1):
        seats = []
        for col in range(SEATS_PER_ROW):
            index = (row - 1) * SEATS_PER_ROW + col + 1
            if index > total:
                break
            column = chr(65 + col)
            state = SeatState.BOOKED if f"{row}{column}" in booked else SeatState.AVAILABLE
            seats.append(Seat(row=row, column=column, linear_index=index, state=state))
        rows.append(tuple(seats))
    return SeatLayout(rows=tuple(rows))


def toggle_seat(layout: SeatLayout, selection: Iterable[str], label: str, seat_count: int) -> FrozenSet[str]:
    current = frozenset(selection)
    seat = layout.seat(label)
    if seat is None:
        logger.debug(f"ignoring toggle of unknown seat {label!r}")
        return current
    if seat.is_booked:
        return current
    if seat.label in current:
        return current - {seat.label}
    if len(current) < seat_count:
        return current | {seat.label}
    # selection full
    return current


def is_complete(selection: Iterable[str], seat_count: int) -> bool:
    return len(frozenset(selection)) == seat_count


def seats_remaining(selection: Iterable[str], seat_count: int) -> int:
    return max(seat_count - len(frozenset(selection)), 0)


def reconcile_selection(layout: SeatLayout, selection: Iterable[str]) -> FrozenSet[str]:
    """Drop selected labels the rebuilt layout reports booked or no longer has."""
    kept = set()
    for label in selection:
        seat = layout.seat(label)
        if seat is not None and not seat.is_booked:
            kept.add(seat.label)
    return frozenset(kept)


def with_selection(layout: SeatLayout, selection: Iterable[str]) -> SeatLayout:
    chosen = frozenset(selection)
    rows = tuple(
        tuple(
            replace(s, state=SeatState.SELECTED) if s.label in chosen and not s.is_booked else s
            for s in row
        )
        for row in layout.rows
    )
    return SeatLayout(rows=rows)


def layout_stats(layout: SeatLayout) -> SeatStats:
    total = layout.flat_seat_count
    booked = len(layout.booked_labels)
    rate = round(booked / total * 100, 1) if total else 0.0
    return SeatStats(total_seats=total, booked_seats=booked, available_seats=total - booked, occupancy_rate=rate)
