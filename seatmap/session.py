"""Seat selection for one booking flow.

The session owns the layout and selection for the flight currently open and
leaves the rules to :mod:`seatmap.engine`. Booked seats are fetched before
any seat can be picked; a response that arrives after the user moved on to
another flight (or closed the session) is dropped.
"""
from typing import FrozenSet, List, Optional

from loguru import logger

from . import engine
from .exceptions import BookedSeatsUnavailable, SelectionIncomplete


class SeatSelectionSession:

    def __init__(self, client, seat_count: int):
        self.client = client
        self.seat_count = seat_count
        self.flight_id: Optional[int] = None
        self.total_seats = 0
        self.layout = engine.SeatLayout()
        self.selection: FrozenSet[str] = frozenset()
        self.ready = False
        self.warning: Optional[str] = None
        self._generation = 0

    async def open(self, flight_id: int, total_seats: int) -> bool:
        self._generation += 1
        self.flight_id = flight_id
        self.total_seats = total_seats
        self.layout = engine.SeatLayout()
        self.selection = frozenset()
        self.warning = None
        return await self._load()

    async def refresh(self) -> bool:
        if self.flight_id is None:
            return False
        self._generation += 1
        return await self._load()

    async def _load(self) -> bool:
        flight_id, generation = self.flight_id, self._generation
        self.ready = False
        warning = None
        try:
            booked = await self.client.booked_seats(flight_id)
        except BookedSeatsUnavailable as e:
            # occupancy is under-reported until the next successful refresh
            booked = frozenset()
            warning = f"Could not load booked seats, availability may be out of date ({e})"
        if generation != self._generation or flight_id != self.flight_id:
            logger.debug(f"discarding stale booked seats for flight {flight_id}")
            return False
        if warning:
            logger.warning(warning)
        self.warning = warning
        self.layout = engine.build_layout(self.total_seats, booked)
        dropped = self.selection - engine.reconcile_selection(self.layout, self.selection)
        if dropped:
            logger.info(f"seats {sorted(dropped)} were booked elsewhere, removed from selection")
        self.selection = self.selection - dropped
        self.ready = True
        return True

    def toggle(self, label: str) -> bool:
        if not self.ready:
            return False
        before = self.selection
        self.selection = engine.toggle_seat(self.layout, self.selection, label, self.seat_count)
        return self.selection != before

    @property
    def complete(self) -> bool:
        return engine.is_complete(self.selection, self.seat_count)

    @property
    def remaining(self) -> int:
        return engine.seats_remaining(self.selection, self.seat_count)

    def hint(self) -> str:
        n = self.remaining
        if n == 0:
            return "All seats selected"
        return f"Please select {n} more seat{'s' if n > 1 else ''}"

    def view(self) -> engine.SeatLayout:
        return engine.with_selection(self.layout, self.selection)

    def confirm(self) -> List[str]:
        if not self.complete:
            raise SelectionIncomplete(len(self.selection), self.seat_count)
        return sorted(self.selection, key=lambda label: engine.parse_seat_label(label))

    def close(self):
        self._generation += 1
        self.flight_id = None
        self.total_seats = 0
        self.layout = engine.SeatLayout()
        self.selection = frozenset()
        self.ready = False
        self.warning = None
