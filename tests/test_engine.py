"""
Unit tests for the seat map engine

Layout derivation from a seat count, occupancy marking and selection rules.
"""

import math

import pytest

from seatmap import engine
from seatmap.engine import SeatState
from seatmap.exceptions import InvalidSeatLabel


@pytest.mark.unit
class TestBuildLayout:

    @pytest.mark.parametrize("total", [0, 1, 5, 6, 7, 12, 13, 180, 997, 1000])
    def test_flat_seat_count_matches_total(self, total):
        assert engine.build_layout(total, set()).flat_seat_count == total

    def test_flat_seat_count_for_every_total_up_to_1000(self):
        for total in range(0, 1001):
            layout = engine.build_layout(total, set())
            assert layout.flat_seat_count == total
            row_count = math.ceil(total / 6)
            assert layout.row_count == row_count
            for r, row in enumerate(layout.rows, start=1):
                expected = 6 if r < row_count else total - 6 * (row_count - 1)
                assert len(row) == expected

    def test_ten_seats_with_two_booked(self):
        layout = engine.build_layout(10, {"1A", "2B"})

        labels = [s.label for s in layout.seats()]
        assert labels == ["1A", "1B", "1C", "1D", "1E", "1F", "2A", "2B", "2C", "2D"]
        assert layout.row_count == 2
        booked = {s.label for s in layout.seats() if s.state is SeatState.BOOKED}
        assert booked == {"1A", "2B"}
        assert all(s.state is SeatState.AVAILABLE for s in layout.seats() if s.label not in booked)

    def test_linear_index_follows_row_and_column(self):
        layout = engine.build_layout(14)
        seat = layout.seat("3B")
        assert (seat.row, seat.column, seat.linear_index) == (3, "B", 14)
        assert "3C" not in layout

    def test_labels_are_unique(self):
        labels = [s.label for s in engine.build_layout(301).seats()]
        assert len(labels) == len(set(labels))

    @pytest.mark.parametrize("total", [-6, 0, 2.5, "12", None, True])
    def test_invalid_totals_give_empty_layout(self, total):
        layout = engine.build_layout(total, {"1A"})
        assert layout.flat_seat_count == 0
        assert layout.rows == ()

    def test_same_inputs_same_layout(self):
        assert engine.build_layout(33, {"4C", "1F"}) == engine.build_layout(33, ["1F", "4C"])

    def test_booked_labels_outside_layout_are_ignored(self):
        layout = engine.build_layout(8, {"1G", "9A", "A1", "", "2C", 7})
        assert layout.booked_labels == frozenset()
        assert layout.flat_seat_count == 8

    def test_booked_labels_are_normalised(self):
        layout = engine.build_layout(6, {"1a", " 1B "})
        assert layout.booked_labels == {"1A", "1B"}


@pytest.mark.unit
class TestToggleSeat:

    def setup_method(self):
        self.layout = engine.build_layout(18, {"1A", "2B"})

    def test_adds_available_seat(self):
        assert engine.toggle_seat(self.layout, frozenset(), "3C", 2) == {"3C"}

    def test_reselecting_removes_seat(self):
        assert engine.toggle_seat(self.layout, {"3C"}, "3C", 2) == frozenset()

    def test_booked_seat_is_ignored(self):
        selection = frozenset({"1B"})
        assert engine.toggle_seat(self.layout, selection, "1A", 3) == selection

    def test_full_selection_ignores_new_seat(self):
        selection = frozenset({"1B", "1C"})
        assert engine.toggle_seat(self.layout, selection, "1D", 2) == selection

    def test_full_selection_still_allows_deselect(self):
        assert engine.toggle_seat(self.layout, {"1B", "1C"}, "1B", 2) == {"1C"}

    @pytest.mark.parametrize("label", ["4A", "1G", "0A", "", "AA"])
    def test_unknown_label_is_ignored(self, label):
        assert engine.toggle_seat(self.layout, {"1B"}, label, 3) == {"1B"}

    def test_selection_never_exceeds_seat_count(self):
        selection = frozenset()
        seat_count = 3
        labels = [s.label for s in self.layout.seats()]
        # walk every seat forwards then backwards, toggling as we go
        for label in labels + labels[::-1] + labels[::2]:
            selection = engine.toggle_seat(self.layout, selection, label, seat_count)
            assert len(selection) <= seat_count
            assert "1A" not in selection and "2B" not in selection


@pytest.mark.unit
class TestSelectionQueries:

    def test_is_complete(self):
        assert engine.is_complete({"1A", "1B"}, 2) is True
        assert engine.is_complete({"1A"}, 2) is False

    def test_seats_remaining(self):
        assert engine.seats_remaining({"1A"}, 3) == 2
        assert engine.seats_remaining({"1A", "1B"}, 2) == 0

    def test_reconcile_drops_seats_booked_since(self):
        layout = engine.build_layout(12, {"2A"})
        assert engine.reconcile_selection(layout, {"1A", "2A", "5F"}) == {"1A"}

    def test_with_selection_marks_selected_seats(self):
        layout = engine.build_layout(6, {"1A"})
        view = engine.with_selection(layout, {"1A", "1C"})
        states = {s.label: s.state for s in view.seats()}
        assert states["1A"] is SeatState.BOOKED
        assert states["1C"] is SeatState.SELECTED
        assert states["1B"] is SeatState.AVAILABLE
        # source layout untouched
        assert layout.seat("1C").state is SeatState.AVAILABLE

    def test_layout_stats(self):
        stats = engine.layout_stats(engine.build_layout(40, {"1A", "1B", "7D"}))
        assert stats.total_seats == 40
        assert stats.booked_seats == 3
        assert stats.available_seats == 37
        assert stats.occupancy_rate == 7.5

    def test_layout_stats_empty(self):
        assert engine.layout_stats(engine.build_layout(0)).occupancy_rate == 0.0


@pytest.mark.unit
class TestParseSeatLabel:

    def test_parses_row_and_column(self):
        assert engine.parse_seat_label("12C") == (12, "C")
        assert engine.parse_seat_label("3f") == (3, "F")

    @pytest.mark.parametrize("label", ["", "C12", "12G", "0A", "12", "1AB", None, 12])
    def test_rejects_malformed(self, label):
        with pytest.raises(InvalidSeatLabel):
            engine.parse_seat_label(label)
