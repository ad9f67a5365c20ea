"""Unit tests for the placement validator and candidate generator."""

import pytest

from filler.ai.placement import (
    CandidateGenerator,
    PlacementResult,
    anchor_bounds,
    contact_anchors,
    is_legal_placement,
    iter_legal_placements,
    validate_placement,
)
from filler.models import Shape


def _anchors(placements):
    return [p.anchor.as_tuple() for p in placements]


class TestValidatorReasons:
    """Each illegality reason is reported for the matching layout."""

    def test_legal_single_contact(self, board_factory, domino, placement_factory) -> None:
        board = board_factory(own=[(2, 2)])
        result = validate_placement(board, 1, placement_factory(2, 2, domino))
        assert result is PlacementResult.LEGAL
        assert result.is_legal

    def test_empty_shape(self, board_factory, placement_factory) -> None:
        board = board_factory(own=[(0, 0)])
        empty = Shape(offsets=())
        result = validate_placement(board, 1, placement_factory(0, 0, empty))
        assert result is PlacementResult.EMPTY_SHAPE

    def test_out_of_bounds_right(self, board_factory, domino, placement_factory) -> None:
        board = board_factory(own=[(7, 0)])
        result = validate_placement(board, 1, placement_factory(7, 0, domino))
        assert result is PlacementResult.OUT_OF_BOUNDS

    def test_out_of_bounds_negative(self, board_factory, domino, placement_factory) -> None:
        board = board_factory(own=[(0, 0)])
        result = validate_placement(board, 1, placement_factory(-1, 0, domino))
        assert result is PlacementResult.OUT_OF_BOUNDS

    def test_collision_with_opponent(self, board_factory, domino, placement_factory) -> None:
        board = board_factory(own=[(2, 2)], opponent=[(3, 2)])
        result = validate_placement(board, 1, placement_factory(2, 2, domino))
        assert result is PlacementResult.COLLISION_WITH_OPPONENT

    def test_last_placed_opponent_cell_collides(self, board_factory, domino, placement_factory) -> None:
        board = board_factory(rows=["@s..", "....", "....", "...."], player=1)
        result = validate_placement(board, 1, placement_factory(0, 0, domino))
        assert result is PlacementResult.COLLISION_WITH_OPPONENT

    def test_collision_with_self_for_duplicate_offsets(
        self, board_factory, shape_factory, placement_factory
    ) -> None:
        board = board_factory(own=[(1, 1)])
        doubled = shape_factory(offsets=[(0, 0), (0, 0)])
        result = validate_placement(board, 1, placement_factory(1, 1, doubled))
        assert result is PlacementResult.COLLISION_WITH_SELF

    def test_no_territory_contact(self, board_factory, domino, placement_factory) -> None:
        board = board_factory(own=[(0, 0)])
        result = validate_placement(board, 1, placement_factory(4, 4, domino))
        assert result is PlacementResult.NO_TERRITORY_CONTACT

    def test_multiple_contacts(self, board_factory, domino, placement_factory) -> None:
        board = board_factory(own=[(2, 2), (3, 2)])
        result = validate_placement(board, 1, placement_factory(2, 2, domino))
        assert result is PlacementResult.MULTIPLE_CONTACTS

    def test_last_placed_own_cell_counts_as_contact(
        self, board_factory, domino, placement_factory
    ) -> None:
        board = board_factory(rows=["a...", "....", "....", "...."], player=1)
        assert is_legal_placement(board, 1, placement_factory(0, 0, domino))

    def test_player_defaults_to_board_player(self, board_factory, domino, placement_factory) -> None:
        board = board_factory(player=2, own=[(2, 2)])
        assert validate_placement(board, None, placement_factory(2, 2, domino)).is_legal

    def test_every_reason_has_a_message(self) -> None:
        for result in PlacementResult:
            assert result.message


class TestValidatorOrder:
    """Checks short-circuit in a fixed order."""

    def test_out_of_bounds_before_opponent(self, board_factory, domino, placement_factory) -> None:
        board = board_factory(opponent=[(7, 3)])
        result = validate_placement(board, 1, placement_factory(7, 3, domino))
        assert result is PlacementResult.OUT_OF_BOUNDS

    def test_opponent_before_self_collision(
        self, board_factory, shape_factory, placement_factory
    ) -> None:
        board = board_factory(opponent=[(1, 1)])
        doubled = shape_factory(offsets=[(0, 0), (0, 0)])
        result = validate_placement(board, 1, placement_factory(1, 1, doubled))
        assert result is PlacementResult.COLLISION_WITH_OPPONENT

    def test_self_collision_before_contact_count(
        self, board_factory, shape_factory, placement_factory
    ) -> None:
        board = board_factory(own=[(1, 1), (2, 1)])
        shape = shape_factory(offsets=[(0, 0), (1, 0), (1, 0)])
        result = validate_placement(board, 1, placement_factory(1, 1, shape))
        assert result is PlacementResult.COLLISION_WITH_SELF


class TestBoundaries:
    """Pieces reaching the far edge are accepted; one past it is not."""

    def test_piece_touching_far_corner_is_legal(
        self, board_factory, shape_factory, placement_factory
    ) -> None:
        board = board_factory(width=5, height=5, own=[(4, 4)])
        block = shape_factory(rows=["##", "##"])
        assert is_legal_placement(board, 1, placement_factory(3, 3, block))

    def test_piece_one_past_right_edge_is_rejected(
        self, board_factory, shape_factory, placement_factory
    ) -> None:
        board = board_factory(width=5, height=5, own=[(4, 3)])
        block = shape_factory(rows=["##", "##"])
        result = validate_placement(board, 1, placement_factory(4, 3, block))
        assert result is PlacementResult.OUT_OF_BOUNDS

    def test_piece_one_past_bottom_edge_is_rejected(
        self, board_factory, shape_factory, placement_factory
    ) -> None:
        board = board_factory(width=5, height=5, own=[(3, 4)])
        block = shape_factory(rows=["##", "##"])
        result = validate_placement(board, 1, placement_factory(3, 4, block))
        assert result is PlacementResult.OUT_OF_BOUNDS

    def test_empty_leading_rows_allow_negative_anchor(
        self, board_factory, shape_factory, placement_factory
    ) -> None:
        board = board_factory(width=3, height=3, own=[(0, 0)])
        shape = shape_factory(rows=["..", ".#"])
        assert is_legal_placement(board, 1, placement_factory(-1, -1, shape))

    def test_anchor_bounds_use_filled_extent(self, board_factory, shape_factory) -> None:
        board = board_factory(width=6, height=4)
        shape = shape_factory(rows=["...", ".##"])
        # filled cells span dx 1..2, dy 1..1
        assert anchor_bounds(board, shape) == (-1, -1, 3, 2)

    def test_anchor_bounds_none_when_piece_cannot_fit(self, board_factory, shape_factory) -> None:
        board = board_factory(width=2, height=2)
        shape = shape_factory(rows=["###"])
        assert anchor_bounds(board, shape) is None


class TestCandidateGenerator:
    """Generator yields exactly the legal anchors, in raster order."""

    def test_lone_cell_domino_scenario(self, lone_cell_board, domino) -> None:
        anchors = _anchors(iter_legal_placements(lone_cell_board, 1, domino))
        assert anchors == [(8, 2), (9, 2)]

    def test_lone_cell_with_opponent_neighbour(self, board_factory, domino) -> None:
        board = board_factory(width=20, height=15, own=[(9, 2)], opponent=[(10, 2)])
        assert _anchors(iter_legal_placements(board, 1, domino)) == [(8, 2)]

    def test_adjacent_owned_pair_is_excluded(self, board_factory, domino) -> None:
        board = board_factory(width=20, height=15, own=[(9, 2), (8, 2)])
        anchors = _anchors(iter_legal_placements(board, 1, domino))
        assert (8, 2) not in anchors
        assert anchors == [(7, 2), (9, 2)]

    def test_raster_order_is_row_major(self, board_factory, domino) -> None:
        board = board_factory(own=[(5, 1), (1, 4)])
        anchors = _anchors(iter_legal_placements(board, 1, domino))
        assert anchors == sorted(anchors, key=lambda a: (a[1], a[0]))
        assert anchors == [(4, 1), (5, 1), (0, 4), (1, 4)]

    def test_no_owned_cells_yields_nothing(self, board_factory, domino) -> None:
        board = board_factory(opponent=[(3, 3)])
        assert list(iter_legal_placements(board, 1, domino)) == []

    def test_empty_shape_yields_nothing(self, board_factory) -> None:
        board = board_factory(own=[(3, 3)])
        assert list(iter_legal_placements(board, 1, Shape(offsets=()))) == []

    def test_fully_blocked_yields_nothing(self, board_factory, domino) -> None:
        board = board_factory(
            rows=["$$$", "$@$", "$$$"],
            player=1,
        )
        assert list(iter_legal_placements(board, 1, domino)) == []

    def test_generator_is_restartable(self, lone_cell_board, domino) -> None:
        generator = CandidateGenerator(lone_cell_board, domino)
        first = _anchors(generator)
        second = _anchors(generator)
        assert first == second == [(8, 2), (9, 2)]

    def test_generator_is_lazy(self, lone_cell_board, domino) -> None:
        iterator = iter(CandidateGenerator(lone_cell_board, domino))
        assert next(iterator).anchor.as_tuple() == (8, 2)
        assert next(iterator).anchor.as_tuple() == (9, 2)
        with pytest.raises(StopIteration):
            next(iterator)

    def test_negative_anchor_is_generated(self, board_factory, shape_factory) -> None:
        board = board_factory(width=3, height=3, own=[(0, 0)])
        shape = shape_factory(rows=["..", ".#"])
        assert _anchors(iter_legal_placements(board, 1, shape)) == [(-1, -1)]

    def test_player_two_uses_its_own_cells(self, board_factory, domino) -> None:
        board = board_factory(player=2, width=6, height=3, own=[(2, 1)], opponent=[(3, 1)])
        assert _anchors(iter_legal_placements(board, None, domino)) == [(1, 1)]

    def test_contact_anchors_cover_all_offsets(self, board_factory, shape_factory) -> None:
        board = board_factory(width=6, height=6, own=[(3, 3)])
        shape = shape_factory(rows=["#.", "##"])
        anchors = contact_anchors(board, shape)
        assert anchors == [(2, 2), (3, 2), (3, 3)]
