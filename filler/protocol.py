"""Text protocol spoken by the Filler game VM.

The VM announces the player once, then sends one block per turn and waits
for a single ``"X Y"`` line in reply::

    $$$ exec p1 : [path/to/player]
    Anfield 20 15:
        01234567890123456789
    000 ....................
    ...
    014 ....................
    Piece 4 1:
    .OO.

Grid rows carry a row number, a space, then exactly ``width`` cell
characters from ``.@$as``. In piece rows any character other than ``.`` is a
filled cell.

Malformed input raises :class:`~filler.errors.ProtocolError` with the
offending line number. "No legal move" is answered with the ``"0 0"``
sentinel; that mapping lives only in :func:`format_decision`.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from typing import TextIO

from pydantic import BaseModel

from .board_manager import Board
from .errors import InvalidStateError, ProtocolError
from .models import CellState, DecisionStatus, MoveDecision, Shape

logger = logging.getLogger(__name__)

NO_MOVE_SENTINEL = "0 0"

_PLAYER_RE = re.compile(r"^\$\$\$ exec p(\d+)\b")
_ANFIELD_RE = re.compile(r"^Anfield (\d+) (\d+):?$")
_PIECE_RE = re.compile(r"^Piece (\d+) (\d+):?$")
_CELL_CHARS = frozenset(cell.value for cell in CellState)


class Turn(BaseModel):
    """One parsed turn block: the board snapshot and the piece to place."""
    board: Board
    shape: Shape

    class Config:
        frozen = True
        arbitrary_types_allowed = True


def parse_player_line(line: str, line_number: int | None = None) -> int:
    """Extract the player number from ``$$$ exec p<N> : [path]``."""
    match = _PLAYER_RE.match(line.strip())
    if not match:
        raise ProtocolError(
            "Expected player line '$$$ exec p<N> : [path]'",
            line_number=line_number,
            context={"text": line.strip()[:40]},
        )
    player = int(match.group(1))
    if player not in (1, 2):
        raise ProtocolError(
            "Player number must be 1 or 2",
            line_number=line_number,
            context={"player": player},
        )
    return player


def _parse_dimensions(
    pattern: re.Pattern[str], line: str, label: str, line_number: int
) -> tuple[int, int]:
    match = pattern.match(line.strip())
    if not match:
        raise ProtocolError(
            f"Expected '{label} W H:' header",
            line_number=line_number,
            context={"text": line.strip()[:40]},
        )
    return int(match.group(1)), int(match.group(2))


def parse_grid_row(line: str, width: int, line_number: int) -> str:
    """Return the ``width`` cell characters of a numbered grid row."""
    stripped = line.strip()
    _, sep, cells = stripped.partition(" ")
    if not sep:
        raise ProtocolError("Grid row is missing its row number", line_number=line_number)
    cells = cells.strip()
    if len(cells) != width:
        raise ProtocolError(
            "Grid row has the wrong width",
            line_number=line_number,
            context={"expected": width, "actual": len(cells)},
        )
    bad = set(cells) - _CELL_CHARS
    if bad:
        raise ProtocolError(
            "Unknown cell character",
            line_number=line_number,
            context={"chars": "".join(sorted(bad))},
        )
    return cells


def parse_piece_row(line: str, width: int, line_number: int) -> str:
    row = line.strip()
    if len(row) != width:
        raise ProtocolError(
            "Piece row has the wrong width",
            line_number=line_number,
            context={"expected": width, "actual": len(row)},
        )
    return row


class ProtocolReader:
    """Reads turn blocks from a line stream.

    The reader remembers the player announced by the ``$$$ exec`` line, so
    callers only need :meth:`read_turn` (or iterate the reader) once the
    stream is attached.

    Args:
        lines: Any iterable of text lines, typically ``sys.stdin``
        player: Player number if already known (e.g. from the CLI)
    """

    def __init__(self, lines: Iterable[str], player: int | None = None) -> None:
        self._lines = iter(lines)
        self.player = player
        self.line_number = 0

    def _next_line(self, eof_ok: bool = False) -> str | None:
        for line in self._lines:
            self.line_number += 1
            if line.strip():
                return line.rstrip("\r\n")
        if eof_ok:
            return None
        raise ProtocolError("Unexpected end of input", line_number=self.line_number)

    def read_turn(self) -> Turn | None:
        """Parse the next turn block, or return None at end of input."""
        line = self._next_line(eof_ok=True)
        while line is not None and line.startswith("$$$"):
            self.player = parse_player_line(line, self.line_number)
            logger.info("Playing as p%d", self.player)
            line = self._next_line(eof_ok=True)
        if line is None:
            return None

        if self.player is None:
            raise ProtocolError(
                "Turn block received before the player line",
                line_number=self.line_number,
            )

        width, height = _parse_dimensions(_ANFIELD_RE, line, "Anfield", self.line_number)
        # Column ruler
        self._next_line()
        rows = [
            parse_grid_row(self._next_line(), width, self.line_number)
            for _ in range(height)
        ]

        line = self._next_line()
        piece_width, piece_height = _parse_dimensions(
            _PIECE_RE, line, "Piece", self.line_number
        )
        piece_rows = [
            parse_piece_row(self._next_line(), piece_width, self.line_number)
            for _ in range(piece_height)
        ]

        try:
            board = Board.from_rows(rows, self.player)
        except InvalidStateError as exc:
            raise ProtocolError(exc.message, line_number=self.line_number) from exc
        shape = Shape.from_rows(piece_rows)
        logger.debug(
            "Turn at line %d: anfield %dx%d, piece %dx%d with %d cells",
            self.line_number,
            width,
            height,
            piece_width,
            piece_height,
            len(shape),
        )
        return Turn(board=board, shape=shape)

    def __iter__(self) -> Iterator[Turn]:
        while True:
            turn = self.read_turn()
            if turn is None:
                return
            yield turn


def format_decision(decision: MoveDecision) -> str:
    """Render a decision as the VM's ``"X Y\\n"`` reply.

    NO_LEGAL_MOVE becomes the ``"0 0"`` sentinel, which the VM treats as
    the player giving up.
    """
    if decision.status is DecisionStatus.NO_LEGAL_MOVE or decision.placement is None:
        return f"{NO_MOVE_SENTINEL}\n"
    anchor = decision.placement.anchor
    return f"{anchor.x} {anchor.y}\n"


def write_decision(stream: TextIO, decision: MoveDecision) -> None:
    stream.write(format_decision(decision))
    stream.flush()
