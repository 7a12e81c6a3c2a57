from __future__ import annotations

from collections import deque
from typing import Iterable, List, Optional, Tuple

from grido.game import Board, Piece, Tile


Coordinate = Tuple[int, int]


def square(x: int, y: int, size: int = 3) -> List[Coordinate]:
    return [(x + dx, y + dy) for dy in range(size) for dx in range(size)]


def fill(board: Board, cells: Iterable[Coordinate], tile: Optional[Tile] = None) -> None:
    tile = tile or Tile.plain()
    for cell in cells:
        board.set(cell, tile)


def fill_except(board: Board, cells: Iterable[Coordinate], missing: Coordinate, tile: Optional[Tile] = None) -> None:
    fill(board, [c for c in cells if c != missing], tile)


def interior(board: Board) -> List[Coordinate]:
    return [(x, y) for y in range(1, board.height - 1) for x in range(1, board.width - 1)]


def single(tile: Optional[Tile] = None) -> Piece:
    return Piece.uniform([(0, 0)], tile or Tile.plain())


def block(size: int = 3, tile: Optional[Tile] = None) -> Piece:
    return Piece.uniform([(dx, dy) for dy in range(size) for dx in range(size)], tile or Tile.plain())


def domino(tile: Optional[Tile] = None) -> Piece:
    return Piece.uniform([(0, -1), (0, 0)], tile or Tile.plain())



class ListSource:
    """Piece source that hands out a fixed list, then repeats `filler`."""

    def __init__(self, pieces: Iterable[Piece], filler: Optional[Piece] = None) -> None:
        self.level = 1
        self._pieces = deque(pieces)
        self.filler = filler or single()

    def __iter__(self):
        return self

    def __next__(self) -> Piece:
        if self._pieces:
            return self._pieces.popleft()
        return self.filler

    def peek(self) -> Tuple[Piece, ...]:
        return (self._pieces[0] if self._pieces else self.filler,)

    def swap_front(self, piece: Piece) -> Piece:
        front = self.peek()[0]
        if self._pieces:
            self._pieces[0] = piece
        else:
            self._pieces.append(piece)
        return front


class RecordingRenderer:
    def __init__(self) -> None:
        self.snapshots = []

    def render(self, snapshot) -> None:
        self.snapshots.append(snapshot)
