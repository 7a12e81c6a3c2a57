from __future__ import annotations

from typing import Optional, Tuple

import pygame

from grido.game import Piece, SessionPhase, Snapshot, TileKind


Color = Tuple[int, int, int]

KIND_COLORS = {
    0: (20, 20, 26),
    TileKind.PLAIN: (70, 200, 120),
    TileKind.PICKER: (200, 200, 200),
    TileKind.KILLER: (230, 60, 60),
    TileKind.SHIELD: (90, 140, 240),
    TileKind.PERMANENT: (90, 90, 100),
    TileKind.CENTERPIECE: (240, 200, 60),
    TileKind.PLUS: (120, 240, 120),
    TileKind.MINUS: (240, 120, 120),
    TileKind.WHOPPER: (250, 140, 30),
    TileKind.FLASK_GLUE: (180, 120, 240),
    TileKind.FLASK_ACID: (160, 240, 60),
}
GLUE_COLOR = (110, 80, 150)
PIP_COLOR = (250, 250, 250)


def _color_for_value(v: int) -> Color:
    return KIND_COLORS.get(int(v), (200, 200, 200))


class Renderer:
    """Draws session snapshots with pygame.

    `render()` is the hook a GameSession pushes snapshots into; it keeps the
    latest one and, when bound to a screen, draws it immediately.
    """

    def __init__(self, screen: Optional[pygame.Surface] = None, cell_size: int = 28, margin: int = 20) -> None:
        self.screen = screen
        self.cell_size = cell_size
        self.margin = margin
        self.snapshot: Optional[Snapshot] = None
        self._font: Optional[pygame.font.Font] = None

    def window_size(self, width: int, height: int) -> Tuple[int, int]:
        side_panel_w = 7 * self.cell_size
        return (
            self.margin * 3 + width * self.cell_size + side_panel_w,
            self.margin * 2 + height * self.cell_size,
        )

    def render(self, snapshot: Snapshot) -> None:
        self.snapshot = snapshot
        if self.screen is not None:
            self.draw(self.screen)
            pygame.display.flip()

    def _draw_cell(self, surf: pygame.Surface, x: int, y: int, kind: int, charge: int, glued: bool) -> None:
        rect = pygame.Rect(x * self.cell_size, y * self.cell_size, self.cell_size - 1, self.cell_size - 1)
        color = GLUE_COLOR if glued and kind == 0 else _color_for_value(kind)
        pygame.draw.rect(surf, color, rect)
        # One pip per point of charge, up to four
        pip = max(2, self.cell_size // 8)
        for i in range(min(charge, 4)):
            pip_rect = pygame.Rect(rect.x + 2 + i * (pip + 1), rect.y + 2, pip, pip)
            pygame.draw.rect(surf, PIP_COLOR, pip_rect)

    def board_surface(self, snapshot: Snapshot) -> pygame.Surface:
        h, w = snapshot.board.shape
        surf = pygame.Surface((w * self.cell_size, h * self.cell_size))
        surf.fill((30, 30, 36))
        for y in range(h):
            for x in range(w):
                self._draw_cell(surf, x, y, int(snapshot.board[y, x]), int(snapshot.charges[y, x]), bool(snapshot.glued[y, x]))
        return surf

    def piece_surface(self, piece: Piece) -> pygame.Surface:
        min_dx, min_dy, max_dx, max_dy = piece.bounding_box()
        surf = pygame.Surface(((max_dx - min_dx + 1) * self.cell_size, (max_dy - min_dy + 1) * self.cell_size))
        surf.fill((10, 10, 14))
        for (dx, dy), tile in piece.cells:
            self._draw_cell(surf, dx - min_dx, dy - min_dy, int(tile.kind), tile.charge or 0, False)
        return surf

    def draw_ghost(self, screen: pygame.Surface, piece: Piece, origin: Tuple[int, int], valid: bool) -> None:
        color = (120, 220, 140) if valid else (220, 120, 120)
        for (x, y), _ in piece.cells_at(origin):
            rect = pygame.Rect(
                self.margin + x * self.cell_size,
                self.margin + y * self.cell_size,
                self.cell_size - 1,
                self.cell_size - 1,
            )
            pygame.draw.rect(screen, color, rect, 2)

    def draw(self, screen: pygame.Surface) -> None:
        snapshot = self.snapshot
        screen.fill((10, 10, 14))
        if snapshot is None:
            return
        screen.blit(self.board_surface(snapshot), (self.margin, self.margin))

        h, w = snapshot.board.shape
        x0 = self.margin * 2 + w * self.cell_size
        y0 = self.margin
        pieces = [snapshot.current_piece] if snapshot.current_piece is not None else []
        pieces.extend(snapshot.next_pieces)
        for idx, piece in enumerate(pieces):
            screen.blit(self.piece_surface(piece), (x0, y0 + idx * 4 * self.cell_size))

        if self._font is None:
            self._font = pygame.font.SysFont(None, 24)
        info_lines = [
            f"Score: {snapshot.score}",
            f"Level: {snapshot.level}",
            f"Multi: x{snapshot.multiplier}",
        ]
        y_text = y0 + max(len(pieces), 1) * 4 * self.cell_size
        for i, txt in enumerate(info_lines):
            img = self._font.render(txt, True, (230, 230, 230))
            screen.blit(img, (x0, y_text + i * 20))
        if snapshot.phase is SessionPhase.GAME_OVER:
            over = self._font.render("Game Over - Press N to reset", True, (255, 100, 100))
            screen.blit(over, (self.margin, 2))
