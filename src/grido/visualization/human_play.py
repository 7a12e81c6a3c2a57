from __future__ import annotations

import argparse
from typing import List, Optional

import pygame

from grido.game import GameConfig, GameSession, PlacementError
from .renderer import Renderer


ROTATE_KEYS = {
    pygame.K_r: 1,
    pygame.K_e: 1,
    pygame.K_q: -1,
}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Play Grido with the mouse.")
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--width", type=int, default=16)
    p.add_argument("--height", type=int, default=19)
    p.add_argument("--preview", type=int, default=1, help="Number of upcoming pieces shown")
    p.add_argument("--cell-size", type=int, default=28)
    return p


def run(config: Optional[GameConfig] = None, cell_size: int = 28) -> None:
    pygame.init()
    try:
        config = config or GameConfig()
        renderer = Renderer(cell_size=cell_size)
        screen = pygame.display.set_mode(renderer.window_size(config.width, config.height))
        pygame.display.set_caption("Grido")
        session = GameSession(config, renderer=renderer)

        rotation = 0
        message = ""
        running = True
        clock = pygame.time.Clock()
        while running:
            mx, my = pygame.mouse.get_pos()
            origin = ((mx - renderer.margin) // cell_size, (my - renderer.margin) // cell_size)

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key in ROTATE_KEYS:
                        rotation = (rotation + ROTATE_KEYS[event.key]) % 4
                    elif event.key == pygame.K_TAB and not session.game_over:
                        if not session.swap_piece():
                            message = "Next piece does not fit"
                    elif event.key == pygame.K_n:
                        session.reset()
                        rotation = 0
                        message = ""
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1 and not session.game_over:
                    try:
                        resolution = session.place_piece(origin, rotation)
                    except PlacementError as exc:
                        message = str(exc)
                    else:
                        rotation = 0
                        message = f"+{resolution.score}" if resolution.score else ""

            renderer.draw(screen)
            if not session.game_over and session.current_piece is not None:
                piece = session.current_piece.rotated(rotation)
                renderer.draw_ghost(screen, piece, origin, session.can_place(origin, rotation))
            if message:
                font = pygame.font.SysFont(None, 20)
                screen.blit(font.render(message, True, (230, 230, 230)), (renderer.margin, screen.get_height() - 18))
            pygame.display.flip()
            clock.tick(60)

        stats = session.get_game_stats()
        print(f"Final score: {stats['final_score']}  level: {stats['level']}  pieces: {stats['pieces_placed']}")
    finally:
        pygame.quit()


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    config = GameConfig(width=args.width, height=args.height, random_seed=args.seed, preview_depth=args.preview)
    run(config, cell_size=args.cell_size)


if __name__ == "__main__":  # pragma: no cover
    main()
