import os

import pytest

from grido.game import Board, MatchResolver

# pygame must not open a real window during tests
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")


@pytest.fixture
def board():
    return Board(16, 19)


@pytest.fixture
def resolver():
    return MatchResolver()
