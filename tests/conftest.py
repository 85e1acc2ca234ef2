import itertools

import pytest

import core
from game_state import GameController, GameState, freeze_grid
from storage import InMemoryBestScoreStore


CHECKERBOARD_VALUES = [
    [2, 4, 2, 4],
    [4, 2, 4, 2],
    [2, 4, 2, 4],
    [4, 2, 4, 2],
]


class ScriptedRandom:
    """
    Random source with a fixed script: choice() always picks the given index
    (clamped to the last option) and random() returns the queued floats,
    then 0.5 once the queue is empty.
    """

    def __init__(self, index=0, floats=()):
        self.index = index
        self.floats = list(floats)

    def choice(self, options):
        return options[min(self.index, len(options) - 1)]

    def random(self):
        return self.floats.pop(0) if self.floats else 0.5


class CountingIds:
    def __init__(self, prefix="t"):
        self.prefix = prefix
        self._counter = itertools.count(1)

    def __call__(self):
        return f"{self.prefix}{next(self._counter)}"


class FailingStore:
    def read(self):
        raise OSError("storage unavailable")

    def write(self, score):
        raise OSError("storage unavailable")


@pytest.fixture
def ids():
    return CountingIds()


@pytest.fixture
def rng():
    return ScriptedRandom()


@pytest.fixture
def store():
    return InMemoryBestScoreStore()


@pytest.fixture
def controller(store, rng, ids):
    return GameController(store=store, rng=rng, id_factory=ids)


@pytest.fixture
def make_state():
    def _make(values, score=0, best_score=0, status=core.GameStatus.PLAYING, keep_playing=False):
        grid = core.grid_from_values(values, CountingIds("s"))
        return GameState(grid=freeze_grid(grid), score=score, best_score=best_score,
                         status=status, keep_playing=keep_playing)
    return _make
