import pytest

from controls import direction_from_key, direction_from_swipe
from core import Direction


@pytest.mark.parametrize("key, expected", [
    ("ArrowUp", Direction.UP),
    ("ArrowDown", Direction.DOWN),
    ("ArrowLeft", Direction.LEFT),
    ("ArrowRight", Direction.RIGHT),
    ("w", Direction.UP),
    ("A", Direction.LEFT),
    ("s", Direction.DOWN),
    ("D", Direction.RIGHT),
])
def test_direction_from_key(key, expected):
    assert direction_from_key(key) == expected


@pytest.mark.parametrize("key", ["q", "Enter", "", "arrowup"])
def test_other_keys_do_not_move(key):
    assert direction_from_key(key) is None


@pytest.mark.parametrize("dx, dy, expected", [
    (120, 10, Direction.RIGHT),
    (-80, 30, Direction.LEFT),
    (5, 90, Direction.DOWN),
    (-20, -51, Direction.UP),
])
def test_swipe_uses_dominant_axis(dx, dy, expected):
    assert direction_from_swipe(dx, dy) == expected


def test_short_swipes_are_ignored():
    assert direction_from_swipe(50, 0) is None
    assert direction_from_swipe(0, -49) is None
    assert direction_from_swipe(30, 20, min_distance=25) == Direction.RIGHT
