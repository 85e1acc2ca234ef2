# controls.py
# Turns raw input (key presses, swipe gestures) into move directions.

from typing import Dict, Optional

from core import Direction

MIN_SWIPE_DISTANCE = 50

KEY_MAP: Dict[str, Direction] = {
    "ArrowUp": Direction.UP,
    "ArrowDown": Direction.DOWN,
    "ArrowLeft": Direction.LEFT,
    "ArrowRight": Direction.RIGHT,
    "w": Direction.UP,
    "s": Direction.DOWN,
    "a": Direction.LEFT,
    "d": Direction.RIGHT,
}

def direction_from_key(key: str) -> Optional[Direction]:
    """
    Maps a key name to a direction. Letters are case-insensitive.
    Returns None for keys that do not move the board.
    """
    if key in KEY_MAP:
        return KEY_MAP[key]
    if len(key) == 1:
        return KEY_MAP.get(key.lower())
    return None

def direction_from_swipe(dx: float, dy: float,
                         min_distance: float = MIN_SWIPE_DISTANCE) -> Optional[Direction]:
    """
    Classifies a swipe by its dominant axis. Screen coordinates: positive dy
    points down. Swipes no longer than min_distance on that axis are ignored.
    """
    if abs(dx) > abs(dy):
        if abs(dx) > min_distance:
            return Direction.RIGHT if dx > 0 else Direction.LEFT
    elif abs(dy) > min_distance:
        return Direction.DOWN if dy > 0 else Direction.UP
    return None
