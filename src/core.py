# core.py
# This file is intended to be the stateless rules engine for a 2048 game.

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple
import random
import uuid

GRID_SIZE = 4
WIN_TILE = 2048

class GameStatus(str, Enum):
    """Represents the current progress state of the game."""
    PLAYING = "playing"
    WON = "won"
    LOST = "lost"

class Direction(str, Enum):
    """Represents the possible move directions."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

# Clockwise quarter turns needed to turn each direction into a move to the left.
ROTATIONS = {
    Direction.LEFT: 0,
    Direction.DOWN: 1,
    Direction.RIGHT: 2,
    Direction.UP: 3,
}

@dataclass(frozen=True)
class Tile:
    """A single numbered piece occupying one grid cell."""
    id: str
    value: int
    position: Tuple[int, int]
    is_new: bool = False
    merged_from: Optional[Tuple[str, str]] = None

Cell = Optional[Tile]
Grid = List[List[Cell]]
IdFactory = Callable[[], str]

def new_tile_id() -> str:
    return uuid.uuid4().hex

# --- Grid Helper Functions ---

def get_board_size(grid: Sequence[Sequence[Cell]]) -> int:
    """
    Gets the size (N) of an N x N grid.
    Args:
        grid: The game grid.
    Returns:
        int: The dimension of the grid.
    Raises:
        ValueError: If the grid is not square or empty.
    """
    if not grid or not all(len(row) == len(grid) for row in grid):
        raise ValueError("Grid must be a non-empty square matrix.")
    return len(grid)

def create_empty_grid(size: int = GRID_SIZE) -> Grid:
    if not isinstance(size, int) or size <= 0:
        raise ValueError("Grid size must be a positive integer.")
    return [[None] * size for _ in range(size)]

def copy_grid(grid: Sequence[Sequence[Cell]]) -> Grid:
    return [list(row) for row in grid]

def get_empty_cells(grid: Sequence[Sequence[Cell]]) -> List[Tuple[int, int]]:
    """
    Get coordinates of empty cells in the given grid, in row-major order.
    """
    n = get_board_size(grid)
    return [(row, col) for row in range(n) for col in range(n) if grid[row][col] is None]

def collect_tiles(grid: Sequence[Sequence[Cell]]) -> List[Tile]:
    """Flattens the grid into its live tiles, row-major."""
    return [tile for row in grid for tile in row if tile is not None]

def clear_transient_flags(grid: Sequence[Sequence[Cell]]) -> Grid:
    """
    Returns a copy of the grid with the per-turn presentation hints
    (is_new, merged_from) reset on every tile.
    """
    cleared = copy_grid(grid)
    for row in cleared:
        for col, tile in enumerate(row):
            if tile is not None and (tile.is_new or tile.merged_from is not None):
                row[col] = replace(tile, is_new=False, merged_from=None)
    return cleared

def grid_from_values(values: Sequence[Sequence[int]], id_factory: IdFactory = new_tile_id) -> Grid:
    """
    Builds a tile grid from a grid of plain values, 0 meaning empty.
    """
    n = get_board_size(values)
    grid = create_empty_grid(n)
    for row in range(n):
        for col in range(n):
            if values[row][col]:
                grid[row][col] = Tile(id=id_factory(), value=values[row][col], position=(row, col))
    return grid

def grid_values(grid: Sequence[Sequence[Cell]]) -> List[List[int]]:
    """The value layout of a grid, 0 meaning empty."""
    return [[tile.value if tile is not None else 0 for tile in row] for row in grid]

# --- Rotation Transform ---

def rotate_grid(grid: Sequence[Sequence[Cell]]) -> Grid:
    """
    Rotates the grid a quarter turn clockwise: grid'[col][N-1-row] = grid[row][col].
    Tiles keep their id and value; only their recorded position changes.
    """
    n = get_board_size(grid)
    rotated = create_empty_grid(n)
    for row in range(n):
        for col in range(n):
            tile = grid[row][col]
            if tile is not None:
                rotated[col][n - 1 - row] = replace(tile, position=(col, n - 1 - row))
    return rotated

def rotate_times(grid: Sequence[Sequence[Cell]], times: int) -> Grid:
    result = copy_grid(grid)
    for _ in range(times % 4):
        result = rotate_grid(result)
    return result

# --- Line Compactor/Merger ---

def compact_left_in_line(cells: Sequence[Cell], line_index: int,
                         id_factory: IdFactory = new_tile_id) -> Tuple[List[Cell], int, bool]:
    """
    Slides a single line toward index 0, merging equal neighbours once.
    Args:
        cells: The line, possibly with gaps (None).
        line_index: Row index the line lives on; used for the new positions.
        id_factory: Source of fresh ids for merged tiles.
    Returns:
        Tuple[List[Cell], int, bool]: The compacted line, the score gained
                                      from merges, and whether anything moved or merged.
    """
    n = len(cells)
    tiles = [tile for tile in cells if tile is not None]
    new_cells: List[Cell] = [None] * n
    score_gained = 0
    moved = False

    read_idx = 0
    write_idx = 0
    while read_idx < len(tiles):
        current = tiles[read_idx]
        if read_idx + 1 < len(tiles) and current.value == tiles[read_idx + 1].value:
            merged = Tile(
                id=id_factory(),
                value=current.value * 2,
                position=(line_index, write_idx),
                merged_from=(current.id, tiles[read_idx + 1].id),
            )
            new_cells[write_idx] = merged
            score_gained += merged.value
            moved = True
            read_idx += 2 # The consumed neighbour is never looked at again
        else:
            if current.position[1] != write_idx:
                moved = True
            new_cells[write_idx] = replace(current, position=(line_index, write_idx))
            read_idx += 1
        write_idx += 1

    return new_cells, score_gained, moved

# --- Core Game Move Processing ---

def move_left(grid: Sequence[Sequence[Cell]], id_factory: IdFactory = new_tile_id) -> Tuple[Grid, int, bool]:
    """
    Compacts every row of the grid to the left.
    Returns:
        Tuple[Grid, int, bool]: The processed grid, total score increase,
                                and a flag if any row changed.
    """
    n = get_board_size(grid)
    processed: Grid = []
    total_score = 0
    moved_any = False
    for row in range(n):
        new_line, line_score, line_moved = compact_left_in_line(grid[row], row, id_factory)
        processed.append(new_line)
        total_score += line_score
        moved_any = moved_any or line_moved
    return processed, total_score, moved_any

def process_move(grid: Sequence[Sequence[Cell]], direction: Direction,
                 id_factory: IdFactory = new_tile_id) -> Tuple[Grid, int, bool]:
    """
    Slides and merges the whole grid in the given direction, without spawning.
    Args:
        grid: The current game grid.
        direction (Direction): The direction to move.
    Returns:
        Tuple[Grid, int, bool]:
            - The new grid after the move.
            - The score gained from this move.
            - A boolean indicating if the grid changed as a result of the move.
    Raises:
        ValueError: If an invalid direction is specified.
    """
    try:
        rotations = ROTATIONS[Direction(direction)]
    except ValueError:
        raise ValueError("Invalid direction specified for process_move.")

    rotated = rotate_times(grid, rotations)
    moved_grid, score_gained, moved = move_left(rotated, id_factory)
    final_grid = rotate_times(moved_grid, (4 - rotations) % 4)
    return final_grid, score_gained, moved

# --- Tile Spawner ---

def spawn_random_tile(grid: Grid, rng=random, id_factory: IdFactory = new_tile_id) -> Optional[Tile]:
    """
    Places a new tile (90% chance of 2, 10% chance of 4) on a uniformly chosen
    empty cell. The grid is written in place.
    Args:
        grid: The grid to spawn into.
        rng: Random source providing choice() and random().
        id_factory: Source of the new tile's id.
    Returns:
        Optional[Tile]: The spawned tile, or None if the grid is full.
    """
    empty_cells = get_empty_cells(grid)
    if not empty_cells:
        return None

    row, col = rng.choice(empty_cells)
    value = 4 if rng.random() < 0.1 else 2
    tile = Tile(id=id_factory(), value=value, position=(row, col), is_new=True)
    grid[row][col] = tile
    return tile

# --- Terminal State Detector ---

def has_won(tiles: Iterable[Tile], win_tile: int = WIN_TILE) -> bool:
    """
    Check if the game is won (any tile at or above win_tile).
    """
    return any(tile.value >= win_tile for tile in tiles)

def is_game_over(grid: Sequence[Sequence[Cell]]) -> bool:
    """
    A grid is lost when it is full and no two neighbours share a value.
    Only right and bottom neighbours need checking; the scan covers every pair.
    """
    if get_empty_cells(grid):
        return False

    n = len(grid)
    for row in range(n):
        for col in range(n):
            value = grid[row][col].value
            if col < n - 1 and grid[row][col + 1].value == value:
                return False
            if row < n - 1 and grid[row + 1][col].value == value:
                return False
    return True

def determine_game_status(grid: Sequence[Sequence[Cell]], win_tile: int = WIN_TILE,
                          allow_win: bool = True) -> GameStatus:
    """
    Determines the progress state of the game based on the grid.
    Args:
        grid: The current game grid.
        win_tile (int): The tile value that signifies a win. Default is 2048.
        allow_win (bool): False once the player chose to keep playing after a win.
    Returns:
        GameStatus: PLAYING, WON or LOST.
    """
    if allow_win and has_won(collect_tiles(grid), win_tile):
        return GameStatus.WON
    if is_game_over(grid):
        return GameStatus.LOST
    return GameStatus.PLAYING
