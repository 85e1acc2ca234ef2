# game_state.py
# Immutable game snapshots and the controller that moves between them.

from dataclasses import dataclass, replace
from typing import Optional, Sequence, Tuple, Union
import logging
import random

import core
from core import Cell, Direction, GameStatus, Tile
from storage import BestScoreStore, InMemoryBestScoreStore

logger = logging.getLogger(__name__)

REVIVE_MAX_VALUE = 8
REVIVE_REMOVE_COUNT = 3

FrozenGrid = Tuple[Tuple[Cell, ...], ...]

def freeze_grid(grid: Sequence[Sequence[Cell]]) -> FrozenGrid:
    return tuple(tuple(row) for row in grid)

@dataclass(frozen=True)
class GameState:
    """
    One snapshot of a game. Every accepted transition produces a new instance;
    an existing one is never modified.
    """
    grid: FrozenGrid
    score: int = 0
    best_score: int = 0
    status: GameStatus = GameStatus.PLAYING
    keep_playing: bool = False

    @property
    def tiles(self) -> Tuple[Tile, ...]:
        """Live tiles, row-major, derived from the grid."""
        return tuple(core.collect_tiles(self.grid))

    @property
    def size(self) -> int:
        return len(self.grid)

class GameController:
    """
    Applies moves, revives and restarts to GameState snapshots.

    The controller carries the collaborators a transition needs: the
    best-score store, the random source used for spawns and the tile id
    factory. It keeps no game state of its own; callers pass a snapshot in
    and get a new one back, one transition at a time.
    """

    def __init__(self, store: Optional[BestScoreStore] = None, rng=None,
                 id_factory: core.IdFactory = core.new_tile_id,
                 win_tile: int = core.WIN_TILE, size: int = core.GRID_SIZE):
        self.store = store if store is not None else InMemoryBestScoreStore()
        self.rng = rng if rng is not None else random
        self.id_factory = id_factory
        self.win_tile = win_tile
        self.size = size

    def _read_best_score(self) -> int:
        try:
            return max(int(self.store.read()), 0)
        except Exception as e:
            logger.warning("Best score store read failed, using 0: %s", e)
            return 0

    def _write_best_score(self, score: int) -> None:
        try:
            self.store.write(score)
        except Exception as e:
            logger.warning("Best score store write failed: %s", e)

    def initialize_game(self, best_score: int = 0) -> GameState:
        """
        Builds an empty grid with two spawned tiles, score 0, status PLAYING.
        The best score is the persisted one (or best_score, if higher).
        """
        grid = core.create_empty_grid(self.size)
        core.spawn_random_tile(grid, self.rng, self.id_factory)
        core.spawn_random_tile(grid, self.rng, self.id_factory)
        return GameState(
            grid=freeze_grid(grid),
            score=0,
            best_score=max(self._read_best_score(), best_score),
            status=GameStatus.PLAYING,
        )

    def restart(self, state: GameState) -> GameState:
        """Starts over, keeping the best score seen in this session."""
        return self.initialize_game(best_score=state.best_score)

    def apply_move(self, state: GameState, direction: Union[Direction, str]) -> GameState:
        """
        Applies one player move.

        Returns the same state object when the game is not in progress or when
        the move changes nothing. Otherwise slides and merges, spawns one tile,
        updates score and best score, and evaluates the terminal condition.

        Raises:
            ValueError: If direction is not one of up, down, left, right.
        """
        direction = Direction(direction)
        if state.status != GameStatus.PLAYING:
            return state

        grid = core.clear_transient_flags(state.grid)
        moved_grid, score_gained, moved = core.process_move(grid, direction, self.id_factory)
        if not moved:
            return state

        core.spawn_random_tile(moved_grid, self.rng, self.id_factory)

        new_score = state.score + score_gained
        best_score = max(state.best_score, new_score)
        if best_score > state.best_score:
            self._write_best_score(best_score)

        status = core.determine_game_status(moved_grid, self.win_tile,
                                            allow_win=not state.keep_playing)
        if status != GameStatus.PLAYING:
            logger.info("Game %s with score %d", status.value, new_score)

        return replace(
            state,
            grid=freeze_grid(moved_grid),
            score=new_score,
            best_score=best_score,
            status=status,
        )

    def continue_game(self, state: GameState) -> GameState:
        """Lets the player keep going after a win; a no-op in any other status."""
        if state.status != GameStatus.WON:
            return state
        return replace(state, status=GameStatus.PLAYING, keep_playing=True)

    def revive(self, state: GameState) -> GameState:
        """
        Reopens a lost game by removing up to three of the lowest-valued tiles
        (value 8 or less). Score is untouched and no tile is spawned.
        A no-op unless the game is lost.
        """
        if state.status != GameStatus.LOST:
            return state

        grid = core.clear_transient_flags(state.grid)
        candidates = [tile for tile in core.collect_tiles(grid) if tile.value <= REVIVE_MAX_VALUE]
        candidates.sort(key=lambda tile: tile.value)
        removed = candidates[:REVIVE_REMOVE_COUNT]
        for tile in removed:
            row, col = tile.position
            grid[row][col] = None

        if core.is_game_over(grid):
            logger.warning("Revive found no tile of value <= %d to remove; the board is still stuck",
                           REVIVE_MAX_VALUE)
        else:
            logger.info("Revived game by removing %d tile(s)", len(removed))

        return replace(state, grid=freeze_grid(grid), status=GameStatus.PLAYING)
