import logging
from typing import List, Optional, Tuple

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel, Field
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

import core
from game_state import GameController, GameState, freeze_grid
from settings import load_settings
from storage import JsonFileBestScoreStore

settings = load_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

# Initialize the rate limiter
limiter = Limiter(key_func=get_remote_address)
app = FastAPI(
    title="2048 Game API",
    description="A stateless API for playing the 2048 game. "\
                "The client keeps the game state and sends it back with every request; "\
                "the server only remembers the best score.",
    version="1.0.0"
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

_controller = GameController(
    store=JsonFileBestScoreStore(settings.best_score_path),
    win_tile=settings.win_tile,
)

def get_controller() -> GameController:
    return _controller

# --- Pydantic Models for API requests and responses ---

class TileData(BaseModel):
    """A single tile as seen by the client."""
    id: str = Field(..., min_length=1, description="Identifier, stable until the tile merges or is removed.")
    value: int = Field(..., ge=2, description="Tile value, a power of two.")
    position: Tuple[int, int] = Field(..., description="(row, col) of the tile's cell.")
    is_new: bool = Field(default=False, description="True only for the tile spawned this turn.")
    merged_from: Optional[Tuple[str, str]] = Field(
        default=None,
        description="Ids of the two tiles merged into this one this turn."
    )

class GameStateData(BaseModel):
    """Represents the complete state of a game instance."""
    grid: List[List[Optional[TileData]]] = Field(..., description="The 4 x 4 grid; null marks an empty cell.")
    score: int = Field(..., ge=0, description="Current score of the game.")
    best_score: int = Field(..., ge=0, description="Best score ever reached.")
    status: core.GameStatus = Field(..., description="playing, won or lost.")
    keep_playing: bool = Field(default=False, description="True once the player continued after a win.")
    tiles: List[TileData] = Field(
        default_factory=list,
        description="Live tiles, row-major. Derived from grid; ignored on input."
    )

class StateRequestData(BaseModel):
    """Body for transitions that need nothing but the current state."""
    state: GameStateData

class MoveRequestData(BaseModel):
    """Data required to make a move."""
    state: GameStateData
    direction: core.Direction = Field(..., description="Direction of the move (up, down, left, right).")

class MoveResponseData(GameStateData):
    """Response after a move, including the new game state and move effectiveness."""
    move_was_effective: bool = Field(
        ...,
        description="True if the move resulted in a change to the grid, False otherwise."
    )
    message: Optional[str] = Field(
        default=None,
        description="An optional message, e.g., if a move was rejected or the game ended."
    )

# --- Conversion between wire models and game snapshots ---

def _to_tile(data: TileData) -> core.Tile:
    return core.Tile(
        id=data.id,
        value=data.value,
        position=data.position,
        is_new=data.is_new,
        merged_from=data.merged_from,
    )

def _to_tile_data(tile: core.Tile) -> TileData:
    return TileData(
        id=tile.id,
        value=tile.value,
        position=tile.position,
        is_new=tile.is_new,
        merged_from=tile.merged_from,
    )

def state_from_data(data: GameStateData) -> GameState:
    """
    Rebuilds a GameState from client data.
    Raises:
        ValueError: If the grid is not 4 x 4, a tile sits in a cell other than
                    its recorded position, a value is not a power of two,
                    or two tiles share an id.
    """
    size = core.get_board_size(data.grid)
    if size != core.GRID_SIZE:
        raise ValueError(f"Grid must be {core.GRID_SIZE} x {core.GRID_SIZE}, got {size} x {size}.")

    seen_ids = set()
    grid = core.create_empty_grid(size)
    for row in range(size):
        for col in range(size):
            cell = data.grid[row][col]
            if cell is None:
                continue
            if tuple(cell.position) != (row, col):
                raise ValueError(f"Tile {cell.id} records position {cell.position} but sits at {(row, col)}.")
            if cell.value & (cell.value - 1):
                raise ValueError(f"Tile {cell.id} has value {cell.value}, which is not a power of two.")
            if cell.id in seen_ids:
                raise ValueError(f"Tile id {cell.id} is used more than once.")
            seen_ids.add(cell.id)
            grid[row][col] = _to_tile(cell)

    return GameState(
        grid=freeze_grid(grid),
        score=data.score,
        best_score=data.best_score,
        status=data.status,
        keep_playing=data.keep_playing,
    )

def state_to_data(state: GameState) -> GameStateData:
    return GameStateData(**_state_fields(state))

def _state_fields(state: GameState) -> dict:
    return dict(
        grid=[[_to_tile_data(tile) if tile is not None else None for tile in row] for row in state.grid],
        score=state.score,
        best_score=state.best_score,
        status=state.status,
        keep_playing=state.keep_playing,
        tiles=[_to_tile_data(tile) for tile in state.tiles],
    )

def _run_transition(name: str, transition, request_state: GameStateData) -> GameStateData:
    try:
        new_state = transition(state_from_data(request_state))
        return state_to_data(new_state)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid game state: {str(e)}")
    except Exception as e:
        logger.error(f"Unexpected error in /game/{name}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"An unexpected server error occurred: {str(e)}")

# --- API Endpoints ---

@app.post("/game/new", response_model=GameStateData, summary="Start a New 2048 Game")
@limiter.limit(settings.rate_limit)
async def start_new_game(request: Request, controller: GameController = Depends(get_controller)):
    """
    Starts a new game: a 4 x 4 grid with two random tiles, score 0,
    status playing and the persisted best score.
    """
    try:
        return state_to_data(controller.initialize_game())
    except Exception as e:
        logger.error(f"Unexpected error in /game/new: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"An unexpected error occurred during game creation: {str(e)}")


@app.post("/game/move", response_model=MoveResponseData, summary="Make a Move in the Game")
@limiter.limit(settings.rate_limit)
async def make_move(request: Request, request_data: MoveRequestData,
                    controller: GameController = Depends(get_controller)):
    """
    Processes a player's move in the game.

    The API will:
    1. Reject the move (returning the state unchanged) if the game is over or nothing would slide.
    2. Otherwise slide and merge, then add a new random tile (2 or 4).
    3. Determine the new game status (playing, won, lost).

    Returns the updated game state, whether the move was effective, and an optional message.
    """
    try:
        current_state = state_from_data(request_data.state)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid game state in request: {str(e)}")

    try:
        new_state = controller.apply_move(current_state, request_data.direction)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Error processing move: {str(e)}")
    except Exception as e:
        logger.error(f"Unexpected error in /game/move: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"An unexpected server error occurred while processing the move: {str(e)}")

    move_was_effective = new_state is not current_state
    message_for_client: Optional[str] = None
    if current_state.status != core.GameStatus.PLAYING:
        message_for_client = "The game has ended; moves are no longer accepted."
    elif not move_was_effective:
        message_for_client = "Move was not effective; grid unchanged."
    elif new_state.status == core.GameStatus.WON:
        message_for_client = "Congratulations! You won!"
    elif new_state.status == core.GameStatus.LOST:
        message_for_client = "Game Over. No more valid moves."

    return MoveResponseData(
        **_state_fields(new_state),
        move_was_effective=move_was_effective,
        message=message_for_client,
    )


@app.post("/game/revive", response_model=GameStateData, summary="Revive a Lost Game")
@limiter.limit(settings.rate_limit)
async def revive_game(request: Request, request_data: StateRequestData,
                      controller: GameController = Depends(get_controller)):
    """
    Clears up to three low-value tiles from a lost game and sets it back to playing.
    Call this once the external reward flow has completed. No-op for games that are not lost.
    """
    return _run_transition("revive", controller.revive, request_data.state)


@app.post("/game/continue", response_model=GameStateData, summary="Keep Playing After a Win")
@limiter.limit(settings.rate_limit)
async def continue_game(request: Request, request_data: StateRequestData,
                        controller: GameController = Depends(get_controller)):
    """Sets a won game back to playing; the win is not announced again."""
    return _run_transition("continue", controller.continue_game, request_data.state)


@app.post("/game/restart", response_model=GameStateData, summary="Restart, Keeping the Best Score")
@limiter.limit(settings.rate_limit)
async def restart_game(request: Request, request_data: StateRequestData,
                       controller: GameController = Depends(get_controller)):
    """Starts a fresh game, carrying over the best score of the given one."""
    return _run_transition("restart", controller.restart, request_data.state)
