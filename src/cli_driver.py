# cli_driver.py
# This file is intended to be run to play the 2048 game on the CLI

import logging

from core import GameStatus, grid_values
from controls import direction_from_key
from game_state import GameController, GameState
from settings import load_settings
from storage import JsonFileBestScoreStore

logger = logging.getLogger(__name__)

def main(input_fn=input, output_fn=print, controller: GameController = None):
    """
    Plays one session: W/A/S/D to move, R to restart, C to continue after a
    win, V to revive after a loss, Q to quit.
    """
    if controller is None:
        settings = load_settings()
        logging.basicConfig(level=settings.log_level)
        controller = GameController(
            store=JsonFileBestScoreStore(settings.best_score_path),
            win_tile=settings.win_tile,
        )

    # 1. Initialize game
    state = controller.initialize_game()
    display_game_state(state, output_fn)

    # 2. Game Loop
    while True:
        command = input_fn("Enter move (W/A/S/D), R to restart, C to continue, V to revive, Q to quit: ").strip()
        upper = command.upper()

        if upper == "Q":
            output_fn("Quitting game.")
            break

        if upper == "R":
            state = controller.restart(state)
        elif upper == "C":
            if state.status != GameStatus.WON:
                output_fn("You can only continue after winning.")
                continue
            state = controller.continue_game(state)
        elif upper == "V":
            if state.status != GameStatus.LOST:
                output_fn("You can only revive a lost game.")
                continue
            # Stand-in for the external reward confirmation.
            answer = input_fn("Revive by clearing up to three small tiles? (y/n): ").strip().lower()
            if answer != "y":
                output_fn("Revive declined.")
                continue
            state = controller.revive(state)
        else:
            chosen_direction = direction_from_key(command)
            if chosen_direction is None:
                output_fn("Invalid input. Use W, A, S, D, R, C, V or Q.")
                continue
            if state.status != GameStatus.PLAYING:
                output_fn("The game has ended. Restart, or continue/revive if offered.")
                continue

            # 3. Process the move
            new_state = controller.apply_move(state, chosen_direction)
            if new_state is state:
                output_fn("Move did not change the board. Try a different direction.")
                continue
            state = new_state

        display_game_state(state, output_fn)
        if state.status == GameStatus.WON:
            output_fn("Congratulations! You reached the winning tile! Press C to keep playing or R to restart.")
        elif state.status == GameStatus.LOST:
            output_fn("No more moves possible. Press V to revive or R to restart.")

    # 4. Session ended
    output_fn(f"\nFinal score: {state.score}  Best: {state.best_score}")
    return state


# --- Display Function (Example of external usage) ---
def display_game_state(state: GameState, output_fn=print):
    """Prints the grid, score, best score and game status to the console."""
    output_fn(f"\nScore: {state.score}  Best: {state.best_score}")
    status_message = {
        GameStatus.PLAYING: f"Status: {state.status.value}",
        GameStatus.WON: "YOU WON!",
        GameStatus.LOST: "GAME OVER!"
    }
    output_fn(status_message[state.status])

    for row in grid_values(state.grid):
        output_fn("\t".join(str(value) if value else "." for value in row))
    output_fn("-" * (state.size * 6))

if __name__ == "__main__":
    main()
