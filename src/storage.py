# storage.py
# Best-score persistence. The only thing a game ever persists is one integer.

import json
import logging
import os
from typing import Dict, Protocol

logger = logging.getLogger(__name__)

BEST_SCORE_KEY = "2048-best-score"

class BestScoreStore(Protocol):
    """Port the game controller reads the best score from and writes it to."""

    def read(self) -> int:
        ...

    def write(self, score: int) -> None:
        ...

class InMemoryBestScoreStore:
    """Keeps the best score for the lifetime of the process only."""

    def __init__(self, initial: int = 0):
        self._score = initial

    def read(self) -> int:
        return self._score

    def write(self, score: int) -> None:
        self._score = score

class JsonFileBestScoreStore:
    """
    Stores the best score in a small JSON object on disk, keyed by BEST_SCORE_KEY.

    Reading and writing are best effort: any failure is logged and the game
    carries on with 0 (on read) or the in-memory value (on write).
    """

    def __init__(self, path: str, key: str = BEST_SCORE_KEY):
        self.path = os.path.expanduser(path)
        self.key = key

    def _load(self) -> Dict[str, object]:
        with open(self.path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object in {self.path}")
        return data

    def read(self) -> int:
        if not os.path.exists(self.path):
            return 0
        try:
            value = int(self._load().get(self.key, 0))
        except (OSError, ValueError, TypeError) as e:
            logger.warning("Could not read best score from %s: %s", self.path, e)
            return 0
        return max(value, 0)

    def write(self, score: int) -> None:
        try:
            data = self._load() if os.path.exists(self.path) else {}
        except (OSError, ValueError) as e:
            logger.warning("Discarding unreadable best score file %s: %s", self.path, e)
            data = {}
        data[self.key] = int(score)

        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            tmp_path = self.path + ".tmp"
            with open(tmp_path, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.warning("Could not write best score to %s: %s", self.path, e)
