from __future__ import annotations

import threading
import uuid
from typing import Dict, Optional

from ...game.session import MemoryGame


class InMemorySessionStore:
    """Thread-safe in-memory store of memory-game sessions.

    Responsibilities:
    - Register new sessions under unique `game_id`s
    - Retrieve existing sessions by `game_id`
    - Delete sessions
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._games: Dict[str, MemoryGame] = {}

    def create(self, game: MemoryGame) -> str:
        """Store `game` and return its new `game_id`."""
        gid = str(uuid.uuid4())
        with self._lock:
            self._games[gid] = game
        return gid

    def get(self, game_id: str) -> Optional[MemoryGame]:
        with self._lock:
            return self._games.get(game_id)

    def delete(self, game_id: str) -> bool:
        with self._lock:
            return self._games.pop(game_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._games)
