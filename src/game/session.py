from __future__ import annotations

import logging
import math
import time
from enum import Enum
from typing import Callable, Optional

from ..engine.bitboard import BLANK, CHAR_TO_PIECE
from ..engine.position import Position
from ..engine.scoring import ScoreReport, compare
from ..puzzles.loader import DEFAULT_LIMIT, PuzzleLoader


logger = logging.getLogger(__name__)


Clock = Callable[[], float]

DEFAULT_MEMORIZE_SECONDS = 5


class Phase(str, Enum):
    LOADING = "LOADING"
    MENU = "MENU"
    MEMORIZING = "MEMORIZING"
    PLAYING = "PLAYING"


class GameError(RuntimeError):
    """Raised when the game cannot leave the loading phase."""


class MemoryGame:
    """One player's memorize-then-reproduce session.

    Flow: LOADING -> MENU once puzzles are available, then MEMORIZING for
    ``memorize_seconds`` with the solution visible, then PLAYING where the user
    rebuilds the position and checks it.

    Notes:
    - Board edits are copy-then-replace: the user board is cloned, the clone is
      mutated, and the reference is swapped.
    - Any edit invalidates a previously computed score.
    - Actions outside their phase are no-ops and return ``False``/``None``.
    """

    def __init__(
        self,
        loader: Optional[PuzzleLoader] = None,
        *,
        memorize_seconds: int = DEFAULT_MEMORIZE_SECONDS,
        strict_fen: bool = False,
        clock: Clock = time.monotonic,
    ) -> None:
        self.loader = loader or PuzzleLoader()
        self.memorize_seconds = memorize_seconds
        self.strict_fen = strict_fen
        self._clock = clock
        self.phase = Phase.LOADING if self.loader.count() == 0 else Phase.MENU
        self.solution = Position()
        self.user_board = Position()
        self.selected_piece = ""
        self.score: Optional[int] = None
        self.report: Optional[ScoreReport] = None
        self.fen: Optional[str] = None
        self._memorize_started: Optional[float] = None

    def load(self, path: str, limit: int = DEFAULT_LIMIT) -> int:
        """Load puzzles from a CSV file and move to the menu.

        Raises:
            GameError: If no puzzle could be loaded.
        """
        positions = self.loader.load_from_file(path, limit)
        if not positions:
            raise GameError(f"failed to load puzzles from {path}")
        self._set_phase(Phase.MENU)
        return len(positions)

    def start_new_puzzle(self) -> bool:
        fen = self.loader.random_position()
        if not fen:
            return False
        return self.start_from_fen(fen)

    def start_from_fen(self, fen: str) -> bool:
        """Begin memorizing ``fen``. Returns ``False`` when strict decoding rejects it."""
        solution = Position()
        result = solution.populate_from_fen(fen, strict=self.strict_fen)
        if not result.ok:
            logger.warning("rejected puzzle FEN %r: %s", fen, "; ".join(result.errors))
            return False
        self.fen = fen
        self.solution = solution
        self.user_board = Position()
        self.selected_piece = ""
        self._reset_score()
        self._memorize_started = self._clock()
        self._set_phase(Phase.MEMORIZING)
        return True

    def time_left(self) -> int:
        """Whole seconds of memorization left (0 outside the memorizing phase)."""
        if self.phase is not Phase.MEMORIZING or self._memorize_started is None:
            return 0
        elapsed = self._clock() - self._memorize_started
        return max(0, math.ceil(self.memorize_seconds - elapsed))

    def refresh(self) -> Phase:
        """Advance MEMORIZING to PLAYING once the countdown has run out."""
        if self.phase is Phase.MEMORIZING and self.time_left() == 0:
            self._set_phase(Phase.PLAYING)
        return self.phase

    @property
    def solution_visible(self) -> bool:
        return self.refresh() is Phase.MEMORIZING

    def select_piece(self, piece: str) -> bool:
        if piece not in CHAR_TO_PIECE and piece not in (BLANK, ""):
            return False
        self.selected_piece = piece
        return True

    def click_square(self, sq: int) -> bool:
        """Place the selected piece on ``sq`` (a blank selection erases)."""
        if self.refresh() is not Phase.PLAYING or not self.selected_piece:
            return False
        board = self.user_board.clone()
        board.set_piece_at_square(sq, self.selected_piece)
        self.user_board = board
        self._reset_score()
        return True

    def place(self, sq: int, piece: str) -> bool:
        if self.refresh() is not Phase.PLAYING:
            return False
        board = self.user_board.clone()
        board.set_piece_at_square(sq, piece, strict=True)
        self.user_board = board
        self._reset_score()
        return True

    def erase_square(self, sq: int) -> bool:
        if self.refresh() is not Phase.PLAYING:
            return False
        board = self.user_board.clone()
        board.set_piece_at_square(sq, BLANK)
        self.user_board = board
        self._reset_score()
        return True

    def clear_board(self) -> bool:
        if self.refresh() is not Phase.PLAYING:
            return False
        self.user_board = Position()
        self._reset_score()
        return True

    def check_solution(self) -> Optional[int]:
        if self.refresh() is not Phase.PLAYING:
            return None
        self.report = compare(self.user_board, self.solution)
        self.score = self.report.correct
        logger.debug("checked solution: %d/%d", self.score, self.report.total)
        return self.score

    def handle_key(self, key: str) -> bool:
        """Keyboard shortcuts while playing: space checks, ``c`` clears, ``n`` starts anew."""
        if self.refresh() is not Phase.PLAYING:
            return False
        if key in (" ", "Space"):
            self.check_solution()
            return True
        if key in ("c", "C"):
            return self.clear_board()
        if key in ("n", "N"):
            return self.start_new_puzzle()
        return False

    def _reset_score(self) -> None:
        self.score = None
        self.report = None

    def _set_phase(self, phase: Phase) -> None:
        if phase is not self.phase:
            logger.debug("phase %s -> %s", self.phase.value, phase.value)
        self.phase = phase
