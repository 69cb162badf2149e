from __future__ import annotations

import csv
import io
import logging
import random
from typing import List, Optional


logger = logging.getLogger(__name__)


DEFAULT_LIMIT = 100
# Lichess puzzle CSV: PuzzleId,FEN,Moves,Rating,...
FEN_COLUMN = 1


class PuzzleLoader:
    """Pool of FEN strings extracted from a Lichess puzzle CSV.

    Notes:
    - The first row is a header and is always skipped.
    - Rows with fewer than two columns or an empty FEN column are skipped.
    - FENs are returned as opaque text; decoding happens in the engine.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._positions: List[str] = []
        self._rng = rng or random.Random()

    def load_from_file(self, path: str, limit: int = DEFAULT_LIMIT) -> List[str]:
        """Load up to ``limit`` FENs from the CSV at ``path``.

        Returns:
            List[str]: Loaded FENs; empty when the file cannot be read.
        """
        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError):
            logger.exception("could not extract positions from file %s", path)
            return []
        return self.load_from_string(content, limit)

    def load_from_string(self, csv_content: str, limit: int = DEFAULT_LIMIT) -> List[str]:
        self._positions = self._parse_csv(csv_content, limit)
        logger.info("loaded %d puzzle position(s)", len(self._positions))
        return self.positions()

    def _parse_csv(self, csv_content: str, limit: int) -> List[str]:
        positions: List[str] = []
        reader = csv.reader(io.StringIO(csv_content))
        try:
            next(reader, None)  # header
            for row in reader:
                if len(positions) >= limit:
                    break
                if len(row) <= FEN_COLUMN:
                    continue
                fen = row[FEN_COLUMN].strip()
                if fen:
                    positions.append(fen)
        except csv.Error:
            logger.exception("unable to parse the puzzle database for FEN strings")
            return []
        return positions

    def random_position(self, positions: Optional[List[str]] = None) -> str:
        """Return a uniformly chosen FEN, or ``""`` when the pool is empty."""
        pool = self._positions if positions is None else positions
        if not pool:
            logger.warning("no positions are currently loaded")
            return ""
        return self._rng.choice(pool)

    def count(self, positions: Optional[List[str]] = None) -> int:
        pool = self._positions if positions is None else positions
        if not pool:
            logger.warning("no positions are currently loaded")
        return len(pool)

    def positions(self) -> List[str]:
        return list(self._positions)

    def clear(self) -> None:
        self._positions = []


def load_puzzles(path: str, limit: int = DEFAULT_LIMIT) -> List[str]:
    """Convenience wrapper: load FENs from ``path`` without keeping a loader."""
    return PuzzleLoader().load_from_file(path, limit)
