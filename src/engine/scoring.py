from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .bitboard import NUM_SQUARES, check_square
from .position import Position


@dataclass(frozen=True)
class SquareDiff:
    """A square where the reproduced position disagrees with the target."""

    square: int
    name: str
    expected: str
    actual: str


@dataclass
class ScoreReport:
    """Square-by-square comparison of a reproduced position against a target.

    Attributes:
        correct (int): Squares where both positions agree, blanks included.
        total (int): Number of squares compared (always 64).
        mismatches (List[SquareDiff]): Disagreeing squares in index order.
    """

    correct: int
    total: int = NUM_SQUARES
    mismatches: List[SquareDiff] = field(default_factory=list)

    @property
    def solved(self) -> bool:
        return self.correct == self.total

    @property
    def accuracy(self) -> float:
        return self.correct / self.total


def square_name(sq: int) -> str:
    """Algebraic name of a square in FEN scan order (0 -> ``"a8"``, 63 -> ``"h1"``)."""
    check_square(sq)
    return chr(ord("a") + sq % 8) + str(8 - sq // 8)


def square_index(name: str) -> int:
    """Inverse of :func:`square_name`.

    Raises:
        ValueError: If ``name`` is not a square such as ``"e4"``.
    """
    if len(name) != 2 or name[0] < "a" or name[0] > "h" or name[1] < "1" or name[1] > "8":
        raise ValueError(f"invalid square: {name!r}")
    return (8 - int(name[1])) * 8 + (ord(name[0]) - ord("a"))


def score_match(user: Position, target: Position) -> int:
    """Count squares on which ``user`` agrees with ``target``.

    An empty square matching an empty square counts as correct, so an empty
    attempt against a sparse target still scores the blank squares.

    Returns:
        int: Score in ``0..64``; 64 exactly when the positions are equal.
    """
    if user.equals(target):
        return NUM_SQUARES
    correct = 0
    for sq in range(NUM_SQUARES):
        if user.piece_at(sq) == target.piece_at(sq):
            correct += 1
    return correct


def compare(user: Position, target: Position) -> ScoreReport:
    """Like :func:`score_match` but also lists each mismatching square."""
    if user.equals(target):
        return ScoreReport(correct=NUM_SQUARES)
    report = ScoreReport(correct=0)
    for sq in range(NUM_SQUARES):
        expected = target.piece_at(sq)
        actual = user.piece_at(sq)
        if expected == actual:
            report.correct += 1
        else:
            report.mismatches.append(SquareDiff(sq, square_name(sq), expected, actual))
    return report
