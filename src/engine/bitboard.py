from __future__ import annotations

from typing import Dict, List, Tuple


MASK64 = 0xFFFFFFFFFFFFFFFF
NUM_SQUARES = 64

# Empty-square marker returned by lookups and accepted by writes
BLANK = " "

# Piece indices for bitboards
WP, WN, WB, WR, WQ, WK, BP, BN, BB, BR, BQ, BK = range(12)
PIECE_TO_CHAR: Dict[int, str] = {
    WP: "P",
    WN: "N",
    WB: "B",
    WR: "R",
    WQ: "Q",
    WK: "K",
    BP: "p",
    BN: "n",
    BB: "b",
    BR: "r",
    BQ: "q",
    BK: "k",
}
CHAR_TO_PIECE: Dict[str, int] = {v: k for k, v in PIECE_TO_CHAR.items()}

# Lookup order for square queries: black before white, rook-knight-bishop-queen-king-pawn.
SCAN_ORDER: Tuple[int, ...] = (BR, BN, BB, BQ, BK, BP, WR, WN, WB, WQ, WK, WP)


class SquareIndexError(ValueError):
    """Raised when a square index falls outside 0..63."""


def check_square(sq: int) -> int:
    """Validate a square index.

    Args:
        sq (int): Candidate square index.

    Returns:
        int: ``sq`` unchanged when it lies in ``0..63``.

    Raises:
        SquareIndexError: If ``sq`` is not an integer in range.
    """
    if isinstance(sq, bool) or not isinstance(sq, int) or sq < 0 or sq >= NUM_SQUARES:
        raise SquareIndexError(f"invalid square index: {sq!r}")
    return sq


def set_bit(bb: int, sq: int) -> int:
    return bb | (1 << sq)


def is_set(bb: int, sq: int) -> bool:
    return (bb >> sq) & 1 == 1


def clear_bit(bb: int, sq: int) -> int:
    return bb & ~(1 << sq) & MASK64


def popcount(bb: int) -> int:
    return bin(bb & MASK64).count("1")


def iter_squares(bb: int):
    """Yield the indices of set bits from least to most significant."""
    bb &= MASK64
    while bb:
        lsb = bb & -bb
        yield lsb.bit_length() - 1
        bb ^= lsb


def piece_char_at(bb: List[int], sq: int) -> str:
    """Return the letter of the first bitboard in ``SCAN_ORDER`` holding ``sq``.

    Returns ``BLANK`` when no bitboard has the square set. Callers validate
    ``sq`` beforehand.
    """
    for idx in SCAN_ORDER:
        if is_set(bb[idx], sq):
            return PIECE_TO_CHAR[idx]
    return BLANK
