from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from .bitboard import (
    BLANK,
    CHAR_TO_PIECE,
    PIECE_TO_CHAR,
    check_square,
    clear_bit,
    iter_squares,
    piece_char_at,
    popcount,
    set_bit,
)
from .fen import DecodeResult, decode_placement, encode_placement


class UnknownPieceError(ValueError):
    """Raised by strict writes when the piece code is not a FEN letter."""


@dataclass(eq=False)
class Position:
    """Piece placement held as twelve bitboards.

    Notes:
    - Squares are 0..63 in FEN scan order (a8=0 .. h8=7 .. a1=56 .. h1=63).
    - Only placement is tracked; side to move, castling, ep and clocks are not.
    - Every square write clears the square on all twelve bitboards first, so
      at most one piece occupies a square when mutated through this API.
    """

    # 12 piece bitboards, indexed by the constants in .bitboard
    bb: List[int] = field(default_factory=lambda: [0] * 12)

    @classmethod
    def from_fen(cls, fen: str, *, strict: bool = False) -> "Position":
        """Create a position from a FEN string (only the placement is read).

        Args:
            fen (str): FEN string or placement field.
            strict (bool): Validate the placement; an invalid one yields an
                empty position.

        Returns:
            Position: New position. Inspect :meth:`populate_from_fen` directly
                when the decode diagnostics are needed.
        """
        pos = cls()
        pos.populate_from_fen(fen, strict=strict)
        return pos

    def populate_from_fen(self, fen: str, *, strict: bool = False) -> DecodeResult:
        """Reset the board and load the placement field of ``fen``.

        Returns:
            DecodeResult: Decode diagnostics; ``ok`` is false only for strict
                validation failures, in which case the board is left empty.
        """
        self.clear_all()
        result = decode_placement(fen, strict=strict)
        self.bb = list(result.bb)
        return result

    def clear_all(self) -> None:
        self.bb = [0] * 12

    def clear_square(self, sq: int) -> None:
        check_square(sq)
        self.bb = [clear_bit(b, sq) for b in self.bb]

    def piece_at(self, sq: int) -> str:
        """Return the piece letter on ``sq`` or ``BLANK`` when empty.

        Raises:
            SquareIndexError: If ``sq`` is outside 0..63.
        """
        return piece_char_at(self.bb, check_square(sq))

    def set_piece_at_square(self, sq: int, piece: str, *, strict: bool = False) -> bool:
        """Place ``piece`` on ``sq``, replacing whatever was there.

        Args:
            sq (int): Target square index.
            piece (str): One of ``PNBRQKpnbrqk``; ``BLANK`` or ``""`` erases.
            strict (bool): Raise on unrecognized codes instead of erasing.

        Returns:
            bool: ``False`` when an unrecognized code caused a plain erase,
                ``True`` otherwise.

        Raises:
            SquareIndexError: If ``sq`` is outside 0..63.
            UnknownPieceError: In strict mode, for an unrecognized code. The
                square is left untouched.
        """
        check_square(sq)
        known = piece in CHAR_TO_PIECE or piece in (BLANK, "")
        if strict and not known:
            raise UnknownPieceError(f"invalid piece code: {piece!r}")
        self.clear_square(sq)
        p = CHAR_TO_PIECE.get(piece)
        if p is not None:
            self.bb[p] = set_bit(self.bb[p], sq)
        return known

    def board_as_2d(self) -> List[List[str]]:
        """Return an 8x8 grid of piece letters; row 0 is rank 8, column 0 is file a."""
        return [[piece_char_at(self.bb, row * 8 + col) for col in range(8)] for row in range(8)]

    def pieces(self) -> List[Tuple[int, str]]:
        """Return ``(square, letter)`` pairs for every occupied square, sorted by square."""
        out: List[Tuple[int, str]] = []
        for idx, b in enumerate(self.bb):
            for sq in iter_squares(b):
                out.append((sq, PIECE_TO_CHAR[idx]))
        out.sort()
        return out

    def piece_count(self) -> int:
        occ = 0
        for b in self.bb:
            occ |= b
        return popcount(occ)

    def to_fen(self) -> str:
        return encode_placement(self.bb)

    def equals(self, other: "Position") -> bool:
        return self.bb == other.bb

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Position):
            return NotImplemented
        return self.equals(other)

    def clone(self) -> "Position":
        return Position(bb=list(self.bb))

    def __str__(self) -> str:
        rows = []
        for row in self.board_as_2d():
            rows.append(" ".join("." if ch == BLANK else ch for ch in row))
        return "\n".join(rows)
