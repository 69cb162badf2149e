from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from .bitboard import BLANK, CHAR_TO_PIECE, NUM_SQUARES, piece_char_at, set_bit


logger = logging.getLogger(__name__)


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
EMPTY_PLACEMENT = "8/8/8/8/8/8/8/8"

EMPTY_DIGITS = "12345678"


@dataclass
class DecodeResult:
    """Outcome of decoding a FEN piece-placement field.

    Attributes:
        bb (List[int]): Twelve piece bitboards (all zero when strict decoding fails).
        squares (int): Final cursor position, i.e. number of squares described.
        ignored (List[str]): Characters skipped because they are not part of
            the placement alphabet.
        overflow (int): Pieces dropped because the cursor was past square 63.
        errors (List[str]): Validation problems; only populated in strict mode.
    """

    bb: List[int]
    squares: int = 0
    ignored: List[str] = field(default_factory=list)
    overflow: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def decode_placement(fen: str, *, strict: bool = False) -> DecodeResult:
    """Decode the piece-placement field of a FEN string into bitboards.

    Args:
        fen (str): Full FEN string or just its placement field. Anything after
            the first space is ignored.
        strict (bool): When true, reject unknown characters, a rank count
            other than 8, ranks not describing exactly 8 squares, and pieces
            beyond square 63.

    Returns:
        DecodeResult: Decoded bitboards plus diagnostics. Never raises for
            malformed text; strict failures are reported via ``errors``.

    Notes:
        The cursor advances monotonically across the whole field, so ``/`` has
        no effect on placement. Pieces landing past square 63 are dropped and
        counted in ``overflow`` rather than shifted out of the 64-bit range.
    """
    bb = [0] * 12
    cursor = 0
    ignored: List[str] = []
    overflow = 0
    rank_sizes = [0]

    for ch in fen or "":
        # Remaining fields (side to move, castling, ep, counters) are discarded
        if ch == " ":
            break
        if ch == "/":
            rank_sizes.append(0)
            continue
        if ch in EMPTY_DIGITS:
            n = int(ch)
            cursor += n
            rank_sizes[-1] += n
            continue
        p = CHAR_TO_PIECE.get(ch)
        if p is None:
            ignored.append(ch)
            continue
        if cursor < NUM_SQUARES:
            bb[p] = set_bit(bb[p], cursor)
        else:
            overflow += 1
        cursor += 1
        rank_sizes[-1] += 1

    if ignored:
        logger.debug("ignored FEN characters %r", "".join(ignored))
    if overflow:
        logger.debug("dropped %d piece(s) past the last square", overflow)

    result = DecodeResult(bb=bb, squares=cursor, ignored=ignored, overflow=overflow)
    if strict:
        result.errors = _validate(result, rank_sizes)
        if result.errors:
            result.bb = [0] * 12
    return result


def _validate(result: DecodeResult, rank_sizes: List[int]) -> List[str]:
    errors: List[str] = []
    if result.ignored:
        errors.append(f"invalid characters in FEN: {''.join(result.ignored)!r}")
    if len(rank_sizes) != 8:
        errors.append(f"FEN board must have 8 ranks, got {len(rank_sizes)}")
    for i, size in enumerate(rank_sizes):
        if size != 8:
            errors.append(f"rank {8 - i} describes {size} squares, expected 8")
    if result.overflow:
        errors.append(f"{result.overflow} piece(s) placed past the last square")
    return errors


def encode_placement(bb: List[int]) -> str:
    """Serialize twelve bitboards into a FEN piece-placement field.

    Args:
        bb (List[int]): Piece bitboards indexed by piece constant.

    Returns:
        str: Placement field such as ``"8/8/8/8/8/8/8/8"``.
    """
    ranks: List[str] = []
    for row in range(8):
        run = 0
        out: List[str] = []
        for col in range(8):
            ch = piece_char_at(bb, row * 8 + col)
            if ch == BLANK:
                run += 1
            else:
                if run > 0:
                    out.append(str(run))
                    run = 0
                out.append(ch)
        if run > 0:
            out.append(str(run))
        ranks.append("".join(out))
    return "/".join(ranks)
