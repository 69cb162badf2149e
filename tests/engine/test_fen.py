from __future__ import annotations

import pytest

from src.engine.bitboard import BK, BP, BR, WK, WP, WR, is_set
from src.engine.fen import (
    EMPTY_PLACEMENT,
    STARTPOS_FEN,
    decode_placement,
    encode_placement,
)


START_PLACEMENT = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"


def test_startpos_squares() -> None:
    res = decode_placement(STARTPOS_FEN)
    assert res.ok
    assert res.squares == 64
    assert res.ignored == []
    assert is_set(res.bb[BR], 0) and is_set(res.bb[BR], 7)
    assert is_set(res.bb[BK], 4)
    assert is_set(res.bb[WR], 56) and is_set(res.bb[WR], 63)
    assert is_set(res.bb[WK], 60)
    assert res.bb[BP] == 0xFF << 8
    assert res.bb[WP] == 0xFF << 48


def test_trailing_fields_are_ignored() -> None:
    full = decode_placement(STARTPOS_FEN)
    bare = decode_placement(START_PLACEMENT)
    assert full.bb == bare.bb
    # Garbage after the first space never reaches the board
    odd = decode_placement(START_PLACEMENT + " QQQQ zzz")
    assert odd.bb == bare.bb
    assert odd.ignored == []


@pytest.mark.parametrize("fen", ["", EMPTY_PLACEMENT, " rnbqkbnr/8/8/8/8/8/8/8"])
def test_empty_or_degenerate_fen_gives_empty_board(fen: str) -> None:
    res = decode_placement(fen)
    assert res.ok
    assert res.bb == [0] * 12


def test_slash_has_no_effect_on_cursor() -> None:
    # Rank separators are implied by the monotonically advancing cursor
    with_slashes = decode_placement("k7/8/8/8/8/8/8/7K")
    without = decode_placement("k7888888" + "7K")
    assert with_slashes.bb == without.bb


def test_unknown_characters_are_skipped_without_advancing() -> None:
    res = decode_placement("kx7/8/8/8/8/8/8/7K")
    assert res.ok
    assert res.ignored == ["x"]
    assert is_set(res.bb[BK], 0)
    assert is_set(res.bb[WK], 63)


@pytest.mark.parametrize("digit", ["0", "9"])
def test_digits_outside_one_to_eight_are_ignored(digit: str) -> None:
    res = decode_placement(digit + "K")
    assert res.ignored == [digit]
    assert is_set(res.bb[WK], 0)


def test_overflow_pieces_are_dropped_not_shifted() -> None:
    res = decode_placement(EMPTY_PLACEMENT + "/PP")
    assert res.ok
    assert res.overflow == 2
    assert res.squares == 66
    assert res.bb == [0] * 12
    assert all(b < (1 << 64) for b in res.bb)


def test_short_placement_is_tolerated_leniently() -> None:
    res = decode_placement("K")
    assert res.ok
    assert res.squares == 1
    assert is_set(res.bb[WK], 0)


@pytest.mark.parametrize(
    "fen",
    [
        "",  # empty
        "8/8/8/8/8/8/8",  # not enough ranks
        "8/8/8/8/8/8/8/8/8",  # too many ranks
        "9/8/8/8/8/8/8/8",  # bad digit
        "7/8/8/8/8/8/8/8",  # short rank
        "ppppppppp/8/8/8/8/8/8/8",  # long rank
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNX",  # bad piece
        "8/8/8/8/8/8/8/8/PP",  # overflow
    ],
)
def test_strict_rejects_malformed_placement(fen: str) -> None:
    res = decode_placement(fen, strict=True)
    assert not res.ok
    assert res.errors
    assert res.bb == [0] * 12


def test_strict_accepts_well_formed_placement() -> None:
    res = decode_placement(STARTPOS_FEN, strict=True)
    assert res.ok
    assert res.bb == decode_placement(STARTPOS_FEN).bb


def test_lenient_never_reports_errors() -> None:
    res = decode_placement("??/ppppppppppp/8", strict=False)
    assert res.ok
    assert res.errors == []


@pytest.mark.parametrize(
    "placement",
    [
        START_PLACEMENT,
        EMPTY_PLACEMENT,
        "r1bqkbnr/pppp1ppp/2n5/4p3/3P4/5N2/PPP1PPPP/RNBQKB1R",
        "r3k2r/8/8/8/8/8/8/R3K2R",
        "7k/8/8/8/8/8/8/K7",
    ],
)
def test_encode_reproduces_canonical_placement(placement: str) -> None:
    assert encode_placement(decode_placement(placement).bb) == placement


def test_encode_normalizes_split_runs() -> None:
    assert encode_placement(decode_placement("44/8/8/8/8/8/8/8").bb) == EMPTY_PLACEMENT
