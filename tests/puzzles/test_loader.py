from __future__ import annotations

import logging
import random
from pathlib import Path

import pytest

from src.puzzles.loader import PuzzleLoader, load_puzzles


CSV = """PuzzleId,FEN,Moves,Rating
00008,r6k/pp2r2p/4Rp1Q/3p4/8/1N1P2R1/PqP2bPP/7K b - - 0 24,f2g3 e6e7,1760

0000D,5rk1/1p3ppp/pq3b2/8/8/1P1Q1N2/P4PPP/3R2K1 w - - 2 27,d3d6 f8d8,1492
bad-row-only-one-column
0001a,  ,e1e2,1500
0009B,r2qr1k1/b1p2ppp/pp4n1/P1P1p3/4P1n1/B2P2Pb/3NBP1P/RN1QR1K1 b - - 1 16,b6c5,1122
"""


def test_parses_fen_column_and_skips_header_and_junk() -> None:
    loader = PuzzleLoader()
    fens = loader.load_from_string(CSV)
    assert fens == [
        "r6k/pp2r2p/4Rp1Q/3p4/8/1N1P2R1/PqP2bPP/7K b - - 0 24",
        "5rk1/1p3ppp/pq3b2/8/8/1P1Q1N2/P4PPP/3R2K1 w - - 2 27",
        "r2qr1k1/b1p2ppp/pp4n1/P1P1p3/4P1n1/B2P2Pb/3NBP1P/RN1QR1K1 b - - 1 16",
    ]
    assert loader.count() == 3


def test_limit_caps_loaded_positions() -> None:
    loader = PuzzleLoader()
    assert len(loader.load_from_string(CSV, limit=2)) == 2
    assert loader.load_from_string(CSV, limit=0) == []


def test_header_only_yields_nothing() -> None:
    assert PuzzleLoader().load_from_string("PuzzleId,FEN\n") == []


def test_positions_returns_copy() -> None:
    loader = PuzzleLoader()
    loader.load_from_string(CSV)
    got = loader.positions()
    got.clear()
    assert loader.count() == 3
    loader.clear()
    assert loader.positions() == []


def test_random_position_is_seeded_and_from_pool() -> None:
    a = PuzzleLoader(random.Random(7))
    b = PuzzleLoader(random.Random(7))
    a.load_from_string(CSV)
    b.load_from_string(CSV)
    picks_a = [a.random_position() for _ in range(10)]
    picks_b = [b.random_position() for _ in range(10)]
    assert picks_a == picks_b
    assert set(picks_a) <= set(a.positions())


def test_random_position_prefers_explicit_list() -> None:
    loader = PuzzleLoader()
    loader.load_from_string(CSV)
    assert loader.random_position(["8/8/8/8/8/8/8/8"]) == "8/8/8/8/8/8/8/8"
    assert loader.count(["a", "b"]) == 2


def test_empty_pool_warns_and_returns_blank(caplog: pytest.LogCaptureFixture) -> None:
    loader = PuzzleLoader()
    with caplog.at_level(logging.WARNING, logger="src.puzzles.loader"):
        assert loader.random_position() == ""
    assert "no positions" in caplog.text
    assert loader.count() == 0


def test_load_from_file(tmp_path: Path) -> None:
    path = tmp_path / "puzzles.csv"
    path.write_text(CSV, encoding="utf-8")
    assert len(load_puzzles(str(path))) == 3


def test_missing_file_logs_and_returns_empty(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    loader = PuzzleLoader()
    with caplog.at_level(logging.ERROR, logger="src.puzzles.loader"):
        assert loader.load_from_file(str(tmp_path / "missing.csv")) == []
    assert "could not extract positions" in caplog.text


def test_undecodable_file_logs_and_returns_empty(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    path = tmp_path / "puzzles.csv"
    path.write_bytes(b"PuzzleId,FEN\n1,\xff\xfe8/8/8/8/8/8/8/8\n")
    loader = PuzzleLoader()
    with caplog.at_level(logging.ERROR, logger="src.puzzles.loader"):
        assert loader.load_from_file(str(path)) == []
    assert "could not extract positions" in caplog.text
    assert loader.count() == 0


def test_count_warns_on_empty_pool(caplog: pytest.LogCaptureFixture) -> None:
    loader = PuzzleLoader()
    with caplog.at_level(logging.WARNING, logger="src.puzzles.loader"):
        assert loader.count() == 0
    assert "no positions" in caplog.text

    caplog.clear()
    loader.load_from_string(CSV)
    with caplog.at_level(logging.WARNING, logger="src.puzzles.loader"):
        assert loader.count() == 3
    assert "no positions" not in caplog.text
