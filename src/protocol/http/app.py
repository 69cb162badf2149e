from __future__ import annotations

import logging
import os
import random
import time
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from .error import (
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
    value_error_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from .session import InMemorySessionStore
from ...config import Settings
from ...engine.position import Position
from ...engine.scoring import ScoreReport, compare
from ...game.session import Clock, MemoryGame, Phase
from ...puzzles.loader import PuzzleLoader


logger = logging.getLogger(__name__)


class DecodeRequest(BaseModel):
    fen: str = Field(..., description="FEN string; only the placement field is read")
    strict: bool = Field(default=False, description="Reject malformed placements")


class DecodeResponse(BaseModel):
    placement: str
    board: List[List[str]]
    piece_count: int
    squares: int
    ignored: List[str]
    overflow: int


class ScoreRequest(BaseModel):
    user_fen: str
    target_fen: str


class Mismatch(BaseModel):
    square: int
    name: str
    expected: str
    actual: str


class ScoreResponse(BaseModel):
    score: int
    total: int
    solved: bool
    accuracy: float
    mismatches: List[Mismatch]


class CreateGameRequest(BaseModel):
    fen: Optional[str] = Field(default=None, description="Puzzle FEN; random when omitted")


class SelectRequest(BaseModel):
    piece: str = Field(..., max_length=1, description="Piece letter, or ' ' to erase")


class SquareRequest(BaseModel):
    square: int = Field(..., ge=0, le=63)
    piece: Optional[str] = Field(default=None, max_length=1)


class EraseRequest(BaseModel):
    square: int = Field(..., ge=0, le=63)


class KeyRequest(BaseModel):
    key: str = Field(..., min_length=1)


class GameState(BaseModel):
    game_id: str
    phase: Phase
    time_left: int
    user_board: List[List[str]]
    user_placement: str
    solution_board: Optional[List[List[str]]]
    selected_piece: str
    score: Optional[int]
    mismatches: Optional[List[Mismatch]]


def create_app(
    settings: Optional[Settings] = None,
    *,
    loader: Optional[PuzzleLoader] = None,
    clock: Clock = time.monotonic,
) -> FastAPI:
    settings = settings or Settings.from_env()
    app = FastAPI(title="Memory Chess API", version="0.1.0")

    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

    app.add_middleware(RequestIDLoggingMiddleware)
    # Starlette raises its own HTTPException for unknown routes; FastAPI's subclasses it
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(Exception, exception_handler)

    if loader is None:
        loader = PuzzleLoader(random.Random())
        if os.path.exists(settings.puzzles):
            loader.load_from_file(settings.puzzles, settings.puzzle_limit)
        else:
            logger.warning("puzzle database not found: %s", settings.puzzles)

    store = InMemorySessionStore()
    app.state.settings = settings
    app.state.loader = loader
    app.state.store = store

    def new_game() -> MemoryGame:
        return MemoryGame(
            loader,
            memorize_seconds=settings.memorize_seconds,
            strict_fen=settings.strict_fen,
            clock=clock,
        )

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/puzzles")
    async def puzzles() -> Dict[str, int]:
        return {"count": loader.count()}

    @app.post("/api/decode", response_model=DecodeResponse)
    async def decode(req: DecodeRequest) -> DecodeResponse:
        pos = Position()
        result = pos.populate_from_fen(req.fen, strict=req.strict)
        if not result.ok:
            raise HTTPException(status_code=400, detail="invalid FEN: " + "; ".join(result.errors))
        return DecodeResponse(
            placement=pos.to_fen(),
            board=pos.board_as_2d(),
            piece_count=pos.piece_count(),
            squares=result.squares,
            ignored=result.ignored,
            overflow=result.overflow,
        )

    @app.post("/api/score", response_model=ScoreResponse)
    async def score(req: ScoreRequest) -> ScoreResponse:
        user = Position()
        if not user.populate_from_fen(req.user_fen, strict=settings.strict_fen).ok:
            raise HTTPException(status_code=400, detail="invalid user_fen")
        target = Position()
        if not target.populate_from_fen(req.target_fen, strict=settings.strict_fen).ok:
            raise HTTPException(status_code=400, detail="invalid target_fen")
        return _score_response(compare(user, target))

    @app.post("/api/games", response_model=GameState)
    async def create_game(req: Optional[CreateGameRequest] = None) -> GameState:
        game = new_game()
        if req is not None and req.fen is not None:
            if not game.start_from_fen(req.fen):
                raise HTTPException(status_code=400, detail="invalid FEN")
        else:
            _start_random_puzzle(game)
        game_id = store.create(game)
        logger.info("created game", extra={"game_id": game_id})
        return _state(game_id, game)

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    async def get_state(game_id: str) -> GameState:
        return _state(game_id, _require_game(store, game_id))

    @app.delete("/api/games/{game_id}")
    async def delete_game(game_id: str) -> Dict[str, bool]:
        if not store.delete(game_id):
            raise HTTPException(status_code=404, detail="game not found")
        return {"deleted": True}

    @app.post("/api/games/{game_id}/select", response_model=GameState)
    async def select(game_id: str, req: SelectRequest) -> GameState:
        game = _require_game(store, game_id)
        if not game.select_piece(req.piece):
            raise HTTPException(status_code=400, detail=f"invalid piece code: {req.piece!r}")
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/square", response_model=GameState)
    async def square(game_id: str, req: SquareRequest) -> GameState:
        game = _require_playing(store, game_id)
        if req.piece is not None:
            game.place(req.square, req.piece)
        elif not game.click_square(req.square):
            raise HTTPException(status_code=400, detail="no piece selected")
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/erase", response_model=GameState)
    async def erase(game_id: str, req: EraseRequest) -> GameState:
        game = _require_playing(store, game_id)
        game.erase_square(req.square)
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/clear", response_model=GameState)
    async def clear(game_id: str) -> GameState:
        game = _require_playing(store, game_id)
        game.clear_board()
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/check", response_model=GameState)
    async def check(game_id: str) -> GameState:
        game = _require_playing(store, game_id)
        game.check_solution()
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/new", response_model=GameState)
    async def new_puzzle(game_id: str) -> GameState:
        game = _require_game(store, game_id)
        _start_random_puzzle(game)
        return _state(game_id, game)

    @app.post("/api/games/{game_id}/key", response_model=GameState)
    async def key(game_id: str, req: KeyRequest) -> GameState:
        game = _require_playing(store, game_id)
        if req.key in ("n", "N"):
            _start_random_puzzle(game)
        elif not game.handle_key(req.key):
            raise HTTPException(status_code=400, detail=f"unhandled key: {req.key!r}")
        return _state(game_id, game)

    return app


def _require_game(store: InMemorySessionStore, game_id: str) -> MemoryGame:
    game = store.get(game_id)
    if game is None:
        raise HTTPException(status_code=404, detail="game not found")
    return game


def _start_random_puzzle(game: MemoryGame) -> None:
    # Empty pool is 409; a pooled FEN rejected by strict decoding is 400
    if game.loader.count() == 0:
        raise HTTPException(status_code=409, detail="no puzzles loaded")
    if not game.start_new_puzzle():
        raise HTTPException(status_code=400, detail="invalid puzzle FEN")


def _require_playing(store: InMemorySessionStore, game_id: str) -> MemoryGame:
    game = _require_game(store, game_id)
    phase = game.refresh()
    if phase is not Phase.PLAYING:
        raise HTTPException(status_code=409, detail=f"not allowed while {phase.value}")
    return game


def _mismatches(report: ScoreReport) -> List[Mismatch]:
    return [
        Mismatch(square=d.square, name=d.name, expected=d.expected, actual=d.actual)
        for d in report.mismatches
    ]


def _score_response(report: ScoreReport) -> ScoreResponse:
    return ScoreResponse(
        score=report.correct,
        total=report.total,
        solved=report.solved,
        accuracy=report.accuracy,
        mismatches=_mismatches(report),
    )


def _state(game_id: str, game: MemoryGame) -> GameState:
    visible = game.solution_visible
    return GameState(
        game_id=game_id,
        phase=game.phase,
        time_left=game.time_left(),
        user_board=game.user_board.board_as_2d(),
        user_placement=game.user_board.to_fen(),
        solution_board=game.solution.board_as_2d() if visible else None,
        selected_piece=game.selected_piece,
        score=game.score,
        mismatches=_mismatches(game.report) if game.report is not None else None,
    )
