from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


ENV_PREFIX = "MEMORY_CHESS_"

DEFAULT_PUZZLES_PATH = os.path.join("assets", "puzzles", "lichess_puzzles.csv")


@dataclass(frozen=True)
class Settings:
    """Runtime options for the HTTP service and CLI.

    Every field can be overridden by an environment variable named
    ``MEMORY_CHESS_<FIELD>`` (e.g. ``MEMORY_CHESS_PORT=9000``).
    """

    puzzles: str = DEFAULT_PUZZLES_PATH
    puzzle_limit: int = 100
    memorize_seconds: int = 5
    strict_fen: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        defaults = cls()

        def get(name: str) -> Optional[str]:
            return env.get(ENV_PREFIX + name.upper())

        def get_int(name: str, default: int, minimum: int = 0) -> int:
            raw = get(name)
            if raw is None:
                return default
            try:
                value = int(raw)
            except ValueError as e:
                raise ValueError(f"{ENV_PREFIX}{name.upper()} must be an integer") from e
            if value < minimum:
                raise ValueError(f"{ENV_PREFIX}{name.upper()} must be >= {minimum}")
            return value

        strict_raw = get("strict_fen")
        strict = defaults.strict_fen
        if strict_raw is not None:
            strict = strict_raw.strip().lower() in ("1", "true", "yes", "on")

        return cls(
            puzzles=get("puzzles") or defaults.puzzles,
            puzzle_limit=get_int("puzzle_limit", defaults.puzzle_limit),
            memorize_seconds=get_int("memorize_seconds", defaults.memorize_seconds),
            strict_fen=strict,
            host=get("host") or defaults.host,
            port=get_int("port", defaults.port, minimum=1),
            log_level=(get("log_level") or defaults.log_level).upper(),
        )
