from __future__ import annotations

from enum import Enum


class CompetitionType(str, Enum):
    TRADING = "trading"
    PERPETUAL_FUTURES = "perpetual_futures"
    SPORTS_PREDICTION = "sports_prediction"


class PlayOutcome(str, Enum):
    PASS = "pass"
    RUN = "run"


class GameStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    FINAL = "final"


__all__ = [
    "CompetitionType",
    "PlayOutcome",
    "GameStatus",
]
