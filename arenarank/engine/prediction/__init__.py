"""Prediction scoring: Brier terms, aggregates and leaderboards."""

from __future__ import annotations

from .brier import score_prediction, time_weighted_brier
from .game_scoring import GameScoringService
from .leaderboard import LeaderboardAssembler, build_leaderboard
from .scoring import PredictionScoringService

__all__ = [
    "score_prediction",
    "time_weighted_brier",
    "GameScoringService",
    "LeaderboardAssembler",
    "build_leaderboard",
    "PredictionScoringService",
]
