"""SQL adapters between the engine services and PostgreSQL."""

from __future__ import annotations

from .agent_score import AgentScoreRepository
from .competition import CompetitionRepository
from .games import GamesRepository
from .predictions import PlayPredictionsRepository, PredictionAggregatesRepository
from .risk_metrics import RiskMetricsRepository

__all__ = [
    "AgentScoreRepository",
    "CompetitionRepository",
    "GamesRepository",
    "PlayPredictionsRepository",
    "PredictionAggregatesRepository",
    "RiskMetricsRepository",
]
