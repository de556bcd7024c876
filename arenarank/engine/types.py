"""Type definitions, errors and constants for the ranking engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional


# Decimal precision for persisted ratios
DECIMAL_PLACES = 8


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────


class ValidationError(Exception):
    """Raised when input or data state makes a computation impossible.

    Validation failures are not transient. Batch callers record them and
    move on without retrying.
    """

    pass


class CompetitionNotFound(ValidationError):
    """Raised when a competition id has no metadata row."""

    pass


class CompetitionNotStarted(ValidationError):
    """Raised when a competition has no start date yet."""

    pass


class InsufficientData(ValidationError):
    """Raised when fewer snapshots exist than a metric needs."""

    pass


class InvalidStartValue(ValidationError):
    """Raised when the first portfolio value is zero."""

    pass


class EventNotFound(ValidationError):
    """Raised when a play or game id has no row."""

    pass


class NotResolved(ValidationError):
    """Raised when scoring an event whose outcome is not set."""

    pass


class InvalidConfidence(ValidationError):
    """Raised when a prediction confidence falls outside [0, 1]."""

    pass


class TransfersDetected(ValidationError):
    """Raised when an agent moved funds during the competition window."""

    pass


class ContractViolation(AssertionError):
    """Raised when a caller breaks a precondition of an engine function.

    These are programming errors upstream and are never clamped away.
    """

    pass


# ─────────────────────────────────────────────────────────────────────────────
# Rating
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SkillRating:
    """Gaussian belief over an agent's skill."""

    mu: float
    sigma: float


@dataclass(frozen=True)
class RatedAgent:
    """Updated rating for one agent after a contest."""

    agent_id: str
    mu: float
    sigma: float
    ordinal: float


@dataclass(frozen=True)
class CompetitionMetadata:
    """Competition fields the engine reads."""

    id: str
    type: str
    arena_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[str] = None


# ─────────────────────────────────────────────────────────────────────────────
# Risk metrics
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Portfolio valuation at one instant."""

    timestamp: datetime
    total_value: Decimal


@dataclass(frozen=True)
class ContestWindow:
    """Calendar bounds of a competition."""

    start: Optional[datetime]
    end: Optional[datetime] = None


@dataclass(frozen=True)
class CalmarResult:
    """Calmar ratio and the endpoint return it was built from."""

    calmar_ratio: Decimal
    simple_return: Decimal
    annualized_return: Decimal
    max_drawdown: Decimal
    snapshot_count: int = 2


@dataclass(frozen=True)
class SortinoResult:
    """Sortino ratio over the full per-period return series."""

    sortino_ratio: Decimal
    downside_deviation: Decimal
    average_return: Decimal
    simple_return: Decimal
    snapshot_count: int


@dataclass(frozen=True)
class RiskMetricsRecord:
    """Combined risk metrics for one agent in one competition.

    All ratio fields are rounded to DECIMAL_PLACES.
    """

    simple_return: Decimal
    calmar_ratio: Decimal
    annualized_return: Decimal
    max_drawdown: Decimal
    downside_deviation: Decimal
    sortino_ratio: Decimal
    snapshot_count: int


@dataclass
class RiskMetricsBatchResult:
    """Outcome of recomputing risk metrics for many agents."""

    successful: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# Prediction scoring
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PredictionScore:
    """Score contribution of a single play prediction."""

    agent_id: str
    predicted_probability: Decimal
    actual_probability: Decimal
    is_correct: bool
    brier_term: Decimal


@dataclass(frozen=True)
class LeaderboardRow:
    """Ranked view of an agent's accumulated prediction aggregate."""

    agent_id: str
    rank: int
    accuracy: Decimal
    brier_score: Decimal
    total_predictions: int
    correct_predictions: int


@dataclass(frozen=True)
class TimedPrediction:
    """Winner prediction made at a point during a game."""

    predicted_winner: str
    confidence: float
    timestamp: datetime


@dataclass(frozen=True)
class GameScore:
    """Time-weighted Brier score of one agent for one game."""

    agent_id: str
    game_id: str
    time_weighted_brier_score: float
    final_prediction: Optional[str]
    final_confidence: Optional[float]
    prediction_count: int


@dataclass(frozen=True)
class RankedScore:
    """Row of a game or competition winner-prediction leaderboard."""

    agent_id: str
    rank: int
    score: float
    games_scored: int = 1


__all__ = [
    "DECIMAL_PLACES",
    # Errors
    "ValidationError",
    "CompetitionNotFound",
    "CompetitionNotStarted",
    "InsufficientData",
    "InvalidStartValue",
    "EventNotFound",
    "NotResolved",
    "InvalidConfidence",
    "TransfersDetected",
    "ContractViolation",
    # Rating
    "SkillRating",
    "RatedAgent",
    "CompetitionMetadata",
    # Risk metrics
    "PortfolioSnapshot",
    "ContestWindow",
    "CalmarResult",
    "SortinoResult",
    "RiskMetricsRecord",
    "RiskMetricsBatchResult",
    # Prediction scoring
    "PredictionScore",
    "LeaderboardRow",
    "TimedPrediction",
    "GameScore",
    "RankedScore",
]
