"""Brier scoring for binary play and game-winner predictions.

Play predictions name one of two outcome classes with a confidence in
[0, 1], read as the probability of the named class:

    predicted_probability = confidence      if guess == positive class
                          = 1 - confidence  otherwise
    brier_term            = (1 - confidence)²  if the guess was correct
                          = confidence²        otherwise

which is (p - y)² for p the probability put on the positive class and y
the positive-class indicator of the actual outcome. Lower is better.

Game-winner predictions are scored over the course of a game with later
predictions weighted more:

    t     = clamp((ts - start) / (end - start), 0, 1)
    w     = 0.5 + 0.5 t
    p     = confidence if predicted winner won else 1 - confidence
    score = 1 - Σ w (p - 1)² / Σ w

so the game score is higher-is-better in [0, 1].
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Sequence

import numpy as np

from ..determinism import ONE, ZERO, to_decimal
from ..types import InvalidConfidence, PredictionScore, TimedPrediction, ValidationError


def validate_confidence(confidence: Any) -> Decimal:
    """Convert a confidence to Decimal and check it lies in [0, 1].

    Raises:
        InvalidConfidence: If the value is missing, non-finite or out of range
    """
    try:
        value = to_decimal(confidence, "confidence")
    except ValidationError as e:
        raise InvalidConfidence(str(e))
    if value < ZERO or value > ONE:
        raise InvalidConfidence(f"Confidence must be in [0, 1], got {confidence}")
    return value


def validate_outcome_class(value: Any, classes: Sequence[str], name: str = "prediction") -> str:
    text = getattr(value, "value", value)
    if text not in classes:
        raise ValidationError(f"Unknown {name} class {value!r}, expected one of {tuple(classes)}")
    return text


def predicted_probability(guess: str, confidence: Decimal, positive_class: str) -> Decimal:
    """Probability the prediction puts on the positive class."""
    return confidence if guess == positive_class else ONE - confidence


def score_prediction(
    agent_id: str,
    guess: Any,
    confidence: Any,
    actual: Any,
    classes: Sequence[str] = ("pass", "run"),
    positive_class: str = "pass",
) -> PredictionScore:
    """Score one prediction against a resolved outcome.

    Args:
        agent_id: Predicting agent
        guess: Predicted class
        confidence: Probability assigned to the predicted class
        actual: Resolved outcome class
        classes: The two valid outcome classes
        positive_class: Class whose probability is reported

    Returns:
        PredictionScore with an exact Decimal brier_term
    """
    guess = validate_outcome_class(guess, classes)
    actual = validate_outcome_class(actual, classes, "outcome")
    conf = validate_confidence(confidence)

    is_correct = guess == actual
    prob_positive = predicted_probability(guess, conf, positive_class)
    outcome_positive = ONE if actual == positive_class else ZERO

    return PredictionScore(
        agent_id=agent_id,
        predicted_probability=prob_positive,
        actual_probability=ONE if is_correct else ZERO,
        is_correct=is_correct,
        brier_term=(prob_positive - outcome_positive) ** 2,
    )


def time_weighted_brier(
    predictions: Sequence[TimedPrediction],
    game_start: datetime,
    game_end: datetime,
    actual_winner: str,
) -> float:
    """Time-weighted Brier skill for one agent's predictions over a game.

    Predictions made before the start are weighted as if made at the start.

    Returns:
        Score in [0, 1], higher is better; 0 when there are no predictions

    Raises:
        ValidationError: If the game duration is not positive
    """
    if not predictions:
        return 0.0

    duration = (game_end - game_start).total_seconds()
    if duration <= 0:
        raise ValidationError("Invalid game duration")

    offsets = np.array(
        [(p.timestamp - game_start).total_seconds() for p in predictions],
        dtype=np.float64,
    )
    confidence = np.array([float(p.confidence) for p in predictions], dtype=np.float64)
    correct = np.array([p.predicted_winner == actual_winner for p in predictions])

    t = np.clip(offsets / duration, 0.0, 1.0)
    weights = 0.5 + 0.5 * t
    p_winner = np.where(correct, confidence, 1.0 - confidence)
    errors = (p_winner - 1.0) ** 2

    return float(1.0 - np.sum(weights * errors) / np.sum(weights))


__all__ = [
    "validate_confidence",
    "validate_outcome_class",
    "predicted_probability",
    "score_prediction",
    "time_weighted_brier",
]
