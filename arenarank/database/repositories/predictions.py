"""Play prediction reads and per-agent aggregate increments."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import text

from arenarank.engine.determinism import round_decimal


_SELECT_PLAY = text(
    """
    SELECT id, competition_id, status, outcome
    FROM plays
    WHERE id = :play_id
    """
)

_SELECT_PREDICTIONS_BY_PLAY = text(
    """
    SELECT agent_id, competition_id, play_id, prediction, confidence, created_at
    FROM play_predictions
    WHERE play_id = :play_id
    ORDER BY agent_id
    """
)

_INCREMENT_AGENT_SCORE = text(
    """
    INSERT INTO competition_agent_prediction_scores (
        competition_id, agent_id, total_predictions, correct_predictions, brier_sum, updated_at
    ) VALUES (
        :competition_id, :agent_id, 1, :correct, :brier_term, NOW()
    )
    ON CONFLICT (competition_id, agent_id) DO UPDATE SET
        total_predictions = competition_agent_prediction_scores.total_predictions + 1,
        correct_predictions = competition_agent_prediction_scores.correct_predictions + :correct,
        brier_sum = competition_agent_prediction_scores.brier_sum + :brier_term,
        updated_at = NOW()
    """
)

_SELECT_AGGREGATES_BY_COMPETITION = text(
    """
    SELECT agent_id, total_predictions, correct_predictions, brier_sum
    FROM competition_agent_prediction_scores
    WHERE competition_id = :competition_id
    ORDER BY agent_id
    """
)


class PlayPredictionsRepository:
    def __init__(self, db: Any):
        self.db = db

    async def find_play(self, play_id: str, tx: Any = None) -> Optional[Any]:
        rows = await self.db.read(
            _SELECT_PLAY, params={"play_id": play_id}, mappings=True, tx=tx
        )
        return rows[0] if rows else None

    async def find_predictions_by_play(self, play_id: str, tx: Any = None) -> List[Any]:
        return await self.db.read(
            _SELECT_PREDICTIONS_BY_PLAY, params={"play_id": play_id}, mappings=True, tx=tx
        )


class PredictionAggregatesRepository:
    def __init__(self, db: Any):
        self.db = db

    async def increment(
        self,
        competition_id: str,
        agent_id: str,
        is_correct: bool,
        brier_term: Decimal,
        tx: Any = None,
    ) -> int:
        """Atomically add one scored prediction to an agent's aggregate."""
        return await self.db.write(
            _INCREMENT_AGENT_SCORE,
            params={
                "competition_id": competition_id,
                "agent_id": agent_id,
                "correct": 1 if is_correct else 0,
                "brier_term": round_decimal(brier_term),
            },
            tx=tx,
        )

    async def find_by_competition(self, competition_id: str, tx: Any = None) -> List[Any]:
        return await self.db.read(
            _SELECT_AGGREGATES_BY_COMPETITION,
            params={"competition_id": competition_id},
            mappings=True,
            tx=tx,
        )


__all__ = ["PlayPredictionsRepository", "PredictionAggregatesRepository"]
