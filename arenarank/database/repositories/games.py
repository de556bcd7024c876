"""Game winner predictions, per-game scores and competition averages."""

from __future__ import annotations

from typing import Any, List, Optional

from sqlalchemy import text

from arenarank.engine.types import GameScore


_SELECT_GAME = text(
    """
    SELECT id, status, start_time, end_time, winner
    FROM games
    WHERE id = :game_id
    """
)

_SELECT_PREDICTIONS_BY_GAME = text(
    """
    SELECT agent_id, competition_id, game_id, predicted_winner, confidence, created_at
    FROM game_predictions
    WHERE game_id = :game_id
    ORDER BY created_at DESC
    """
)

_UPSERT_GAME_SCORE = text(
    """
    INSERT INTO game_prediction_scores (
        competition_id, game_id, agent_id, time_weighted_brier_score,
        final_prediction, final_confidence, prediction_count, updated_at
    ) VALUES (
        :competition_id, :game_id, :agent_id, :score,
        :final_prediction, :final_confidence, :prediction_count, NOW()
    )
    ON CONFLICT (competition_id, game_id, agent_id) DO UPDATE SET
        time_weighted_brier_score = EXCLUDED.time_weighted_brier_score,
        final_prediction = EXCLUDED.final_prediction,
        final_confidence = EXCLUDED.final_confidence,
        prediction_count = EXCLUDED.prediction_count,
        updated_at = NOW()
    """
)

_SELECT_GAME_SCORES_BY_AGENT = text(
    """
    SELECT game_id, time_weighted_brier_score
    FROM game_prediction_scores
    WHERE competition_id = :competition_id
      AND agent_id = :agent_id
    """
)

_SELECT_GAME_SCORES = text(
    """
    SELECT agent_id, time_weighted_brier_score, final_prediction, final_confidence, prediction_count
    FROM game_prediction_scores
    WHERE competition_id = :competition_id
      AND game_id = :game_id
    """
)

_UPSERT_COMPETITION_AGGREGATE = text(
    """
    INSERT INTO competition_aggregate_scores (
        competition_id, agent_id, average_brier_score, games_scored, updated_at
    ) VALUES (
        :competition_id, :agent_id, :average, :games_scored, NOW()
    )
    ON CONFLICT (competition_id, agent_id) DO UPDATE SET
        average_brier_score = EXCLUDED.average_brier_score,
        games_scored = EXCLUDED.games_scored,
        updated_at = NOW()
    """
)

_SELECT_COMPETITION_AGGREGATES = text(
    """
    SELECT agent_id, average_brier_score, games_scored
    FROM competition_aggregate_scores
    WHERE competition_id = :competition_id
    ORDER BY average_brier_score DESC
    """
)


class GamesRepository:
    def __init__(self, db: Any):
        self.db = db

    async def find_game(self, game_id: str) -> Optional[Any]:
        rows = await self.db.read(_SELECT_GAME, params={"game_id": game_id}, mappings=True)
        return rows[0] if rows else None

    async def find_predictions_by_game(self, game_id: str) -> List[Any]:
        return await self.db.read(
            _SELECT_PREDICTIONS_BY_GAME, params={"game_id": game_id}, mappings=True
        )

    async def upsert_game_score(self, competition_id: str, score: GameScore) -> int:
        return await self.db.write(
            _UPSERT_GAME_SCORE,
            params={
                "competition_id": competition_id,
                "game_id": score.game_id,
                "agent_id": score.agent_id,
                "score": score.time_weighted_brier_score,
                "final_prediction": score.final_prediction,
                "final_confidence": score.final_confidence,
                "prediction_count": score.prediction_count,
            },
        )

    async def find_game_scores_by_agent(self, competition_id: str, agent_id: str) -> List[Any]:
        return await self.db.read(
            _SELECT_GAME_SCORES_BY_AGENT,
            params={"competition_id": competition_id, "agent_id": agent_id},
            mappings=True,
        )

    async def find_game_scores(self, competition_id: str, game_id: str) -> List[Any]:
        return await self.db.read(
            _SELECT_GAME_SCORES,
            params={"competition_id": competition_id, "game_id": game_id},
            mappings=True,
        )

    async def upsert_competition_aggregate(
        self,
        competition_id: str,
        agent_id: str,
        average: float,
        games_scored: int,
    ) -> int:
        return await self.db.write(
            _UPSERT_COMPETITION_AGGREGATE,
            params={
                "competition_id": competition_id,
                "agent_id": agent_id,
                "average": average,
                "games_scored": games_scored,
            },
        )

    async def find_competition_aggregates(self, competition_id: str) -> List[Any]:
        return await self.db.read(
            _SELECT_COMPETITION_AGGREGATES,
            params={"competition_id": competition_id},
            mappings=True,
        )


__all__ = ["GamesRepository"]
