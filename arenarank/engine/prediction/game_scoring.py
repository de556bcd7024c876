"""Game-winner prediction scoring.

Agents may predict a game's winner many times while it is in progress.
Once the game is final, each agent's predictions are reduced to one
time-weighted Brier score, stored per game, and averaged per competition.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional

from arenarank.shared.enums import GameStatus

from ..types import EventNotFound, GameScore, NotResolved, RankedScore, TimedPrediction
from .brier import time_weighted_brier


class GameScoringService:
    """Scores finished games and builds winner-prediction leaderboards."""

    def __init__(self, games_repo: Any, logger: Optional[logging.Logger] = None):
        self.games_repo = games_repo
        self.logger = logger or logging.getLogger(__name__)

    async def score_game(self, game_id: str) -> int:
        """Score every agent that predicted a final game.

        A failure for one agent is logged and does not stop the others.

        Returns:
            Number of agents scored

        Raises:
            EventNotFound: If the game does not exist
            NotResolved: If the game is not final or lacks an end time or winner
        """
        game = await self.games_repo.find_game(game_id)
        if game is None:
            raise EventNotFound(f"Game {game_id} not found")

        status = getattr(game["status"], "value", game["status"])
        if status != GameStatus.FINAL.value:
            raise NotResolved(f"Game {game_id} is not final (status: {status})")
        if not game.get("end_time"):
            raise NotResolved(f"Game {game_id} has no end time")
        if not game.get("winner"):
            raise NotResolved(f"Game {game_id} has no winner")

        rows = await self.games_repo.find_predictions_by_game(game_id)
        if not rows:
            self.logger.info(f"No predictions found for game {game_id}")
            return 0

        by_agent: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        for row in rows:
            by_agent[row["agent_id"]].append(row)

        self.logger.info(f"Scoring game {game_id} for {len(by_agent)} agents")

        scored = 0
        for agent_id, predictions in by_agent.items():
            try:
                score = self._score_agent(agent_id, game, predictions)
                competition_id = predictions[0]["competition_id"]
                await self.games_repo.upsert_game_score(competition_id, score)
                await self._update_competition_aggregate(competition_id, agent_id)
                scored += 1
                self.logger.debug(
                    f"Scored agent {agent_id} for game {game_id}: "
                    f"score={score.time_weighted_brier_score:.6f} n={score.prediction_count}"
                )
            except Exception as e:
                self.logger.error(f"Error scoring agent {agent_id} for game {game_id}: {e}")

        self.logger.info(f"Scored {scored} agents for game {game_id}")
        return scored

    def _score_agent(
        self,
        agent_id: str,
        game: Dict[str, Any],
        predictions: List[Dict[str, Any]],
    ) -> GameScore:
        timed = [
            TimedPrediction(
                predicted_winner=row["predicted_winner"],
                confidence=float(row["confidence"]),
                timestamp=row["created_at"],
            )
            for row in predictions
        ]
        final = max(timed, key=lambda p: p.timestamp)
        return GameScore(
            agent_id=agent_id,
            game_id=game["id"],
            time_weighted_brier_score=time_weighted_brier(
                timed, game["start_time"], game["end_time"], game["winner"]
            ),
            final_prediction=final.predicted_winner,
            final_confidence=final.confidence,
            prediction_count=len(timed),
        )

    async def _update_competition_aggregate(self, competition_id: str, agent_id: str) -> None:
        rows = await self.games_repo.find_game_scores_by_agent(competition_id, agent_id)
        if not rows:
            return
        total = sum(float(row["time_weighted_brier_score"]) for row in rows)
        await self.games_repo.upsert_competition_aggregate(
            competition_id, agent_id, total / len(rows), len(rows)
        )

    async def get_game_leaderboard(self, competition_id: str, game_id: str) -> List[RankedScore]:
        rows = await self.games_repo.find_game_scores(competition_id, game_id)
        return _rank(
            [(row["agent_id"], float(row["time_weighted_brier_score"]), 1) for row in rows]
        )

    async def get_competition_leaderboard(self, competition_id: str) -> List[RankedScore]:
        rows = await self.games_repo.find_competition_aggregates(competition_id)
        return _rank(
            [
                (row["agent_id"], float(row["average_brier_score"]), int(row["games_scored"]))
                for row in rows
            ]
        )


def _rank(entries: List[tuple]) -> List[RankedScore]:
    # Higher time-weighted score is better
    ordered = sorted(entries, key=lambda e: -e[1])
    return [
        RankedScore(agent_id=agent_id, rank=i + 1, score=score, games_scored=games)
        for i, (agent_id, score, games) in enumerate(ordered)
    ]


__all__ = ["GameScoringService"]
