"""Scoring of play predictions once a play is resolved.

Flow:
1. Load the play and require a resolved outcome
2. Load every prediction submitted against it
3. Validate all predictions before writing anything
4. Increment each agent's aggregate (total, correct, brier sum)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from arenarank.config.engine_params import PredictionParams, get_engine_params

from ..types import EventNotFound, NotResolved, PredictionScore, ValidationError
from .brier import score_prediction


class PredictionScoringService:
    """Scores resolved plays into per-agent competition aggregates."""

    def __init__(
        self,
        db: Any,
        predictions_repo: Any,
        agent_score_repo: Any,
        logger: Optional[logging.Logger] = None,
        *,
        params: Optional[PredictionParams] = None,
    ):
        self.db = db
        self.predictions_repo = predictions_repo
        self.agent_score_repo = agent_score_repo
        self.logger = logger or logging.getLogger(__name__)
        self.params = params or get_engine_params().prediction

    async def score_event(self, play_id: str, tx: Any = None) -> int:
        """Score all predictions for a resolved play.

        Increments for one play commit together. Pass `tx` to join an
        outer transaction instead of opening one.

        Returns:
            Number of predictions scored; 0 when nobody predicted

        Raises:
            EventNotFound: If the play does not exist
            NotResolved: If the play has no outcome yet
            InvalidConfidence: If any prediction confidence is outside [0, 1]
        """
        if tx is None:
            async with self.db.transaction() as session:
                return await self.score_event(play_id, session)

        play = await self.predictions_repo.find_play(play_id, tx)
        if play is None:
            raise EventNotFound(f"Play {play_id} not found")

        outcome = play.get("outcome")
        if outcome is None:
            raise NotResolved(f"Play {play_id} is not resolved")

        predictions = await self.predictions_repo.find_predictions_by_play(play_id, tx)
        if not predictions:
            self.logger.info(f"No predictions found for play {play_id}")
            return 0

        scores = self._score_all(predictions, outcome)

        competition_id = play["competition_id"]
        for score in scores:
            await self.agent_score_repo.increment(
                competition_id,
                score.agent_id,
                score.is_correct,
                score.brier_term,
                tx,
            )

        self.logger.info(
            f"Scored {len(scores)} predictions for play {play_id} "
            f"(outcome={getattr(outcome, 'value', outcome)}, "
            f"correct={sum(1 for s in scores if s.is_correct)})"
        )
        return len(scores)

    async def score_events(self, play_ids: Iterable[str]) -> Dict[str, int]:
        """Score many plays, each in its own transaction.

        Plays that fail validation are logged and skipped. Infrastructure
        errors propagate.

        Returns:
            Mapping play_id -> number of predictions scored, for plays that scored
        """
        results: Dict[str, int] = {}
        for play_id in play_ids:
            try:
                results[play_id] = await self.score_event(play_id)
            except ValidationError as e:
                self.logger.warning(f"Skipping play {play_id}: {e}")
        return results

    def _score_all(self, predictions: List[Dict[str, Any]], outcome: Any) -> List[PredictionScore]:
        return [
            score_prediction(
                row["agent_id"],
                row["prediction"],
                row["confidence"],
                outcome,
                classes=self.params.outcome_classes,
                positive_class=self.params.positive_class,
            )
            for row in predictions
        ]


__all__ = ["PredictionScoringService"]
