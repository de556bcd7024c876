"""Prediction scoring for a set of resolved plays."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

from .base import EngineJob


class EventScoringJob(EngineJob):
    """Score every listed play; unresolved or invalid plays are skipped."""

    JOB_ID = "event_scoring_v1"

    def __init__(
        self,
        scoring_service: Any,
        play_ids: Sequence[str],
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(logger)
        self.scoring_service = scoring_service
        self.play_ids = list(play_ids)

    async def execute(self) -> Dict[str, int]:
        self.items_total = len(self.play_ids)
        results = await self.scoring_service.score_events(self.play_ids)
        self.items_processed = len(results)

        skipped = self.items_total - self.items_processed
        self.logger.info(
            f"Scored {sum(results.values())} predictions across {len(results)} plays"
            + (f", skipped {skipped}" if skipped else "")
        )
        return results


__all__ = ["EventScoringJob"]
