"""Leaderboard assembly from per-agent prediction aggregates.

    accuracy    = correct_predictions / total_predictions
    brier_score = brier_sum / total_predictions

Agents with no predictions get 0 for both. Rows are ordered by accuracy
descending, then Brier ascending. Ranks run 1..N with no shared ranks;
exact ties keep their input order.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from ..determinism import ZERO, safe_divide, to_decimal
from ..types import LeaderboardRow


def build_leaderboard(aggregates: Sequence[Dict[str, Any]]) -> List[LeaderboardRow]:
    """Rank agent score aggregates.

    Args:
        aggregates: Rows with agent_id, total_predictions,
            correct_predictions and brier_sum

    Returns:
        LeaderboardRow list in rank order
    """
    scored = []
    for row in aggregates:
        total = int(row.get("total_predictions") or 0)
        correct = int(row.get("correct_predictions") or 0)
        brier_sum = to_decimal(row.get("brier_sum") or 0, "brier_sum")
        denominator = Decimal(total)
        scored.append(
            (
                row["agent_id"],
                safe_divide(Decimal(correct), denominator, ZERO),
                safe_divide(brier_sum, denominator, ZERO),
                total,
                correct,
            )
        )

    # sorted() is stable, so fully tied rows keep input order
    scored = sorted(scored, key=lambda item: (-item[1], item[2]))

    return [
        LeaderboardRow(
            agent_id=agent_id,
            rank=index + 1,
            accuracy=accuracy,
            brier_score=brier_score,
            total_predictions=total,
            correct_predictions=correct,
        )
        for index, (agent_id, accuracy, brier_score, total, correct) in enumerate(scored)
    ]


class LeaderboardAssembler:
    """Builds the prediction leaderboard for a competition on demand."""

    def __init__(self, agent_score_repo: Any, logger: Optional[logging.Logger] = None):
        self.agent_score_repo = agent_score_repo
        self.logger = logger or logging.getLogger(__name__)

    async def get_leaderboard(self, competition_id: str) -> List[LeaderboardRow]:
        aggregates = await self.agent_score_repo.find_by_competition(competition_id)
        rows = build_leaderboard(aggregates)
        self.logger.debug(f"Built leaderboard for {competition_id} with {len(rows)} agents")
        return rows


__all__ = ["build_leaderboard", "LeaderboardAssembler"]
