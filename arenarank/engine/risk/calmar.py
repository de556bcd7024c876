"""Calmar ratio service."""

from __future__ import annotations

from typing import Any

from ..types import CalmarResult
from .base import RiskServiceBase
from .metrics import compute_calmar


class CalmarRatioService(RiskServiceBase):
    """Calmar ratio for one agent in one competition.

    Uses the endpoint return and the max drawdown between the first and last
    snapshot timestamps, not the competition calendar dates.
    """

    async def calculate_calmar_ratio(
        self,
        agent_id: str,
        competition_id: str,
        tx: Any = None,
    ) -> CalmarResult:
        _, window, snapshots = await self._load_inputs(agent_id, competition_id, tx)
        result = compute_calmar(snapshots, window, self.params)
        self.logger.debug(
            f"Calmar for agent {agent_id} in {competition_id}: "
            f"ratio={result.calmar_ratio} return={result.simple_return} mdd={result.max_drawdown}"
        )
        return result


__all__ = ["CalmarRatioService"]
