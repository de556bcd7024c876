"""Sortino ratio service."""

from __future__ import annotations

from typing import Any

from ..types import SortinoResult
from .base import RiskServiceBase
from .metrics import compute_sortino


class SortinoRatioService(RiskServiceBase):
    """Sortino ratio for one agent in one competition."""

    async def calculate_sortino_ratio(
        self,
        agent_id: str,
        competition_id: str,
        tx: Any = None,
    ) -> SortinoResult:
        _, window, snapshots = await self._load_inputs(agent_id, competition_id, tx)
        result = compute_sortino(snapshots, window, self.params)
        self.logger.debug(
            f"Sortino for agent {agent_id} in {competition_id}: "
            f"ratio={result.sortino_ratio} dd={result.downside_deviation} n={result.snapshot_count}"
        )
        return result


__all__ = ["SortinoRatioService"]
