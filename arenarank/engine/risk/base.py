"""Shared input loading for the risk ratio services."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

from arenarank.config.engine_params import RiskParams, get_engine_params

from ..determinism import to_decimal
from ..types import CompetitionMetadata, CompetitionNotFound, ContestWindow, PortfolioSnapshot


class RiskServiceBase:
    """Loads a competition window and an agent's snapshot series."""

    def __init__(
        self,
        competition_repo: Any,
        logger: Optional[logging.Logger] = None,
        *,
        params: Optional[RiskParams] = None,
    ):
        self.competition_repo = competition_repo
        self.logger = logger or logging.getLogger(__name__)
        self.params = params or get_engine_params().risk

    async def _load_inputs(
        self,
        agent_id: str,
        competition_id: str,
        tx: Any = None,
    ) -> Tuple[CompetitionMetadata, ContestWindow, List[PortfolioSnapshot]]:
        competition = await self.competition_repo.get_competition_metadata(competition_id, tx)
        if competition is None:
            raise CompetitionNotFound(f"Competition {competition_id} not found")

        rows = await self.competition_repo.get_portfolio_snapshots(agent_id, competition_id, tx)
        snapshots = [
            PortfolioSnapshot(
                timestamp=row["timestamp"],
                total_value=to_decimal(row["total_value"], "total_value"),
            )
            for row in rows
        ]
        window = ContestWindow(start=competition.start_date, end=competition.end_date)
        return competition, window, snapshots


__all__ = ["RiskServiceBase"]
