"""Risk metrics orchestration: compute both ratios and persist atomically.

One call performs, inside a single transaction:
1. Calmar ratio calculation
2. Sortino ratio calculation
3. Upsert of the combined record keyed by (agent, competition)
4. Insert of one time-series row stamped with the latest snapshot time

Any failure rolls back every write and re-raises the original error.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from arenarank.config.engine_params import RiskParams, get_engine_params

from ..types import RiskMetricsRecord, ValidationError
from .calmar import CalmarRatioService
from .metrics import merge_risk_metrics
from .sortino import SortinoRatioService


class RiskMetricsService:
    """Calculates and saves all risk metrics for an agent."""

    def __init__(
        self,
        db: Any,
        competition_repo: Any,
        risk_metrics_repo: Any,
        logger: Optional[logging.Logger] = None,
        *,
        params: Optional[RiskParams] = None,
        calmar_service: Optional[CalmarRatioService] = None,
        sortino_service: Optional[SortinoRatioService] = None,
    ):
        self.db = db
        self.competition_repo = competition_repo
        self.risk_metrics_repo = risk_metrics_repo
        self.logger = logger or logging.getLogger(__name__)
        self.params = params or get_engine_params().risk
        self.calmar_service = calmar_service or CalmarRatioService(
            competition_repo, self.logger, params=self.params
        )
        self.sortino_service = sortino_service or SortinoRatioService(
            competition_repo, self.logger, params=self.params
        )

    async def calculate_and_save_all_risk_metrics(
        self,
        agent_id: str,
        competition_id: str,
    ) -> RiskMetricsRecord:
        """Compute Calmar and Sortino for one agent and persist them as one unit.

        Returns:
            The persisted RiskMetricsRecord

        Raises:
            ValidationError: Competition missing or not started, fewer than
                two snapshots, or a zero starting value. Nothing is written.
        """
        try:
            async with self.db.transaction() as tx:
                calmar = await self.calmar_service.calculate_calmar_ratio(
                    agent_id, competition_id, tx
                )
                sortino = await self.sortino_service.calculate_sortino_ratio(
                    agent_id, competition_id, tx
                )
                record = merge_risk_metrics(calmar, sortino)

                await self.risk_metrics_repo.upsert_risk_metrics(
                    agent_id, competition_id, record, tx
                )

                latest = await self.competition_repo.get_latest_portfolio_snapshot(
                    agent_id, competition_id, tx
                )
                timestamp = latest["timestamp"] if latest else datetime.now(timezone.utc)
                await self.risk_metrics_repo.create_risk_metrics_snapshot(
                    agent_id, competition_id, timestamp, record, tx
                )

        except ValidationError as e:
            self.logger.warning(
                f"Risk metrics not computed for agent {agent_id} in {competition_id}: {e}"
            )
            raise
        except Exception as e:
            self.logger.error(
                f"Error saving risk metrics for agent {agent_id} in {competition_id}: {e}",
                exc_info=True,
            )
            raise

        self.logger.info(
            f"Saved risk metrics for agent {agent_id} in {competition_id}: "
            f"calmar={record.calmar_ratio} sortino={record.sortino_ratio} "
            f"snapshots={record.snapshot_count}"
        )
        return record

    async def get_risk_metrics_time_series(
        self,
        competition_id: str,
        *,
        agent_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Historical risk metric rows for charting, oldest first."""
        return await self.risk_metrics_repo.get_risk_metrics_time_series(
            competition_id,
            agent_id=agent_id,
            start=start,
            end=end,
            limit=limit,
        )


__all__ = ["RiskMetricsService"]
