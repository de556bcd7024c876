"""Risk metrics persistence: current record upsert plus append-only time series."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import text

from arenarank.engine.determinism import format_ratio, round_decimal, to_decimal
from arenarank.engine.types import RiskMetricsRecord


_UPSERT_RISK_METRICS = text(
    """
    INSERT INTO risk_metrics (
        agent_id, competition_id, simple_return, calmar_ratio, annualized_return,
        max_drawdown, downside_deviation, sortino_ratio, snapshot_count,
        calculation_timestamp
    ) VALUES (
        :agent_id, :competition_id, :simple_return, :calmar_ratio, :annualized_return,
        :max_drawdown, :downside_deviation, :sortino_ratio, :snapshot_count,
        NOW()
    )
    ON CONFLICT (agent_id, competition_id) DO UPDATE SET
        simple_return = EXCLUDED.simple_return,
        calmar_ratio = EXCLUDED.calmar_ratio,
        annualized_return = EXCLUDED.annualized_return,
        max_drawdown = EXCLUDED.max_drawdown,
        downside_deviation = EXCLUDED.downside_deviation,
        sortino_ratio = EXCLUDED.sortino_ratio,
        snapshot_count = EXCLUDED.snapshot_count,
        calculation_timestamp = NOW()
    """
)

_INSERT_RISK_METRICS_SNAPSHOT = text(
    """
    INSERT INTO risk_metrics_snapshots (
        agent_id, competition_id, timestamp, calmar_ratio, sortino_ratio,
        simple_return, annualized_return, max_drawdown, downside_deviation
    ) VALUES (
        :agent_id, :competition_id, :timestamp, :calmar_ratio, :sortino_ratio,
        :simple_return, :annualized_return, :max_drawdown, :downside_deviation
    )
    """
)

_SELECT_RISK_METRICS = text(
    """
    SELECT simple_return, calmar_ratio, annualized_return, max_drawdown,
           downside_deviation, sortino_ratio, snapshot_count
    FROM risk_metrics
    WHERE agent_id = :agent_id
      AND competition_id = :competition_id
    """
)

_SELECT_RISK_METRICS_TIME_SERIES = text(
    """
    SELECT agent_id, competition_id, timestamp, calmar_ratio, sortino_ratio,
           simple_return, annualized_return, max_drawdown, downside_deviation
    FROM risk_metrics_snapshots
    WHERE competition_id = :competition_id
      AND (CAST(:agent_id AS TEXT) IS NULL OR agent_id = CAST(:agent_id AS TEXT))
      AND (CAST(:start AS TIMESTAMPTZ) IS NULL OR timestamp >= CAST(:start AS TIMESTAMPTZ))
      AND (CAST(:end AS TIMESTAMPTZ) IS NULL OR timestamp <= CAST(:end AS TIMESTAMPTZ))
    ORDER BY timestamp ASC, agent_id ASC
    LIMIT :limit
    """
)

_RATIO_FIELDS = (
    "simple_return",
    "calmar_ratio",
    "annualized_return",
    "max_drawdown",
    "downside_deviation",
    "sortino_ratio",
)


def record_to_params(record: RiskMetricsRecord) -> dict:
    """Bind ratio fields as Decimals quantized to 8 places."""
    params = {name: round_decimal(getattr(record, name)) for name in _RATIO_FIELDS}
    params["snapshot_count"] = record.snapshot_count
    return params


def format_record(record: RiskMetricsRecord) -> dict:
    """Render a record with ratios as fixed 8-digit strings."""
    row = {name: format_ratio(getattr(record, name)) for name in _RATIO_FIELDS}
    row["snapshot_count"] = record.snapshot_count
    return row


def row_to_record(row: Any) -> RiskMetricsRecord:
    fields = {name: round_decimal(to_decimal(row[name], name)) for name in _RATIO_FIELDS}
    return RiskMetricsRecord(snapshot_count=int(row["snapshot_count"]), **fields)


class RiskMetricsRepository:
    def __init__(self, db: Any):
        self.db = db

    async def upsert_risk_metrics(
        self,
        agent_id: str,
        competition_id: str,
        record: RiskMetricsRecord,
        tx: Any = None,
    ) -> int:
        return await self.db.write(
            _UPSERT_RISK_METRICS,
            params={
                "agent_id": agent_id,
                "competition_id": competition_id,
                **record_to_params(record),
            },
            tx=tx,
        )

    async def create_risk_metrics_snapshot(
        self,
        agent_id: str,
        competition_id: str,
        timestamp: datetime,
        record: RiskMetricsRecord,
        tx: Any = None,
    ) -> int:
        params = record_to_params(record)
        params.pop("snapshot_count")
        return await self.db.write(
            _INSERT_RISK_METRICS_SNAPSHOT,
            params={
                "agent_id": agent_id,
                "competition_id": competition_id,
                "timestamp": timestamp,
                **params,
            },
            tx=tx,
        )

    async def get_risk_metrics(
        self,
        agent_id: str,
        competition_id: str,
        tx: Any = None,
    ) -> Optional[RiskMetricsRecord]:
        rows = await self.db.read(
            _SELECT_RISK_METRICS,
            params={"agent_id": agent_id, "competition_id": competition_id},
            mappings=True,
            tx=tx,
        )
        return row_to_record(rows[0]) if rows else None

    async def get_risk_metrics_time_series(
        self,
        competition_id: str,
        *,
        agent_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Any]:
        return await self.db.read(
            _SELECT_RISK_METRICS_TIME_SERIES,
            params={
                "competition_id": competition_id,
                "agent_id": agent_id,
                "start": start,
                "end": end,
                "limit": limit,
            },
            mappings=True,
        )


__all__ = ["RiskMetricsRepository", "record_to_params", "format_record", "row_to_record"]
