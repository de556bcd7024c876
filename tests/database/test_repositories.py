"""Tests for repository parameter binding and row mapping."""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from arenarank.database.repositories import (
    AgentScoreRepository,
    CompetitionRepository,
    PlayPredictionsRepository,
    PredictionAggregatesRepository,
    RiskMetricsRepository,
)
from arenarank.database.repositories.risk_metrics import (
    format_record,
    record_to_params,
    row_to_record,
)
from arenarank.engine.types import CompetitionMetadata, RatedAgent, RiskMetricsRecord
from arenarank.shared.enums import CompetitionType

T0 = datetime(2025, 3, 1, tzinfo=timezone.utc)

RECORD = RiskMetricsRecord(
    simple_return=Decimal("0.15"),
    calmar_ratio=Decimal("500"),
    annualized_return=Decimal("0.15"),
    max_drawdown=Decimal("-0.0003"),
    downside_deviation=Decimal("0"),
    sortino_ratio=Decimal("-0.5"),
    snapshot_count=4,
)


class TestRiskMetricsMapping:
    """Tests for risk metric conversion helpers."""

    def test_params_are_quantized_decimals(self):
        params = record_to_params(RECORD)

        assert params["calmar_ratio"] == Decimal("500.00000000")
        assert params["calmar_ratio"].as_tuple().exponent == -8
        assert params["snapshot_count"] == 4

    def test_format_record_renders_fixed_strings(self):
        row = format_record(RECORD)

        assert row["calmar_ratio"] == "500.00000000"
        assert row["simple_return"] == "0.15000000"
        assert row["sortino_ratio"] == "-0.50000000"
        assert row["downside_deviation"] == "0.00000000"

    def test_row_to_record_reads_strings_and_decimals(self):
        row = dict(format_record(RECORD))
        row["max_drawdown"] = Decimal("-0.0003")

        assert row_to_record(row) == RECORD


class TestRiskMetricsRepository:
    """Tests for RiskMetricsRepository."""

    async def test_upsert_binds_record(self, mock_db):
        repo = RiskMetricsRepository(mock_db)
        tx = MagicMock(name="tx")

        await repo.upsert_risk_metrics("agent-1", "comp-1", RECORD, tx)

        params = mock_db.write.await_args.kwargs["params"]
        assert params["agent_id"] == "agent-1"
        assert params["competition_id"] == "comp-1"
        assert params["sortino_ratio"] == Decimal("-0.5")
        assert mock_db.write.await_args.kwargs["tx"] is tx

    async def test_snapshot_row_has_no_count(self, mock_db):
        repo = RiskMetricsRepository(mock_db)

        await repo.create_risk_metrics_snapshot("agent-1", "comp-1", T0, RECORD)

        params = mock_db.write.await_args.kwargs["params"]
        assert params["timestamp"] == T0
        assert "snapshot_count" not in params

    async def test_get_risk_metrics_missing(self, mock_db):
        assert await RiskMetricsRepository(mock_db).get_risk_metrics("a", "c") is None

    async def test_get_risk_metrics(self, mock_db):
        mock_db.read.return_value = [format_record(RECORD) | {"max_drawdown": "-0.0003"}]

        assert await RiskMetricsRepository(mock_db).get_risk_metrics("a", "c") == RECORD

    async def test_time_series_filters(self, mock_db):
        repo = RiskMetricsRepository(mock_db)

        await repo.get_risk_metrics_time_series("comp-1", agent_id="agent-1", limit=10)

        params = mock_db.read.await_args.kwargs["params"]
        assert params == {
            "competition_id": "comp-1",
            "agent_id": "agent-1",
            "start": None,
            "end": None,
            "limit": 10,
        }


class TestCompetitionRepository:
    """Tests for CompetitionRepository."""

    async def test_metadata_mapping(self, mock_db):
        mock_db.read.return_value = [
            {
                "id": "comp-1",
                "type": "trading",
                "status": "active",
                "arena_id": "arena-1",
                "start_date": T0,
                "end_date": None,
            }
        ]

        metadata = await CompetitionRepository(mock_db).get_competition_metadata("comp-1")

        assert metadata == CompetitionMetadata(
            id="comp-1", type="trading", arena_id="arena-1", start_date=T0, status="active"
        )

    async def test_metadata_missing(self, mock_db):
        assert await CompetitionRepository(mock_db).get_competition_metadata("x") is None

    async def test_agent_ids(self, mock_db):
        mock_db.read.return_value = [{"agent_id": "a"}, {"agent_id": "b"}]

        assert await CompetitionRepository(mock_db).get_competition_agent_ids("comp-1") == ["a", "b"]


class TestAgentScoreRepository:
    """Tests for AgentScoreRepository batch writes."""

    async def test_batch_update_opens_transaction(self, mock_db, mock_logger):
        repo = AgentScoreRepository(mock_db, mock_logger)
        updates = [RatedAgent("a", 27.0, 7.0, 1.0), RatedAgent("b", 23.0, 7.0, -1.0)]

        count = await repo.batch_update_agent_ranks(updates, "comp-1", CompetitionType.TRADING)

        assert count == 2
        assert mock_db.write.await_count == 2
        for c in mock_db.write.await_args_list:
            assert c.kwargs["tx"] is mock_db.tx
            assert [p["type"] for p in c.kwargs["params"]] == ["trading", "trading"]
        assert mock_db.committed is True

    async def test_arena_update_binds_arena(self, mock_db, mock_logger):
        repo = AgentScoreRepository(mock_db, mock_logger)
        tx = MagicMock(name="tx")

        await repo.batch_update_arena_ranks(
            [RatedAgent("a", 27.0, 7.0, 1.0)], "comp-1", "arena-1", "trading", tx
        )

        params = mock_db.write.await_args.kwargs["params"]
        assert params[0]["arena_id"] == "arena-1"
        assert params[0]["competition_id"] == "comp-1"

    async def test_empty_updates_write_nothing(self, mock_db, mock_logger):
        repo = AgentScoreRepository(mock_db, mock_logger)

        assert await repo.batch_update_agent_ranks([], "comp-1", "trading") == 0
        mock_db.write.assert_not_awaited()

    async def test_arena_history_skips_empty_agent_list(self, mock_db, mock_logger):
        repo = AgentScoreRepository(mock_db, mock_logger)

        assert await repo.get_latest_arena_history_for_agents("arena-1", []) == []
        mock_db.read.assert_not_awaited()


class TestPredictionRepositories:
    """Tests for play prediction repositories."""

    async def test_increment_binds_correct_flag_and_brier(self, mock_db):
        repo = PredictionAggregatesRepository(mock_db)

        await repo.increment("comp-1", "agent-1", True, Decimal("0.09"))

        params = mock_db.write.await_args.kwargs["params"]
        assert params["correct"] == 1
        assert params["brier_term"] == Decimal("0.09000000")

    async def test_find_play_missing(self, mock_db):
        assert await PlayPredictionsRepository(mock_db).find_play("play-x") is None

    @pytest.mark.parametrize("is_correct, expected", [(True, 1), (False, 0)])
    async def test_correct_flag(self, mock_db, is_correct, expected):
        await PredictionAggregatesRepository(mock_db).increment("c", "a", is_correct, Decimal("0"))

        assert mock_db.write.await_args.kwargs["params"]["correct"] == expected
