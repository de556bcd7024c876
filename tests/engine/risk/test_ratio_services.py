"""Tests for CalmarRatioService and SortinoRatioService."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from arenarank.engine.risk.calmar import CalmarRatioService
from arenarank.engine.risk.sortino import SortinoRatioService
from arenarank.engine.types import (
    CompetitionMetadata,
    CompetitionNotFound,
    CompetitionNotStarted,
    InsufficientData,
)

T0 = datetime(2025, 3, 1, tzinfo=timezone.utc)


@pytest.fixture
def competition_repo():
    repo = MagicMock()
    repo.get_competition_metadata = AsyncMock(
        return_value=CompetitionMetadata(id="comp-1", type="trading", start_date=T0)
    )
    repo.get_portfolio_snapshots = AsyncMock(
        return_value=[
            {"timestamp": T0, "total_value": "1000"},
            {"timestamp": T0 + timedelta(hours=1), "total_value": "1100"},
            {"timestamp": T0 + timedelta(hours=2), "total_value": "1210"},
        ]
    )
    return repo


class TestCalmarRatioService:
    """Tests for CalmarRatioService."""

    async def test_calculates_from_repository_rows(self, competition_repo, mock_logger):
        service = CalmarRatioService(competition_repo, mock_logger)

        result = await service.calculate_calmar_ratio("agent-1", "comp-1")

        assert result.simple_return == Decimal("0.21")
        assert result.calmar_ratio == Decimal("210")
        competition_repo.get_portfolio_snapshots.assert_awaited_once_with(
            "agent-1", "comp-1", None
        )

    async def test_passes_transaction(self, competition_repo, mock_logger):
        service = CalmarRatioService(competition_repo, mock_logger)
        tx = MagicMock(name="tx")

        await service.calculate_calmar_ratio("agent-1", "comp-1", tx)

        competition_repo.get_competition_metadata.assert_awaited_once_with("comp-1", tx)
        competition_repo.get_portfolio_snapshots.assert_awaited_once_with("agent-1", "comp-1", tx)

    async def test_missing_competition(self, competition_repo, mock_logger):
        competition_repo.get_competition_metadata.return_value = None
        service = CalmarRatioService(competition_repo, mock_logger)

        with pytest.raises(CompetitionNotFound):
            await service.calculate_calmar_ratio("agent-1", "missing")

    async def test_not_started(self, competition_repo, mock_logger):
        competition_repo.get_competition_metadata.return_value = CompetitionMetadata(
            id="comp-1", type="trading", start_date=None
        )
        service = CalmarRatioService(competition_repo, mock_logger)

        with pytest.raises(CompetitionNotStarted):
            await service.calculate_calmar_ratio("agent-1", "comp-1")


class TestSortinoRatioService:
    """Tests for SortinoRatioService."""

    async def test_calculates_over_full_series(self, competition_repo, mock_logger):
        service = SortinoRatioService(competition_repo, mock_logger)

        result = await service.calculate_sortino_ratio("agent-1", "comp-1")

        assert result.sortino_ratio == Decimal("1000")
        assert result.snapshot_count == 3

    async def test_insufficient_snapshots(self, competition_repo, mock_logger):
        competition_repo.get_portfolio_snapshots.return_value = [
            {"timestamp": T0, "total_value": "1000"}
        ]
        service = SortinoRatioService(competition_repo, mock_logger)

        with pytest.raises(InsufficientData):
            await service.calculate_sortino_ratio("agent-1", "comp-1")
