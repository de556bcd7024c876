"""Tests for engine job base class."""

from unittest.mock import AsyncMock

import pytest

from arenarank.engine.jobs.base import EngineJob


class ConcreteJob(EngineJob):
    """Concrete implementation for testing."""

    JOB_ID = "test_job"

    def __init__(self, logger, execute_fn=None, job_id_override=None):
        super().__init__(logger, job_id_override=job_id_override)
        self._execute_fn = execute_fn or AsyncMock(return_value="done")

    async def execute(self):
        self.items_total = 3
        result = await self._execute_fn()
        self.items_processed = 3
        return result


class TestEngineJobInit:
    """Tests for EngineJob initialization."""

    def test_requires_job_id(self, mock_logger):
        """Should raise if JOB_ID not set."""
        class BadJob(EngineJob):
            JOB_ID = ""

            async def execute(self):
                pass

        with pytest.raises(ValueError, match="JOB_ID must be set"):
            BadJob(mock_logger)

    def test_job_id_override(self, mock_logger):
        job = ConcreteJob(mock_logger, job_id_override="custom")

        assert job.job_id == "custom"

    def test_initial_progress(self, mock_logger):
        job = ConcreteJob(mock_logger)

        assert job.items_processed == 0
        assert job.items_total == 0


class TestEngineJobRun:
    """Tests for EngineJob.run."""

    async def test_returns_execute_result(self, mock_logger):
        job = ConcreteJob(mock_logger)

        assert await job.run() == "done"
        assert job.items_processed == 3

    async def test_logs_start_and_completion(self, mock_logger):
        job = ConcreteJob(mock_logger)

        await job.run()

        messages = [c.args[0] for c in mock_logger.info.call_args_list]
        assert any("Starting job test_job" in m for m in messages)
        assert any("processed 3/3" in m for m in messages)

    async def test_failure_is_logged_and_reraised(self, mock_logger):
        job = ConcreteJob(mock_logger, execute_fn=AsyncMock(side_effect=RuntimeError("boom")))

        with pytest.raises(RuntimeError, match="boom"):
            await job.run()

        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.kwargs["exc_info"] is True
