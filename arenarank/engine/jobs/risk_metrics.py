"""Risk metrics recomputation for every agent in a competition.

Agents are processed in concurrent batches. Each agent's metrics are
computed and saved atomically by RiskMetricsService.

Failure handling:
- Validation failures (not started, too few snapshots, zero start value,
  transfers detected) are recorded once and never retried
- Other failures are retried with exponential backoff: 1s, 2s, 4s, capped
- A batch with >= 80% failures counts as a failed batch
- When >= 50% of batches so far have failed, a systemic failure is logged
  and processing continues
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Sequence

from arenarank.config.engine_params import BatchParams, get_engine_params

from ..risk.providers import supports_transfer_history
from ..types import (
    CompetitionNotFound,
    ContractViolation,
    RiskMetricsBatchResult,
    TransfersDetected,
    ValidationError,
)
from .base import EngineJob


class RiskMetricsJob(EngineJob):
    """Recompute and persist risk metrics for a competition's agents."""

    JOB_ID = "risk_metrics_v1"

    def __init__(
        self,
        risk_service: Any,
        competition_repo: Any,
        competition_id: str,
        logger: Optional[logging.Logger] = None,
        *,
        agent_ids: Optional[Sequence[str]] = None,
        provider: Any = None,
        params: Optional[BatchParams] = None,
    ):
        super().__init__(logger)
        self.risk_service = risk_service
        self.competition_repo = competition_repo
        self.competition_id = competition_id
        self.agent_ids = list(agent_ids) if agent_ids is not None else None
        self.provider = provider
        self.params = params or get_engine_params().batch
        self.result = RiskMetricsBatchResult()

    async def execute(self) -> RiskMetricsBatchResult:
        competition = await self.competition_repo.get_competition_metadata(self.competition_id)
        if competition is None:
            raise CompetitionNotFound(f"Competition {self.competition_id} not found")

        agent_ids = self.agent_ids
        if agent_ids is None:
            agent_ids = await self.competition_repo.get_competition_agent_ids(self.competition_id)

        self.items_total = len(agent_ids)
        if not agent_ids:
            self.logger.info(f"No agents to process for competition {self.competition_id}")
            return self.result

        size = self.params.batch_size
        total_batches = 0
        failed_batches = 0

        for start in range(0, len(agent_ids), size):
            batch = agent_ids[start:start + size]
            total_batches += 1

            outcomes = await asyncio.gather(
                *(self._process_agent(agent_id, competition.start_date) for agent_id in batch)
            )

            batch_failures = 0
            for agent_id, error in zip(batch, outcomes):
                if error is None:
                    self.result.successful += 1
                else:
                    self.result.failed += 1
                    batch_failures += 1
                    self._record_error(f"Agent {agent_id}: {error}")
            self.items_processed += len(batch)

            batch_failure_rate = batch_failures / len(batch)
            if batch_failure_rate >= self.params.batch_failure_threshold:
                failed_batches += 1
                self.logger.warning(
                    f"Batch failure detected: {batch_failures}/{len(batch)} agents failed "
                    f"({round(batch_failure_rate * 100)}% failure rate)"
                )

            systemic_rate = failed_batches / total_batches
            if failed_batches and systemic_rate >= self.params.systemic_failure_threshold:
                remaining = len(agent_ids) - self.items_processed
                self.logger.error(
                    f"Systemic failure detected: {failed_batches}/{total_batches} batches failing "
                    f"({round(systemic_rate * 100)}%). Continuing with {remaining} remaining agents."
                )
                self._record_error(
                    f"SYSTEMIC ALERT: {round(systemic_rate * 100)}% of batches failing "
                    f"(threshold: {round(self.params.systemic_failure_threshold * 100)}%)"
                )

        self.logger.info(
            f"Risk metrics for competition {self.competition_id}: "
            f"{self.result.successful} successful, {self.result.failed} failed"
        )
        return self.result

    async def _process_agent(self, agent_id: str, since: Any) -> Optional[str]:
        """Returns None on success, otherwise the final error message."""
        try:
            await self._check_transfers(agent_id, since)
        except ValidationError as e:
            self.logger.warning(f"Skipping risk metrics for agent {agent_id}: {e}")
            return str(e)
        except Exception as e:
            self.logger.warning(f"Transfer history check failed for agent {agent_id}: {e}")
            return f"transfer history unavailable: {e}"

        max_attempts = self.params.max_retries + 1
        last_error = "Max retries exhausted"
        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                delay = min(
                    self.params.initial_backoff_sec * 2 ** (attempt - 2),
                    self.params.max_backoff_sec,
                )
                self.logger.debug(
                    f"Retrying risk metrics for agent {agent_id} "
                    f"(attempt {attempt}/{max_attempts}) after {delay:.1f}s"
                )
                await asyncio.sleep(delay)

            try:
                await self.risk_service.calculate_and_save_all_risk_metrics(
                    agent_id, self.competition_id
                )
                if attempt > 1:
                    self.logger.info(
                        f"Risk metrics for agent {agent_id} succeeded on attempt {attempt}"
                    )
                return None
            except ValidationError as e:
                return str(e)
            except ContractViolation as e:
                self.logger.error(
                    f"Contract violation computing risk metrics for agent {agent_id}: {e}",
                    exc_info=True,
                )
                return str(e)
            except Exception as e:
                self.logger.warning(
                    f"Risk metrics failed for agent {agent_id} "
                    f"(attempt {attempt}/{max_attempts}): {e}"
                )
                last_error = str(e)

        self.logger.error(
            f"Risk metrics failed for agent {agent_id} after {max_attempts} attempts"
        )
        return last_error

    async def _check_transfers(self, agent_id: str, since: Any) -> None:
        if self.provider is None or since is None:
            return
        if not supports_transfer_history(self.provider):
            return
        transfers = await self.provider.get_transfer_history(agent_id, since)
        if transfers:
            raise TransfersDetected(
                f"{len(transfers)} transfer(s) since competition start; "
                "endpoint return would be invalid"
            )

    def _record_error(self, message: str) -> None:
        cap = self.params.max_errors_stored
        if len(self.result.errors) < cap:
            self.result.errors.append(message)
        elif len(self.result.errors) == cap:
            self.result.errors.append("... further errors omitted")


__all__ = ["RiskMetricsJob"]
