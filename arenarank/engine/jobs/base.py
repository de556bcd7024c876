"""Base class for engine batch jobs.

Provides common functionality for all jobs:
- Progress tracking
- Structured logging with timing
- Error propagation after logging
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Optional


class EngineJob(ABC):
    """Base class for all engine batch jobs.

    Subclasses must:
    - Set JOB_ID class attribute
    - Implement execute() method
    """

    # Must be overridden by subclasses
    JOB_ID: str = ""

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        *,
        job_id_override: str | None = None,
    ):
        if not self.JOB_ID and not job_id_override:
            raise ValueError("JOB_ID must be set")

        self.logger = logger or logging.getLogger(__name__)
        self.job_id = job_id_override or self.JOB_ID
        self.items_processed = 0
        self.items_total = 0
        self._started_at: Optional[datetime] = None

    async def run(self) -> Any:
        """Run execute() with timing and failure logging.

        Returns:
            Whatever execute() returns
        """
        self._started_at = datetime.now(timezone.utc)
        self.logger.info(f"Starting job {self.job_id}")

        try:
            result = await self.execute()
        except Exception as e:
            self.logger.error(f"Job {self.job_id} failed: {e}", exc_info=True)
            raise

        elapsed = (datetime.now(timezone.utc) - self._started_at).total_seconds()
        self.logger.info(
            f"Job {self.job_id} completed: "
            f"processed {self.items_processed}/{self.items_total} in {elapsed:.2f}s"
        )
        return result

    @abstractmethod
    async def execute(self) -> Any:
        """Job-specific logic.

        Subclasses must implement this method and keep items_processed and
        items_total current.
        """
        pass


__all__ = ["EngineJob"]
