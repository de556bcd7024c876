"""Batch jobs that drive engine services across many agents or events."""

from __future__ import annotations

from .base import EngineJob
from .event_scoring import EventScoringJob
from .risk_metrics import RiskMetricsJob

__all__ = ["EngineJob", "EventScoringJob", "RiskMetricsJob"]
