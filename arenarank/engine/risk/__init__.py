"""Risk metrics over portfolio snapshots: return, drawdown, Calmar, Sortino."""

from __future__ import annotations

from .calmar import CalmarRatioService
from .metrics import compute_risk_metrics, merge_risk_metrics
from .orchestrator import RiskMetricsService
from .sortino import SortinoRatioService

__all__ = [
    "CalmarRatioService",
    "SortinoRatioService",
    "RiskMetricsService",
    "compute_risk_metrics",
    "merge_risk_metrics",
]
