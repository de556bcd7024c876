"""Ranking and risk-scoring engine for agent competitions.

This package contains the numerical core:
- Plackett-Luce skill rating updates for global and arena pools
- Risk metrics over portfolio snapshot series (return, drawdown, Calmar, Sortino)
- Brier-based prediction scoring and leaderboard assembly
- Batch jobs that drive the services across many agents or events
"""

from __future__ import annotations

__all__: list[str] = []
