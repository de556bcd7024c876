"""Risk metrics over a portfolio snapshot series.

Every computation here is Decimal-only. Values arrive as Decimal or
decimal strings and leave rounded to DECIMAL_PLACES.

- Simple return: (last - first) / first, endpoints only. Transfers are
  prohibited during a competition, so the endpoint ratio is the return.
- Max drawdown: most negative (value - running_peak) / running_peak over
  the full series between the first and last snapshot timestamps.
- Calmar: period_return / max(|max_drawdown|, 0.001)
- Downside deviation: sqrt(mean(min(r - MAR, 0)²)) over per-period returns
- Sortino: mean_period_return / max(downside_deviation, 0.0001)
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Sequence

from arenarank.config.engine_params import RiskParams, get_engine_params

from ..determinism import ZERO, round_decimal, safe_divide, to_decimal
from ..types import (
    CalmarResult,
    CompetitionNotStarted,
    ContestWindow,
    ContractViolation,
    InsufficientData,
    InvalidStartValue,
    PortfolioSnapshot,
    RiskMetricsRecord,
    SortinoResult,
)


def simple_return(first: Decimal, last: Decimal) -> Decimal:
    """Return from the first to the last portfolio value.

    Raises:
        InvalidStartValue: If first is zero
    """
    if first == ZERO:
        raise InvalidStartValue("Cannot compute return: starting portfolio value is zero")
    return (last - first) / first


def max_drawdown(values: Sequence[Decimal]) -> Decimal:
    """Most negative peak-to-trough decline, as a fraction of the peak.

    Returns 0 for a non-decreasing series. A running peak of zero
    contributes no drawdown.
    """
    worst = ZERO
    peak: Optional[Decimal] = None
    for value in values:
        if peak is None or value > peak:
            peak = value
        drawdown = safe_divide(value - peak, peak)
        if drawdown < worst:
            worst = drawdown
    return worst


def period_returns(values: Sequence[Decimal]) -> List[Decimal]:
    """Per-period returns between consecutive snapshots.

    Periods whose previous value is zero have no defined return and are
    skipped.
    """
    returns: List[Decimal] = []
    for prev, curr in zip(values, values[1:]):
        if prev == ZERO:
            continue
        returns.append((curr - prev) / prev)
    return returns


def downside_deviation(
    returns: Sequence[Decimal],
    mar: Decimal = ZERO,
) -> Decimal:
    """Root-mean-square of shortfalls below the minimum acceptable return.

    Returns 0 when no period return is below MAR or there are no returns.
    """
    if not returns:
        return ZERO
    shortfall_sq = sum((min(r - mar, ZERO) ** 2 for r in returns), ZERO)
    if shortfall_sq == ZERO:
        return ZERO
    return (shortfall_sq / Decimal(len(returns))).sqrt()


def calmar_ratio(
    period_return: Decimal,
    max_dd: Decimal,
    floor: Decimal = Decimal("0.001"),
) -> Decimal:
    """Period return over absolute max drawdown, floored.

    Raises:
        ContractViolation: If max_dd is positive. Drawdowns are never
            positive, so a positive value means an upstream bug.
    """
    if max_dd > ZERO:
        raise ContractViolation(
            f"max drawdown must be <= 0, got {max_dd}"
        )
    return period_return / max(abs(max_dd), floor)


def sortino_ratio(
    average_return: Decimal,
    downside_dev: Decimal,
    floor: Decimal = Decimal("0.0001"),
) -> Decimal:
    """Average period return over downside deviation, floored.

    Exactly 0 when both inputs are 0.
    """
    if average_return == ZERO and downside_dev == ZERO:
        return ZERO
    return average_return / max(downside_dev, floor)


# ─────────────────────────────────────────────────────────────────────────────
# Series-level calculations
# ─────────────────────────────────────────────────────────────────────────────


def _ordered_values(
    snapshots: Sequence[PortfolioSnapshot],
    min_snapshots: int,
) -> List[Decimal]:
    if len(snapshots) < min_snapshots:
        raise InsufficientData(
            f"Insufficient data: need at least {min_snapshots} portfolio snapshots, "
            f"got {len(snapshots)}"
        )
    ordered = sorted(snapshots, key=lambda s: s.timestamp)
    values = [to_decimal(s.total_value, "total_value") for s in ordered]
    if values[0] == ZERO:
        raise InvalidStartValue("Cannot compute return: starting portfolio value is zero")
    return values


def _require_started(window: ContestWindow) -> None:
    if window.start is None:
        raise CompetitionNotStarted("Competition has not started (no start date)")


def compute_calmar(
    snapshots: Sequence[PortfolioSnapshot],
    window: ContestWindow,
    params: Optional[RiskParams] = None,
) -> CalmarResult:
    """Calmar ratio anchored on the first and last snapshot."""
    params = params or get_engine_params().risk
    _require_started(window)
    values = _ordered_values(snapshots, params.min_snapshots)

    period_return = simple_return(values[0], values[-1])
    mdd = max_drawdown(values)
    ratio = calmar_ratio(period_return, mdd, params.calmar_drawdown_floor)

    return CalmarResult(
        calmar_ratio=round_decimal(ratio),
        simple_return=round_decimal(period_return),
        annualized_return=round_decimal(period_return),
        max_drawdown=round_decimal(mdd),
        snapshot_count=2,
    )


def compute_sortino(
    snapshots: Sequence[PortfolioSnapshot],
    window: ContestWindow,
    params: Optional[RiskParams] = None,
) -> SortinoResult:
    """Sortino ratio over every consecutive snapshot pair."""
    params = params or get_engine_params().risk
    _require_started(window)
    values = _ordered_values(snapshots, params.min_snapshots)

    returns = period_returns(values)
    average = safe_divide(sum(returns, ZERO), Decimal(len(returns)))
    deviation = downside_deviation(returns, params.minimum_acceptable_return)
    ratio = sortino_ratio(average, deviation, params.sortino_deviation_floor)

    return SortinoResult(
        sortino_ratio=round_decimal(ratio),
        downside_deviation=round_decimal(deviation),
        average_return=round_decimal(average),
        simple_return=round_decimal(simple_return(values[0], values[-1])),
        snapshot_count=len(values),
    )


def merge_risk_metrics(calmar: CalmarResult, sortino: SortinoResult) -> RiskMetricsRecord:
    """Combine Calmar and Sortino results into one record.

    Field provenance:
    - simple_return, annualized_return: Calmar. The overall period return
      from the first to the last snapshot. Sortino's average_return is a
      mean of per-period returns and is only an input to its own ratio.
    - max_drawdown, calmar_ratio: Calmar.
    - sortino_ratio, downside_deviation: Sortino.
    - snapshot_count: Sortino. Calmar only anchors on two snapshots while
      Sortino reads the full series.
    """
    return RiskMetricsRecord(
        simple_return=calmar.simple_return,
        calmar_ratio=calmar.calmar_ratio,
        annualized_return=calmar.annualized_return,
        max_drawdown=calmar.max_drawdown,
        downside_deviation=sortino.downside_deviation,
        sortino_ratio=sortino.sortino_ratio,
        snapshot_count=sortino.snapshot_count,
    )


def compute_risk_metrics(
    snapshots: Sequence[PortfolioSnapshot],
    window: ContestWindow,
    params: Optional[RiskParams] = None,
) -> RiskMetricsRecord:
    """Compute the full risk metrics record for one agent's snapshot series.

    Args:
        snapshots: Portfolio snapshots for one agent in one competition
        window: Competition calendar bounds; only the start is required

    Returns:
        RiskMetricsRecord with every ratio rounded to 8 places

    Raises:
        CompetitionNotStarted: If the window has no start
        InsufficientData: If fewer than 2 snapshots exist
        InvalidStartValue: If the first snapshot value is zero
    """
    return merge_risk_metrics(
        compute_calmar(snapshots, window, params),
        compute_sortino(snapshots, window, params),
    )


__all__ = [
    "simple_return",
    "max_drawdown",
    "period_returns",
    "downside_deviation",
    "calmar_ratio",
    "sortino_ratio",
    "compute_calmar",
    "compute_sortino",
    "merge_risk_metrics",
    "compute_risk_metrics",
]
