"""Engine hyperparameters and configuration.

All ranking and scoring constants live here so that:
1. Every service reads the same prior, floors and thresholds
2. Recomputations are reproducible (same params = same results)
3. Tuning happens in one place

Changing rating or floor values changes persisted scores. Recompute
affected competitions after editing them.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Tuple

from pydantic import BaseModel, Field, model_validator


class RatingParams(BaseModel):
    """Plackett-Luce prior and ordinal display parameters.

    Defaults match the OpenSkill reference model.
    """

    mu: float = Field(
        default=25.0,
        gt=0,
        description="Prior mean skill for an agent first seen in a pool.",
    )
    sigma: float = Field(
        default=25.0 / 3.0,
        gt=0,
        description="Prior skill standard deviation (mu / 3).",
    )
    beta: float = Field(
        default=25.0 / 6.0,
        gt=0,
        description="Performance noise around skill (sigma / 2).",
    )
    kappa: float = Field(
        default=0.0001,
        gt=0,
        le=0.01,
        description="Lower bound on the variance shrink factor so sigma stays positive.",
    )
    tau: float = Field(
        default=0.0,
        ge=0,
        le=1.0,
        description="Additive dynamics applied to sigma before each update. 0 keeps sigma non-increasing.",
    )
    z: float = Field(
        default=3.0,
        ge=0,
        le=5.0,
        description="Standard deviations subtracted from mu for the conservative ordinal.",
    )
    alpha: float = Field(
        default=24.0,
        gt=0,
        description="Ordinal scale factor.",
    )
    target: float = Field(
        default=1500.0,
        description="Ordinal offset so scores resemble a familiar rating range.",
    )


class RiskParams(BaseModel):
    """Risk metric floors and sample guards.

    Calmar divides by a drawdown magnitude, Sortino by a per-period deviation.
    """

    calmar_drawdown_floor: Decimal = Field(
        default=Decimal("0.001"),
        gt=Decimal("0"),
        le=Decimal("0.1"),
        description="Minimum |max drawdown| used as the Calmar denominator.",
    )
    sortino_deviation_floor: Decimal = Field(
        default=Decimal("0.0001"),
        gt=Decimal("0"),
        le=Decimal("0.1"),
        description="Minimum downside deviation used as the Sortino denominator.",
    )
    minimum_acceptable_return: Decimal = Field(
        default=Decimal("0"),
        description="MAR for downside deviation. Returns are crypto-denominated, so no risk-free benchmark.",
    )
    min_snapshots: int = Field(
        default=2,
        ge=2,
        le=1000,
        description="Minimum portfolio snapshots before any ratio is computed.",
    )


class PredictionParams(BaseModel):
    """Binary play prediction classes."""

    outcome_classes: Tuple[str, str] = Field(
        default=("pass", "run"),
        description="The two outcome classes a prediction may name.",
    )
    positive_class: str = Field(
        default="pass",
        description="Class whose probability is reported as predicted_probability.",
    )

    @model_validator(mode="after")
    def _positive_class_known(self) -> "PredictionParams":
        if self.positive_class not in self.outcome_classes:
            raise ValueError(
                f"positive_class {self.positive_class!r} not in {self.outcome_classes}"
            )
        return self


class BatchParams(BaseModel):
    """Batch processing parameters for risk metric recomputation."""

    batch_size: int = Field(
        default=10,
        ge=1,
        le=500,
        description="Agents processed concurrently per batch.",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retries for transient (non-validation) failures.",
    )
    initial_backoff_sec: float = Field(
        default=1.0,
        ge=0,
        le=60,
        description="First retry delay. Doubles on each attempt.",
    )
    max_backoff_sec: float = Field(
        default=10.0,
        ge=0,
        le=300,
        description="Upper bound on retry delay.",
    )
    batch_failure_threshold: float = Field(
        default=0.8,
        gt=0,
        le=1.0,
        description="Failure share at which a batch is reported as failed.",
    )
    systemic_failure_threshold: float = Field(
        default=0.5,
        gt=0,
        le=1.0,
        description="Share of failed batches at which the run is reported as a systemic failure.",
    )
    max_errors_stored: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Cap on error messages kept in a batch result.",
    )


class EngineParams(BaseModel):
    """Master configuration for all engine parameters."""

    rating: RatingParams = Field(default_factory=RatingParams)
    risk: RiskParams = Field(default_factory=RiskParams)
    prediction: PredictionParams = Field(default_factory=PredictionParams)
    batch: BatchParams = Field(default_factory=BatchParams)


# Default instance for easy import
DEFAULT_ENGINE_PARAMS = EngineParams()


def get_engine_params() -> EngineParams:
    """Get engine parameters. Future: load from config file."""
    return DEFAULT_ENGINE_PARAMS


__all__ = [
    "RatingParams",
    "RiskParams",
    "PredictionParams",
    "BatchParams",
    "EngineParams",
    "DEFAULT_ENGINE_PARAMS",
    "get_engine_params",
]
