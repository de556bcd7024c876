"""Plackett-Luce skill rating update.

Implements the Weng-Lin Bayesian approximation of the Plackett-Luce
ranking model (the model OpenSkill ships as PlackettLuce), restricted to
single-agent teams:

    c        = sqrt(Σ_i (σ_i² + β²))
    sumQ[q]  = Σ_{i: rank_i >= rank_q} exp(μ_i / c)
    A[q]     = number of agents sharing rank_q

    for agent i, over every q with rank_q <= rank_i:
        p      = exp(μ_i / c) / sumQ[q]
        Ω_i   += (1[q == i] - p) / A[q]
        Δ_i   += p (1 - p) / A[q]

    μ_i' = μ_i + (σ_i² / c) Ω_i
    σ_i' = σ_i sqrt(max(1 - (σ_i / c)(σ_i² / c²) Δ_i, κ))

The conservative ordinal used for display and sorting is

    ordinal = alpha * (μ - z σ + target / alpha)
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from arenarank.config.engine_params import RatingParams, get_engine_params

from ..types import ContractViolation, RatedAgent, SkillRating


def ordinal(
    mu: float,
    sigma: float,
    z: float = 3.0,
    alpha: float = 24.0,
    target: float = 1500.0,
) -> float:
    """Conservative point estimate of a rating.

    Args:
        mu: Mean skill
        sigma: Skill standard deviation
        z: Standard deviations below the mean
        alpha: Scale factor
        target: Offset added after scaling

    Returns:
        alpha * (mu - z*sigma + target/alpha)
    """
    return alpha * (mu - z * sigma + target / alpha)


class PlackettLuceModel:
    """Rank-based rating model for multi-agent contests."""

    def __init__(self, params: Optional[RatingParams] = None):
        self.params = params or get_engine_params().rating

    def create_rating(self) -> SkillRating:
        """Default prior for an agent first seen in a pool."""
        return SkillRating(mu=self.params.mu, sigma=self.params.sigma)

    def ordinal(self, rating: SkillRating) -> float:
        p = self.params
        return ordinal(rating.mu, rating.sigma, z=p.z, alpha=p.alpha, target=p.target)

    def rate(
        self,
        ratings: Sequence[SkillRating],
        ranks: Sequence[float],
    ) -> List[SkillRating]:
        """Update ratings from one contest outcome.

        Args:
            ratings: Prior rating per agent
            ranks: Finish rank per agent, lower is better; equal ranks tie

        Returns:
            Posterior ratings in input order
        """
        if len(ratings) != len(ranks):
            raise ContractViolation(
                f"ratings/ranks length mismatch: {len(ratings)} != {len(ranks)}"
            )
        if not ratings:
            return []

        mu = np.array([r.mu for r in ratings], dtype=np.float64)
        sigma = np.array([r.sigma for r in ratings], dtype=np.float64)
        rank = np.array(ranks, dtype=np.float64)

        if not np.all(np.isfinite(mu)) or not np.all(np.isfinite(sigma)):
            raise ContractViolation("ratings must be finite")
        if np.any(sigma <= 0):
            raise ContractViolation("sigma must be positive")

        beta = self.params.beta
        tau = self.params.tau
        kappa = self.params.kappa

        prior_sigma = sigma
        if tau > 0:
            sigma = np.sqrt(sigma**2 + tau**2)
        sigma_sq = sigma**2

        c = np.sqrt(np.sum(sigma_sq + beta**2))

        scaled = mu / c

        # at_or_below[q, i]: agent i finished at or below agent q
        at_or_below = rank[None, :] >= rank[:, None]
        tie_count = (rank[None, :] == rank[:, None]).sum(axis=1).astype(np.float64)

        # log sumQ[q] via log-sum-exp so wide mu gaps cannot underflow to 0/0
        masked = np.where(at_or_below, scaled[None, :], -np.inf)
        row_max = masked.max(axis=1)
        log_sum_q = row_max + np.log(np.sum(np.exp(masked - row_max[:, None]), axis=1))

        # counted[i, q]: q finished at or above agent i
        counted = rank[None, :] <= rank[:, None]

        # quot[i, q] = exp(mu_i / c) / sumQ[q], only where i is part of sumQ[q]
        quot = np.exp(np.where(counted, scaled[:, None] - log_sum_q[None, :], -np.inf))

        weighted = np.where(counted, 1.0 / tie_count[None, :], 0.0)
        omega = 1.0 / tie_count - np.sum(weighted * quot, axis=1)
        delta = np.sum(weighted * quot * (1.0 - quot), axis=1)

        gamma = sigma / c
        omega = omega * sigma_sq / c
        delta = delta * gamma * sigma_sq / c**2

        new_mu = mu + omega
        new_sigma = sigma * np.sqrt(np.maximum(1.0 - delta, kappa))
        if tau > 0:
            new_sigma = np.minimum(new_sigma, prior_sigma)

        return [
            SkillRating(mu=float(m), sigma=float(s))
            for m, s in zip(new_mu, new_sigma)
        ]


def update_ratings(
    leaderboard: Iterable[Tuple[str, float]],
    prior_ratings: Mapping[str, SkillRating],
    model: Optional[PlackettLuceModel] = None,
) -> Dict[str, RatedAgent]:
    """Apply one contest's finish order to prior ratings.

    Pure function: nothing is read or written outside the arguments.

    Args:
        leaderboard: (agent_id, finish_rank) pairs for one concluded contest
        prior_ratings: Current rating per agent; missing agents get the prior

    Returns:
        Mapping agent_id -> RatedAgent, one entry per leaderboard entry, in
        leaderboard order
    """
    model = model or PlackettLuceModel()
    entries = list(leaderboard)

    agent_ids = [agent_id for agent_id, _ in entries]
    if len(set(agent_ids)) != len(agent_ids):
        raise ContractViolation("leaderboard lists an agent more than once")

    priors = [prior_ratings.get(agent_id) or model.create_rating() for agent_id in agent_ids]
    posteriors = model.rate(priors, [rank for _, rank in entries])

    return {
        agent_id: RatedAgent(
            agent_id=agent_id,
            mu=rating.mu,
            sigma=rating.sigma,
            ordinal=model.ordinal(rating),
        )
        for agent_id, rating in zip(agent_ids, posteriors)
    }


__all__ = ["ordinal", "PlackettLuceModel", "update_ratings"]
