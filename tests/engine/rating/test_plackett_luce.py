"""Tests for the Plackett-Luce rating update."""

import math

import pytest

from arenarank.config.engine_params import RatingParams
from arenarank.engine.rating.plackett_luce import (
    PlackettLuceModel,
    ordinal,
    update_ratings,
)
from arenarank.engine.types import ContractViolation, SkillRating


@pytest.fixture
def model():
    return PlackettLuceModel()


class TestOrdinal:
    """Tests for the conservative ordinal."""

    def test_default_prior_maps_to_target(self, model):
        """mu - 3*sigma is 0 for the prior, so the ordinal is the target."""
        assert model.ordinal(model.create_rating()) == pytest.approx(1500.0)

    def test_formula(self):
        assert ordinal(30.0, 5.0) == pytest.approx(24.0 * (30.0 - 15.0) + 1500.0)

    def test_custom_scale(self):
        assert ordinal(10.0, 2.0, z=1.0, alpha=1.0, target=0.0) == pytest.approx(8.0)


class TestRate:
    """Tests for PlackettLuceModel.rate."""

    def test_empty(self, model):
        assert model.rate([], []) == []

    def test_length_mismatch_raises(self, model):
        with pytest.raises(ContractViolation):
            model.rate([model.create_rating()], [1, 2])

    def test_non_positive_sigma_raises(self, model):
        with pytest.raises(ContractViolation):
            model.rate([SkillRating(25.0, 0.0), model.create_rating()], [1, 2])

    def test_non_finite_mu_raises(self, model):
        with pytest.raises(ContractViolation):
            model.rate([SkillRating(float("nan"), 8.0), model.create_rating()], [1, 2])

    def test_winner_gains_loser_loses(self, model):
        prior = model.create_rating()
        winner, loser = model.rate([prior, prior], [1, 2])

        assert winner.mu > prior.mu
        assert loser.mu < prior.mu

    def test_sigma_shrinks_and_stays_positive(self, model):
        prior = model.create_rating()
        posteriors = model.rate([prior] * 5, [1, 2, 3, 4, 5])

        for rating in posteriors:
            assert 0 < rating.sigma < prior.sigma

    def test_mu_ordering_follows_finish_order(self, model):
        prior = model.create_rating()
        posteriors = model.rate([prior] * 4, [1, 2, 3, 4])
        mus = [r.mu for r in posteriors]

        assert mus == sorted(mus, reverse=True)

    def test_mu_is_conserved_for_equal_sigmas(self, model):
        """With equal uncertainty, gains and losses cancel out."""
        prior = model.create_rating()
        posteriors = model.rate([prior] * 3, [1, 2, 3])

        assert sum(r.mu for r in posteriors) == pytest.approx(3 * prior.mu)

    def test_full_tie_leaves_mu_unchanged(self, model):
        prior = model.create_rating()
        posteriors = model.rate([prior, prior], [1, 1])

        for rating in posteriors:
            assert rating.mu == pytest.approx(prior.mu)
            assert rating.sigma < prior.sigma

    def test_tied_agents_move_together(self, model):
        prior = model.create_rating()
        a, b, c = model.rate([prior] * 3, [1, 2, 2])

        assert a.mu > prior.mu
        assert b.mu == pytest.approx(c.mu)
        assert b.mu < prior.mu

    def test_upset_moves_more_than_expected_win(self, model):
        strong = SkillRating(35.0, 4.0)
        weak = SkillRating(15.0, 4.0)

        expected = model.rate([strong, weak], [1, 2])
        upset = model.rate([strong, weak], [2, 1])

        assert (upset[1].mu - weak.mu) > (expected[0].mu - strong.mu)

    @pytest.mark.parametrize("ranks", [[1, 2], [2, 1]])
    def test_large_mu_gap_stays_finite(self, model, ranks):
        posteriors = model.rate([SkillRating(1e6, 1.0), SkillRating(-1e6, 1.0)], ranks)

        for rating in posteriors:
            assert math.isfinite(rating.mu)
            assert math.isfinite(rating.sigma)
            assert rating.sigma > 0

    def test_dominant_winner_stays_finite(self, model):
        winner, loser = model.rate([SkillRating(10000, 8), SkillRating(0, 8)], [1, 2])

        for rating in (winner, loser):
            assert math.isfinite(rating.mu)
            assert math.isfinite(rating.sigma)
            assert rating.sigma > 0
        assert winner.mu >= 10000
        assert loser.mu <= 0

    def test_tau_never_raises_sigma_above_prior(self):
        model = PlackettLuceModel(RatingParams(tau=0.5))
        prior = model.create_rating()
        posteriors = model.rate([prior, prior], [1, 2])

        for rating in posteriors:
            assert rating.sigma <= prior.sigma


class TestUpdateRatings:
    """Tests for update_ratings over a leaderboard."""

    def test_one_output_per_entry_in_leaderboard_order(self, model):
        leaderboard = [("c", 1), ("a", 2), ("b", 3)]
        result = update_ratings(leaderboard, {}, model)

        assert list(result) == ["c", "a", "b"]
        for agent_id, rated in result.items():
            assert rated.agent_id == agent_id
            assert rated.sigma > 0

    def test_missing_agents_use_prior(self, model):
        known = SkillRating(40.0, 3.0)
        result = update_ratings([("known", 2), ("new", 1)], {"known": known}, model)

        # new agent started from the default prior and beat a strong agent
        assert result["new"].mu > model.params.mu
        assert result["known"].mu < known.mu

    def test_ordinal_matches_posterior(self, model):
        result = update_ratings([("a", 1), ("b", 2)], {}, model)

        for rated in result.values():
            assert rated.ordinal == pytest.approx(
                ordinal(rated.mu, rated.sigma)
            )

    def test_duplicate_agent_raises(self, model):
        with pytest.raises(ContractViolation):
            update_ratings([("a", 1), ("a", 2)], {}, model)

    def test_empty_leaderboard(self, model):
        assert update_ratings([], {}, model) == {}

    def test_does_not_mutate_priors(self, model):
        priors = {"a": SkillRating(30.0, 5.0)}
        update_ratings([("a", 1), ("b", 2)], priors, model)

        assert priors == {"a": SkillRating(30.0, 5.0)}

    def test_default_model_used_when_omitted(self):
        result = update_ratings([("a", 1), ("b", 2)], {})

        assert result["a"].mu > result["b"].mu
