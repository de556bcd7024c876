"""Tests for the engine command line parser."""

import pytest

from arenarank.entrypoints.engine import build_parser


class TestBuildParser:
    """Tests for build_parser."""

    def test_rank(self):
        args = build_parser().parse_args(["rank", "comp-1"])

        assert (args.command, args.competition_id) == ("rank", "comp-1")

    def test_risk_metrics_with_agents(self):
        args = build_parser().parse_args(
            ["risk-metrics", "comp-1", "--agent", "a1", "--agent", "a2"]
        )

        assert args.agent_ids == ["a1", "a2"]

    def test_risk_metrics_defaults_to_all_agents(self):
        args = build_parser().parse_args(["risk-metrics", "comp-1"])

        assert args.agent_ids is None

    def test_score_plays(self):
        args = build_parser().parse_args(["score-plays", "p1", "p2"])

        assert args.play_ids == ["p1", "p2"]

    def test_global_options(self):
        args = build_parser().parse_args(["-v", "--log-dir", "/tmp/x", "leaderboard", "comp-1"])

        assert args.verbose is True
        assert args.log_dir == "/tmp/x"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])
