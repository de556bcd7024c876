"""Engine entrypoint.

Runs one engine operation against the configured database:

    arenarank-engine rank <competition_id>
    arenarank-engine risk-metrics <competition_id> [--agent ID ...]
    arenarank-engine score-plays <play_id> [<play_id> ...]
    arenarank-engine score-game <game_id>
    arenarank-engine leaderboard <competition_id>
"""

import argparse
import asyncio
import json
import logging
import os
import sys

from dotenv import load_dotenv

from arenarank.config.db_url import get_database_url
from arenarank.database.dbm import DBM
from arenarank.database.repositories import (
    AgentScoreRepository,
    CompetitionRepository,
    GamesRepository,
    PlayPredictionsRepository,
    PredictionAggregatesRepository,
    RiskMetricsRepository,
)
from arenarank.engine.determinism import format_ratio
from arenarank.engine.jobs import EventScoringJob, RiskMetricsJob
from arenarank.engine.prediction import (
    GameScoringService,
    LeaderboardAssembler,
    PredictionScoringService,
)
from arenarank.engine.rating import AgentRankService
from arenarank.engine.risk import RiskMetricsService
from arenarank.shared.logging import quiet_library_loggers, setup_engine_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Arenarank scoring engine")
    parser.add_argument("--log-dir", default=os.environ.get("ARENARANK_LOG_DIR", "logs"))
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    rank = sub.add_parser("rank", help="Update global and arena ranks for a finished competition")
    rank.add_argument("competition_id")

    risk = sub.add_parser("risk-metrics", help="Recompute risk metrics for a competition")
    risk.add_argument("competition_id")
    risk.add_argument("--agent", action="append", dest="agent_ids", help="Limit to agent (repeatable)")

    plays = sub.add_parser("score-plays", help="Score predictions for resolved plays")
    plays.add_argument("play_ids", nargs="+")

    game = sub.add_parser("score-game", help="Score winner predictions for a final game")
    game.add_argument("game_id")

    board = sub.add_parser("leaderboard", help="Print the prediction leaderboard")
    board.add_argument("competition_id")

    return parser


async def run(args: argparse.Namespace, logger: logging.Logger) -> int:
    db = DBM(get_database_url())
    competitions = CompetitionRepository(db)

    try:
        if args.command == "rank":
            service = AgentRankService(AgentScoreRepository(db, logger), competitions, logger)
            await service.update_agent_ranks_for_competition(args.competition_id)

        elif args.command == "risk-metrics":
            risk_service = RiskMetricsService(db, competitions, RiskMetricsRepository(db), logger)
            job = RiskMetricsJob(
                risk_service,
                competitions,
                args.competition_id,
                logger,
                agent_ids=args.agent_ids,
            )
            result = await job.run()
            print(json.dumps({"successful": result.successful, "failed": result.failed, "errors": result.errors}, indent=2))
            return 1 if result.failed and not result.successful else 0

        elif args.command == "score-plays":
            scoring = PredictionScoringService(
                db, PlayPredictionsRepository(db), PredictionAggregatesRepository(db), logger
            )
            results = await EventScoringJob(scoring, args.play_ids, logger).run()
            print(json.dumps(results, indent=2))

        elif args.command == "score-game":
            scored = await GameScoringService(GamesRepository(db), logger).score_game(args.game_id)
            print(json.dumps({"game_id": args.game_id, "agents_scored": scored}))

        elif args.command == "leaderboard":
            rows = await LeaderboardAssembler(PredictionAggregatesRepository(db), logger).get_leaderboard(
                args.competition_id
            )
            print(json.dumps(
                [
                    {
                        "rank": row.rank,
                        "agent_id": row.agent_id,
                        "accuracy": format_ratio(row.accuracy),
                        "brier_score": format_ratio(row.brier_score),
                        "total_predictions": row.total_predictions,
                    }
                    for row in rows
                ],
                indent=2,
            ))

        return 0
    finally:
        await db.dispose()


def main() -> None:
    # Load .env if not in test mode
    if os.environ.get("ARENARANK_TEST_MODE") != "true":
        load_dotenv()

    args = build_parser().parse_args()

    level = logging.DEBUG if args.verbose else logging.INFO
    logger = setup_engine_logger(args.log_dir, level=level)
    quiet_library_loggers()

    logger.info(f"Engine starting: {args.command}")
    try:
        code = asyncio.run(run(args, logger))
    except KeyboardInterrupt:
        logger.info("Engine interrupted")
        code = 130
    except Exception as e:
        logger.error(f"Engine command {args.command} failed: {e}", exc_info=True)
        code = 1
    logger.info(f"Engine stopped with exit code {code}")
    sys.exit(code)


if __name__ == "__main__":
    main()
