"""Agent rank updates after a competition concludes.

Ranks are auxiliary state. A missing competition or an empty leaderboard
is logged and skipped so that settlement never blocks on ranking.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Dict, List, Optional, Sequence

from ..types import RatedAgent, SkillRating
from .plackett_luce import PlackettLuceModel, update_ratings


class AgentRankService:
    """Runs the global and arena-scoped rating updates for a competition."""

    def __init__(
        self,
        agent_score_repo: Any,
        competition_repo: Any,
        logger: Optional[logging.Logger] = None,
        *,
        model: Optional[PlackettLuceModel] = None,
    ):
        self.agent_score_repo = agent_score_repo
        self.competition_repo = competition_repo
        self.logger = logger or logging.getLogger(__name__)
        self.model = model or PlackettLuceModel()

    async def update_agent_ranks_for_competition(
        self,
        competition_id: str,
        tx: Any = None,
    ) -> None:
        """Update global and, when the competition has an arena, arena ranks.

        Without `tx` the two scopes run concurrently, each in its own
        transaction. Both settle before a failure is raised, and success is
        logged only after both finish. Callers wanting all-or-nothing across
        scopes pass one transaction as `tx`; the scopes then run in turn on
        that session.
        """
        try:
            metadata = await self.competition_repo.get_competition_metadata(
                competition_id, tx
            )
            if metadata is None:
                self.logger.error(
                    f"Competition not found when updating agent ranks: {competition_id}"
                )
                return

            entries = await self.competition_repo.find_leaderboard_by_competition(
                competition_id, tx
            )
            if not entries:
                self.logger.warning(
                    f"No leaderboard entries for competition {competition_id}, skipping rank update"
                )
                return

            leaderboard = [(row["agent_id"], row["rank"]) for row in entries]

            scopes = [
                functools.partial(
                    self._update_global_ranks,
                    leaderboard, competition_id, metadata.type, tx,
                )
            ]
            if metadata.arena_id:
                scopes.append(
                    functools.partial(
                        self._update_arena_ranks,
                        leaderboard, competition_id, metadata.arena_id, metadata.type, tx,
                    )
                )
            if tx is None:
                # Both scopes settle before any failure is raised
                results = await asyncio.gather(
                    *(scope() for scope in scopes), return_exceptions=True
                )
                errors = [r for r in results if isinstance(r, BaseException)]
                for extra in errors[1:]:
                    self.logger.error(
                        f"Additional rank update failure for competition {competition_id}: {extra}",
                        exc_info=extra,
                    )
                if errors:
                    raise errors[0]
            else:
                # One session cannot run statements concurrently
                for scope in scopes:
                    await scope()

            self.logger.info(
                f"Updated agent ranks for competition {competition_id}: "
                f"{len(leaderboard)} agents, arena={metadata.arena_id or 'none'}"
            )

        except Exception as e:
            self.logger.error(
                f"Error updating agent ranks for competition {competition_id}: {e}",
                exc_info=True,
            )
            raise

    async def _update_global_ranks(
        self,
        leaderboard: Sequence[tuple],
        competition_id: str,
        competition_type: str,
        tx: Any,
    ) -> List[RatedAgent]:
        rows = await self.agent_score_repo.get_all_agent_ranks(competition_type, tx)
        updates = list(update_ratings(leaderboard, _priors(rows), self.model).values())
        await self.agent_score_repo.batch_update_agent_ranks(
            updates, competition_id, competition_type, tx
        )
        return updates

    async def _update_arena_ranks(
        self,
        leaderboard: Sequence[tuple],
        competition_id: str,
        arena_id: str,
        competition_type: str,
        tx: Any,
    ) -> List[RatedAgent]:
        # Arena pools are seeded from each agent's last rating in the same arena
        agent_ids = [agent_id for agent_id, _ in leaderboard]
        rows = await self.agent_score_repo.get_latest_arena_history_for_agents(
            arena_id, agent_ids, tx
        )
        updates = list(update_ratings(leaderboard, _priors(rows), self.model).values())
        await self.agent_score_repo.batch_update_arena_ranks(
            updates, competition_id, arena_id, competition_type, tx
        )
        return updates


def _priors(rows: Sequence[Dict[str, Any]]) -> Dict[str, SkillRating]:
    return {
        row["agent_id"]: SkillRating(mu=float(row["mu"]), sigma=float(row["sigma"]))
        for row in rows
    }


__all__ = ["AgentRankService"]
