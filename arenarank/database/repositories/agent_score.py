"""Skill rating reads and batch writes for global and arena pools."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from sqlalchemy import text

from arenarank.engine.types import RatedAgent


_SELECT_AGENT_RANKS = text(
    """
    SELECT agent_id, mu, sigma, ordinal
    FROM agent_score
    WHERE type = :type
    """
)

_SELECT_LATEST_ARENA_HISTORY = text(
    """
    SELECT DISTINCT ON (agent_id) agent_id, mu, sigma, ordinal, created_at
    FROM arena_score_history
    WHERE arena_id = :arena_id
      AND agent_id = ANY(:agent_ids)
    ORDER BY agent_id, created_at DESC
    """
)

_UPSERT_AGENT_SCORE = text(
    """
    INSERT INTO agent_score (agent_id, type, mu, sigma, ordinal, updated_at)
    VALUES (:agent_id, :type, :mu, :sigma, :ordinal, NOW())
    ON CONFLICT (agent_id, type) DO UPDATE SET
        mu = EXCLUDED.mu,
        sigma = EXCLUDED.sigma,
        ordinal = EXCLUDED.ordinal,
        updated_at = NOW()
    """
)

_INSERT_AGENT_SCORE_HISTORY = text(
    """
    INSERT INTO agent_score_history (agent_id, competition_id, type, mu, sigma, ordinal, created_at)
    VALUES (:agent_id, :competition_id, :type, :mu, :sigma, :ordinal, NOW())
    """
)

_UPSERT_ARENA_SCORE = text(
    """
    INSERT INTO arena_score (agent_id, arena_id, type, mu, sigma, ordinal, updated_at)
    VALUES (:agent_id, :arena_id, :type, :mu, :sigma, :ordinal, NOW())
    ON CONFLICT (agent_id, arena_id) DO UPDATE SET
        mu = EXCLUDED.mu,
        sigma = EXCLUDED.sigma,
        ordinal = EXCLUDED.ordinal,
        updated_at = NOW()
    """
)

_INSERT_ARENA_SCORE_HISTORY = text(
    """
    INSERT INTO arena_score_history (agent_id, arena_id, competition_id, type, mu, sigma, ordinal, created_at)
    VALUES (:agent_id, :arena_id, :competition_id, :type, :mu, :sigma, :ordinal, NOW())
    """
)


class AgentScoreRepository:
    def __init__(self, db: Any, logger: Optional[logging.Logger] = None):
        self.db = db
        self.logger = logger or logging.getLogger(__name__)

    async def get_all_agent_ranks(self, competition_type: str, tx: Any = None) -> List[Any]:
        return await self.db.read(
            _SELECT_AGENT_RANKS,
            params={"type": _value(competition_type)},
            mappings=True,
            tx=tx,
        )

    async def get_latest_arena_history_for_agents(
        self,
        arena_id: str,
        agent_ids: Sequence[str],
        tx: Any = None,
    ) -> List[Any]:
        if not agent_ids:
            return []
        return await self.db.read(
            _SELECT_LATEST_ARENA_HISTORY,
            params={"arena_id": arena_id, "agent_ids": list(agent_ids)},
            mappings=True,
            tx=tx,
        )

    async def batch_update_agent_ranks(
        self,
        updates: Sequence[RatedAgent],
        competition_id: str,
        competition_type: str,
        tx: Any = None,
    ) -> int:
        """Upsert current global ranks and append one history row per agent."""
        if not updates:
            self.logger.debug("No agent ranks to update in batch")
            return 0
        if tx is None:
            async with self.db.transaction() as session:
                return await self.batch_update_agent_ranks(
                    updates, competition_id, competition_type, session
                )
        params = [
            {**_rank_params(u), "type": _value(competition_type), "competition_id": competition_id}
            for u in updates
        ]
        await self.db.write(_UPSERT_AGENT_SCORE, params=params, tx=tx)
        await self.db.write(_INSERT_AGENT_SCORE_HISTORY, params=params, tx=tx)
        return len(params)

    async def batch_update_arena_ranks(
        self,
        updates: Sequence[RatedAgent],
        competition_id: str,
        arena_id: str,
        competition_type: str,
        tx: Any = None,
    ) -> int:
        """Upsert current arena ranks and append one arena history row per agent."""
        if not updates:
            self.logger.debug("No arena ranks to update in batch")
            return 0
        if tx is None:
            async with self.db.transaction() as session:
                return await self.batch_update_arena_ranks(
                    updates, competition_id, arena_id, competition_type, session
                )
        params = [
            {
                **_rank_params(u),
                "type": _value(competition_type),
                "arena_id": arena_id,
                "competition_id": competition_id,
            }
            for u in updates
        ]
        await self.db.write(_UPSERT_ARENA_SCORE, params=params, tx=tx)
        await self.db.write(_INSERT_ARENA_SCORE_HISTORY, params=params, tx=tx)
        return len(params)


def _rank_params(rated: RatedAgent) -> dict:
    return {
        "agent_id": rated.agent_id,
        "mu": rated.mu,
        "sigma": rated.sigma,
        "ordinal": rated.ordinal,
    }


def _value(enum_or_str: Any) -> str:
    return getattr(enum_or_str, "value", enum_or_str)


__all__ = ["AgentScoreRepository"]
