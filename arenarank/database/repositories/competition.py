"""Competition, leaderboard and portfolio snapshot reads."""

from __future__ import annotations

from typing import Any, List, Optional

from sqlalchemy import text

from arenarank.engine.types import CompetitionMetadata


_SELECT_COMPETITION = text(
    """
    SELECT id, type, status, arena_id, start_date, end_date
    FROM competitions
    WHERE id = :competition_id
    """
)

_SELECT_LEADERBOARD = text(
    """
    SELECT agent_id, rank
    FROM competitions_leaderboard
    WHERE competition_id = :competition_id
    ORDER BY rank ASC, agent_id ASC
    """
)

_SELECT_COMPETITION_AGENTS = text(
    """
    SELECT agent_id
    FROM competition_agents
    WHERE competition_id = :competition_id
    ORDER BY agent_id
    """
)

_SELECT_PORTFOLIO_SNAPSHOTS = text(
    """
    SELECT agent_id, competition_id, timestamp, total_value
    FROM portfolio_snapshots
    WHERE agent_id = :agent_id
      AND competition_id = :competition_id
    ORDER BY timestamp ASC
    """
)

_SELECT_LATEST_PORTFOLIO_SNAPSHOT = text(
    """
    SELECT agent_id, competition_id, timestamp, total_value
    FROM portfolio_snapshots
    WHERE agent_id = :agent_id
      AND competition_id = :competition_id
    ORDER BY timestamp DESC
    LIMIT 1
    """
)


class CompetitionRepository:
    def __init__(self, db: Any):
        self.db = db

    async def get_competition_metadata(
        self,
        competition_id: str,
        tx: Any = None,
    ) -> Optional[CompetitionMetadata]:
        rows = await self.db.read(
            _SELECT_COMPETITION,
            params={"competition_id": competition_id},
            mappings=True,
            tx=tx,
        )
        if not rows:
            return None
        row = rows[0]
        return CompetitionMetadata(
            id=str(row["id"]),
            type=row["type"],
            status=row["status"],
            arena_id=row["arena_id"],
            start_date=row["start_date"],
            end_date=row["end_date"],
        )

    async def find_leaderboard_by_competition(
        self,
        competition_id: str,
        tx: Any = None,
    ) -> List[Any]:
        return await self.db.read(
            _SELECT_LEADERBOARD,
            params={"competition_id": competition_id},
            mappings=True,
            tx=tx,
        )

    async def get_competition_agent_ids(self, competition_id: str, tx: Any = None) -> List[str]:
        rows = await self.db.read(
            _SELECT_COMPETITION_AGENTS,
            params={"competition_id": competition_id},
            mappings=True,
            tx=tx,
        )
        return [str(row["agent_id"]) for row in rows]

    async def get_portfolio_snapshots(
        self,
        agent_id: str,
        competition_id: str,
        tx: Any = None,
    ) -> List[Any]:
        return await self.db.read(
            _SELECT_PORTFOLIO_SNAPSHOTS,
            params={"agent_id": agent_id, "competition_id": competition_id},
            mappings=True,
            tx=tx,
        )

    async def get_latest_portfolio_snapshot(
        self,
        agent_id: str,
        competition_id: str,
        tx: Any = None,
    ) -> Optional[Any]:
        rows = await self.db.read(
            _SELECT_LATEST_PORTFOLIO_SNAPSHOT,
            params={"agent_id": agent_id, "competition_id": competition_id},
            mappings=True,
            tx=tx,
        )
        return rows[0] if rows else None


__all__ = ["CompetitionRepository"]
