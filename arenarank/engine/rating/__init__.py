"""Plackett-Luce skill ratings for global and arena pools."""

from __future__ import annotations

from .plackett_luce import PlackettLuceModel, ordinal, update_ratings
from .service import AgentRankService

__all__ = [
    "PlackettLuceModel",
    "ordinal",
    "update_ratings",
    "AgentRankService",
]
