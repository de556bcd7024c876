"""Portfolio data provider interface.

Providers share a small base contract. Optional abilities are separate
protocols that callers check with isinstance() before use, instead of
methods that may be missing or return None.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class Transfer:
    """Deposit or withdrawal on an agent's trading account."""

    agent_id: str
    amount: Decimal
    timestamp: datetime
    direction: str  # "deposit" | "withdrawal"
    tx_hash: Optional[str] = None


class PortfolioDataProvider(ABC):
    """Base contract for a source of agent portfolio data.

    Example:
        class MyProvider(PortfolioDataProvider):
            def get_name(self) -> str:
                return "my-provider"

            async def get_total_value(self, agent_id: str) -> Decimal:
                return Decimal("1000")
    """

    @abstractmethod
    def get_name(self) -> str:
        """Provider name for logging."""
        pass

    @abstractmethod
    async def get_total_value(self, agent_id: str) -> Decimal:
        """Current total portfolio value for an agent."""
        pass


@runtime_checkable
class TransferHistoryProvider(Protocol):
    """Capability: list transfers made since a point in time."""

    async def get_transfer_history(self, agent_id: str, since: datetime) -> List[Transfer]:
        ...


def supports_transfer_history(provider: object) -> bool:
    return isinstance(provider, TransferHistoryProvider)


__all__ = [
    "Transfer",
    "PortfolioDataProvider",
    "TransferHistoryProvider",
    "supports_transfer_history",
]
