"""Shared fixtures for engine tests."""

import logging
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_logger():
    """Create mock logger."""
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def mock_db():
    """Create mock database manager with a working transaction() context.

    The yielded session is exposed as ``db.tx``. ``db.committed`` and
    ``db.rolled_back`` record how the last transaction ended.
    """
    db = MagicMock()
    db.read = AsyncMock(return_value=[])
    db.write = AsyncMock(return_value=1)
    db.tx = MagicMock(name="tx")
    db.committed = False
    db.rolled_back = False

    @asynccontextmanager
    async def transaction():
        try:
            yield db.tx
        except BaseException:
            db.rolled_back = True
            raise
        db.committed = True

    db.transaction = transaction
    return db
