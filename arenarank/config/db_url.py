from __future__ import annotations

import os
from typing import Any


def build_database_url(
    *,
    user: str,
    password: str | None,
    host: str,
    port: str,
    name: str,
) -> str:
    auth = f"{user}:{password}" if password else f"{user}"
    return f"postgresql+asyncpg://{auth}@{host}:{port}/{name}"


def ensure_env_database_url() -> dict[str, Any]:
    """Ensure database URL is set in environment variables."""
    def _env2(k1: str, k2: str | None = None) -> str | None:
        v = os.getenv(k1)
        if v is None and k2 is not None:
            v = os.getenv(k2)
        return v

    existing_url = os.getenv("ARENARANK_DATABASE__URL") or os.getenv("DATABASE_URL")
    if existing_url:
        return {"composed": False, "url_already_set": True}

    user = _env2("ARENARANK_DATABASE__USER", "ARENARANK_DATABASE_USER")
    name = _env2("ARENARANK_DATABASE__NAME", "ARENARANK_DATABASE_NAME")
    if not (user and name):
        return {"composed": False, "reason": "missing_fields"}

    url = build_database_url(
        user=user,
        password=_env2("ARENARANK_DATABASE__PASSWORD", "ARENARANK_DATABASE_PASSWORD") or "",
        host=_env2("ARENARANK_DATABASE__HOST", "ARENARANK_DATABASE_HOST") or "127.0.0.1",
        port=_env2("ARENARANK_DATABASE__PORT", "ARENARANK_DATABASE_PORT") or "5432",
        name=name,
    )
    os.environ["ARENARANK_DATABASE__URL"] = url
    os.environ["DATABASE_URL"] = url
    return {"composed": True, "reason": "missing_url"}


def get_database_url() -> str:
    """Return the configured database URL, composing it from parts if needed."""
    ensure_env_database_url()
    url = os.getenv("ARENARANK_DATABASE__URL") or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "Database URL is not configured. Set ARENARANK_DATABASE__URL or "
            "ARENARANK_DATABASE__USER and ARENARANK_DATABASE__NAME."
        )
    return url


__all__ = [
    "build_database_url",
    "ensure_env_database_url",
    "get_database_url",
]
