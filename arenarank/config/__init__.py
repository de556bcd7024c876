from .db_url import build_database_url, ensure_env_database_url
from .engine_params import EngineParams, get_engine_params

__all__ = [
    "build_database_url",
    "ensure_env_database_url",
    "EngineParams",
    "get_engine_params",
]
