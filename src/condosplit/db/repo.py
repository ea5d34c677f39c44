from __future__ import annotations

import json
from typing import Any

import asyncpg

from condosplit.logging import get_logger, sql_logger
from condosplit.models import AppConfig
from condosplit.services.config_io import dump_config, load_config, sample_config
from condosplit.services.rules import ConfigError


class Database:
    def __init__(self, dsn: str) -> None:
        self._dsn = dsn
        self._pool: asyncpg.Pool | None = None
        self._log = get_logger(__name__)

    async def connect(self) -> None:
        if self._pool is None:
            # asyncpg expects a plain postgresql/postgres scheme, without "+asyncpg"
            dsn = self._dsn.replace("+asyncpg", "")
            self._pool = await asyncpg.create_pool(dsn)
            self._log.info("db.pool.created")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            self._log.info("db.pool.closed")

    async def fetchval(self, query: str, *args: Any) -> Any:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetchval", query=query, args=args)
        return await self._pool.fetchval(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.execute", query=query, args=args)
        return await self._pool.execute(query, *args)

    async def _ensure_pool(self) -> None:
        if self._pool is None:
            await self.connect()


class ConfigRepository:
    """Stores the whole configuration as one JSON value under a fixed key."""

    def __init__(self, db: Database, key: str) -> None:
        self.db = db
        self.key = key
        self._log = get_logger(__name__)

    async def load_config(self) -> AppConfig:
        raw = await self.db.fetchval("SELECT value FROM kv_store WHERE key = $1", self.key)
        if raw is None:
            return sample_config()

        try:
            data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
            return load_config(data)
        except (ConfigError, json.JSONDecodeError) as exc:
            self._log.warning("config.load_failed", key=self.key, error=str(exc))
            return sample_config()

    async def save_config(self, config: AppConfig) -> None:
        await self.db.execute(
            """
            INSERT INTO kv_store (key, value, updated_at)
            VALUES ($1, $2::jsonb, now())
            ON CONFLICT (key) DO UPDATE
                SET value = EXCLUDED.value,
                    updated_at = EXCLUDED.updated_at
            """,
            self.key,
            json.dumps(dump_config(config), ensure_ascii=False),
        )
        self._log.info("config.saved", key=self.key)

    async def reset_to_sample(self) -> AppConfig:
        config = sample_config()
        await self.save_config(config)
        return config


_global_repo: ConfigRepository | None = None


def set_global_repository(repo: ConfigRepository) -> None:
    global _global_repo
    _global_repo = repo


def get_global_repository() -> ConfigRepository:
    if _global_repo is None:
        raise RuntimeError("Repository is not initialized")
    return _global_repo
