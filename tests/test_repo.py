import json

import pytest

from condosplit.db.repo import ConfigRepository
from condosplit.sample_config import sample_config_data
from condosplit.services.config_io import dump_config, load_config, sample_config


class StubDatabase:
    def __init__(self, stored: object = None) -> None:
        self.stored = stored
        self.executed: list[tuple[str, tuple[object, ...]]] = []

    async def fetchval(self, query: str, *args: object) -> object:
        assert "kv_store" in query
        return self.stored

    async def execute(self, query: str, *args: object) -> str:
        self.executed.append((query, args))
        self.stored = args[1]
        return "INSERT 0 1"


@pytest.mark.asyncio
async def test_load_config_defaults_to_sample():
    repo = ConfigRepository(StubDatabase(), "cfg")
    assert await repo.load_config() == sample_config()


@pytest.mark.asyncio
async def test_load_config_reads_stored_json():
    data = sample_config_data()
    data["ownerName"] = "Via Roma 1"
    repo = ConfigRepository(StubDatabase(json.dumps(data)), "cfg")

    config = await repo.load_config()
    assert config.owner_name == "Via Roma 1"


@pytest.mark.asyncio
async def test_load_config_falls_back_on_invalid_value():
    repo = ConfigRepository(StubDatabase('{"condomini": 3}'), "cfg")
    assert await repo.load_config() == sample_config()


@pytest.mark.asyncio
async def test_save_and_reload():
    db = StubDatabase()
    repo = ConfigRepository(db, "cfg")
    data = sample_config_data()
    data["condomini"][0]["name"] = "Rossi-Bassi"
    config = load_config(data)

    await repo.save_config(config)

    query, args = db.executed[0]
    assert "ON CONFLICT (key)" in query
    assert args[0] == "cfg"
    assert json.loads(args[1]) == dump_config(config)
    assert (await repo.load_config()).condomini[0].name == "Rossi-Bassi"


@pytest.mark.asyncio
async def test_reset_to_sample():
    db = StubDatabase()
    repo = ConfigRepository(db, "cfg")

    config = await repo.reset_to_sample()

    assert config == sample_config()
    assert len(db.executed) == 1
