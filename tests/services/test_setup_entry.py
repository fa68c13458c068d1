"""setup(worker, config) — wires version, config and connection, then assures installation."""

from importlib import metadata
from unittest.mock import AsyncMock, MagicMock

import pytest

from modsetup.core.worker import BaseWorker
from modsetup.services import setup as setup_service
from modsetup.services.setup import Setup, read_worker_version
from modsetup.services.setup import setup as run_setup


@pytest.fixture
def stubbed(monkeypatch):
    assure = AsyncMock(return_value={"config": {"a": 1}})
    init = MagicMock()
    version = MagicMock(return_value="1.2.3")
    monkeypatch.setattr(Setup, "assure_installation", assure)
    monkeypatch.setattr(Setup, "init_couch_connection", init)
    monkeypatch.setattr(setup_service.metadata, "version", version)
    return {"assure": assure, "init": init, "version": version}


async def test_setup_initializes_worker(stubbed, worker):
    config = {"name": "test"}

    await run_setup(worker, config)

    assert worker.name == "test"
    assert worker.version == "1.2.3"
    assert worker.config is config
    assert stubbed["assure"].await_count == 1
    assert stubbed["init"].call_count == 1


async def test_setup_returns_assure_installation_result(stubbed, worker):
    assert await run_setup(worker, {}) == {"config": {"a": 1}}


async def test_version_is_read_from_worker_distribution(stubbed):
    w = BaseWorker("test", distribution="acme-test-worker")

    await run_setup(w, {})

    stubbed["version"].assert_called_once_with("acme-test-worker")


async def test_config_is_replaced_not_merged(stubbed, worker):
    worker.config = {"old": True}
    new = {"server": "http://couch:5984"}

    await run_setup(worker, new)

    assert worker.config is new
    assert "old" not in worker.config


def test_missing_distribution_metadata_propagates(monkeypatch):
    def not_found(name):
        raise metadata.PackageNotFoundError(name)

    monkeypatch.setattr(setup_service.metadata, "version", not_found)
    with pytest.raises(metadata.PackageNotFoundError):
        read_worker_version(BaseWorker("not-installed"))


async def test_setup_end_to_end_against_store(monkeypatch, fake_couch):
    monkeypatch.setattr(setup_service.metadata, "version", lambda name: "2.0.0")

    def fake_init(self):
        self.worker.couch = fake_couch

    monkeypatch.setattr(Setup, "init_couch_connection", fake_init)
    fake_couch.db.docs["module/appconfig"] = {"config": {"shared": 1}}
    fake_couch.db.docs["module/test"] = {"config": {"a": 1}}
    w = BaseWorker("test")

    result = await run_setup(w, {"server": "http://couch:5984", "admin": {"user": "a", "pass": "b"}})

    assert result == {"config": {"a": 1}}
    assert w.version == "2.0.0"
    assert w.config["app"] == {"shared": 1}
    assert w.config["worker"] == {"a": 1}
