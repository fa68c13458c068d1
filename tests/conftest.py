"""Root conftest — shared fakes for the document store and a test worker.

Invariants:
    - Tests never talk to a real CouchDB: FakeCouch stands in for worker.couch
    - FakeDatabase records every get/save so tests can assert ids and bodies

Design Decisions:
    - Setup is built with its real connection (no I/O happens at construction),
      then worker.couch is swapped for the fake
"""

import os

import pytest

from modsetup.core.worker import BaseWorker
from modsetup.services.setup import Setup

# Ensure tests don't accidentally use real admin credentials
os.environ.setdefault("MODSETUP_COUCH_ADMIN_PASS", "test-secret")


class FakeDatabase:
    """In-memory stand-in for CouchDatabase.

    `docs` maps id → document or exception; `save_result` is a result dict
    or an exception raised from save().
    """

    def __init__(self):
        self.docs = {}
        self.save_result = {"ok": True, "id": "generated", "rev": "1-generated"}
        self.get_calls = []
        self.save_calls = []

    async def get(self, doc_id):
        self.get_calls.append(doc_id)
        value = self.docs[doc_id]
        if isinstance(value, Exception):
            raise value
        return value

    async def save(self, doc):
        self.save_calls.append(doc)
        if isinstance(self.save_result, Exception):
            raise self.save_result
        return self.save_result


class FakeCouch:
    def __init__(self):
        self.db = FakeDatabase()
        self.opened = []
        self.up = True
        self.closed = False

    def database(self, name):
        self.opened.append(name)
        return self.db

    async def ping(self):
        return self.up

    async def aclose(self):
        self.closed = True


class RecordingWorker(BaseWorker):
    """Worker whose install() is counted and can be made to fail."""

    def __init__(self, name="test"):
        super().__init__(name)
        self.install_calls = 0
        self.install_error = None

    async def install(self):
        self.install_calls += 1
        if self.install_error is not None:
            raise self.install_error


def worker_config():
    return {
        "server": "https://couch.myapp.com:80",
        "admin": {"user": "admin", "pass": "secret"},
    }


@pytest.fixture
def worker():
    w = RecordingWorker("test")
    w.config = worker_config()
    return w


@pytest.fixture
def fake_couch():
    return FakeCouch()


@pytest.fixture
def setup_for(worker, fake_couch):
    """Setup bound to `worker`, with the store replaced by FakeCouch."""
    s = Setup(worker)
    worker.couch = fake_couch
    return s
