"""Pytest configuration and fixtures for tests."""

import os
from copy import deepcopy
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional

import pytest

# Environment must be in place before crewcode.common.utils.config loads.
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("ADMIN_SECRET", "test-admin-secret")
os.environ.setdefault("REQUIRE_AUTHENTICATION", "false")
os.environ.setdefault("SOCKETIO_ASYNC_MODE", "threading")
os.environ.pop("REDIS_HOST", None)

from crewcode.common.database import DBController  # noqa: E402
from crewcode.common.utils.config import get_settings  # noqa: E402

ADMIN_HEADERS = {"X-Admin-Secret": os.environ["ADMIN_SECRET"]}


def _matches(document: Dict[str, Any], filter_query: Dict[str, Any]) -> bool:
    if not filter_query:
        return True
    for key, expected in filter_query.items():
        if document.get(key) != expected:
            return False
    return True


class _InsertOneResult:
    def __init__(self, inserted_id):
        self.inserted_id = inserted_id


class _UpdateResult:
    def __init__(self, matched: int, modified: int):
        self.matched_count = matched
        self.modified_count = modified


class _DeleteResult:
    def __init__(self, deleted: int):
        self.deleted_count = deleted


class FakeCollection:
    """Minimal PyMongo-like collection for deterministic unit tests."""

    def __init__(self, documents: Iterable[Dict[str, Any]] = ()):
        self._documents: List[Dict[str, Any]] = [deepcopy(doc) for doc in documents]
        self._id_counter = 1
        self.indexes: List[Any] = []

    def _ensure_id(self, document: Dict[str, Any]) -> Dict[str, Any]:
        doc = deepcopy(document)
        if "_id" not in doc:
            doc["_id"] = str(self._id_counter)
            self._id_counter += 1
        return doc

    def create_index(self, keys, **kwargs):
        self.indexes.append((keys, kwargs))
        return keys

    def count_documents(self, filter_query: Dict[str, Any]) -> int:
        return len([doc for doc in self._documents if _matches(doc, filter_query)])

    def find_one(self, filter_query: Dict[str, Any]):
        for doc in self._documents:
            if _matches(doc, filter_query):
                return deepcopy(doc)
        return None

    def find(self, filter_query: Optional[Dict[str, Any]] = None):
        return [
            deepcopy(doc) for doc in self._documents if _matches(doc, filter_query or {})
        ]

    def insert_one(self, document: Dict[str, Any]):
        doc = self._ensure_id(document)
        self._documents.append(doc)
        # PyMongo adds _id to the caller's document as well
        document["_id"] = doc["_id"]
        return _InsertOneResult(doc["_id"])

    def insert_many(self, docs: Iterable[Dict[str, Any]]):
        for doc in docs:
            self._documents.append(self._ensure_id(doc))

    def replace_one(self, filter_query: Dict[str, Any], replacement: Dict[str, Any]):
        for index, doc in enumerate(self._documents):
            if _matches(doc, filter_query):
                new_doc = deepcopy(replacement)
                new_doc["_id"] = doc["_id"]
                self._documents[index] = new_doc
                return _UpdateResult(1, 1)
        return _UpdateResult(0, 0)

    def update_one(self, filter_query: Dict[str, Any], update_doc: Dict[str, Any]):
        for doc in self._documents:
            if _matches(doc, filter_query):
                return _UpdateResult(1, self._apply_update(doc, update_doc))
        return _UpdateResult(0, 0)

    def _apply_update(self, document: Dict[str, Any], update_doc: Dict[str, Any]) -> int:
        modified = 0
        for key, value in update_doc.get("$set", {}).items():
            if document.get(key) != value:
                document[key] = deepcopy(value)
                modified += 1
        for key, value in update_doc.get("$push", {}).items():
            document.setdefault(key, []).append(deepcopy(value))
            modified += 1
        for key, value in update_doc.get("$addToSet", {}).items():
            values = document.setdefault(key, [])
            if value not in values:
                values.append(deepcopy(value))
                modified += 1
        return modified

    def delete_one(self, filter_query: Dict[str, Any]):
        for index, doc in enumerate(self._documents):
            if _matches(doc, filter_query):
                del self._documents[index]
                return _DeleteResult(1)
        return _DeleteResult(0)

    def delete_many(self, filter_query: Dict[str, Any]):
        kept = [doc for doc in self._documents if not _matches(doc, filter_query)]
        deleted = len(self._documents) - len(kept)
        self._documents = kept
        return _DeleteResult(deleted)


class FakeMongoDatabase:
    """Dictionary-like facade returning fake collections by name."""

    def __init__(self):
        self._collections: Dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self._collections:
            self._collections[name] = FakeCollection()
        return self._collections[name]

    def command(self, name: str):
        return {"ok": 1.0, "command": name}


class FakeDBController(DBController):
    """DBController backed by the in-memory database."""

    def __init__(self):
        super().__init__(host="localhost", port=27017, db_name="crewcode_test", use_ssm=False)
        self.db = FakeMongoDatabase()

    def connect(self, max_retries: int = 3, retry_delay: int = 2) -> bool:
        return True


@pytest.fixture
def db_controller():
    return FakeDBController()


@pytest.fixture
def test_settings():
    return replace(get_settings(), require_authentication=False, socketio_async_mode="threading")


@pytest.fixture
def app(db_controller, test_settings):
    """Create the app with the real factory over the in-memory database."""
    from crewcode.server.app import create_app  # pylint: disable=import-outside-toplevel

    application = create_app(db_controller=db_controller, settings=test_settings, async_mode="threading")
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture
def socketio(app):
    return app.extensions["socketio"]


@pytest.fixture
def game_repository(app):
    return app.extensions["game_repository"]


def register(client, name: str) -> Dict[str, Any]:
    resp = client.post("/api/players/register", json={"name": name})
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


@pytest.fixture
def make_game(client):
    """Create a game and join the named players; returns (game_id, [player ids])."""

    def _make(names=("Alice", "Bob", "Carol"), imposter_count: int = 1):
        resp = client.post("/api/games", json={"imposterCount": imposter_count})
        assert resp.status_code == 201, resp.get_json()
        game_id = resp.get_json()["gameId"]
        player_ids = []
        for name in names:
            player_id = register(client, name)["player"]["playerId"]
            join = client.post(f"/api/games/{game_id}/join", json={"playerId": player_id})
            assert join.status_code == 200, join.get_json()
            player_ids.append(player_id)
        return game_id, player_ids

    return _make


@pytest.fixture
def started_game(client, make_game, game_repository):
    """A started three-player game; returns (game_id, imposter_id, [crewmate ids])."""

    def _start(names=("Alice", "Bob", "Carol"), imposter_count: int = 1):
        game_id, _ = make_game(names, imposter_count)
        resp = client.post(f"/api/games/{game_id}/start")
        assert resp.status_code == 200, resp.get_json()
        game = game_repository.get_game(game_id)
        imposters = [p["playerId"] for p in game["players"] if p["role"] == "imposter"]
        crewmates = [p["playerId"] for p in game["players"] if p["role"] == "crewmate"]
        return game_id, imposters, crewmates

    return _start
