import copy
import itertools

import pytest
from google.api_core import exceptions as gcloud_exceptions

from config import settings
from losthub.services import item_store


class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocRef:
    def __init__(self, store, doc_id):
        self._store = store
        self.id = doc_id

    def get(self):
        return FakeSnapshot(self.id, self._store.get(self.id))

    def set(self, data):
        self._store[self.id] = copy.deepcopy(data)

    def update(self, data):
        if self.id not in self._store:
            raise gcloud_exceptions.NotFound(f"no document {self.id}")
        self._store[self.id].update(copy.deepcopy(data))

    def delete(self):
        self._store.pop(self.id, None)


class FakeQuery:
    def __init__(self, store, filters=(), limit=None):
        self._store = store
        self._filters = list(filters)
        self._limit = limit

    def where(self, field, op, value):
        assert op == "==", "only equality filters are used"
        return FakeQuery(self._store, self._filters + [(field, value)], self._limit)

    def limit(self, n):
        return FakeQuery(self._store, self._filters, n)

    def stream(self):
        hits = [
            FakeSnapshot(doc_id, data)
            for doc_id, data in self._store.items()
            if all(data.get(f) == v for f, v in self._filters)
        ]
        return iter(hits[: self._limit] if self._limit else hits)


class FakeCollection(FakeQuery):
    _ids = itertools.count(1)

    def __init__(self, store):
        super().__init__(store)

    def document(self, doc_id):
        return FakeDocRef(self._store, doc_id)

    def add(self, data):
        ref = FakeDocRef(self._store, f"auto{next(self._ids)}")
        ref.set(data)
        return None, ref


class FakeFirestore:
    def __init__(self):
        self.data = {}

    def collection(self, name):
        return FakeCollection(self.data.setdefault(name, {}))

    def seed(self, collection, doc_id, doc):
        self.data.setdefault(collection, {})[doc_id] = copy.deepcopy(doc)


@pytest.fixture
def fake_db(monkeypatch):
    db = FakeFirestore()
    monkeypatch.setattr(item_store, "_db", db)
    return db


@pytest.fixture
def small_dim(monkeypatch):
    """3-dimensional vectors keep fixtures readable."""
    monkeypatch.setattr(settings, "EMBEDDING_DIM", 3)
    monkeypatch.setattr(settings, "MATCH_SIMILARITY_THRESHOLD", 0.8)
    monkeypatch.setattr(settings, "MATCH_MAX_RESULTS", 5)
    return 3
