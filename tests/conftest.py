import copy
import os

os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from helperhub.middleware.error_handlers import install_error_handling
from helperhub.models.schemas import Identity, ProfileModel, Role
from helperhub.services.blob_store import BlobStore
from helperhub.services.ledger import RequestLedger
from helperhub.services.matching import MatchingEngine
from helperhub.services.profiles import BusinessInfoStore, ProfileStore
from helperhub.services.reviews import ReviewStore
from helperhub.services.roles import RoleResolver, SessionContext
from helperhub.services.store import DocumentStore


def _matches(doc, query):
    for key, cond in query.items():
        value = doc.get(key)
        if isinstance(cond, dict) and "$in" in cond:
            if value not in cond["$in"]:
                return False
        elif value != cond:
            return False
    return True


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs

    def sort(self, key_or_list, direction=None):
        keys = key_or_list if isinstance(key_or_list, list) else [(key_or_list, direction or 1)]
        for key, order in reversed(keys):
            self.docs.sort(key=lambda d: d.get(key), reverse=order < 0)
        return self

    async def to_list(self, length=None):
        return self.docs if length is None else self.docs[:length]


class FakeCollection:
    """Just enough of the Motor collection API for the store layer"""

    def __init__(self, name):
        self.name = name
        self.docs = []
        self.error = None
        self._next_id = 0

    def _check(self):
        if self.error is not None:
            raise self.error

    def _find(self, query):
        return [d for d in self.docs if _matches(d, query)]

    async def find_one(self, query):
        self._check()
        found = self._find(query)
        return copy.deepcopy(found[0]) if found else None

    def find(self, query):
        self._check()
        return FakeCursor([copy.deepcopy(d) for d in self._find(query)])

    async def insert_one(self, doc):
        self._check()
        self._next_id += 1
        self.docs.append({**copy.deepcopy(doc), "_id": self._next_id})

    async def replace_one(self, query, doc, upsert=False):
        self._check()
        found = self._find(query)
        if found:
            _id = found[0]["_id"]
            found[0].clear()
            found[0].update({**copy.deepcopy(doc), "_id": _id})
        elif upsert:
            await self.insert_one(doc)

    async def update_one(self, query, update, upsert=False):
        self._check()
        found = self._find(query)
        if found:
            found[0].update(copy.deepcopy(update["$set"]))
        elif upsert:
            await self.insert_one({**query, **update["$set"]})

    async def find_one_and_update(self, query, update, return_document=None):
        self._check()
        found = self._find(query)
        if not found:
            return None
        found[0].update(copy.deepcopy(update["$set"]))
        return copy.deepcopy(found[0])

    async def delete_one(self, query):
        self._check()
        found = self._find(query)
        if found:
            self.docs.remove(found[0])

    async def create_index(self, keys, unique=False):
        return "_".join(k for k, _ in keys)


@pytest.fixture
def collections():
    names = ["identities", "tokens", "employers", "job_seekers", "profiles",
             "business_info", "service_requests", "reviews"]
    return {name: FakeCollection(name) for name in names}


@pytest.fixture
def stores(collections):
    return {
        "identities": DocumentStore(collections["identities"], "user_id"),
        "tokens": DocumentStore(collections["tokens"], "token"),
        "employers": DocumentStore(collections["employers"], "user_id"),
        "job_seekers": DocumentStore(collections["job_seekers"], "user_id"),
        "profiles": DocumentStore(collections["profiles"], "user_id"),
        "business_info": DocumentStore(collections["business_info"], "user_id"),
        "requests": DocumentStore(collections["service_requests"], "request_id"),
        "reviews": DocumentStore(collections["reviews"], "review_id"),
    }


@pytest.fixture
def blob_store(tmp_path):
    return BlobStore(root=str(tmp_path / "uploads"), url_prefix="/media")


@pytest.fixture
def resolver(stores):
    return RoleResolver(stores["employers"], stores["job_seekers"], stores["profiles"])


@pytest.fixture
def ledger(stores):
    return RequestLedger(stores["requests"], stores["profiles"])


@pytest.fixture
def review_store(stores):
    return ReviewStore(stores["reviews"], stores["requests"], stores["profiles"])


@pytest.fixture
def engine(stores, review_store):
    return MatchingEngine(stores["profiles"], review_store)


@pytest.fixture
def profile_store(stores, blob_store):
    return ProfileStore(stores["profiles"], blob_store)


@pytest.fixture
def business_store(stores):
    return BusinessInfoStore(stores["business_info"])


def make_profile(user_id, role=Role.JOB_SEEKER, categories=("cook",), **overrides):
    doc = {
        "user_id": user_id,
        "first_name": overrides.pop("first_name", "Asha"),
        "last_name": overrides.pop("last_name", "Verma"),
        "email": f"{user_id}@example.com",
        "phone": overrides.pop("phone", "555-0100"),
        "user_type": role.value,
        "selected_categories": list(categories) if role == Role.JOB_SEEKER else [],
    }
    doc.update(overrides)
    return doc


def make_context(user_id, role, profile=None, display_name=None, phone=None):
    identity = Identity(
        user_id=user_id,
        email=f"{user_id}@example.com",
        display_name=display_name,
        phone=phone,
    )
    return SessionContext(
        identity=identity,
        role=role,
        profile=ProfileModel(**profile) if profile else None,
    )


def build_client(routers, overrides):
    app = FastAPI()
    install_error_handling(app)
    for router in routers if isinstance(routers, (list, tuple)) else [routers]:
        app.include_router(router, prefix="/api")
    app.dependency_overrides.update(overrides)
    return TestClient(app)
