import copy
import os
import re
from types import SimpleNamespace

# Must be set before savora.config is imported
os.environ["APP_ENV"] = "test"
os.environ["JWT_ACCESS_SECRET"] = "test-access-secret-0123456789abcdef"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret-0123456789abcdef"

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient
from pymongo.errors import DuplicateKeyError

from savora.database.mongo import get_db
from savora.main import app
from savora.utils.auth_helper import pwd_context
from savora.utils.image_store import get_image_store

# Cheap hashes keep the suite fast
pwd_context.update(bcrypt__rounds=4)

_MISSING = object()


# --- In-memory stand-in for the handful of Motor collection calls the app makes ---

def _equals(value, expected):
    if isinstance(value, list) and not isinstance(expected, list):
        return expected in value
    return value == expected


def _matches(doc, query) -> bool:
    for key, cond in query.items():
        if key == "$or":
            if not any(_matches(doc, sub) for sub in cond):
                return False
            continue
        value = doc.get(key)
        if isinstance(cond, dict) and any(k.startswith("$") for k in cond):
            for op, arg in cond.items():
                if op == "$ne" and _equals(value, arg):
                    return False
                if op == "$in" and not any(_equals(value, a) for a in arg):
                    return False
                if op == "$regex":
                    flags = re.IGNORECASE if "i" in cond.get("$options", "") else 0
                    if not isinstance(value, str) or not re.search(arg, value, flags):
                        return False
        elif not _equals(value, cond):
            return False
    return True


def _project(doc, projection):
    doc = copy.deepcopy(doc)
    if not projection:
        return doc
    if any(v for k, v in projection.items() if k != "_id"):
        keep = {k for k, v in projection.items() if v} | {"_id"}
        return {k: v for k, v in doc.items() if k in keep}
    return {k: v for k, v in doc.items() if projection.get(k, 1)}


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs
        self._skip = 0
        self._limit = 0

    def sort(self, key, direction=1):
        present = [d for d in self.docs if d.get(key) is not None]
        missing = [d for d in self.docs if d.get(key) is None]
        present.sort(key=lambda d: d[key], reverse=direction == -1)
        self.docs = present + missing
        return self

    def skip(self, n):
        self._skip = n
        return self

    def limit(self, n):
        self._limit = n
        return self

    async def to_list(self, length=None):
        docs = self.docs[self._skip:]
        if self._limit:
            docs = docs[:self._limit]
        if length:
            docs = docs[:length]
        return docs


class FakeCollection:
    def __init__(self, name, unique=()):
        self.name = name
        self.unique = unique
        self.docs = []

    def seed(self, doc) -> ObjectId:
        doc = copy.deepcopy(doc)
        doc.setdefault("_id", ObjectId())
        self.docs.append(doc)
        return doc["_id"]

    def get(self, _id):
        return next((d for d in self.docs if d["_id"] == _id), None)

    async def create_index(self, *args, **kwargs):
        return "index"

    async def insert_one(self, doc):
        for field in self.unique:
            if any(d.get(field) == doc.get(field) for d in self.docs):
                raise DuplicateKeyError(f"duplicate key: {field}")
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, query, projection=None):
        for doc in self.docs:
            if _matches(doc, query):
                return _project(doc, projection)
        return None

    def find(self, query=None, projection=None):
        return FakeCursor([_project(d, projection) for d in self.docs if _matches(d, query or {})])

    async def count_documents(self, query):
        return sum(1 for d in self.docs if _matches(d, query))

    async def update_one(self, query, update):
        doc = next((d for d in self.docs if _matches(d, query)), None)
        if doc is None:
            return SimpleNamespace(matched_count=0, modified_count=0)
        before = copy.deepcopy(doc)
        for key, value in update.get("$set", {}).items():
            doc[key] = value
        for key in update.get("$unset", {}):
            doc.pop(key, None)
        for key, value in update.get("$addToSet", {}).items():
            if value not in doc.setdefault(key, []):
                doc[key].append(value)
        for key, value in update.get("$pull", {}).items():
            doc[key] = [v for v in doc.get(key, []) if v != value]
        for key, value in update.get("$push", {}).items():
            doc.setdefault(key, []).append(value)
        return SimpleNamespace(matched_count=1, modified_count=int(doc != before))

    async def delete_one(self, query):
        for idx, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[idx]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FakeDatabase:
    name = "savora_test"

    def __init__(self):
        self.collections = {"users": FakeCollection("users", unique=("email",))}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection(name))


class FakeImageStore:
    def __init__(self):
        self.uploaded = []
        self.deleted = []
        self.fail_delete = False

    async def upload(self, data: bytes):
        public_id = f"savora/img{len(self.uploaded) + 1}"
        self.uploaded.append(public_id)
        return f"https://images.test/{public_id}.jpg", public_id

    async def delete(self, public_id: str):
        if self.fail_delete:
            raise RuntimeError("image service unavailable")
        self.deleted.append(public_id)


# --- Fixtures ---

@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def image_store():
    return FakeImageStore()


@pytest_asyncio.fixture
async def client(db, image_store):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_image_store] = lambda: image_store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def refresh_cookie_from(response) -> str | None:
    match = re.search(r"refreshToken=([^;]*)", response.headers.get("set-cookie", ""))
    return match.group(1).strip('"') if match else None


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def register_user(ac, name="Asha", email="asha@example.com", password="secret123"):
    """Register through the API and return (access_token, refresh_token, user)."""
    response = await ac.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    ac.cookies.clear()
    return data["accessToken"], refresh_cookie_from(response), data["user"]


def make_recipe(author_id, **overrides) -> dict:
    from datetime import datetime, timezone

    now = datetime.now(timezone.utc)
    doc = {
        "title": "Paneer Tikka",
        "description": "Smoky grilled paneer",
        "image": {"url": "https://images.test/savora/paneer.jpg", "publicId": "savora/paneer"},
        "ingredients": [{"name": "Paneer", "quantity": "200 g"}],
        "steps": [{"stepNumber": 1, "instruction": "Marinate"}],
        "prepTime": 15,
        "cookTime": 20,
        "servings": 2,
        "difficulty": "Medium",
        "category": "Dinner",
        "dietType": "Balanced",
        "likes": [],
        "comments": [],
        "author": author_id,
        "createdAt": now,
        "updatedAt": now,
    }
    doc.update(overrides)
    return doc
