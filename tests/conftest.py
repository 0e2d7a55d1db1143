import os

# Settings are read at import time
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGODB_DB_NAME", "fincare_test")

import pytest
import pytest_asyncio
from beanie import init_beanie
from mongomock_motor import AsyncMongoMockClient

from fincare.database.models import DOCUMENT_MODELS, User


@pytest_asyncio.fixture
async def db():
    client = AsyncMongoMockClient()
    database = client["fincare_test"]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    yield database


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    async def _make_user(**fields) -> User:
        counter["n"] += 1
        data = {
            "email": f"member{counter['n']}@example.com",
            "first_name": "Ada",
            "last_name": f"Member{counter['n']}",
            "phone": "08000000000",
            "hashed_password": "not-a-real-hash",
        }
        data.update(fields)
        user = User(**data)
        await user.insert()
        return user

    return _make_user


async def reload_user(user: User) -> User:
    return await User.find_one({"_id": user.id})


class FakeAgg:
    def __init__(self, result):
        self._result = result

    async def to_list(self):
        return self._result
