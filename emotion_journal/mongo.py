"""
MongoDB storage for the Emotion Journal service.

Users live in the ``users`` collection and emotions in ``emotions``. Email
uniqueness is enforced by a unique index, so two concurrent registrations
for the same address cannot both succeed even though the register route
checks before inserting.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, AsyncMongoClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from .exceptions import EmailAlreadyRegisteredError, StorageError
from .models import Emotion, User, utcnow
from .store import JournalStore

logger = logging.getLogger(__name__)

USERS = "users"
EMOTIONS = "emotions"


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    """Re-raise driver failures as StorageError."""
    try:
        yield
    except PyMongoError as e:
        logger.error("MongoDB %s failed: %s", operation, e, exc_info=True)
        raise StorageError(operation) from e


def _user_from_document(doc: dict[str, Any]) -> User:
    data = dict(doc)
    data["id"] = str(data.pop("_id"))
    return User.model_validate(data)


def _emotion_from_document(doc: dict[str, Any]) -> Emotion:
    data = dict(doc)
    data["id"] = str(data.pop("_id"))
    data["userId"] = str(data["userId"])
    return Emotion.model_validate(data)


class MongoJournalStore(JournalStore):
    """
    Journal storage backed by MongoDB through pymongo's asyncio client.

    Args:
        uri: MongoDB connection string. A database named in the URI wins over
            ``database``.
        database: Database to use when the URI does not name one
        client: Pre-built client, mainly for tests
    """

    def __init__(
        self,
        uri: str,
        database: str = "emotion_journal",
        client: AsyncMongoClient | None = None,
    ) -> None:
        self._client = client or AsyncMongoClient(uri, tz_aware=True)
        db = self._client.get_default_database(default=database)
        self._users = db[USERS]
        self._emotions = db[EMOTIONS]

    async def open(self) -> None:
        with _storage_errors("index setup"):
            await self._users.create_index("email", unique=True)
            await self._emotions.create_index(
                [("userId", ASCENDING), ("createdAt", DESCENDING)]
            )
        logger.info("MongoDB indexes ready")

    async def close(self) -> None:
        await self._client.close()

    async def create_user(self, name: str, email: str) -> User:
        now = utcnow()
        doc = {"name": name, "email": email, "createdAt": now, "updatedAt": now}
        with _storage_errors("create user"):
            try:
                result = await self._users.insert_one(doc)
            except DuplicateKeyError as e:
                raise EmailAlreadyRegisteredError() from e
        doc["_id"] = result.inserted_id
        return _user_from_document(doc)

    async def find_user_by_email(self, email: str) -> User | None:
        with _storage_errors("find user"):
            doc = await self._users.find_one({"email": email})
        return _user_from_document(doc) if doc else None

    async def create_emotion(
        self, user: User, text: str, detected_emotion: str
    ) -> Emotion:
        now = utcnow()
        doc = {
            "userId": ObjectId(user.id),
            "email": user.email,
            "text": text,
            "detectedEmotion": detected_emotion,
            "createdAt": now,
            "updatedAt": now,
        }
        with _storage_errors("create emotion"):
            result = await self._emotions.insert_one(doc)
        doc["_id"] = result.inserted_id
        return _emotion_from_document(doc)

    async def list_emotions(self, user_id: str) -> list[Emotion]:
        cursor = self._emotions.find({"userId": ObjectId(user_id)}).sort(
            [("createdAt", DESCENDING), ("_id", DESCENDING)]
        )
        with _storage_errors("list emotions"):
            return [_emotion_from_document(doc) async for doc in cursor]

    async def delete_emotion(self, emotion_id: str) -> bool:
        try:
            oid = ObjectId(emotion_id)
        except InvalidId:
            # Not a well-formed id, so nothing can match it
            return False
        with _storage_errors("delete emotion"):
            result = await self._emotions.delete_one({"_id": oid})
        return result.deleted_count > 0

    async def delete_emotions_for_user(self, user_id: str) -> int:
        with _storage_errors("delete emotions"):
            result = await self._emotions.delete_many({"userId": ObjectId(user_id)})
        return result.deleted_count
