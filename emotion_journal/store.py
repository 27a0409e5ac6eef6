"""
Journal storage for the Emotion Journal service.

``JournalStore`` is the interface every route talks to. The application is
handed one explicitly constructed store at startup (see ``server.create_app``)
and never reaches for a global connection.

``MemoryJournalStore`` keeps everything in process. It backs development runs
(``STORAGE_BACKEND=memory``) and the test suite, and enforces the same
uniqueness and ordering guarantees as the MongoDB store in ``mongo.py``.
"""

import asyncio
import itertools
from abc import ABC, abstractmethod

from bson import ObjectId

from .exceptions import EmailAlreadyRegisteredError
from .models import Emotion, User, utcnow


class JournalStore(ABC):
    """Persistence operations for users and their emotion entries."""

    async def open(self) -> None:
        """Prepare the backend (connections, indexes). Called once at startup."""

    async def close(self) -> None:
        """Release backend resources. Called once at shutdown."""

    @abstractmethod
    async def create_user(self, name: str, email: str) -> User:
        """
        Persist a new user.

        Raises:
            EmailAlreadyRegisteredError: if a user with this email exists
        """

    @abstractmethod
    async def find_user_by_email(self, email: str) -> User | None:
        """Return the user with exactly this email, or None."""

    @abstractmethod
    async def create_emotion(
        self, user: User, text: str, detected_emotion: str
    ) -> Emotion:
        """Persist an emotion owned by ``user``, copying the user's stored email."""

    @abstractmethod
    async def list_emotions(self, user_id: str) -> list[Emotion]:
        """Return the user's emotions, most recently created first."""

    @abstractmethod
    async def delete_emotion(self, emotion_id: str) -> bool:
        """Delete one emotion. Returns False when nothing matched."""

    @abstractmethod
    async def delete_emotions_for_user(self, user_id: str) -> int:
        """Delete all of the user's emotions. Returns how many were removed."""


class MemoryJournalStore(JournalStore):
    """
    In-memory journal storage.

    Writes are serialized with an asyncio lock so the email uniqueness check
    and the insert happen atomically.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._users: dict[str, User] = {}
        self._emotions: dict[str, Emotion] = {}
        # Insertion sequence, breaks createdAt ties when ordering
        self._sequence: dict[str, int] = {}
        self._counter = itertools.count()

    async def create_user(self, name: str, email: str) -> User:
        async with self._lock:
            if any(user.email == email for user in self._users.values()):
                raise EmailAlreadyRegisteredError()

            now = utcnow()
            user = User(
                id=str(ObjectId()),
                name=name,
                email=email,
                created_at=now,
                updated_at=now,
            )
            self._users[user.id] = user
            return user

    async def find_user_by_email(self, email: str) -> User | None:
        for user in self._users.values():
            if user.email == email:
                return user
        return None

    async def create_emotion(
        self, user: User, text: str, detected_emotion: str
    ) -> Emotion:
        async with self._lock:
            now = utcnow()
            emotion = Emotion(
                id=str(ObjectId()),
                user_id=user.id,
                email=user.email,
                text=text,
                detected_emotion=detected_emotion,
                created_at=now,
                updated_at=now,
            )
            self._emotions[emotion.id] = emotion
            self._sequence[emotion.id] = next(self._counter)
            return emotion

    async def list_emotions(self, user_id: str) -> list[Emotion]:
        owned = [e for e in self._emotions.values() if e.user_id == user_id]
        return sorted(
            owned,
            key=lambda e: (e.created_at, self._sequence[e.id]),
            reverse=True,
        )

    async def delete_emotion(self, emotion_id: str) -> bool:
        async with self._lock:
            self._sequence.pop(emotion_id, None)
            return self._emotions.pop(emotion_id, None) is not None

    async def delete_emotions_for_user(self, user_id: str) -> int:
        async with self._lock:
            doomed = [eid for eid, e in self._emotions.items() if e.user_id == user_id]
            for emotion_id in doomed:
                del self._emotions[emotion_id]
                del self._sequence[emotion_id]
            return len(doomed)
