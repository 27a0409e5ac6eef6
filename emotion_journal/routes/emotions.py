"""Emotion journal routes."""

import logging

from fastapi import APIRouter, Query
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models import Emotion
from ..store import JournalStore
from .users import find_user_or_404

logger = logging.getLogger(__name__)


# API Request/Response Schemas
class EmotionEntry(BaseModel):
    """Payload for recording an emotion."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: str = Field(..., min_length=1, description="Owner's email")
    text: str = Field(..., min_length=1, description="Journal text")
    detected_emotion: str = Field(..., min_length=1, description="Emotion label")


class Confirmation(BaseModel):
    message: str


class BulkDeletion(Confirmation):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    deleted_count: int = Field(..., description="How many emotions were removed")


def create_router(store: JournalStore) -> APIRouter:
    router = APIRouter(prefix="/api/emotions", tags=["emotions"])

    @router.get("")
    async def list_emotions(email: str = Query(..., min_length=1)) -> list[Emotion]:
        """
        List a user's emotions, most recent first.

        Returns:
            The emotions; an empty list when the user has none
        """
        user = await find_user_or_404(store, email)
        return await store.list_emotions(user.id)

    @router.post("", status_code=201)
    async def create_emotion(entry: EmotionEntry) -> Emotion:
        """
        Record an emotion for an existing user.

        The stored entry copies the email from the user record rather than
        from the request.
        """
        user = await find_user_or_404(store, entry.email)
        emotion = await store.create_emotion(
            user, text=entry.text, detected_emotion=entry.detected_emotion
        )
        logger.info("Saved emotion %s for user %s", emotion.id, user.id)
        return emotion

    @router.delete("/{emotion_id}")
    async def delete_emotion(emotion_id: str) -> Confirmation:
        """
        Delete one emotion by id.

        Succeeds whether or not the id matched anything.
        """
        if not await store.delete_emotion(emotion_id):
            logger.debug("No emotion with id %s to delete", emotion_id)
        return Confirmation(message="Emotion deleted")

    @router.delete("")
    async def delete_all_emotions(email: str = Query(..., min_length=1)) -> BulkDeletion:
        user = await find_user_or_404(store, email)
        deleted = await store.delete_emotions_for_user(user.id)
        logger.info("Deleted %d emotions for user %s", deleted, user.id)
        return BulkDeletion(message="All emotions deleted", deleted_count=deleted)

    return router
