"""User registration and lookup routes."""

import logging

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ..exceptions import EmailAlreadyRegisteredError, NotFoundError
from ..models import User
from ..store import JournalStore

logger = logging.getLogger(__name__)


class UserRegistration(BaseModel):
    """Payload for registering a user."""

    name: str = Field(..., min_length=1, description="Display name")
    email: str = Field(..., min_length=1, description="Email address")


async def find_user_or_404(store: JournalStore, email: str) -> User:
    """Resolve ``email`` to a user, raising NotFoundError when absent."""
    user = await store.find_user_by_email(email)
    if user is None:
        raise NotFoundError("User")
    return user


def create_router(store: JournalStore) -> APIRouter:
    router = APIRouter(prefix="/api/users", tags=["users"])

    @router.post("/register", status_code=201)
    async def register_user(registration: UserRegistration) -> User:
        """
        Register a new user.

        Raises:
            EmailAlreadyRegisteredError: if the email is taken. The store's
                uniqueness guarantee also covers concurrent registrations
                that both pass the check below.
        """
        if await store.find_user_by_email(registration.email) is not None:
            raise EmailAlreadyRegisteredError()

        user = await store.create_user(name=registration.name, email=registration.email)
        logger.info("Registered user %s", user.id)
        return user

    @router.get("/email/{email}")
    async def get_user_by_email(email: str) -> User:
        return await find_user_or_404(store, email)

    return router
