"""Token issuing route."""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ..config import Settings
from ..tokens import issue_token


class TokenRequest(BaseModel):
    """Payload for token requests."""

    email: str = Field(..., min_length=1, description="Email to embed in the token")


class TokenResponse(BaseModel):
    token: str = Field(..., description="Signed token")


def create_router(settings: Settings) -> APIRouter:
    router = APIRouter(tags=["tokens"])

    @router.post("/jwt")
    async def create_token(request: TokenRequest) -> TokenResponse:
        """Issue a signed token for the given email. No user lookup is made."""
        return TokenResponse(token=issue_token(request.email, settings))

    return router
