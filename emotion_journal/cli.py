"""
Command-line client for the Emotion Journal service.
"""

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import typer

from .models import Emotion, User

DEFAULT_BASE_URL = "http://localhost:5000"

app = typer.Typer(help="Emotion Journal CLI tools")

BaseUrlOption = typer.Option(
    DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the Emotion Journal service"
)


# MARK: - Commands


@app.command()
def register(
    name: str = typer.Argument(..., help="Display name"),
    email: str = typer.Argument(..., help="Email address"),
    base_url: str = BaseUrlOption,
) -> None:
    """Register a new user."""

    async def _register(client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/users/register", json={"name": name, "email": email}
        )
        response.raise_for_status()
        user = User.model_validate(response.json())
        print(f"Registered {user.name} <{user.email}> ({user.id})")

    _run_with_error_handling(_register, base_url)


@app.command()
def user(
    email: str = typer.Argument(..., help="Email address to look up"),
    base_url: str = BaseUrlOption,
) -> None:
    """Show a registered user."""

    async def _user(client: httpx.AsyncClient) -> None:
        response = await client.get(f"/api/users/email/{email}")
        response.raise_for_status()
        found = User.model_validate(response.json())
        print(f"{found.name} <{found.email}> ({found.id})")

    _run_with_error_handling(_user, base_url)


@app.command()
def token(
    email: str = typer.Argument(..., help="Email to embed in the token"),
    base_url: str = BaseUrlOption,
) -> None:
    """Request a signed token."""

    async def _token(client: httpx.AsyncClient) -> None:
        response = await client.post("/jwt", json={"email": email})
        response.raise_for_status()
        print(response.json()["token"])

    _run_with_error_handling(_token, base_url)


@app.command()
def log(
    email: str = typer.Argument(..., help="Email of the journal owner"),
    text: str = typer.Argument(..., help="Journal text"),
    emotion: str = typer.Option(..., "--emotion", "-e", help="Detected emotion label"),
    base_url: str = BaseUrlOption,
) -> None:
    """Record an emotion."""

    async def _log(client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/emotions",
            json={"email": email, "text": text, "detectedEmotion": emotion},
        )
        response.raise_for_status()
        entry = Emotion.model_validate(response.json())
        print(f"Saved {entry.id}")

    _run_with_error_handling(_log, base_url)


@app.command("list")
def list_emotions(
    email: str = typer.Argument(..., help="Email of the journal owner"),
    base_url: str = BaseUrlOption,
    json_output: bool = typer.Option(False, "--json", "-j", help="Output raw JSON"),
) -> None:
    """List a user's emotions, newest first."""

    async def _list(client: httpx.AsyncClient) -> None:
        response = await client.get("/api/emotions", params={"email": email})
        response.raise_for_status()
        result = response.json()

        if json_output:
            print(json.dumps(result, indent=2))
            return

        if not result:
            print("No emotions recorded")
            return
        for raw in result:
            print(_format_emotion(Emotion.model_validate(raw)))

    _run_with_error_handling(_list, base_url)


@app.command()
def delete(
    emotion_id: str = typer.Argument(..., help="Id of the emotion to delete"),
    base_url: str = BaseUrlOption,
) -> None:
    """Delete one emotion."""

    async def _delete(client: httpx.AsyncClient) -> None:
        response = await client.delete(f"/api/emotions/{emotion_id}")
        response.raise_for_status()
        print(response.json()["message"])

    _run_with_error_handling(_delete, base_url)


@app.command()
def clear(
    email: str = typer.Argument(..., help="Email of the journal owner"),
    base_url: str = BaseUrlOption,
) -> None:
    """Delete all of a user's emotions."""

    async def _clear(client: httpx.AsyncClient) -> None:
        response = await client.delete("/api/emotions", params={"email": email})
        response.raise_for_status()
        print(f"Deleted {response.json()['deletedCount']} emotions")

    _run_with_error_handling(_clear, base_url)


# MARK: - Private Helpers


def _make_client(base_url: str) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=base_url)


def _format_emotion(emotion: Emotion) -> str:
    timestamp = emotion.created_at.astimezone().strftime("%Y-%m-%d %H:%M:%S")
    return f"{timestamp} [{emotion.detected_emotion}] {emotion.text} ({emotion.id})"


def _error_message(response: httpx.Response) -> str:
    """Prefer the server's error field over the bare status code."""
    try:
        payload: Any = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("error"):
        return f"HTTP {response.status_code}: {payload['error']}"
    return f"HTTP {response.status_code}"


def _run_with_error_handling(
    request: Callable[[httpx.AsyncClient], Awaitable[None]], base_url: str
) -> None:
    """Run an async request against the service with standardized error handling."""

    async def _run() -> None:
        async with _make_client(base_url) as client:
            await request(client)

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        print("\nStopped")
        raise typer.Exit(0)
    except httpx.ConnectError:
        print(f"Error: Could not connect to {base_url}")
        raise typer.Exit(1)
    except httpx.HTTPStatusError as e:
        print(f"Error: {_error_message(e.response)}")
        raise typer.Exit(1)
    except Exception as e:
        error_msg = str(e) if str(e) else f"Unknown error of type {type(e).__name__}"
        print(f"Error: {error_msg}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
