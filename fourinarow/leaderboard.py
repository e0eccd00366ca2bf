"""
One-shot leaderboard fetch. Lives outside the session core: no state, no retries.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from fourinarow.shared.exceptions import (
    FourInARowError,
    LeaderboardError,
    NetworkError,
    SessionTimeoutError,
)

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 10.0


class LeaderboardEntry(BaseModel):
    username: str
    wins: int


_entries_adapter = TypeAdapter(list[LeaderboardEntry])


async def fetch_leaderboard(
    backend_url: str,
    *,
    timeout: float = _DEFAULT_TIMEOUT,
    client: httpx.AsyncClient | None = None,
) -> list[LeaderboardEntry]:
    """
    Fetch ``GET <backend_url>/leaderboard`` once.

    Args:
        backend_url: HTTP base URL of the game server
        timeout: Request timeout in seconds
        client: Optional custom httpx.AsyncClient

    Returns:
        list[LeaderboardEntry]: Entries in the order the server returned them

    Raises:
        LeaderboardError: If the server answers with an error status or a malformed body.
        NetworkError: If the server cannot be reached.
        SessionTimeoutError: If the request times out.
    """
    url = f"{backend_url.rstrip('/')}/leaderboard"
    should_close_client = False

    if client is None:
        client = httpx.AsyncClient(timeout=timeout)
        should_close_client = True

    try:
        try:
            response = await client.get(url)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise SessionTimeoutError(f"Leaderboard request timed out: {e!s}") from None
        except httpx.HTTPStatusError as e:
            raise LeaderboardError.from_httpx_error(e, context="Leaderboard") from None
        except httpx.RequestError as e:
            raise NetworkError(f"Network error: {e!s}") from None
        except ValueError as e:
            raise LeaderboardError(f"Leaderboard response is not JSON: {e!s}") from None
        except Exception as e:
            # Socket-level errors raised below httpx; anything unrecognised propagates as is
            raise FourInARowError() from e

        # The server sends null when nobody has won yet
        if data is None:
            return []
        try:
            entries = _entries_adapter.validate_python(data)
        except ValidationError as e:
            raise LeaderboardError(f"Unexpected leaderboard payload: {e}") from None
        logger.debug("Fetched %d leaderboard entries", len(entries))
        return entries
    finally:
        if should_close_client:
            await client.aclose()

