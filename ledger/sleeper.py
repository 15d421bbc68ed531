# ledger/sleeper.py
"""Async client for the Sleeper API (rosters, players, season stats).

Docs: https://docs.sleeper.com/
"""

from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Set

import httpx

from ledger.cache import TTLCache

log = logging.getLogger("capbot.sleeper")

SLEEPER_API_BASE = "https://api.sleeper.app/v1"
PLAYERS_CACHE_TTL = 24 * 60 * 60


class SleeperError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def roster_player_ids(roster: Dict[str, Any]) -> Optional[Set[str]]:
    """Every player a roster holds (active, taxi and reserve).

    None when the provider sent no player list at all, which is not the same
    as an empty roster.
    """
    lists = [roster.get("players"), roster.get("taxi"), roster.get("reserve")]
    if roster.get("players") is None:
        return None
    out: Set[str] = set()
    for lst in lists:
        out.update(str(pid) for pid in (lst or []))
    return out


class SleeperClient:
    """
    Usage:
        client = SleeperClient()
        rosters = await client.get_rosters("1315789488873553920")
        await client.close()
    """

    def __init__(
        self,
        base_url: str = SLEEPER_API_BASE,
        timeout: float = 30.0,
        players_cache: Optional[TTLCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.players_cache = players_cache if players_cache is not None else TTLCache(PLAYERS_CACHE_TTL)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _fetch(self, endpoint: str) -> Any:
        client = await self._get_client()
        try:
            resp = await client.get(endpoint)
        except httpx.HTTPError as e:
            raise SleeperError(f"Sleeper request {endpoint} failed: {e}") from e
        if resp.status_code >= 400:
            raise SleeperError(
                f"Sleeper API error: {resp.status_code} {resp.reason_phrase} ({endpoint})",
                status_code=resp.status_code,
            )
        return resp.json()

    async def get_league(self, league_id: str) -> Dict[str, Any]:
        return await self._fetch(f"/league/{league_id}")

    async def get_users(self, league_id: str) -> List[Dict[str, Any]]:
        return await self._fetch(f"/league/{league_id}/users") or []

    async def get_rosters(self, league_id: str) -> List[Dict[str, Any]]:
        return await self._fetch(f"/league/{league_id}/rosters") or []

    async def get_season_stats(self, season: int) -> Dict[str, Dict[str, Any]]:
        return await self._fetch(f"/stats/nfl/regular/{season}") or {}

    async def get_all_players(self) -> Dict[str, Dict[str, Any]]:
        cached = self.players_cache.get("nfl")
        if cached is not None:
            return cached
        log.info("Fetching fresh players data from Sleeper...")
        players = await self._fetch("/players/nfl") or {}
        self.players_cache.set("nfl", players)
        log.info(f"Cached {len(players)} players")
        return players
