"""Published-CSV sheets behind the dashboard pages, each with a TTL cache."""
import logging
from typing import Any

import httpx

from dashboard.config import config
from dashboard.errors import UpstreamError
from dashboard.fetch.client import FetchClient
from dashboard.parse.models import AdminUser, LocalizationSource, QuickLink, SupportedGame
from dashboard.parse.sheet_csv import (
    parse_admin_users,
    parse_allowed_emails,
    parse_quick_links,
    parse_supported_games,
    placeholder_rows,
)
from dashboard.store.ttl_cache import TTLCache

logger = logging.getLogger(__name__)

LOCALIZATION_TABS = [
    ("Backend", "0"),
    ("Frontend", "1171289766"),
    ("Games", "455501543"),
]


def localization_sources() -> list[LocalizationSource]:
    return [
        LocalizationSource(
            name=name,
            csvUrl=f"{config.LOCALIZATION_CSV_BASE}?gid={gid}&single=true&output=csv",
            editUrl=f"{config.LOCALIZATION_EDIT_BASE}?gid={gid}#gid={gid}",
        )
        for name, gid in LOCALIZATION_TABS
    ]


class SheetSources:
    """Loads and caches quick links, admin users, games and localization."""

    def __init__(self, fetch: FetchClient, ttl_seconds: float = config.CACHE_TTL_SECONDS):
        self.fetch = fetch
        self.quick_links: TTLCache[list[QuickLink]] = TTLCache(
            "quick links", self._load_quick_links, ttl_seconds
        )
        self.admin_users: TTLCache[list[AdminUser]] = TTLCache(
            "admin users", self._load_admin_users, ttl_seconds
        )
        self.allowed_emails: TTLCache[list[str]] = TTLCache(
            "allowed emails", self._load_allowed_emails, ttl_seconds
        )
        self.supported_games: TTLCache[list[SupportedGame]] = TTLCache(
            "supported games", self._load_supported_games, ttl_seconds
        )
        self.localization: TTLCache[dict[str, Any]] = TTLCache(
            "localization", self._load_localization, ttl_seconds
        )

    async def _download(self, url: str, what: str) -> str:
        try:
            return await self.fetch.get_text(url)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Failed to fetch {what}") from e

    async def _load_quick_links(self) -> list[QuickLink]:
        return parse_quick_links(await self._download(config.QUICK_LINKS_CSV_URL, "quick links"))

    async def _load_admin_users(self) -> list[AdminUser]:
        return parse_admin_users(await self._download(config.ADMIN_USERS_CSV_URL, "admin users"))

    async def _load_allowed_emails(self) -> list[str]:
        return parse_allowed_emails(await self._download(config.ADMIN_USERS_CSV_URL, "allowed emails"))

    async def _load_supported_games(self) -> list[SupportedGame]:
        return parse_supported_games(
            await self._download(config.SUPPORTED_GAMES_CSV_URL, "supported games")
        )

    async def _load_localization(self) -> dict[str, Any]:
        sources = localization_sources()
        rows: list[dict[str, Any]] = []
        for source in sources:
            try:
                text = await self._download(source.csvUrl, f"{source.name} localization")
            except UpstreamError as e:
                logger.error(f"Skipping {source.name} localization: {e}")
                continue
            rows.extend(placeholder_rows(text, source.name))
        return {"rows": rows, "sources": sources}

    async def is_allowed(self, email: str) -> bool:
        """Whether an address is on the admin allow-list (case-insensitive)."""
        allowed = await self.allowed_emails.get()
        return email.strip().lower() in allowed
