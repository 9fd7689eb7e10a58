"""Public Steam store data: player count, reviews, app details."""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from dashboard.config import config
from dashboard.errors import ConfigurationError, UpstreamError
from dashboard.fetch.client import FetchClient
from dashboard.fetch.endpoints import app_details_url, app_reviews_url, current_players_url
from dashboard.parse.models import (
    SteamReview,
    SteamReviewPage,
    SteamReviewSummary,
    SteamStats,
)

logger = logging.getLogger(__name__)

REVIEWS_PER_PAGE = 20
PLACEHOLDER_APP_ID = "YOUR_APP_ID_HERE"


def _hours(minutes: Any) -> int:
    try:
        return round((minutes or 0) / 60)
    except TypeError:
        return 0


def review_from_api(raw: dict) -> SteamReview:
    author = raw.get("author") or {}
    return SteamReview(
        id=str(raw.get("recommendationid", "")),
        positive=bool(raw.get("voted_up")),
        text=raw.get("review") or "",
        hoursPlayed=_hours(author.get("playtime_forever")),
        hoursAtReview=_hours(author.get("playtime_at_review")),
        posted=raw.get("timestamp_created"),
        updated=raw.get("timestamp_updated"),
        votesUp=raw.get("votes_up") or 0,
        votesFunny=raw.get("votes_funny") or 0,
        steamDeck=bool(raw.get("primarily_steam_deck")),
        earlyAccess=bool(raw.get("written_during_early_access")),
        language=raw.get("language") or "",
    )


class SteamStoreClient:
    def __init__(self, fetch: FetchClient, app_id: Optional[str] = None):
        self.fetch = fetch
        self.app_id = app_id if app_id is not None else config.STEAM_APP_ID

    def _require_app_id(self) -> str:
        if not self.app_id or self.app_id == PLACEHOLDER_APP_ID:
            raise ConfigurationError("STEAM_APP_ID not configured")
        return self.app_id

    async def _json(self, url: str, params: dict[str, Any]) -> dict:
        try:
            data = await self.fetch.get_json(url, params=params)
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamError(f"Steam store request failed: {e}") from e
        return data if isinstance(data, dict) else {}

    async def get_stats(self) -> SteamStats:
        """Current players, review summary and store details in one call."""
        app_id = self._require_app_id()
        players, reviews, details = await asyncio.gather(
            self._json(current_players_url(), {"appid": app_id}),
            self._json(app_reviews_url(app_id), {"json": 1, "language": "all", "purchase_type": "all"}),
            self._json(app_details_url(), {"appids": app_id}),
        )

        summary = reviews.get("query_summary") or {}
        app = (details.get(app_id) or {}).get("data") or {}
        price = (app.get("price_overview") or {}).get("final_formatted")
        if not price and app.get("is_free"):
            price = "Free"

        return SteamStats(
            appId=app_id,
            currentPlayers=(players.get("response") or {}).get("player_count"),
            reviews=SteamReviewSummary(
                total=summary.get("total_reviews") or 0,
                positive=summary.get("total_positive") or 0,
                negative=summary.get("total_negative") or 0,
                score=summary.get("review_score") or 0,
                scoreDesc=summary.get("review_score_desc") or "No reviews",
            ),
            name=app.get("name") or "Unknown",
            headerImage=app.get("header_image"),
            price=price,
            fetchedAt=datetime.now(timezone.utc).isoformat(),
        )

    async def get_reviews(self, cursor: str = "*") -> SteamReviewPage:
        """One page of recent reviews; pass the returned cursor for the next."""
        app_id = self._require_app_id()
        data = await self._json(
            app_reviews_url(app_id),
            {
                "json": 1,
                "language": "all",
                "cursor": cursor or "*",
                "num_per_page": REVIEWS_PER_PAGE,
                "filter": "recent",
            },
        )
        reviews = [review_from_api(r) for r in data.get("reviews") or [] if isinstance(r, dict)]
        return SteamReviewPage(
            reviews=reviews,
            cursor=data.get("cursor"),
            hasMore=len(reviews) == REVIEWS_PER_PAGE,
        )
