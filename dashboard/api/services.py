"""Long-lived collaborators shared by API routes and the CLI."""
import logging
from dataclasses import dataclass

from dashboard.auth.google_token import GoogleTokenProvider
from dashboard.config import config
from dashboard.fetch.client import FetchClient
from dashboard.fetch.sheet_sources import SheetSources
from dashboard.fetch.steam_financials import SteamFinancialsClient
from dashboard.fetch.steam_store import SteamStoreClient
from dashboard.jobs.reconcile import ReconciliationEngine
from dashboard.store.financial_cache import FinancialCache
from dashboard.store.sheets import SheetsClient
from dashboard.store.utm_links import UtmLinkStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    fetch: FetchClient
    financials: SteamFinancialsClient
    engine: ReconciliationEngine
    store: SteamStoreClient
    sources: SheetSources
    utm_links: UtmLinkStore

    async def aclose(self) -> None:
        await self.fetch.aclose()


def build_services() -> Services:
    """Wire the default collaborators from ``config``."""
    fetch = FetchClient()
    tokens = GoogleTokenProvider()
    sheets = SheetsClient(fetch, tokens)
    if not tokens.configured:
        logger.warning("Google service account not configured, sales cache disabled")

    financials = SteamFinancialsClient(fetch)
    cache = FinancialCache(sheets if tokens.configured else None)
    return Services(
        fetch=fetch,
        financials=financials,
        engine=ReconciliationEngine(financials, cache, batch_size=config.FETCH_BATCH_SIZE),
        store=SteamStoreClient(fetch),
        sources=SheetSources(fetch, ttl_seconds=config.CACHE_TTL_SECONDS),
        utm_links=UtmLinkStore(sheets),
    )
