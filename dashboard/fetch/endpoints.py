"""URL builders for Steam and Google Sheets endpoints."""
from urllib.parse import quote

from dashboard.config import config


def changed_dates_url() -> str:
    return f"{config.STEAM_PARTNER_BASE}/GetChangedDatesForPartner/v001/"


def detailed_sales_url() -> str:
    return f"{config.STEAM_PARTNER_BASE}/GetDetailedSales/v001/"


def current_players_url() -> str:
    return f"{config.STEAM_API_BASE}/ISteamUserStats/GetNumberOfCurrentPlayers/v1/"


def app_reviews_url(app_id: str) -> str:
    return f"{config.STEAM_STORE_BASE}/appreviews/{app_id}"


def app_details_url() -> str:
    return f"{config.STEAM_STORE_BASE}/api/appdetails"


def sheet_values_url(sheet_id: str, value_range: str, suffix: str = "") -> str:
    """Values endpoint for a range, e.g. ``financials!A:J`` with ``:append``."""
    return f"{config.SHEETS_API_BASE}/{sheet_id}/values/{quote(value_range, safe='')}{suffix}"
