"""Configuration management from environment variables."""
import os
from dotenv import load_dotenv

# Load .env file
load_dotenv()

SHEETS_PUB_BASE = "https://docs.google.com/spreadsheets/d/e"


class Config:
    """Application configuration."""

    # Steam
    STEAM_FINANCIAL_API_KEY: str | None = os.getenv("STEAM_FINANCIAL_API_KEY")
    STEAM_APP_ID: str | None = os.getenv("STEAM_APP_ID")
    STEAM_PARTNER_BASE: str = os.getenv(
        "STEAM_PARTNER_BASE", "https://partner.steam-api.com/IPartnerFinancialsService"
    )
    STEAM_API_BASE: str = os.getenv("STEAM_API_BASE", "https://api.steampowered.com")
    STEAM_STORE_BASE: str = os.getenv("STEAM_STORE_BASE", "https://store.steampowered.com")

    # Google service account
    GOOGLE_SERVICE_ACCOUNT_EMAIL: str | None = os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL")
    GOOGLE_PRIVATE_KEY: str | None = (
        os.getenv("GOOGLE_PRIVATE_KEY", "").replace("\\n", "\n") or None
    )
    SHEETS_API_BASE: str = os.getenv("SHEETS_API_BASE", "https://sheets.googleapis.com/v4/spreadsheets")

    # Financial cache sheet
    FINANCIAL_CACHE_SHEET_ID: str | None = os.getenv("FINANCIAL_CACHE_SHEET_ID")
    FINANCIAL_CACHE_RANGE: str = os.getenv("FINANCIAL_CACHE_RANGE", "financials!A:J")

    # UTM links sheet
    UTM_SHEET_ID: str = os.getenv("UTM_SHEET_ID", "1m_2tJytEOxThocixJnNHMFDaR8Auvz1nPkNSSrzD4JY")
    UTM_SHEET_TAB: str = os.getenv("UTM_SHEET_TAB", "Sheet1")

    # Published CSV sources
    QUICK_LINKS_CSV_URL: str = os.getenv(
        "QUICK_LINKS_CSV_URL",
        f"{SHEETS_PUB_BASE}/2PACX-1vSs97lkXWXvI68aD_cW1dTGOkiV1z2IBZweYe1B5g6vOxP1bpKK7v8qIkR1yj411BUOHVwZn8iklU1a/pub?gid=873922646&single=true&output=csv",
    )
    ADMIN_USERS_CSV_URL: str = os.getenv(
        "ADMIN_USERS_CSV_URL",
        f"{SHEETS_PUB_BASE}/2PACX-1vSs97lkXWXvI68aD_cW1dTGOkiV1z2IBZweYe1B5g6vOxP1bpKK7v8qIkR1yj411BUOHVwZn8iklU1a/pub?gid=0&single=true&output=csv",
    )
    SUPPORTED_GAMES_CSV_URL: str = os.getenv(
        "SUPPORTED_GAMES_CSV_URL",
        f"{SHEETS_PUB_BASE}/2PACX-1vQhYOhQ1fBAYHGdcsX8UgYI69pkmBI6LmzOgoA3EqwpNNkhwFsF0puv5kadYAcR3-b6DTbvZE3AlW1l/pub?gid=335410452&single=true&output=csv",
    )
    LOCALIZATION_CSV_BASE: str = os.getenv(
        "LOCALIZATION_CSV_BASE",
        f"{SHEETS_PUB_BASE}/2PACX-1vSo67XX-JghaiypmOfz0uhz4nC61EuLtSKfC-LaNqhAQFecg2Nv-sYD25K4Zhn8Q5JDUXRraT485y0X/pub",
    )
    LOCALIZATION_EDIT_BASE: str = os.getenv(
        "LOCALIZATION_EDIT_BASE",
        "https://docs.google.com/spreadsheets/d/12pha4I93gcVfSmwhfhOEDsUx3AZ7ZfyIVyWboPoef10/edit",
    )

    # Reconciliation / caching
    CACHE_TTL_SECONDS: int = int(os.getenv("CACHE_TTL_SECONDS", "1800"))
    FETCH_BATCH_SIZE: int = int(os.getenv("FETCH_BATCH_SIZE", "5"))

    # HTTP
    RATE_PER_DOMAIN: float = float(os.getenv("RATE_PER_DOMAIN", "5.0"))
    TIMEOUT: int = int(os.getenv("TIMEOUT", "20"))
    MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # API Security
    API_KEY: str | None = os.getenv("API_KEY")

    @classmethod
    def sheets_configured(cls) -> bool:
        """Whether a service account is available for the Sheets API."""
        return bool(cls.GOOGLE_SERVICE_ACCOUNT_EMAIL and cls.GOOGLE_PRIVATE_KEY)

    @classmethod
    def validate(cls, require_financials: bool = True) -> None:
        """Validate required configuration."""
        errors = []
        if require_financials and not cls.STEAM_FINANCIAL_API_KEY:
            errors.append("STEAM_FINANCIAL_API_KEY is required")
        if cls.FETCH_BATCH_SIZE < 1:
            errors.append("FETCH_BATCH_SIZE must be at least 1")
        if bool(cls.GOOGLE_SERVICE_ACCOUNT_EMAIL) != bool(cls.GOOGLE_PRIVATE_KEY):
            errors.append("GOOGLE_SERVICE_ACCOUNT_EMAIL and GOOGLE_PRIVATE_KEY must be set together")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")


config = Config()
