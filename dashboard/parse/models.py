"""Data models for sales records, dashboard sheets and Steam data."""
from decimal import Decimal
from typing import Any, Optional
from pydantic import BaseModel, Field, field_validator

from dashboard.parse.normalize import parse_decimal, parse_int

# Column order of the financial cache sheet
CACHE_HEADERS = [
    "date",
    "country_code",
    "gross_sales_usd",
    "net_sales_usd",
    "gross_returns_usd",
    "net_tax_usd",
    "gross_units_sold",
    "gross_units_activated",
    "last_fetched",
    "gross_units_returned",
]

MONEY_FIELDS = ("gross_sales_usd", "net_sales_usd", "gross_returns_usd", "net_tax_usd")
UNIT_FIELDS = ("gross_units_sold", "gross_units_activated", "gross_units_returned")


class SalesRecord(BaseModel):
    """One country's sales for one report date."""

    date: str = Field(..., description="Report date, YYYY/MM/DD")
    country_code: str = Field(default="")
    gross_sales_usd: Decimal = Field(default=Decimal("0"))
    net_sales_usd: Decimal = Field(default=Decimal("0"))
    gross_returns_usd: Decimal = Field(default=Decimal("0"), description="Usually negative")
    net_tax_usd: Decimal = Field(default=Decimal("0"))
    gross_units_sold: int = 0
    gross_units_activated: int = 0
    gross_units_returned: int = 0
    last_fetched: Optional[str] = Field(default=None, description="Date the row was pulled, YYYY/MM/DD")

    @field_validator(*MONEY_FIELDS, mode="before")
    @classmethod
    def _money(cls, value: Any) -> Decimal:
        return parse_decimal(value)

    @field_validator(*UNIT_FIELDS, mode="before")
    @classmethod
    def _units(cls, value: Any) -> int:
        return parse_int(value)

    @field_validator("country_code", mode="before")
    @classmethod
    def _code(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("last_fetched", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @classmethod
    def from_row(cls, row: dict[str, str]) -> "SalesRecord":
        """Build a record from a header-keyed sheet row."""
        return cls(**{key: row.get(key, "") for key in CACHE_HEADERS})

    def to_row(self) -> list[str]:
        """Serialize in cache column order."""
        values = {
            "date": self.date,
            "country_code": self.country_code,
            "last_fetched": self.last_fetched or "",
        }
        for name in MONEY_FIELDS:
            values[name] = str(getattr(self, name))
        for name in UNIT_FIELDS:
            values[name] = str(getattr(self, name))
        return [values[key] for key in CACHE_HEADERS]


class CountryInfo(BaseModel):
    """Display metadata for a country code."""

    country_code: str
    country_name: str = ""
    region: str = ""


class CacheEntry(BaseModel):
    """Cached rows for one report date."""

    date: str
    records: list[SalesRecord] = Field(default_factory=list)
    last_fetched: str


class DateRange(BaseModel):
    """Inclusive range of requested report dates."""

    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None

    model_config = {"populate_by_name": True}


class RevenueSummary(BaseModel):
    """Revenue waterfall over a set of sales records."""

    gross_sales: Decimal = Decimal("0")
    net_sales: Decimal = Decimal("0")
    returns: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    units_sold: int = 0
    units_returned: int = 0
    net_units: int = 0
    activations: int = 0
    after_tax: Decimal = Decimal("0")
    platform_cut: Decimal = Decimal("0")
    developer_cut: Decimal = Decimal("0")
    us_withholding: Decimal = Decimal("0")
    final_payout: Decimal = Decimal("0")
    days: int = 0
    daily_average: Decimal = Decimal("0")
    percentages: dict[str, Decimal] = Field(default_factory=dict)


class CountryBreakdown(BaseModel):
    """Per-country totals."""

    code: str
    name: str
    gross: Decimal
    net: Decimal
    units: int


class DailyPayout(BaseModel):
    """Payout for one report date."""

    date: str
    gross: Decimal
    payout: Decimal


class ReconciliationResult(BaseModel):
    """Merged cached and fetched sales for a set of requested dates."""

    results: list[SalesRecord] = Field(default_factory=list)
    country_info: list[CountryInfo] = Field(default_factory=list)
    fetched: int = 0
    cached: int = 0
    failed: int = 0
    date_range: DateRange = Field(default_factory=DateRange)


class QuickLink(BaseModel):
    name: str
    url: str
    tag: str = ""


class AdminUser(BaseModel):
    name: str
    email: str


class SupportedGame(BaseModel):
    name: str
    headerUrl: str = ""
    buyLink: str = ""
    gameId: str = ""
    guideUrl: str = ""
    redditPosts: str = ""
    website: str = ""
    twitterAccounts: str = ""
    subreddit: str = ""
    redditUser: str = ""
    discord: str = ""


class LocalizationSource(BaseModel):
    name: str
    csvUrl: str
    editUrl: str


class SteamReviewSummary(BaseModel):
    total: int = 0
    positive: int = 0
    negative: int = 0
    score: int = 0
    scoreDesc: str = "No reviews"


class SteamStats(BaseModel):
    """Store-facing numbers for the configured app."""

    appId: str
    currentPlayers: Optional[int] = None
    reviews: SteamReviewSummary = Field(default_factory=SteamReviewSummary)
    name: str = "Unknown"
    headerImage: Optional[str] = None
    price: Optional[str] = None
    fetchedAt: str


class SteamReview(BaseModel):
    id: str
    positive: bool = False
    text: str = ""
    hoursPlayed: int = 0
    hoursAtReview: int = 0
    posted: Optional[int] = None
    updated: Optional[int] = None
    votesUp: int = 0
    votesFunny: int = 0
    steamDeck: bool = False
    earlyAccess: bool = False
    language: str = ""


class SteamReviewPage(BaseModel):
    reviews: list[SteamReview] = Field(default_factory=list)
    cursor: Optional[str] = None
    hasMore: bool = False
