"""Parsers for the dashboard's published Google Sheets CSV exports."""
import csv
import io
from typing import Any

from dashboard.parse.models import AdminUser, QuickLink, SupportedGame

SUPPORTED_GAME_COLUMNS = [
    "name",
    "headerUrl",
    "buyLink",
    "gameId",
    "guideUrl",
    "redditPosts",
    "website",
    "twitterAccounts",
    "subreddit",
    "redditUser",
    "discord",
]


def read_rows(text: str) -> list[list[str]]:
    """CSV rows with cells stripped; blank lines dropped."""
    if not text:
        return []
    rows = []
    for row in csv.reader(io.StringIO(text.strip())):
        cells = [cell.strip() for cell in row]
        if any(cells):
            rows.append(cells)
    return rows


def read_records(text: str) -> list[dict[str, str]]:
    """Header-keyed rows; short rows are padded with empty strings."""
    rows = read_rows(text)
    if not rows:
        return []
    headers = rows[0]
    return [
        {header: (row[i] if i < len(row) else "") for i, header in enumerate(headers)}
        for row in rows[1:]
    ]


def parse_quick_links(text: str) -> list[QuickLink]:
    """name, url, tag; the url is everything between the first and last cell."""
    links = []
    for row in read_rows(text)[1:]:
        if len(row) < 3:
            continue
        link = QuickLink(name=row[0], url=",".join(row[1:-1]).strip(), tag=row[-1])
        if link.name and link.url:
            links.append(link)
    return links


def parse_admin_users(text: str) -> list[AdminUser]:
    users = []
    for row in read_rows(text)[1:]:
        if len(row) < 2:
            continue
        user = AdminUser(name=row[0], email=",".join(row[1:]).strip())
        if user.name and user.email:
            users.append(user)
    return users


def parse_allowed_emails(text: str) -> list[str]:
    """Lowercased addresses from the second column."""
    emails = []
    for row in read_rows(text)[1:]:
        if len(row) < 2:
            continue
        email = row[1].lower()
        if "@" in email:
            emails.append(email)
    return emails


def parse_supported_games(text: str) -> list[SupportedGame]:
    games = []
    for row in read_rows(text)[1:]:
        if len(row) < len(SUPPORTED_GAME_COLUMNS) or not row[0]:
            continue
        games.append(SupportedGame(**dict(zip(SUPPORTED_GAME_COLUMNS, row))))
    return games


def placeholder_rows(text: str, source: str) -> list[dict[str, Any]]:
    """Rows with "placeholder" in any cell other than the key (first) column."""
    found = []
    for row in read_records(text):
        if not row:
            continue
        key_column = next(iter(row))
        if any(
            column != key_column and "placeholder" in value.lower()
            for column, value in row.items()
        ):
            found.append({"source": source, "key": row[key_column], **row})
    return found
