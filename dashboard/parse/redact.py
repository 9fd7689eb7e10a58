"""Masking of credentials before they reach logs or error messages."""
import re
from typing import Any

REDACTED = "[REDACTED]"

SECRET_KEYS = ("key", "api_key", "access_token", "refresh_token", "private_key", "assertion", "authorization")

_PATTERNS = [
    # Steam Web API keys travel as a query parameter
    (re.compile(r'([?&](?:key|access_token|assertion)=)[^&#\s"\']+', re.IGNORECASE), rf"\1{REDACTED}"),
    (re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+", re.IGNORECASE), rf"\1{REDACTED}"),
    (re.compile(r'("?(?:access_token|refresh_token|private_key)"?\s*[:=]\s*)"[^"]*"', re.IGNORECASE), rf'\1"{REDACTED}"'),
    (re.compile(r"-----BEGIN [A-Z ]*PRIVATE KEY-----.*?-----END [A-Z ]*PRIVATE KEY-----", re.DOTALL), REDACTED),
]


def is_secret_key(name: Any) -> bool:
    lowered = str(name).lower()
    return lowered in SECRET_KEYS or lowered.endswith(("_token", "_secret"))


def redact_string(text: str) -> str:
    """Mask secrets embedded in free text: URLs, headers, JSON bodies."""
    for pattern, replacement in _PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def redact_json(data: Any) -> Any:
    """Copy of decoded JSON with secret-named fields replaced wholesale
    and secrets inside other strings masked."""
    if isinstance(data, dict):
        return {
            key: REDACTED if is_secret_key(key) else redact_json(value)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [redact_json(item) for item in data]
    if isinstance(data, str):
        return redact_string(data)
    return data
