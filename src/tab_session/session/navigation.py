"""Address bar input resolution.

Turns what the user typed into the URL a tab should navigate to: absolute
URLs pass through, anything else becomes a query on the configured search
engine.
"""
from __future__ import annotations

import re
from urllib.parse import quote, urlsplit

SEARCH_ENGINES: dict[str, str] = {
    "google": "https://www.google.com/search?q={query}",
    "duckduckgo": "https://duckduckgo.com/?q={query}",
    "bing": "https://www.bing.com/search?q={query}",
    "perplexity": "https://www.perplexity.ai/search?q={query}",
}
DEFAULT_SEARCH_ENGINE = "google"

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_HIERARCHICAL_SCHEMES = frozenset({"http", "https", "ftp", "ws", "wss"})


def is_valid_url(text: str) -> bool:
    """Return True if ``text`` is an absolute URL.

    Hierarchical schemes (http, https, ...) need a host; opaque ones such as
    ``about:blank`` or ``mailto:`` only need the scheme.
    """
    candidate = text.strip()
    if not candidate or any(char.isspace() for char in candidate):
        return False
    try:
        parts = urlsplit(candidate)
    except ValueError:
        return False
    if not parts.scheme or not _SCHEME_RE.match(parts.scheme):
        return False
    if parts.scheme.lower() in _HIERARCHICAL_SCHEMES:
        return bool(parts.netloc)
    return bool(parts.netloc or parts.path)


def build_search_url(query: str, engine: str = DEFAULT_SEARCH_ENGINE) -> str:
    """Return the results URL for ``query``; unknown engines fall back to Google."""
    template = SEARCH_ENGINES.get(engine.lower(), SEARCH_ENGINES[DEFAULT_SEARCH_ENGINE])
    return template.format(query=quote(query, safe="!~*'()"))


def resolve_address(text: str, engine: str = DEFAULT_SEARCH_ENGINE) -> str:
    """Return the URL to load for address bar input ``text``."""
    if is_valid_url(text):
        return text.strip()
    return build_search_url(text.strip(), engine)
