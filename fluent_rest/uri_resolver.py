"""URI Resolver - Turns caller-supplied locators into absolute URIs.

Locators without a scheme are treated as "host/path" and completed with
"http://". Validation is left to httpx's URL parser.
"""

from __future__ import annotations

import httpx


DEFAULT_SCHEME_PREFIX = "http:/"


class ResolutionError(Exception):
    """Raised when a resolved locator is not a usable absolute URL."""


def resolve_uri(locator: str | None) -> str | None:
    """Complete a locator into a scheme-qualified URI.

    None stays None and "" stays "". Anything not containing "http" gets a
    leading '/' if needed and then the "http:/" prefix, so "host/path" and
    "/host/path" both become "http://host/path".
    """
    if locator is None:
        return None
    if locator and "http" not in locator:
        if not locator.startswith("/"):
            locator = "/" + locator
        locator = DEFAULT_SCHEME_PREFIX + locator
    return locator


def parse_uri(uri: str) -> httpx.URL:
    """Parse a resolved URI, raising ResolutionError if httpx cannot send to it."""
    try:
        url = httpx.URL(uri)
    except (httpx.InvalidURL, TypeError, ValueError) as e:
        raise ResolutionError(f"Invalid URI '{uri}': {e}") from e

    if not url.is_absolute_url or not url.host:
        raise ResolutionError(f"URI '{uri}' has no scheme or host")
    return url
