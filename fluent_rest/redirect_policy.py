"""Redirect Policy - Per-builder redirect suppression over httpx's own rule.

The Executor sends every request with follow_redirects=False and installs
on_response as an httpx response hook for the duration of the send. The hook
runs before httpx builds next_request from the Location header, so a redirect
the policy refuses is handed back as-is, even when its Location is unusable.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import httpx


logger = logging.getLogger(__name__)


class UnfollowedRedirect(httpx.Response):
    """A redirect response httpx must return without building next_request."""

    @property
    def has_redirect_location(self) -> bool:
        return False


def default_is_redirected(request: httpx.Request, response: httpx.Response) -> bool:
    """httpx's redirect rule: a redirect status with a parseable Location header.

    Raises:
        httpx.InvalidURL: If the Location header is not a valid URL.
    """
    if not response.has_redirect_location:
        return False
    httpx.URL(response.headers["Location"])
    return True


class RedirectPolicy:
    """Decides whether a redirect response is followed.

    Suppression wins: with ignore_global set, or with the response status in
    ignore_statuses, nothing is followed. Otherwise the decision is delegated
    to default_is_redirected. If that rule raises, the redirect is not
    followed; the error is logged and never propagated.
    """

    def __init__(
        self,
        ignore_global: bool = False,
        ignore_statuses: Iterable[int] = (),
    ) -> None:
        self.ignore_global = ignore_global
        self.ignore_statuses: set[int] = set(ignore_statuses)

    def ignore(self, status_code: int) -> None:
        self.ignore_statuses.add(status_code)

    def reset(self) -> None:
        self.ignore_global = False
        self.ignore_statuses.clear()

    def is_suppressed(self, status_code: int) -> bool:
        return self.ignore_global or status_code in self.ignore_statuses

    def is_redirected(self, request: httpx.Request, response: httpx.Response) -> bool:
        if self.is_suppressed(response.status_code):
            logger.debug(
                "Redirect suppressed for %s %s (status %d)",
                request.method, request.url, response.status_code,
            )
            return False

        try:
            return default_is_redirected(request, response)
        except Exception:
            logger.debug(
                "Redirect rule failed for %s %s; not following",
                request.method, request.url, exc_info=True,
            )
            return False

    def on_response(self, response: httpx.Response) -> None:
        """httpx response hook: keep httpx from following a refused redirect."""
        if response.has_redirect_location and not self.is_redirected(response.request, response):
            response.__class__ = UnfollowedRedirect
